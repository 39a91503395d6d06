"""Storage boundary for friend edges.

Every method runs against the caller's ``AsyncSession``; the caller owns the
transaction. SQLAlchemy faults leave this module as ``StorageError`` (or
``EdgeConflict`` when a pair constraint rejects an insert).
"""
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from socialgraph.errors import EdgeConflict, StorageError
from socialgraph.models.friend_edge import FriendEdge, FriendStatus
from socialgraph.models.user import User

logger = logging.getLogger(__name__)


@contextmanager
def storage_errors() -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise StorageError(str(exc)) from exc


def violates(exc: IntegrityError, *markers: str) -> bool:
    """Whether the driver error names one of ``markers`` (constraint or column names)."""
    detail = str(exc.orig)
    return any(marker in detail for marker in markers)


# Postgres reports the constraint name, SQLite the constrained columns
PAIR_CONSTRAINTS = (
    "uq_friend_edges_pair",
    "uq_friend_edges_direction",
    "friend_edges.user_low_id, friend_edges.user_high_id",
    "friend_edges.requester_id, friend_edges.recipient_id",
)


class EdgeStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_user(self, user_id: int) -> User | None:
        with storage_errors():
            return await self.db.get(User, user_id)

    async def find_edge(
        self,
        requester_id: int,
        recipient_id: int,
        status: FriendStatus | None = None,
    ) -> FriendEdge | None:
        query = select(FriendEdge).where(
            FriendEdge.requester_id == requester_id,
            FriendEdge.recipient_id == recipient_id,
        )
        if status is not None:
            query = query.where(FriendEdge.status == status)
        with storage_errors():
            result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def insert_edge(self, requester_id: int, recipient_id: int) -> FriendEdge:
        """Insert a PENDING edge. Raises EdgeConflict if the pair is taken in either direction."""
        low, high = FriendEdge.canonical_pair(requester_id, recipient_id)
        edge = FriendEdge(
            requester_id=requester_id,
            recipient_id=recipient_id,
            user_low_id=low,
            user_high_id=high,
            status=FriendStatus.PENDING,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(edge)
        try:
            await self.db.flush()
        except IntegrityError as exc:
            if not violates(exc, *PAIR_CONSTRAINTS):
                raise StorageError(str(exc)) from exc
            logger.warning(
                "Edge %s -> %s rejected by pair constraint", requester_id, recipient_id
            )
            raise EdgeConflict(
                f"Edge between users {requester_id} and {recipient_id} conflicts with an existing edge"
            ) from exc
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc
        return edge

    async def update_edge_status(self, edge: FriendEdge, new_status: FriendStatus) -> FriendEdge:
        edge.status = new_status
        with storage_errors():
            await self.db.flush()
        return edge

    async def delete_edge(self, edge: FriendEdge) -> None:
        with storage_errors():
            await self.db.delete(edge)
            await self.db.flush()

    async def edges_for_user(self, user_id: int, status: FriendStatus) -> list[FriendEdge]:
        """Edges in either direction touching ``user_id`` with the given status."""
        with storage_errors():
            result = await self.db.execute(
                select(FriendEdge).where(
                    or_(
                        FriendEdge.requester_id == user_id,
                        FriendEdge.recipient_id == user_id,
                    ),
                    FriendEdge.status == status,
                )
            )
        return list(result.scalars().all())

    async def pending_edges(
        self, *, requester_id: int | None = None, recipient_id: int | None = None
    ) -> list[FriendEdge]:
        query = select(FriendEdge).where(FriendEdge.status == FriendStatus.PENDING)
        if requester_id is not None:
            query = query.where(FriendEdge.requester_id == requester_id)
        if recipient_id is not None:
            query = query.where(FriendEdge.recipient_id == recipient_id)
        query = query.order_by(FriendEdge.created_at.desc(), FriendEdge.id.desc())
        with storage_errors():
            result = await self.db.execute(query)
        return list(result.scalars().all())

    async def users_by_ids(self, user_ids: list[int]) -> list[User]:
        if not user_ids:
            return []
        with storage_errors():
            result = await self.db.execute(
                select(User).where(User.id.in_(user_ids)).order_by(User.id.asc())
            )
        return list(result.scalars().all())
