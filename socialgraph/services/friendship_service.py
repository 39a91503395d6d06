"""Friend-edge state machine.

An edge is created PENDING by ``send_request``, moved to ACCEPTED by
``accept_request``, and deleted by ``decline_request`` (from PENDING) or
``remove_friendship`` (from ACCEPTED). Each operation runs in its own
transaction: it commits its single edge mutation or nothing.
"""
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from socialgraph.errors import (
    DuplicateRequest,
    FriendshipNotFound,
    NotFound,
    RequestNotFound,
    SelfRequest,
    StorageError,
)
from socialgraph.models.friend_edge import FriendEdge, FriendStatus
from socialgraph.models.user import User
from socialgraph.services import user_service
from socialgraph.services.edge_store import EdgeStore

logger = logging.getLogger(__name__)


class FriendshipManager:
    def __init__(self, sessions: async_sessionmaker[AsyncSession]):
        self._sessions = sessions

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[EdgeStore]:
        """Open one transaction; commit on clean exit, roll back on any error."""
        try:
            async with self._sessions.begin() as session:
                yield EdgeStore(session)
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    async def resolve_user(self, user_id: int, role: str | None = None) -> User:
        async with self.transaction() as store:
            return await user_service.require_user(store.db, user_id, role=role)

    async def send_request(self, sender: User, receiver: User) -> FriendEdge:
        if sender.id == receiver.id:
            raise SelfRequest(sender.id)

        async with self.transaction() as store:
            existing = await store.find_edge(sender.id, receiver.id)
            if existing is None:
                existing = await store.find_edge(receiver.id, sender.id)
            if existing is not None:
                raise DuplicateRequest(sender.id, receiver.id)

            edge = await store.insert_edge(sender.id, receiver.id)

        logger.info("Friend request %s -> %s sent", sender.id, receiver.id)
        return edge

    async def accept_request(self, sender_id: int, receiver_id: int) -> FriendEdge:
        async with self.transaction() as store:
            edge = await self._pending_edge(store, sender_id, receiver_id)
            edge = await store.update_edge_status(edge, FriendStatus.ACCEPTED)

        logger.info("Friend request %s -> %s accepted", sender_id, receiver_id)
        return edge

    async def decline_request(self, sender_id: int, receiver_id: int) -> None:
        async with self.transaction() as store:
            edge = await self._pending_edge(store, sender_id, receiver_id)
            await store.delete_edge(edge)

        logger.info("Friend request %s -> %s declined", sender_id, receiver_id)

    async def remove_friendship(self, user1: User, user2: User) -> None:
        async with self.transaction() as store:
            # Forward direction wins if both somehow exist
            edge = await store.find_edge(user1.id, user2.id, FriendStatus.ACCEPTED)
            if edge is None:
                edge = await store.find_edge(user2.id, user1.id, FriendStatus.ACCEPTED)
            if edge is None:
                raise FriendshipNotFound(user1.id, user2.id)
            await store.delete_edge(edge)

        logger.info("Friendship %s <-> %s removed", user1.id, user2.id)

    async def list_friends(self, user_id: int) -> list[User]:
        async with self.transaction() as store:
            await user_service.require_user(store.db, user_id)
            edges = await store.edges_for_user(user_id, FriendStatus.ACCEPTED)
            return await store.users_by_ids([e.other(user_id) for e in edges])

    async def list_incoming_requests(self, user_id: int) -> list[FriendEdge]:
        async with self.transaction() as store:
            await user_service.require_user(store.db, user_id)
            return await store.pending_edges(recipient_id=user_id)

    async def list_outgoing_requests(self, user_id: int) -> list[FriendEdge]:
        async with self.transaction() as store:
            await user_service.require_user(store.db, user_id)
            return await store.pending_edges(requester_id=user_id)

    async def are_friends(self, user1_id: int, user2_id: int) -> bool:
        async with self.transaction() as store:
            for requester_id, recipient_id in ((user1_id, user2_id), (user2_id, user1_id)):
                if await store.find_edge(requester_id, recipient_id, FriendStatus.ACCEPTED):
                    return True
        return False

    @staticmethod
    async def _pending_edge(store: EdgeStore, sender_id: int, receiver_id: int) -> FriendEdge:
        sender = await store.find_user(sender_id)
        if sender is None:
            raise NotFound("user", sender_id, role="sender")
        receiver = await store.find_user(receiver_id)
        if receiver is None:
            raise NotFound("user", receiver_id, role="receiver")

        edge = await store.find_edge(sender_id, receiver_id, FriendStatus.PENDING)
        if edge is None:
            raise RequestNotFound(sender_id, receiver_id)
        return edge
