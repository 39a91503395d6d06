import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from socialgraph.models.base import Base


class FriendStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"


class FriendEdge(Base):
    """Directed friend request from ``requester_id`` to ``recipient_id``.

    ``user_low_id``/``user_high_id`` hold the canonical (min, max) pair so the
    database rejects an edge in the reverse direction of an existing one.
    """

    __tablename__ = "friend_edges"

    requester_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    recipient_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_low_id: Mapped[int] = mapped_column(nullable=False)
    user_high_id: Mapped[int] = mapped_column(nullable=False)
    status: Mapped[FriendStatus] = mapped_column(
        Enum(
            FriendStatus,
            name="friend_status",
            native_enum=False,
            length=20,
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=FriendStatus.PENDING,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("requester_id", "recipient_id", name="uq_friend_edges_direction"),
        UniqueConstraint("user_low_id", "user_high_id", name="uq_friend_edges_pair"),
        CheckConstraint("requester_id <> recipient_id", name="no_self_edge"),
        CheckConstraint("user_low_id < user_high_id", name="canonical_order"),
    )

    @staticmethod
    def canonical_pair(user_a: int, user_b: int) -> tuple[int, int]:
        return (min(user_a, user_b), max(user_a, user_b))

    @property
    def pair(self) -> tuple[int, int]:
        return (self.requester_id, self.recipient_id)

    def other(self, user_id: int) -> int:
        return self.recipient_id if self.requester_id == user_id else self.requester_id
