import logging

import bcrypt
from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from socialgraph.errors import NotFound, StorageError, UserAlreadyExists
from socialgraph.models.friend_edge import FriendEdge
from socialgraph.models.user import User
from socialgraph.services.edge_store import violates

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.id.asc()))
    return list(result.scalars().all())


async def require_user(db: AsyncSession, user_id: int, role: str | None = None) -> User:
    """Resolve a user id or raise NotFound naming the side that failed."""
    user = await get_user(db, user_id)
    if user is None:
        raise NotFound("user", user_id, role=role)
    return user


async def register_user(
    db: AsyncSession,
    username: str,
    email: str,
    password: str,
) -> User:
    """Register a new user with username/email/password."""
    if await get_user_by_username(db, username) is not None:
        raise UserAlreadyExists("username", username)
    if await get_user_by_email(db, email) is not None:
        raise UserAlreadyExists("email", email)

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration
        if violates(exc, "ix_users_email", "users.email"):
            raise UserAlreadyExists("email", email) from exc
        if violates(exc, "ix_users_username", "users.username"):
            raise UserAlreadyExists("username", username) from exc
        raise StorageError(str(exc)) from exc
    await db.refresh(user)
    logger.info("Registered user %s (%s)", user.id, user.username)
    return user


async def delete_user(db: AsyncSession, user_id: int) -> None:
    user = await require_user(db, user_id)
    # Edges reference the user from two columns; clear them explicitly
    await db.execute(
        delete(FriendEdge).where(
            or_(FriendEdge.requester_id == user_id, FriendEdge.recipient_id == user_id)
        )
    )
    await db.delete(user)
    await db.flush()
    logger.info("Deleted user %s", user_id)
