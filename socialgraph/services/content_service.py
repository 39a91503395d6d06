from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from socialgraph.errors import AlreadyLiked, NotFound, StorageError
from socialgraph.models.comment import Comment
from socialgraph.models.like import Like
from socialgraph.models.post import Post
from socialgraph.services.edge_store import violates
from socialgraph.services.user_service import require_user


async def _require_post(db: AsyncSession, post_id: int) -> Post:
    post = await db.get(Post, post_id)
    if post is None:
        raise NotFound("post", post_id)
    return post


# --- Posts ---


async def create_post(db: AsyncSession, user_id: int, content: str) -> Post:
    await require_user(db, user_id)
    post = Post(user_id=user_id, content=content)
    db.add(post)
    await db.flush()
    await db.refresh(post)
    return post


async def get_post(db: AsyncSession, post_id: int) -> Post:
    return await _require_post(db, post_id)


async def list_posts(db: AsyncSession) -> list[Post]:
    result = await db.execute(select(Post).order_by(Post.created_at.desc(), Post.id.desc()))
    return list(result.scalars().all())


async def list_posts_by_user(db: AsyncSession, user_id: int) -> list[Post]:
    await require_user(db, user_id)
    result = await db.execute(
        select(Post)
        .where(Post.user_id == user_id)
        .order_by(Post.created_at.desc(), Post.id.desc())
    )
    return list(result.scalars().all())


async def update_post(db: AsyncSession, post_id: int, content: str) -> Post:
    post = await _require_post(db, post_id)
    post.content = content
    await db.flush()
    await db.refresh(post)
    return post


async def delete_post(db: AsyncSession, post_id: int) -> None:
    post = await _require_post(db, post_id)
    await db.delete(post)
    await db.flush()


async def search_posts(db: AsyncSession, keyword: str) -> list[Post]:
    """Case-insensitive substring match on post content."""
    result = await db.execute(
        select(Post)
        .where(Post.content.icontains(keyword, autoescape=True))
        .order_by(Post.created_at.desc(), Post.id.desc())
    )
    return list(result.scalars().all())


async def posts_between(db: AsyncSession, start: datetime, end: datetime) -> list[Post]:
    result = await db.execute(
        select(Post)
        .where(Post.created_at.between(start, end))
        .order_by(Post.created_at.desc(), Post.id.desc())
    )
    return list(result.scalars().all())


async def top_posts_by_likes(db: AsyncSession, user_id: int, limit: int) -> list[Post]:
    """A user's posts ranked by like count, most liked first."""
    await require_user(db, user_id)
    like_count = func.count(Like.id).label("like_count")
    result = await db.execute(
        select(Post, like_count)
        .outerjoin(Like, Like.post_id == Post.id)
        .where(Post.user_id == user_id)
        .group_by(Post.id)
        .order_by(like_count.desc(), Post.created_at.desc(), Post.id.desc())
        .limit(limit)
    )
    return [row[0] for row in result.all()]


# --- Comments ---


async def add_comment(db: AsyncSession, post_id: int, user_id: int, content: str) -> Comment:
    await _require_post(db, post_id)
    await require_user(db, user_id)
    comment = Comment(post_id=post_id, user_id=user_id, content=content)
    db.add(comment)
    await db.flush()
    await db.refresh(comment)
    return comment


async def get_comment(db: AsyncSession, comment_id: int) -> Comment:
    comment = await db.get(Comment, comment_id)
    if comment is None:
        raise NotFound("comment", comment_id)
    return comment


async def list_comments(db: AsyncSession, post_id: int) -> list[Comment]:
    await _require_post(db, post_id)
    result = await db.execute(
        select(Comment)
        .where(Comment.post_id == post_id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    )
    return list(result.scalars().all())


async def update_comment(db: AsyncSession, comment_id: int, content: str) -> Comment:
    comment = await get_comment(db, comment_id)
    comment.content = content
    await db.flush()
    await db.refresh(comment)
    return comment


async def delete_comment(db: AsyncSession, comment_id: int) -> None:
    comment = await get_comment(db, comment_id)
    await db.delete(comment)
    await db.flush()


# --- Likes ---


async def find_like(db: AsyncSession, post_id: int, user_id: int) -> Like | None:
    result = await db.execute(
        select(Like).where(Like.post_id == post_id, Like.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def add_like(db: AsyncSession, post_id: int, user_id: int) -> Like:
    await _require_post(db, post_id)
    await require_user(db, user_id)

    if await find_like(db, post_id, user_id) is not None:
        raise AlreadyLiked(post_id, user_id)

    like = Like(post_id=post_id, user_id=user_id)
    db.add(like)
    try:
        await db.flush()
    except IntegrityError as exc:
        # A concurrent like for the same pair won the insert
        if violates(exc, "uq_likes_user_post", "likes.user_id, likes.post_id"):
            raise AlreadyLiked(post_id, user_id) from exc
        raise StorageError(str(exc)) from exc
    await db.refresh(like)
    return like


async def get_like(db: AsyncSession, like_id: int) -> Like:
    like = await db.get(Like, like_id)
    if like is None:
        raise NotFound("like", like_id)
    return like


async def list_likes_by_post(db: AsyncSession, post_id: int) -> list[Like]:
    await _require_post(db, post_id)
    result = await db.execute(
        select(Like).where(Like.post_id == post_id).order_by(Like.id.asc())
    )
    return list(result.scalars().all())


async def list_likes_by_user(db: AsyncSession, user_id: int) -> list[Like]:
    await require_user(db, user_id)
    result = await db.execute(
        select(Like).where(Like.user_id == user_id).order_by(Like.id.asc())
    )
    return list(result.scalars().all())


async def remove_like(db: AsyncSession, post_id: int, user_id: int) -> None:
    await _require_post(db, post_id)
    await require_user(db, user_id)

    like = await find_like(db, post_id, user_id)
    if like is None:
        raise NotFound("like", f"{user_id}/{post_id}")
    await db.delete(like)
    await db.flush()
