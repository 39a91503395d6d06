from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from socialgraph.database import get_db
from socialgraph.schemas.content import (
    CommentCreate,
    CommentResponse,
    CommentUpdate,
    LikeCreate,
    LikeResponse,
    PostCreate,
    PostResponse,
    PostUpdate,
)
from socialgraph.services import content_service

router = APIRouter(tags=["posts"])


# --- Posts ---


@router.post("/posts", response_model=PostResponse, status_code=201)
async def create_post(data: PostCreate, db: AsyncSession = Depends(get_db)):
    return await content_service.create_post(db, data.user_id, data.content)


@router.get("/posts", response_model=list[PostResponse])
async def list_posts(
    q: str | None = Query(None, min_length=1),
    start: datetime | None = None,
    end: datetime | None = None,
    db: AsyncSession = Depends(get_db),
):
    """List posts, optionally filtered by keyword or by a created_at range."""
    if q is not None:
        return await content_service.search_posts(db, q)
    if start is not None or end is not None:
        if start is None or end is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Both start and end are required for a date range",
            )
        return await content_service.posts_between(db, start, end)
    return await content_service.list_posts(db)


@router.get("/posts/{post_id}", response_model=PostResponse)
async def get_post(post_id: int, db: AsyncSession = Depends(get_db)):
    return await content_service.get_post(db, post_id)


@router.put("/posts/{post_id}", response_model=PostResponse)
async def update_post(post_id: int, data: PostUpdate, db: AsyncSession = Depends(get_db)):
    return await content_service.update_post(db, post_id, data.content)


@router.delete("/posts/{post_id}", status_code=204)
async def delete_post(post_id: int, db: AsyncSession = Depends(get_db)):
    await content_service.delete_post(db, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/users/{user_id}/posts", response_model=list[PostResponse])
async def user_posts(user_id: int, db: AsyncSession = Depends(get_db)):
    return await content_service.list_posts_by_user(db, user_id)


@router.get("/users/{user_id}/posts/top", response_model=list[PostResponse])
async def top_posts(
    user_id: int,
    limit: int = Query(5, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    return await content_service.top_posts_by_likes(db, user_id, limit)


# --- Comments ---


@router.post("/posts/{post_id}/comments", response_model=CommentResponse, status_code=201)
async def add_comment(post_id: int, data: CommentCreate, db: AsyncSession = Depends(get_db)):
    return await content_service.add_comment(db, post_id, data.user_id, data.content)


@router.get("/posts/{post_id}/comments", response_model=list[CommentResponse])
async def list_comments(post_id: int, db: AsyncSession = Depends(get_db)):
    return await content_service.list_comments(db, post_id)


@router.get("/comments/{comment_id}", response_model=CommentResponse)
async def get_comment(comment_id: int, db: AsyncSession = Depends(get_db)):
    return await content_service.get_comment(db, comment_id)


@router.put("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: int, data: CommentUpdate, db: AsyncSession = Depends(get_db)
):
    return await content_service.update_comment(db, comment_id, data.content)


@router.delete("/comments/{comment_id}", status_code=204)
async def delete_comment(comment_id: int, db: AsyncSession = Depends(get_db)):
    await content_service.delete_comment(db, comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Likes ---


@router.post("/posts/{post_id}/likes", response_model=LikeResponse, status_code=201)
async def add_like(post_id: int, data: LikeCreate, db: AsyncSession = Depends(get_db)):
    return await content_service.add_like(db, post_id, data.user_id)


@router.get("/posts/{post_id}/likes", response_model=list[LikeResponse])
async def list_likes(post_id: int, db: AsyncSession = Depends(get_db)):
    return await content_service.list_likes_by_post(db, post_id)


@router.get("/likes/{like_id}", response_model=LikeResponse)
async def get_like(like_id: int, db: AsyncSession = Depends(get_db)):
    return await content_service.get_like(db, like_id)


@router.delete("/posts/{post_id}/likes/{user_id}", status_code=204)
async def remove_like(post_id: int, user_id: int, db: AsyncSession = Depends(get_db)):
    await content_service.remove_like(db, post_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/users/{user_id}/likes", response_model=list[LikeResponse])
async def user_likes(user_id: int, db: AsyncSession = Depends(get_db)):
    return await content_service.list_likes_by_user(db, user_id)
