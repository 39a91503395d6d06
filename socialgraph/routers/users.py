from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from socialgraph.database import get_db
from socialgraph.errors import NotFound
from socialgraph.schemas.user import RegisterRequest, UserResponse
from socialgraph.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserResponse, status_code=201)
async def register(request: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Register a new account with username, email and password."""
    return await user_service.register_user(
        db=db,
        username=request.username,
        email=request.email,
        password=request.password,
    )


@router.get("", response_model=list[UserResponse])
async def list_users(db: AsyncSession = Depends(get_db)):
    return await user_service.list_users(db)


@router.get("/by-username/{username}", response_model=UserResponse)
async def get_by_username(username: str, db: AsyncSession = Depends(get_db)):
    user = await user_service.get_user_by_username(db, username)
    if user is None:
        raise NotFound("user", username)
    return user


@router.get("/by-email/{email}", response_model=UserResponse)
async def get_by_email(email: str, db: AsyncSession = Depends(get_db)):
    user = await user_service.get_user_by_email(db, email)
    if user is None:
        raise NotFound("user", email)
    return user


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    return await user_service.require_user(db, user_id)


@router.delete("/{user_id}", status_code=204)
async def delete_user(user_id: int, db: AsyncSession = Depends(get_db)):
    await user_service.delete_user(db, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
