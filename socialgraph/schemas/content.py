from datetime import datetime

from pydantic import BaseModel, Field


class PostCreate(BaseModel):
    user_id: int
    content: str = Field(min_length=1)


class PostUpdate(BaseModel):
    content: str = Field(min_length=1)


class PostResponse(BaseModel):
    id: int
    user_id: int
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


class CommentCreate(BaseModel):
    user_id: int
    content: str = Field(min_length=1)


class CommentUpdate(BaseModel):
    content: str = Field(min_length=1)


class CommentResponse(BaseModel):
    id: int
    post_id: int
    user_id: int
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


class LikeCreate(BaseModel):
    user_id: int


class LikeResponse(BaseModel):
    id: int
    post_id: int
    user_id: int
    created_at: datetime

    model_config = {"from_attributes": True}
