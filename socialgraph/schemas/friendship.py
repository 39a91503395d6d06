from datetime import datetime

from pydantic import BaseModel

from socialgraph.models.friend_edge import FriendStatus


class FriendRequestCreate(BaseModel):
    sender_id: int
    receiver_id: int


class FriendEdgeResponse(BaseModel):
    requester_id: int
    recipient_id: int
    status: FriendStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class FriendshipStatusResponse(BaseModel):
    user_id: int
    other_id: int
    friends: bool
