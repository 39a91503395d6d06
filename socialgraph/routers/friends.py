from fastapi import APIRouter, Depends, Response, status

from socialgraph.dependencies import get_friendship_manager
from socialgraph.schemas.friendship import (
    FriendEdgeResponse,
    FriendRequestCreate,
    FriendshipStatusResponse,
)
from socialgraph.schemas.user import UserResponse
from socialgraph.services.friendship_service import FriendshipManager

router = APIRouter(tags=["friends"])


@router.post("/friends/requests", response_model=FriendEdgeResponse, status_code=201)
async def send_request(
    data: FriendRequestCreate,
    manager: FriendshipManager = Depends(get_friendship_manager),
):
    sender = await manager.resolve_user(data.sender_id, "sender")
    receiver = await manager.resolve_user(data.receiver_id, "receiver")
    return await manager.send_request(sender, receiver)


@router.post(
    "/friends/requests/{sender_id}/{receiver_id}/accept",
    response_model=FriendEdgeResponse,
)
async def accept_request(
    sender_id: int,
    receiver_id: int,
    manager: FriendshipManager = Depends(get_friendship_manager),
):
    """Accept the pending request sent by ``sender_id`` to ``receiver_id``."""
    return await manager.accept_request(sender_id, receiver_id)


@router.post("/friends/requests/{sender_id}/{receiver_id}/decline", status_code=204)
async def decline_request(
    sender_id: int,
    receiver_id: int,
    manager: FriendshipManager = Depends(get_friendship_manager),
):
    await manager.decline_request(sender_id, receiver_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/friends/{user_id}/{other_id}", response_model=FriendshipStatusResponse)
async def friendship_status(
    user_id: int,
    other_id: int,
    manager: FriendshipManager = Depends(get_friendship_manager),
):
    friends = await manager.are_friends(user_id, other_id)
    return {"user_id": user_id, "other_id": other_id, "friends": friends}


@router.delete("/friends/{user_id}/{other_id}", status_code=204)
async def remove_friendship(
    user_id: int,
    other_id: int,
    manager: FriendshipManager = Depends(get_friendship_manager),
):
    user = await manager.resolve_user(user_id)
    other = await manager.resolve_user(other_id)
    await manager.remove_friendship(user, other)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/users/{user_id}/friends", response_model=list[UserResponse])
async def list_friends(
    user_id: int,
    manager: FriendshipManager = Depends(get_friendship_manager),
):
    return await manager.list_friends(user_id)


@router.get("/users/{user_id}/friend-requests/incoming", response_model=list[FriendEdgeResponse])
async def incoming_requests(
    user_id: int,
    manager: FriendshipManager = Depends(get_friendship_manager),
):
    return await manager.list_incoming_requests(user_id)


@router.get("/users/{user_id}/friend-requests/outgoing", response_model=list[FriendEdgeResponse])
async def outgoing_requests(
    user_id: int,
    manager: FriendshipManager = Depends(get_friendship_manager),
):
    return await manager.list_outgoing_requests(user_id)
