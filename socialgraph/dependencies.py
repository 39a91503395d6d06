from socialgraph.database import SessionLocal
from socialgraph.services.friendship_service import FriendshipManager


def get_friendship_manager() -> FriendshipManager:
    return FriendshipManager(SessionLocal)
