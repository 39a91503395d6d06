from socialgraph.models.base import Base
from socialgraph.models.comment import Comment
from socialgraph.models.friend_edge import FriendEdge, FriendStatus
from socialgraph.models.like import Like
from socialgraph.models.post import Post
from socialgraph.models.user import User

__all__ = [
    "Base",
    "Comment",
    "FriendEdge",
    "FriendStatus",
    "Like",
    "Post",
    "User",
]
