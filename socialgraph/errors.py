"""Typed errors raised by the user directory, friendship manager and content service.

``SocialGraphError`` subclasses are caller-visible validation or state errors
and are never retried. ``StorageError`` wraps faults raised by the database
layer and is surfaced unchanged by the services.
"""


class SocialGraphError(ValueError):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(SocialGraphError):
    status_code = 404

    def __init__(self, entity: str, entity_id, role: str | None = None):
        self.entity = entity
        self.id = entity_id
        self.role = role
        label = (role or entity).capitalize()
        super().__init__(f"{label} with ID {entity_id} not found")


class SelfRequest(SocialGraphError):
    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__("Cannot send a friend request to yourself")


class DuplicateRequest(SocialGraphError):
    status_code = 409

    def __init__(self, sender_id: int, receiver_id: int):
        self.sender_id = sender_id
        self.receiver_id = receiver_id
        super().__init__(
            f"Friend request already exists between users {sender_id} and {receiver_id}"
        )


class RequestNotFound(SocialGraphError):
    status_code = 404

    def __init__(self, sender_id: int, receiver_id: int):
        self.sender_id = sender_id
        self.receiver_id = receiver_id
        super().__init__(
            f"Pending friend request not found from user {sender_id} to user {receiver_id}"
        )


class FriendshipNotFound(SocialGraphError):
    status_code = 404

    def __init__(self, user1_id: int, user2_id: int):
        self.user1_id = user1_id
        self.user2_id = user2_id
        super().__init__(
            f"No active friendship found between users {user1_id} and {user2_id}"
        )


class UserAlreadyExists(SocialGraphError):
    status_code = 409

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"An account with this {field} already exists")


class AlreadyLiked(SocialGraphError):
    status_code = 409

    def __init__(self, post_id: int, user_id: int):
        self.post_id = post_id
        self.user_id = user_id
        super().__init__(f"User with ID {user_id} has already liked post with ID {post_id}")


class StorageError(Exception):
    """Database fault surfaced from the storage boundary."""

    status_code = 503


class EdgeConflict(StorageError):
    """The database rejected an edge that collides with an existing pair."""

    status_code = 409
