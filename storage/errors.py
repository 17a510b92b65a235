"""Errors raised by store implementations."""


class DuplicateKeyConflict(Exception):
    """Raised when a unique username or email constraint is violated."""

    def __init__(self, message: str = "User with this email or username already exists"):
        super().__init__(message)
        self.message = message


class StaleRevisionError(Exception):
    """Raised when a user document changed since it was read."""

    def __init__(self, user_id: str, expected_revision: int):
        super().__init__(f"User {user_id} is no longer at revision {expected_revision}")
        self.user_id = user_id
        self.expected_revision = expected_revision
