from typing import Hashable


class CacheError(Exception):
    """Base exception for cache misuse."""

    pass


class InvalidKeyError(CacheError, TypeError):
    def __init__(self, key):
        self.key = key
        super().__init__(f"Cache key {key!r} is not a valid identifier.")


class LookupFailedError(Exception):
    """Raised by a loader when the upstream lookup for a key fails."""
    def __init__(self, key: Hashable, reason: str):
        super().__init__(reason)
        self.key = key
        self.reason = reason


class UserNotFoundError(LookupFailedError):
    """Raised when the user directory has no user with the given ID."""
    def __init__(self, user_id: str):
        super().__init__(user_id, f"User with id {user_id} not found")
        self.user_id = user_id
