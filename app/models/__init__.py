from .user import User
from .cache import CacheStats
from .error import Error

__all__ = [
    "User",
    "CacheStats",
    "Error",
]
