from typing import Hashable, Tuple

from app.models import User
from app.services.cache import cache
from app.services.directory import fetch_user

NAMESPACE = "users"


def _key(user_id: str) -> Tuple[str, str]:
    return (NAMESPACE, user_id)


async def _load_user(key: Tuple[str, str]) -> User:
    _, user_id = key
    return await fetch_user(user_id)


async def get_user(user_id: str) -> User:
    """Returns the user, asking the directory at most once per cached lifetime."""
    return await cache.get(_key(user_id), _load_user)


def invalidate_user(user_id: str) -> bool:
    return cache.invalidate(_key(user_id))


def invalidate_all_users() -> int:
    def in_namespace(key: Hashable) -> bool:
        return isinstance(key, tuple) and len(key) == 2 and key[0] == NAMESPACE

    return cache.invalidate_where(in_namespace)
