import httpx
import logging

from app.config import settings
from app.exceptions import LookupFailedError, UserNotFoundError
from app.models import User

logger = logging.getLogger(__name__)


async def fetch_user(user_id: str) -> User:
    """
    Fetches a single user from the user directory.

    Raises:
        UserNotFoundError: the directory answered 404.
        LookupFailedError: the directory failed, timed out or was unreachable.
    """
    url = f"{settings.user_directory_url.rstrip('/')}/users/{user_id}"
    try:
        async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
            response = await client.get(url)
    except httpx.TimeoutException as e:
        raise LookupFailedError(user_id, "network timeout") from e
    except httpx.HTTPError as e:
        raise LookupFailedError(user_id, f"user directory unreachable: {e}") from e

    if response.status_code == 404:
        raise UserNotFoundError(user_id)
    if response.is_error:
        logger.error(f"User directory returned {response.status_code} for user {user_id}")
        raise LookupFailedError(user_id, f"user directory returned {response.status_code}")
    return User.model_validate(response.json())
