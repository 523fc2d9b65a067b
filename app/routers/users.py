import logging
from fastapi import APIRouter, HTTPException
from starlette.status import (
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
)

from app.exceptions import LookupFailedError, UserNotFoundError
from app.models import User
from app.modules.users import get_user, invalidate_all_users, invalidate_user


router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)


@router.delete("/cache")
async def forget_all_users() -> dict[str, int]:
    """
    Drops every cached user lookup. Lookups in flight still complete.
    """
    return {"invalidated": invalidate_all_users()}


@router.get("/{user_id}", response_model=User)
async def read_user(user_id: str):
    """
    Returns a user from the directory, served from cache when possible.
    """
    try:
        return await get_user(user_id)
    except UserNotFoundError:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="User not found")
    except LookupFailedError as e:
        logger.error(f"Error fetching user {user_id}: {e.reason}")
        raise HTTPException(
            status_code=HTTP_502_BAD_GATEWAY,
            detail=f"User directory lookup failed: {e.reason}",
        )
    except Exception as e:
        logger.exception(f"Unexpected error fetching user {user_id}: {e}")
        raise HTTPException(status_code=HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal Server Error")


@router.delete("/{user_id}/cache")
async def forget_user(user_id: str) -> dict[str, bool]:
    """
    Drops the cached lookup for one user so the next request refetches it.
    """
    return {"invalidated": invalidate_user(user_id)}
