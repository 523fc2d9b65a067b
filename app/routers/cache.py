from fastapi import APIRouter

from app.models import CacheStats
from app.services.cache import cache


router: APIRouter = APIRouter()


@router.get("/stats", response_model=CacheStats)
async def get_stats():
    """
    Returns hit/miss counters and the current size of the lookup cache.
    """
    return cache.stats()


@router.delete("/")
async def clear_cache() -> dict[str, int]:
    """
    Removes every resolved entry. Lookups in flight are not affected.
    """
    return {"cleared": cache.clear()}


@router.post("/purge")
async def purge_cache() -> dict[str, int]:
    """
    Removes entries whose TTL has elapsed.
    """
    return {"purged": cache.purge_expired()}
