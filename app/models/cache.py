from typing import Optional
from pydantic import BaseModel, Field


class CacheStats(BaseModel):
    size: int = Field(..., description="Resolved entries currently held.")
    pending: int = Field(..., description="Lookups currently in flight.")
    hits: int = 0
    misses: int = 0
    coalesced: int = 0
    failures: int = 0
    evictions: int = 0
    expirations: int = 0
    max_entries: Optional[int] = None
    ttl: Optional[float] = None
