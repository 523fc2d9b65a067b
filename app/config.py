import os
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field


class CacheSettings(BaseModel):
    max_entries: Optional[int] = Field(default=None, ge=1)
    ttl: Optional[float] = Field(default=None, gt=0)
    cache_failures: bool = False
    cancel_abandoned_loads: bool = False


class Settings(BaseModel):
    user_directory_url: str = "http://localhost:8001"
    request_timeout: float = Field(default=10.0, gt=0)
    purge_interval: int = Field(default=300, ge=1)
    log_level: str = "INFO"
    cache: CacheSettings = Field(default_factory=CacheSettings)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Builds settings from environment variables. Empty variables are
        treated as unset so the defaults apply.
        """
        if environ is None:
            environ = os.environ

        def _read(names: Dict[str, str]) -> Dict[str, Any]:
            values = {}
            for var, field in names.items():
                raw = environ.get(var)
                if raw is not None and raw.strip():
                    values[field] = raw.strip()
            return values

        data = _read(
            {
                "USER_DIRECTORY_URL": "user_directory_url",
                "USER_DIRECTORY_TIMEOUT": "request_timeout",
                "CACHE_PURGE_INTERVAL": "purge_interval",
                "LOG_LEVEL": "log_level",
            }
        )
        data["cache"] = _read(
            {
                "CACHE_MAX_ENTRIES": "max_entries",
                "CACHE_TTL": "ttl",
                "CACHE_FAILURES": "cache_failures",
                "CACHE_CANCEL_ABANDONED_LOADS": "cancel_abandoned_loads",
            }
        )
        return cls.model_validate(data)


settings = Settings.from_env()
