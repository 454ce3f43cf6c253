from datetime import datetime

from pydantic import BaseModel


class CacheEntryInfo(BaseModel):
    """Metadata of one stored cache entry, as listed by a cache backend.

    Attributes:
        key:       The cache key (hashed logical path).
        size:      Stored payload size in bytes.
        timestamp: Recency signal of the backend (file mtime or upload time).
        location:  Backend-specific address (file path or public object URL).
    """

    key: str
    size: int
    timestamp: datetime
    location: str | None = None
