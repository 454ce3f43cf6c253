"""Size-bounded eviction for the PDF cache.

Before each write the aggregate size of all entries is compared against a
high-water mark. Once it is reached, the oldest half of the entries (by the
backend's timestamp, regardless of their individual size) is deleted in one
batch.
"""

from typing import Awaitable, Callable

from shared.clients.cache.models.CacheEntry import CacheEntryInfo
from shared.helper.HelperConfig import HelperConfig


class CacheEvictionManager:
    """Bulk, time-ordered eviction of cache entries."""

    def __init__(self, helper_config: HelperConfig, max_bytes: int) -> None:
        self.logging = helper_config.get_logger()
        self.max_bytes = int(max_bytes)

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def is_over_high_water(self, entries: list[CacheEntryInfo]) -> bool:
        """Returns True if the aggregate size is at or above the high-water mark."""
        return sum(entry.size for entry in entries) >= self.max_bytes

    ##########################################
    ################ GETTER ##################
    ##########################################

    def select_victims(self, entries: list[CacheEntryInfo]) -> list[CacheEntryInfo]:
        """Return the oldest floor(n/2) entries, oldest first.

        The sort is stable, so entries sharing a timestamp keep their listing order.
        """
        ordered = sorted(entries, key=lambda entry: entry.timestamp)
        return ordered[: len(ordered) // 2]

    ##########################################
    ############### EVICTION #################
    ##########################################

    async def do_evict(
        self,
        entries: list[CacheEntryInfo],
        remove: Callable[[str], Awaitable[None]],
    ) -> int:
        """Evict the oldest half of the entries if the high-water mark is reached.

        Args:
            entries (list[CacheEntryInfo]): All entries currently in the store.
            remove (Callable[[str], Awaitable[None]]): Backend delete coroutine taking a cache key.

        Returns:
            int: Number of entries actually deleted.
        """
        if not self.is_over_high_water(entries):
            return 0

        total = sum(entry.size for entry in entries)
        victims = self.select_victims(entries)
        self.logging.warning(
            "Cache size %d bytes reached high-water mark of %d bytes. Evicting %d of %d entries...",
            total, self.max_bytes, len(victims), len(entries),
        )

        removed = 0
        for entry in victims:
            try:
                await remove(entry.key)
                removed += 1
            except Exception as e:
                self.logging.error("Failed to evict cache entry %s: %s", entry.key, e)

        self.logging.info("Cache eviction finished: %d of %d entries removed.", removed, len(victims))
        return removed
