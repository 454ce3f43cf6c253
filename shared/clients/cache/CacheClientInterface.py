from abc import abstractmethod
import hashlib

from shared.clients.ClientInterface import ClientInterface
from shared.clients.cache.CacheEvictionManager import CacheEvictionManager
from shared.clients.cache.models.CacheEntry import CacheEntryInfo
from shared.helper.HelperConfig import HelperConfig


class CacheClientInterface(ClientInterface):
    """Key/value blob store for fetched PDFs.

    Keys are produced by get_cache_key() so that untrusted logical paths never
    become filesystem or object-store paths. Every write runs the eviction
    manager first; eviction errors never block the write.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.max_bytes = int(self.get_config_val("MAX_BYTES", default=self._get_default_max_bytes(), val_type="number"))
        self._eviction_manager = CacheEvictionManager(helper_config=helper_config, max_bytes=self.max_bytes)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "cache"
        """
        return "cache"

    @staticmethod
    def get_cache_key(file_path: str) -> str:
        """
        Derives the cache key for a logical file path.

        Args:
            file_path (str): The logical file path as requested.

        Returns:
            str: SHA-256 hex digest of the path with a ".pdf" suffix.
        """
        return hashlib.sha256(file_path.encode("utf-8")).hexdigest() + ".pdf"

    def get_eviction_manager(self) -> CacheEvictionManager:
        return self._eviction_manager

    ################ CONFIG ##################
    @abstractmethod
    def _get_default_max_bytes(self) -> int:
        """
        Returns the default high-water mark in bytes, safely below the backend's hard limit.
        """
        pass

    ##########################################
    ############ BACKEND ACCESS ##############
    ##########################################

    @abstractmethod
    async def _read(self, key: str) -> bytes | None:
        """
        Reads the payload stored under key.

        Returns:
            bytes | None: The payload, or None if the key is absent.
        """
        pass

    @abstractmethod
    async def _write(self, key: str, data: bytes) -> str:
        """
        Writes the whole payload under key, replacing any previous entry.

        Returns:
            str: The backend location of the stored entry.
        """
        pass

    @abstractmethod
    async def _list(self) -> list[CacheEntryInfo]:
        """
        Lists all entries in the store.
        """
        pass

    @abstractmethod
    async def _remove(self, key: str) -> None:
        """
        Deletes the entry stored under key. Deleting an absent key is not an error.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_lookup(self, key: str) -> bytes | None:
        """Look up a cache entry. Backend errors are logged and treated as a miss.

        Args:
            key (str): The cache key.

        Returns:
            bytes | None: The cached payload, or None on a miss.
        """
        try:
            return await self._read(key)
        except Exception as e:
            self.logging.error("Cache lookup for %s failed on '%s': %s", key, self.get_engine_name(), e)
            return None

    async def do_store(self, key: str, data: bytes) -> str:
        """Store a payload, evicting old entries first if the high-water mark is reached.

        Args:
            key (str): The cache key.
            data (bytes): The complete payload.

        Returns:
            str: The backend location of the stored entry.

        Raises:
            Exception: If the write itself fails. Eviction failures are logged only.
        """
        try:
            entries = await self.do_enumerate()
            await self._eviction_manager.do_evict(entries, self._remove)
        except Exception as e:
            self.logging.error("Cache eviction on '%s' failed: %s", self.get_engine_name(), e)

        location = await self._write(key, data)
        self.logging.debug("Stored %d bytes under %s at %s", len(data), key, location)
        return location

    async def do_enumerate(self) -> list[CacheEntryInfo]:
        """List all entries with their size and timestamp."""
        return await self._list()

    async def do_remove(self, key: str) -> None:
        """Delete a single entry."""
        await self._remove(key)

    async def do_refresh(self, key: str, data: bytes) -> None:
        """Refresh the recency signal of an entry after a cache hit.

        Backends whose timestamps already track recency keep this a no-op.
        """
        return None
