import asyncio
import os
import uuid
from datetime import datetime, timezone

import httpx

from shared.clients.cache.CacheClientInterface import CacheClientInterface
from shared.clients.cache.models.CacheEntry import CacheEntryInfo
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

DEFAULT_MAX_BYTES = 4_500_000_000  # 90 % of a 5 GB disk budget
DEFAULT_DIR = os.path.join(".cache", "pdf_files")


class CacheClientLocal(CacheClientInterface):
    """Cache backend storing one file per key in a local directory."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._cache_dir = self.get_config_val("DIR", default=DEFAULT_DIR, val_type="path")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Local"

    def get_cache_dir(self) -> str:
        return self._cache_dir

    def _get_entry_path(self, key: str) -> str:
        return os.path.join(self._cache_dir, key)

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="DIR", val_type="path", default=DEFAULT_DIR),
            EnvConfig(env_key="MAX_BYTES", val_type="number", default=DEFAULT_MAX_BYTES),
        ]

    def _get_default_max_bytes(self) -> int:
        return DEFAULT_MAX_BYTES

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return ""

    def _get_endpoint_healthcheck(self) -> str:
        return ""

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Create the cache directory once at startup."""
        await super().boot(transport=transport)
        os.makedirs(self._cache_dir, exist_ok=True)
        self.logging.info("Local PDF cache directory: %s", self._cache_dir)

    async def do_healthcheck(self) -> bool:
        return os.path.isdir(self._cache_dir) and os.access(self._cache_dir, os.W_OK)

    ##########################################
    ############ BACKEND ACCESS ##############
    ##########################################

    async def _read(self, key: str) -> bytes | None:
        path = self._get_entry_path(key)
        if not os.path.isfile(path):
            return None
        return await asyncio.to_thread(self._read_file, path)

    async def _write(self, key: str, data: bytes) -> str:
        path = self._get_entry_path(key)
        await asyncio.to_thread(self._write_file, path, data)
        return path

    async def _list(self) -> list[CacheEntryInfo]:
        return await asyncio.to_thread(self._scan_dir)

    async def _remove(self, key: str) -> None:
        try:
            await asyncio.to_thread(os.remove, self._get_entry_path(key))
        except FileNotFoundError:
            pass

    ##########################################
    ############## FILE ACCESS ###############
    ##########################################

    @staticmethod
    def _read_file(path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    @staticmethod
    def _write_file(path: str, data: bytes) -> None:
        # write to a temp file first, readers only ever see complete payloads
        tmp_path = f"{path}.{uuid.uuid4().hex}.tmp"
        try:
            with open(tmp_path, "wb") as f:
                f.write(data)
            os.replace(tmp_path, path)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

    def _scan_dir(self) -> list[CacheEntryInfo]:
        if not os.path.isdir(self._cache_dir):
            return []
        entries: list[CacheEntryInfo] = []
        with os.scandir(self._cache_dir) as it:
            for dir_entry in it:
                if not dir_entry.is_file() or not dir_entry.name.endswith(".pdf"):
                    continue
                try:
                    stat = dir_entry.stat()
                except FileNotFoundError:
                    # removed by a concurrent eviction since the listing
                    continue
                entries.append(CacheEntryInfo(
                    key=dir_entry.name,
                    size=stat.st_size,
                    timestamp=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                    location=dir_entry.path,
                ))
        return entries
