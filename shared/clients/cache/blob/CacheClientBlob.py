from shared.clients.ClientInterface import ClientRequestError
from shared.clients.cache.CacheClientInterface import CacheClientInterface
from shared.clients.cache.models.CacheEntry import CacheEntryInfo
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

DEFAULT_MAX_BYTES = 900_000_000  # 90 % of the 1 GB store limit
LIST_PAGE_SIZE = 1000


class CacheClientBlob(CacheClientInterface):
    """Cache backend on a Vercel-Blob-compatible object storage REST API.

    Objects live under "<prefix>/<key>" with public read access. The store has
    no access-time field, so the upload time is the recency signal and a cache
    hit refreshes it by re-uploading the same bytes.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://blob.vercel-storage.com", val_type="string")
        self._token = self.get_config_val("TOKEN", default=None, val_type="string")
        self._prefix = self.get_config_val("PREFIX", default="pdf-cache", val_type="string").strip("/")
        self._api_version = self.get_config_val("API_VERSION", default="7", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Blob"

    def get_pathname(self, key: str) -> str:
        return f"{self._prefix}/{key}"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://blob.vercel-storage.com"),
            EnvConfig(env_key="TOKEN", val_type="string", default=None),
            EnvConfig(env_key="PREFIX", val_type="string", default="pdf-cache"),
            EnvConfig(env_key="MAX_BYTES", val_type="number", default=DEFAULT_MAX_BYTES),
        ]

    def _get_default_max_bytes(self) -> int:
        return DEFAULT_MAX_BYTES

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {
            "authorization": f"Bearer {self._token}",
            "x-api-version": self._api_version,
        }

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/?limit=1"

    def _get_endpoint_list(self) -> str:
        return "/"

    def _get_endpoint_head(self) -> str:
        return "/"

    def _get_endpoint_put(self, key: str) -> str:
        return f"/{self.get_pathname(key)}"

    def _get_endpoint_delete(self) -> str:
        return "/delete"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_put_headers(self) -> dict:
        return {
            "x-content-type": "application/pdf",
            "x-access": "public",
            "x-add-random-suffix": "0",
            "x-allow-overwrite": "1",
        }

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_entry(self, blob: dict) -> CacheEntryInfo:
        pathname = blob.get("pathname", "")
        return CacheEntryInfo(
            key=pathname.rsplit("/", 1)[-1],
            size=int(blob.get("size", 0)),
            timestamp=blob.get("uploadedAt"),
            location=blob.get("url"),
        )

    ##########################################
    ############ BACKEND ACCESS ##############
    ##########################################

    async def do_head(self, key: str) -> dict | None:
        """Probe the metadata of an object.

        Args:
            key (str): The cache key.

        Returns:
            dict | None: The object metadata (url, size, uploadedAt, ...), or None if it does not exist.

        Raises:
            ClientRequestError: If the store answers with an unexpected error status.
        """
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_head(),
            params={"url": self.get_pathname(key)},
        )
        if resp.status_code == 404:
            return None
        if not resp.is_success:
            raise ClientRequestError("GET", str(resp.url), resp.status_code)
        return resp.json()

    async def _read(self, key: str) -> bytes | None:
        meta = await self.do_head(key)
        if meta is None:
            return None
        resp = await self.do_request(method="GET", url=meta["url"], follow_redirects=True, with_auth=False)
        if not resp.is_success:
            self.logging.warning("Cached blob %s is listed but not downloadable (status %d).", key, resp.status_code)
            return None
        return resp.content

    async def _write(self, key: str, data: bytes) -> str:
        resp = await self.do_request(
            method="PUT",
            content=data,
            endpoint=self._get_endpoint_put(key),
            additional_headers=self.get_put_headers(),
            raise_on_error=True,
        )
        return resp.json().get("url", self.get_pathname(key))

    async def _list(self) -> list[CacheEntryInfo]:
        entries: list[CacheEntryInfo] = []
        cursor: str | None = None
        while True:
            params = {"prefix": f"{self._prefix}/", "limit": LIST_PAGE_SIZE}
            if cursor:
                params["cursor"] = cursor
            resp = await self.do_request(
                method="GET",
                endpoint=self._get_endpoint_list(),
                params=params,
                raise_on_error=True,
            )
            raw_response = resp.json()
            entries.extend(self.extract_entry(blob) for blob in raw_response.get("blobs", []))
            cursor = raw_response.get("cursor")
            if not raw_response.get("hasMore") or not cursor:
                break
        return entries

    async def _remove(self, key: str) -> None:
        meta = await self.do_head(key)
        if meta is None:
            return
        await self.do_request(
            method="POST",
            json={"urls": [meta["url"]]},
            endpoint=self._get_endpoint_delete(),
            raise_on_error=True,
        )

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_refresh(self, key: str, data: bytes) -> None:
        """Re-upload the same bytes so the upload time reflects the latest access.

        Eviction is not run here, the entry size does not change.
        """
        await self._write(key, data)
        self.logging.debug("Refreshed upload time of cached blob %s", key)
