"""Remote document caching proxy.

Serves a logical report path as a PDF. Each request runs an explicit state
machine:

    CACHE_CHECK -> RESOLVE_LINK -> FETCH -> [INTERSTITIAL_HANDLING] -> VALIDATE -> CACHE_WRITE -> SERVE

with the terminal exits NOT_FOUND (404), BAD_UPSTREAM_LINK (500),
UPSTREAM_ERROR (upstream status) and REDIRECT_TO_SOURCE (302 to the share
link). Network errors, unusable interstitials and invalid payloads end in
REDIRECT_TO_SOURCE, the reader can still open the document on the file host.
A non-success upstream status is passed through.
"""

import posixpath
from typing import Awaitable, Callable
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict

from server.models.responses import ProxyResult, ProxyState, TERMINAL_STATES
from shared.clients.cache.CacheClientInterface import CacheClientInterface
from shared.clients.filehost.FileHostClientInterface import FileHostClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.HelperPayload import HelperPayload
from shared.metadata.LinkResolver import LinkResolver

PDF_MEDIA_TYPE = "application/pdf"
DEFAULT_FILENAME = "report.pdf"


class ProxyContext(BaseModel):
    """Mutable per-request state carried between pipeline states."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    file_path: str
    cache_key: str
    share_link: str | None = None
    direct_url: str | None = None
    response: httpx.Response | None = None
    payload: bytes | None = None
    from_cache: bool = False


def get_inline_filename(file_path: str) -> str:
    """Derive the percent-encoded download name from the last path segment."""
    basename = posixpath.basename(file_path.rstrip("/")) or DEFAULT_FILENAME
    return quote(basename, safe="!~*'()")


class FileProxyService:
    """Fetch-validate-cache pipeline for report PDFs."""

    def __init__(
        self,
        helper_config: HelperConfig,
        cache_client: CacheClientInterface,
        filehost_client: FileHostClientInterface,
        link_resolver: LinkResolver,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._cache_client = cache_client
        self._filehost_client = filehost_client
        self._link_resolver = link_resolver
        self._handlers: dict[ProxyState, Callable[[ProxyContext], Awaitable[ProxyState]]] = {
            ProxyState.CACHE_CHECK: self._on_cache_check,
            ProxyState.RESOLVE_LINK: self._on_resolve_link,
            ProxyState.FETCH: self._on_fetch,
            ProxyState.INTERSTITIAL_HANDLING: self._on_interstitial,
            ProxyState.VALIDATE: self._on_validate,
            ProxyState.CACHE_WRITE: self._on_cache_write,
        }

    ##########################################
    ############### CORE #####################
    ##########################################

    async def do_serve(self, file_path: str) -> ProxyResult:
        """Run the pipeline for one logical file path.

        Args:
            file_path (str): The decoded logical path as requested below /files/.

        Returns:
            ProxyResult: The terminal state with status, body and headers.
        """
        ctx = ProxyContext(file_path=file_path, cache_key=self._cache_client.get_cache_key(file_path))
        state = ProxyState.CACHE_CHECK
        while state not in TERMINAL_STATES:
            try:
                next_state = await self._handlers[state](ctx)
            except Exception as e:
                self.logging.exception("Unexpected error in state %s for '%s': %s", state.value, file_path, e)
                next_state = ProxyState.REDIRECT_TO_SOURCE if ctx.share_link else ProxyState.NOT_FOUND
            self.logging.debug("'%s': %s -> %s", file_path, state.value, next_state.value)
            state = next_state
        return self._build_result(state, ctx)

    async def do_refresh_cache(self, file_path: str, payload: bytes) -> None:
        """Refresh the recency of a cache entry after a hit. Never raises.

        Meant to run as a background task once the response has been sent.
        """
        key = self._cache_client.get_cache_key(file_path)
        try:
            await self._cache_client.do_refresh(key, payload)
        except Exception as e:
            self.logging.warning("Background cache refresh for '%s' (%s) failed: %s", file_path, key, e)

    ##########################################
    ################ STATES ##################
    ##########################################

    async def _on_cache_check(self, ctx: ProxyContext) -> ProxyState:
        payload = await self._cache_client.do_lookup(ctx.cache_key)
        if payload is not None:
            self.logging.info("Serving PDF from cache: %s (cache key: %s)", ctx.file_path, ctx.cache_key, color="green")
            ctx.payload = payload
            ctx.from_cache = True
            return ProxyState.SERVE
        self.logging.info("PDF not in cache: %s. Fetching from source.", ctx.file_path)
        return ProxyState.RESOLVE_LINK

    async def _on_resolve_link(self, ctx: ProxyContext) -> ProxyState:
        share_link = await self._link_resolver.do_resolve(ctx.file_path)
        if not share_link:
            self.logging.warning("No share link found for '%s'.", ctx.file_path)
            return ProxyState.NOT_FOUND
        if not self._filehost_client.is_host_link(share_link):
            self.logging.error("Share link for '%s' is not a %s link: %s", ctx.file_path, self._filehost_client.get_engine_name(), share_link)
            return ProxyState.BAD_UPSTREAM_LINK
        ctx.share_link = share_link
        ctx.direct_url = self._filehost_client.get_direct_download_url(share_link)
        return ProxyState.FETCH

    async def _on_fetch(self, ctx: ProxyContext) -> ProxyState:
        self.logging.info("Fetching PDF from: %s", ctx.direct_url, color="cyan")
        try:
            response = await self._filehost_client.do_fetch(ctx.direct_url)
        except httpx.HTTPError as e:
            self.logging.error("Error fetching PDF from %s: %s", ctx.direct_url, e)
            return ProxyState.REDIRECT_TO_SOURCE

        ctx.response = response
        if not response.is_success:
            self.logging.error(
                "Failed to fetch PDF from %s: %d %s",
                ctx.direct_url, response.status_code, response.reason_phrase,
            )
            return ProxyState.UPSTREAM_ERROR
        if self._filehost_client.is_interstitial(response):
            self.logging.info("File host returned an interstitial page for '%s'.", ctx.file_path, color="yellow")
            return ProxyState.INTERSTITIAL_HANDLING
        ctx.payload = response.content
        return ProxyState.VALIDATE

    async def _on_interstitial(self, ctx: ProxyContext) -> ProxyState:
        payload = await self._filehost_client.do_resolve_interstitial(ctx.response)
        if payload is None:
            return ProxyState.REDIRECT_TO_SOURCE
        ctx.payload = payload
        return ProxyState.VALIDATE

    async def _on_validate(self, ctx: ProxyContext) -> ProxyState:
        if HelperPayload.is_pdf(ctx.payload):
            return ProxyState.CACHE_WRITE
        self.logging.warning(
            "Payload for '%s' is not a PDF (starts with %r). Not caching.",
            ctx.file_path, (ctx.payload or b"")[:16],
        )
        ctx.payload = None
        return ProxyState.REDIRECT_TO_SOURCE

    async def _on_cache_write(self, ctx: ProxyContext) -> ProxyState:
        try:
            await self._cache_client.do_store(ctx.cache_key, ctx.payload)
            self.logging.info("PDF cached: %s (cache key: %s)", ctx.file_path, ctx.cache_key)
        except Exception as e:
            self.logging.error("Failed to write PDF to cache (%s): %s", ctx.cache_key, e)
        return ProxyState.SERVE

    ##########################################
    ############### RESULTS ##################
    ##########################################

    def _build_result(self, state: ProxyState, ctx: ProxyContext) -> ProxyResult:
        if state == ProxyState.SERVE:
            return ProxyResult(
                state=state,
                status_code=200,
                content=ctx.payload,
                media_type=PDF_MEDIA_TYPE,
                headers={"Content-Disposition": f'inline; filename="{get_inline_filename(ctx.file_path)}"'},
                from_cache=ctx.from_cache,
                cache_key=ctx.cache_key,
            )
        if state == ProxyState.REDIRECT_TO_SOURCE:
            self.logging.warning("Redirecting '%s' to its share link: %s", ctx.file_path, ctx.share_link, color="yellow")
            return ProxyResult(
                state=state,
                status_code=302,
                headers={"Location": ctx.share_link},
                cache_key=ctx.cache_key,
            )
        if state == ProxyState.UPSTREAM_ERROR:
            return self._text_result(state, ctx.response.status_code, f"Failed to fetch PDF: {ctx.response.reason_phrase}", ctx)
        if state == ProxyState.BAD_UPSTREAM_LINK:
            return self._text_result(state, 500, "Resolved URL from metadata is not a valid file host URL.", ctx)
        return self._text_result(state, 404, f'File path "{ctx.file_path}" not found or no share link.', ctx)

    @staticmethod
    def _text_result(state: ProxyState, status_code: int, message: str, ctx: ProxyContext) -> ProxyResult:
        return ProxyResult(
            state=state,
            status_code=status_code,
            content=message.encode("utf-8"),
            media_type="text/plain; charset=utf-8",
            cache_key=ctx.cache_key,
        )
