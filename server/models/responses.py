from enum import Enum

from pydantic import BaseModel


class ProxyState(str, Enum):
    """States of the file proxy pipeline."""

    CACHE_CHECK = "cache_check"
    RESOLVE_LINK = "resolve_link"
    FETCH = "fetch"
    INTERSTITIAL_HANDLING = "interstitial_handling"
    VALIDATE = "validate"
    CACHE_WRITE = "cache_write"
    # terminal states
    SERVE = "serve"
    NOT_FOUND = "not_found"
    BAD_UPSTREAM_LINK = "bad_upstream_link"
    UPSTREAM_ERROR = "upstream_error"
    REDIRECT_TO_SOURCE = "redirect_to_source"


TERMINAL_STATES = frozenset({
    ProxyState.SERVE,
    ProxyState.NOT_FOUND,
    ProxyState.BAD_UPSTREAM_LINK,
    ProxyState.UPSTREAM_ERROR,
    ProxyState.REDIRECT_TO_SOURCE,
})


class ProxyResult(BaseModel):
    """Outcome of serving one logical file path.

    Attributes:
        state:       Terminal state the pipeline ended in.
        status_code: HTTP status to answer with.
        content:     PDF bytes (SERVE) or a plain-text error message.
        media_type:  Content type of the body, None for redirects.
        headers:     Extra response headers (Content-Disposition, Location).
        from_cache:  True if the payload was served from the cache.
        cache_key:   Cache key of the requested path.
    """

    state: ProxyState
    status_code: int
    content: bytes = b""
    media_type: str | None = None
    headers: dict[str, str] = {}
    from_cache: bool = False
    cache_key: str
