"""Tests for the cache warm-up runner."""

import asyncio

import pytest

from server.models.responses import ProxyResult, ProxyState
from services.cache_warmup.cache_warmup import warm_paths


class CountingProxyService:
    def __init__(self, results: dict[str, ProxyResult]) -> None:
        self.results = results
        self.active = 0
        self.peak = 0

    async def do_serve(self, file_path: str) -> ProxyResult:
        self.active += 1
        self.peak = max(self.peak, self.active)
        await asyncio.sleep(0.01)
        self.active -= 1
        return self.results[file_path]


def _result(state: ProxyState, from_cache: bool = False) -> ProxyResult:
    return ProxyResult(state=state, status_code=200, from_cache=from_cache, cache_key="k.pdf")


@pytest.mark.asyncio
async def test_counts_outcomes():
    service = CountingProxyService({
        "a.pdf": _result(ProxyState.SERVE),
        "b.pdf": _result(ProxyState.SERVE, from_cache=True),
        "c.pdf": _result(ProxyState.REDIRECT_TO_SOURCE),
        "d.pdf": _result(ProxyState.NOT_FOUND),
    })

    counts = await warm_paths(service, ["a.pdf", "b.pdf", "c.pdf", "d.pdf"], concurrency=2)

    assert counts == {"cached": 1, "already_cached": 1, "failed": 2}


@pytest.mark.asyncio
async def test_concurrency_is_bounded():
    paths = [f"{i}.pdf" for i in range(10)]
    service = CountingProxyService({p: _result(ProxyState.SERVE) for p in paths})

    await warm_paths(service, paths, concurrency=3)

    assert service.peak <= 3


@pytest.mark.asyncio
async def test_empty_path_list():
    service = CountingProxyService({})
    assert await warm_paths(service, [], concurrency=3) == {"cached": 0, "already_cached": 0, "failed": 0}
