"""Tests for the oldest-half eviction policy."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from shared.clients.cache.CacheEvictionManager import CacheEvictionManager
from shared.clients.cache.models.CacheEntry import CacheEntryInfo

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _entries(n: int, size: int = 10) -> list[CacheEntryInfo]:
    # listed newest first so the sort has work to do
    return [
        CacheEntryInfo(key=f"{i}.pdf", size=size, timestamp=BASE_TIME + timedelta(minutes=i))
        for i in reversed(range(n))
    ]


@pytest.mark.parametrize("n", range(9))
def test_select_victims_oldest_floor_half(helper_config, n):
    manager = CacheEvictionManager(helper_config, max_bytes=1)
    victims = manager.select_victims(_entries(n))
    assert [v.key for v in victims] == [f"{i}.pdf" for i in range(n // 2)]


def test_ties_keep_listing_order(helper_config):
    manager = CacheEvictionManager(helper_config, max_bytes=1)
    entries = [CacheEntryInfo(key=k, size=1, timestamp=BASE_TIME) for k in ("c", "a", "b", "d")]
    assert [v.key for v in manager.select_victims(entries)] == ["c", "a"]


def test_high_water_is_inclusive(helper_config):
    manager = CacheEvictionManager(helper_config, max_bytes=40)
    assert not manager.is_over_high_water(_entries(3))
    assert manager.is_over_high_water(_entries(4))


def test_evict_below_high_water_is_noop(helper_config):
    manager = CacheEvictionManager(helper_config, max_bytes=1000)
    removed_keys = []

    async def remove(key):
        removed_keys.append(key)

    assert asyncio.run(manager.do_evict(_entries(6), remove)) == 0
    assert removed_keys == []


def test_evict_ignores_individual_sizes(helper_config):
    manager = CacheEvictionManager(helper_config, max_bytes=100)
    entries = [
        CacheEntryInfo(key="old-small.pdf", size=1, timestamp=BASE_TIME),
        CacheEntryInfo(key="new-huge.pdf", size=200, timestamp=BASE_TIME + timedelta(days=1)),
    ]
    removed_keys = []

    async def remove(key):
        removed_keys.append(key)

    assert asyncio.run(manager.do_evict(entries, remove)) == 1
    assert removed_keys == ["old-small.pdf"]


def test_partial_failure_continues(helper_config):
    manager = CacheEvictionManager(helper_config, max_bytes=10)
    removed_keys = []

    async def remove(key):
        if key == "0.pdf":
            raise RuntimeError("store unavailable")
        removed_keys.append(key)

    assert asyncio.run(manager.do_evict(_entries(6), remove)) == 2
    assert removed_keys == ["1.pdf", "2.pdf"]
