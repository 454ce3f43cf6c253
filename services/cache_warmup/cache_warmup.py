"""Cache warm-up runner.

Runs every report file listed in the metadata table through the file proxy
pipeline so the first visitor of each report is served from cache.

Usage:
    python -m services.cache_warmup.cache_warmup
"""

import asyncio

from server.core.FileProxyService import FileProxyService
from server.models.responses import ProxyState
from shared.clients.cache.CacheClientManager import CacheClientManager
from shared.clients.filehost.FileHostClientManager import FileHostClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.metadata.LinkResolver import LinkResolver, MetadataSourceError


async def warm_paths(proxy_service: FileProxyService, file_paths: list[str], concurrency: int) -> dict[str, int]:
    """Serve each path once and count the outcomes.

    Args:
        proxy_service (FileProxyService): The booted proxy pipeline.
        file_paths (list[str]): Logical file paths to warm.
        concurrency (int): Max parallel fetches.

    Returns:
        dict[str, int]: Counts for "cached", "already_cached" and "failed".
    """
    sem = asyncio.Semaphore(max(1, concurrency))

    async def _warm(file_path: str) -> str:
        async with sem:
            result = await proxy_service.do_serve(file_path)
        if result.state != ProxyState.SERVE:
            return "failed"
        return "already_cached" if result.from_cache else "cached"

    outcomes = await asyncio.gather(*[_warm(p) for p in file_paths])
    counts = {"cached": 0, "already_cached": 0, "failed": 0}
    for outcome in outcomes:
        counts[outcome] += 1
    return counts


async def main() -> None:
    """Warm the cache for all report files."""
    logger = setup_logging("cache_warmup")
    config = HelperConfig(logger=logger)
    cache_client = CacheClientManager(helper_config=config).get_client()
    filehost_client = FileHostClientManager(helper_config=config).get_client()
    link_resolver = LinkResolver(helper_config=config)

    try:
        await cache_client.boot()
        await filehost_client.boot()
        if not await cache_client.do_healthcheck():
            logger.error("Cache client %s is not usable. Aborting.", cache_client.get_engine_name())
            return

        try:
            records = await link_resolver.do_load_records()
        except MetadataSourceError as e:
            logger.error("Cannot load metadata table: %s. Aborting.", e)
            return

        # dedupe while keeping table order
        file_paths = list(dict.fromkeys(p for record in records for p in record.get_file_paths()))
        logger.info("Warming cache for %d report file(s)...", len(file_paths))

        proxy_service = FileProxyService(
            helper_config=config,
            cache_client=cache_client,
            filehost_client=filehost_client,
            link_resolver=link_resolver,
        )
        concurrency = int(config.get_number_val("WARMUP_CONCURRENCY", default=3))
        counts = await warm_paths(proxy_service, file_paths, concurrency)
        logger.info(
            "Cache warm-up complete: %d cached, %d already cached, %d failed.",
            counts["cached"], counts["already_cached"], counts["failed"],
        )
    finally:
        await cache_client.close()
        await filehost_client.close()


if __name__ == "__main__":
    asyncio.run(main())
