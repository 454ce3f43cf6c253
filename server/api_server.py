"""FastAPI application entry point for the ombudsman report archive."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.cache.CacheClientInterface import CacheClientInterface
from shared.clients.cache.CacheClientManager import CacheClientManager
from shared.clients.filehost.FileHostClientInterface import FileHostClientInterface
from shared.clients.filehost.FileHostClientManager import FileHostClientManager
from shared.metadata.LinkResolver import LinkResolver
from server.core.FileProxyService import FileProxyService
from server.core.SitemapService import SitemapService
from server.routers.FilesRouter import router as files_router
from server.routers.SitemapRouter import router as sitemap_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)

    cache_client = CacheClientManager(helper_config=app.state.helper_config).get_client()
    filehost_client = FileHostClientManager(helper_config=app.state.helper_config).get_client()

    logging.info("Booting all clients...")
    for client in [cache_client, filehost_client]:
        await client.boot()
    logging.info("All clients booted successfully.")

    app.state.cache_client = cache_client
    app.state.filehost_client = filehost_client

    link_resolver = LinkResolver(helper_config=app.state.helper_config)
    app.state.file_proxy_service = FileProxyService(
        helper_config=app.state.helper_config,
        cache_client=cache_client,
        filehost_client=filehost_client,
        link_resolver=link_resolver,
    )
    app.state.sitemap_service = SitemapService(
        helper_config=app.state.helper_config,
        link_resolver=link_resolver,
    )

    await check_connections(cache_client, filehost_client)

    # while the app is running...
    yield

    # when the app shuts down, close all client connections
    logging.info("Shutting down, closing all clients...")
    for client in [cache_client, filehost_client]:
        await client.close()
    logging.info("All clients closed.")


app = FastAPI(
    title="ombudsman_archive",
    description=(
        "Bilingual archive of Ombudsman investigation reports. "
        "Report PDFs are served via GET /files/{path}: fetched once from the "
        "file host they are shared on, validated, and cached."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(files_router)
app.include_router(sitemap_router)


async def check_connections(
    cache_client: CacheClientInterface,
    filehost_client: FileHostClientInterface,
) -> None:
    """Check the configured backends on startup.

    A file host failure is non-fatal (requests fall back to the share link).
    A cache failure is fatal, no PDF could be stored.

    Raises:
        Exception: If the cache backend is not usable.
    """
    if not await filehost_client.do_healthcheck():
        logging.warning(
            "File host client '%s' is not reachable. PDF requests will redirect to share links.",
            filehost_client.get_engine_name(),
        )

    if not await cache_client.do_healthcheck():
        raise Exception(
            f"Cache client '{cache_client.get_engine_name()}' is not usable. Cannot cache PDFs."
        )


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting ombudsman_archive API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", os.getcwd()),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
