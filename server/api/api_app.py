"""FastAPI application entry point for the Drive Semantic Organizer API."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from server.api.routers.OrganizationRouter import organization_router
from server.api.routers.SearchRouter import search_router
from server.api.routers.SyncRouter import sync_router
from services.drive_index_sync.SyncService import SyncService
from services.organization.OrganizationService import OrganizationService
from services.search.SearchService import SearchService
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.index.IndexStoreManager import IndexStoreManager
from shared.clients.source.SourceClientInterface import SourceClientInterface
from shared.clients.source.SourceClientManager import SourceClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.helper.UserLockRegistry import UserLockRegistry
from shared.logging.logging_setup import setup_logging

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown."""
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)

    # Initialise clients
    embed_client = EmbedClientManager(helper_config=app.state.helper_config).get_client()
    source_client = SourceClientManager(helper_config=app.state.helper_config).get_client()
    index_store = IndexStoreManager(helper_config=app.state.helper_config).get_store()
    await embed_client.boot()
    await source_client.boot()
    await index_store.boot()

    await check_connections(embed_client, source_client)

    # Wire up services, all sharing one lock registry
    lock_registry = UserLockRegistry()
    app.state.sync_service = SyncService(
        helper_config=app.state.helper_config,
        source_client=source_client,
        embed_client=embed_client,
        index_store=index_store,
        lock_registry=lock_registry,
    )
    app.state.search_service = SearchService(
        helper_config=app.state.helper_config,
        embed_client=embed_client,
        index_store=index_store,
        lock_registry=lock_registry,
    )
    app.state.organization_service = OrganizationService(
        helper_config=app.state.helper_config,
        source_client=source_client,
        index_store=index_store,
        lock_registry=lock_registry,
    )

    logging.info("Drive Semantic Organizer API ready.", color="green")
    yield

    # Shutdown
    logging.info("Shutting down - closing all clients...")
    await embed_client.close()
    await source_client.close()
    await index_store.close()
    logging.info("All clients closed.")


app = FastAPI(
    title="Drive Semantic Organizer",
    description=(
        "Indexes a user's Drive documents into semantic vectors, answers natural "
        "language searches over them and suggests folder organizations."
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

app.include_router(search_router)
app.include_router(sync_router)
app.include_router(organization_router)


async def check_connections(embed_client: EmbedClientInterface, source_client: SourceClientInterface) -> None:
    """Check connectivity to the configured backends on startup.

    Failures are non-fatal: the server stays up and the affected
    operations report the problem per request.
    """
    if not await embed_client.is_available():
        logging.warning(
            "Embedding model '%s' is not available on %s. Search and sync will fail.",
            embed_client.embed_model,
            embed_client.get_engine_name(),
        )

    result = await source_client.do_healthcheck(raise_on_error=False)
    if not result.is_success:
        logging.warning(
            "Source client '%s' is not reachable (status %d). Sync and organization may fail.",
            source_client.get_engine_name(),
            result.status_code,
        )


# Server Start
if __name__ == "__main__":
    import uvicorn

    logging.info(f"Starting Drive Semantic Organizer API v{app_version} on port 8000...")
    uvicorn.run(app, host="0.0.0.0", port=8000)
