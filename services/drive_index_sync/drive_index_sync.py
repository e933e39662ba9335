"""Sync runner entry point.

Indexes one user's recent Drive files for semantic search. Run directly for
a one-shot sync of SYNC_USER_ID.

Usage:
    python -m services.drive_index_sync.drive_index_sync
"""

import asyncio

from services.drive_index_sync.SyncService import SyncService
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.index.IndexStoreManager import IndexStoreManager
from shared.clients.source.SourceClientManager import SourceClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.helper.UserLockRegistry import UserLockRegistry
from shared.logging.logging_setup import setup_logging
from shared.models.sync import SyncProgress, SyncStrategy


async def main() -> None:
    """Run a single sync pass."""
    logger = setup_logging()
    config = HelperConfig(logger=logger)

    user_id = config.get_string_val("SYNC_USER_ID")
    strategy = SyncStrategy(config.get_string_val("SYNC_STRATEGY", default=SyncStrategy.NEW_FILES_ONLY.value))
    limit = int(config.get_number_val("SYNC_LIMIT", default=10))

    embed_client = EmbedClientManager(helper_config=config).get_client()
    source_client = SourceClientManager(helper_config=config).get_client()
    index_store = IndexStoreManager(helper_config=config).get_store()

    try:
        # without embeddings there is nothing to sync, so abort if the provider is down
        try:
            await embed_client.boot()
            await embed_client.do_healthcheck()
        except Exception as e:
            logger.error(f"Error booting Embed client {embed_client.get_engine_name()}: {e}. Aborting.")
            return

        if not await embed_client.is_available():
            logger.error(f"Embedding model '{embed_client.embed_model}' is not available. Aborting.")
            return

        try:
            await source_client.boot()
            await source_client.do_healthcheck()
        except Exception as e:
            logger.error(f"Error booting Source client {source_client.get_engine_name()}: {e}. Aborting.")
            return

        await index_store.boot()

        def report(progress: SyncProgress) -> None:
            if not progress.is_complete:
                logger.debug(
                    "Progress: %d/%d files (%s)", progress.processed_files, progress.total_files, progress.current_file
                )

        sync_service = SyncService(
            helper_config=config,
            source_client=source_client,
            embed_client=embed_client,
            index_store=index_store,
            lock_registry=UserLockRegistry(),
        )
        result = await sync_service.do_sync(user_id, strategy=strategy, limit=limit, on_progress=report)
        logger.info(result.message, color="green" if result.success else "red")
    finally:
        await embed_client.close()
        await source_client.close()
        await index_store.close()


if __name__ == "__main__":
    asyncio.run(main())
