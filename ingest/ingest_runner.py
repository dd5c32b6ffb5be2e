"""Ingestion recovery entry point.

Queued and in-flight jobs live only in memory. This runner re-enqueues every
document left in "uploading" or "processing" by a previous process, waits
until the queue has drained, and exits.

Usage:
    python -m ingest.ingest_runner
"""

import asyncio

from services.KnowledgeCore import KnowledgeCore
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging


async def main() -> None:
    """Re-run ingestion for documents stuck before a terminal status."""
    logger = setup_logging()
    config = HelperConfig(logger=logger)
    core = KnowledgeCore.from_config(helper_config=config)

    try:
        await core.boot()
        recovered = await core.requeue_pending_documents()
        if not recovered:
            logger.info("No pending documents found.")
            return

        logger.info("Re-enqueued %d pending document(s), processing...", recovered)
        await core.queue.wait_until_idle()
        stats = await core.index_stats()
        logger.info("Recovery complete. Vector index holds %d vectors (ready: %s).", stats.vector_count, stats.is_ready, color="green")
    finally:
        await core.close()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
