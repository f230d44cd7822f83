# ourplanet/services/download_categories.py

from typing import Iterable

import aiohttp

from ourplanet.api.eonet import CatalogClient
from ourplanet.config.client import ClientConfig
from ourplanet.logging.logger import setup_logger
from ourplanet.models.snapshot import Snapshot
from ourplanet.pipeline.shared import SharedDownload
from ourplanet.progress.reporter import ProgressReporter
from ourplanet.progress.sink import ResultSink

logger = setup_logger(__name__)


async def download_categories(
    config: ClientConfig | None = None,
    *,
    sinks: Iterable[ResultSink] = (),
    reporters: Iterable[ProgressReporter] = (),
) -> Snapshot:
    """
    Fetch the category list, then every category's events, and return the
    final snapshot. Failures degrade to fewer (or no) events, never to an
    exception.
    """
    config = config or ClientConfig()

    logger.info("Downloading EONET catalog from %s (last %d days)", config.api_base, config.days)

    async with aiohttp.ClientSession() as session:
        client = CatalogClient(session, config)

        download = SharedDownload(
            client.categories,
            client.category_events,
            max_concurrency=config.concurrency,
        )
        for sink in sinks:
            download.subscribe_sink(sink)
        for reporter in reporters:
            download.subscribe_progress(reporter)

        snapshot = await download.run()

    logger.info(
        "Download completed: %d categories, %d events attached",
        len(snapshot),
        sum(len(c.events) for c in snapshot),
    )

    return snapshot


if __name__ == "__main__":
    import asyncio
    from ourplanet.progress.reporter import LogProgressReporter

    asyncio.run(download_categories(ClientConfig.from_env(), reporters=[LogProgressReporter()]))
