import asyncio
import sys
import logging
from typing import List, Optional

from starred_exporter.config import Settings, load_settings
from starred_exporter.infrastructure.database import PostgresStarSink
from starred_exporter.infrastructure.sinks import CsvSink, JsonLinesSink, PageSink
from starred_exporter.application.starred_service import fetch_all_starred
from starred_exporter.domain.exceptions import CrawlerException
from starred_exporter.domain.models import RepositoryRecord

logger = logging.getLogger(__name__)


async def export(settings: Settings) -> int:
    """Runs one export and returns the number of repositories written."""
    sink_cls = JsonLinesSink if settings.output_format == "jsonl" else CsvSink

    db_sink: Optional[PostgresStarSink] = None
    if settings.database_url:
        db_sink = PostgresStarSink(db_url=settings.database_url, username=settings.username)

    try:
        if db_sink is not None:
            await db_sink.create_schema()
        with sink_cls(settings.output) as file_sink:
            sinks: List[PageSink] = [file_sink] + ([db_sink] if db_sink else [])

            async def on_page(repos: List[RepositoryRecord]) -> None:
                for sink in sinks:
                    await sink.write_page(repos)

            repos = await fetch_all_starred(
                settings.username, settings.token, on_page=on_page, api_url=settings.api_url
            )
    finally:
        if db_sink is not None:
            await db_sink.close()

    logger.info(f"Wrote {len(repos)} starred repositories to {settings.output}.")
    return len(repos)


def main(argv: Optional[List[str]] = None) -> int:
    settings = load_settings(argv)

    # Configure logging
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    try:
        asyncio.run(export(settings))
    except KeyboardInterrupt:
        logger.info("Export interrupted by user. Exiting.")
        return 130
    except CrawlerException as e:
        logger.error(f"Export failed: {e}")
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
