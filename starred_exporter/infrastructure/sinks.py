import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import IO, List, Optional, Protocol, Union

from starred_exporter.domain.exceptions import SinkException
from starred_exporter.domain.models import RepositoryRecord

logger = logging.getLogger(__name__)

CSV_COLUMNS = (
    "name",
    "full_name",
    "html_url",
    "description",
    "stargazers_count",
    "forks_count",
    "topics",
    "language",
    "created_at",
    "updated_at",
)


class PageSink(Protocol):
    """Consumer of fetched pages. Raising aborts the fetch."""

    async def write_page(self, repos: List[RepositoryRecord]) -> None:
        ...


def encode_csv_field(value: str) -> str:
    """Quotes a field when it would otherwise split or corrupt the row."""
    if "," in value or "\n" in value or "\r" in value or value.startswith('"'):
        return '"' + value.replace('"', '""') + '"'
    return value


def format_timestamp(value: datetime) -> str:
    """RFC 3339 with second precision; UTC is written with a trailing Z."""
    if value.utcoffset() == timedelta(0):
        return value.strftime("%Y-%m-%dT%H:%M:%SZ")
    return value.isoformat(timespec="seconds")


def to_csv_row(repo: RepositoryRecord) -> str:
    return ",".join([
        encode_csv_field(repo.name),
        encode_csv_field(repo.full_name),
        encode_csv_field(repo.html_url),
        encode_csv_field(repo.description),
        str(repo.stargazers_count),
        str(repo.forks_count),
        encode_csv_field(",".join(repo.topics)),
        encode_csv_field(repo.language),
        format_timestamp(repo.created_at),
        format_timestamp(repo.updated_at),
    ])


class _FileSink:
    """Shared file handling for the text sinks."""

    def __init__(self, output: Union[str, Path, IO[str]]):
        if isinstance(output, (str, Path)):
            self.path: Optional[Path] = Path(output)
            try:
                self._file = open(self.path, "w", encoding="utf-8", newline="")
            except OSError as e:
                raise SinkException(f"Cannot open {self.path}: {e}") from e
        else:
            self.path = None
            self._file = output
        self.written = 0

    def _write(self, text: str) -> None:
        try:
            self._file.write(text)
            self._file.flush()
        except (OSError, ValueError) as e:
            raise SinkException(f"Failed writing to {self.path or self._file}: {e}") from e

    def close(self) -> None:
        # Caller-supplied streams are left open.
        if self.path is not None and not self._file.closed:
            self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False


class CsvSink(_FileSink):
    """
    Writes each page as CSV lines, one repository per line, under a fixed header.
    """

    def __init__(self, output: Union[str, Path, IO[str]]):
        super().__init__(output)
        self._write(",".join(CSV_COLUMNS) + "\n")

    async def write_page(self, repos: List[RepositoryRecord]) -> None:
        self._write("".join(to_csv_row(repo) + "\n" for repo in repos))
        self.written += len(repos)
        logger.debug(f"Wrote {len(repos)} rows to CSV ({self.written} total).")


class JsonLinesSink(_FileSink):
    """Writes each repository as one JSON object per line."""

    async def write_page(self, repos: List[RepositoryRecord]) -> None:
        self._write("".join(repo.model_dump_json() + "\n" for repo in repos))
        self.written += len(repos)
        logger.debug(f"Wrote {len(repos)} JSON lines ({self.written} total).")
