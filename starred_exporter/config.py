"""
Settings for the starred-repository exporter.
Resolved from command-line flags, falling back to environment variables and a .env file.
"""

import argparse
import os
import time
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from starred_exporter.infrastructure.github_client import DEFAULT_API_URL

OUTPUT_FORMATS = ("csv", "jsonl")


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    token: str
    output: str
    output_format: str = "csv"
    database_url: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    log_level: str = "INFO"


def default_output(username: str, output_format: str, now: Optional[float] = None) -> str:
    """Output file name derived from the username and the current time."""
    timestamp = int(now if now is not None else time.time())
    return f"starred-{username}-{timestamp}.{output_format}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Export the repositories a GitHub user has starred",
    )
    parser.add_argument(
        "--username",
        default=os.getenv("GITHUB_USERNAME"),
        help="GitHub username (default: $GITHUB_USERNAME)",
    )
    parser.add_argument(
        "--token",
        default=os.getenv("GITHUB_TOKEN"),
        help="GitHub token (default: $GITHUB_TOKEN)",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Output file (default: starred-<username>-<unix time>.<format>)",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default="csv",
        help="Output format (default: csv)",
    )
    parser.add_argument(
        "--database-url",
        default=os.getenv("DATABASE_URL"),
        help="Also upsert pages into this PostgreSQL database (default: $DATABASE_URL)",
    )
    parser.add_argument(
        "--api-url",
        default=os.getenv("GITHUB_API_URL", DEFAULT_API_URL),
        help=f"GitHub API base URL (default: {DEFAULT_API_URL})",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser


def load_settings(argv: Optional[List[str]] = None) -> Settings:
    """
    Parses flags into Settings. Exits with usage (status 2) when the
    username or token cannot be resolved.
    """
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.username or not args.token:
        parser.error("both --username and --token are required")

    return Settings(
        username=args.username,
        token=args.token,
        output=args.output or default_output(args.username, args.output_format),
        output_format=args.output_format,
        database_url=args.database_url or None,
        api_url=args.api_url,
        log_level=args.log_level,
    )
