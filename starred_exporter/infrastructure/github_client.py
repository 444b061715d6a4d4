import aiohttp
import asyncio
import json
import logging
from typing import List
from urllib.parse import quote

from starred_exporter.domain.exceptions import DecodeException, RemoteApiException, TransportException
from starred_exporter.domain.models import PAGE_SIZE, RepositoryRecord
from starred_exporter.infrastructure.acl import GitHubTranslator

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
# Pinned so that field-level decoding does not break when GitHub changes its default schema.
API_VERSION = "2022-11-28"
REQUEST_TIMEOUT = aiohttp.ClientTimeout(total=60, connect=10)


class GitHubRestClient:
    """
    Client for the GitHub REST starred-repositories listing.
    Performs exactly one request per page; retries are left to the caller.
    """

    def __init__(self, token: str, api_url: str = DEFAULT_API_URL):
        # An empty token is sent as-is; GitHub rejects it with a 401.
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": "github-starred-exporter",
            "X-GitHub-Api-Version": API_VERSION,
        }
        self.api_url = api_url.rstrip("/")

    def build_url(self, username: str, page: int) -> str:
        return (
            f"{self.api_url}/users/{quote(username, safe='')}/starred"
            f"?page={page}&per_page={PAGE_SIZE}"
        )

    async def fetch_page(
        self,
        session: aiohttp.ClientSession,
        username: str,
        page: int,
    ) -> List[RepositoryRecord]:
        """
        Fetches a single page of the repositories starred by `username`.

        Returns:
            The decoded repositories, in the order GitHub returned them.

        Raises:
            TransportException: The request failed before a response arrived.
            RemoteApiException: GitHub answered with a non-200 status.
            DecodeException: The response body could not be decoded.
        """
        url = self.build_url(username, page)
        try:
            async with session.get(url, headers=self.headers, timeout=REQUEST_TIMEOUT) as response:
                status = response.status
                body = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportException(f"Request for page {page} of {username!r} failed: {e}") from e

        if status != 200:
            try:
                error = GitHubTranslator.to_error(json.loads(body))
            except ValueError as e:
                raise DecodeException(f"Malformed error body (status {status}): {e}") from e
            raise RemoteApiException(status, error.message, error.documentation_url)

        try:
            return GitHubTranslator.to_page(json.loads(body))
        except ValueError as e:
            raise DecodeException(f"Malformed starred page {page} for {username!r}: {e}") from e


async def fetch_starred_page(
    username: str, page: int, token: str, api_url: str = DEFAULT_API_URL
) -> List[RepositoryRecord]:
    """One-shot helper that opens its own session for a single page."""
    client = GitHubRestClient(token=token, api_url=api_url)
    async with aiohttp.ClientSession() as session:
        return await client.fetch_page(session, username, page)
