import logging
from typing import Awaitable, Callable, List, Optional
import aiohttp

from starred_exporter.infrastructure.github_client import DEFAULT_API_URL, GitHubRestClient
from starred_exporter.domain.exceptions import CrawlerException, SinkException
from starred_exporter.domain.models import PAGE_SIZE, RepositoryRecord

logger = logging.getLogger(__name__)

PageCallback = Callable[[List[RepositoryRecord]], Awaitable[None]]


class StarredService:
    """
    Service responsible for walking a user's starred listing page by page,
    handing each page to an optional consumer and collecting the full result.

    Pages are fetched strictly one at a time. A page shorter than PAGE_SIZE
    is taken as the last page; nothing beyond it is requested.
    """

    def __init__(self, github_client: GitHubRestClient):
        self.github_client = github_client

    async def fetch_all(
        self,
        username: str,
        on_page: Optional[PageCallback] = None,
    ) -> List[RepositoryRecord]:
        """
        Fetches every repository starred by `username`.

        Any failure, from the fetcher or from `on_page`, aborts the walk
        immediately. Pages already handed to `on_page` are not rolled back.
        """
        all_repos: List[RepositoryRecord] = []

        async with aiohttp.ClientSession() as session:
            page = 1
            while True:
                repos = await self.github_client.fetch_page(session, username, page)
                logger.info(f"Fetched {len(repos)} starred repos on page {page}.")

                if not repos:
                    break

                if on_page is not None:
                    try:
                        await on_page(repos)
                    except CrawlerException:
                        raise
                    except Exception as e:
                        raise SinkException(f"Page consumer failed on page {page}: {e}") from e

                all_repos.extend(repos)

                if len(repos) < PAGE_SIZE:
                    break
                page += 1

        logger.info(f"Finished fetching starred repos for {username}. Total: {len(all_repos)}.")
        return all_repos


async def fetch_all_starred(
    username: str,
    token: str,
    on_page: Optional[PageCallback] = None,
    api_url: str = DEFAULT_API_URL,
) -> List[RepositoryRecord]:
    service = StarredService(GitHubRestClient(token=token, api_url=api_url))
    return await service.fetch_all(username, on_page)
