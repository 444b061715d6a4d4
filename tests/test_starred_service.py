import unittest
from datetime import datetime, timezone

from starred_exporter.application.starred_service import StarredService
from starred_exporter.domain.exceptions import DecodeException, RemoteApiException, SinkException, TransportException
from starred_exporter.domain.models import RepositoryRecord


def _record(page: int, i: int) -> RepositoryRecord:
    ts = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return RepositoryRecord(
        name=f"repo-{page}-{i}",
        full_name=f"owner/repo-{page}-{i}",
        html_url=f"https://github.com/owner/repo-{page}-{i}",
        created_at=ts,
        updated_at=ts,
    )


def _page(page: int, size: int):
    return [_record(page, i) for i in range(size)]


class _FakeGitHubClient:
    def __init__(self, pages, fail_on_page=None, error=None) -> None:
        self.pages = pages
        self.fail_on_page = fail_on_page
        self.error = error or RemoteApiException(500, "Server Error")
        self.requested = []

    async def fetch_page(self, session, username, page):
        self.requested.append((username, page))
        if page == self.fail_on_page:
            raise self.error
        if page > len(self.pages):
            return []
        return self.pages[page - 1]


class _RecordingSink:
    def __init__(self) -> None:
        self.calls = []

    async def write_page(self, repos) -> None:
        self.calls.append(list(repos))


class TestStarredService(unittest.IsolatedAsyncioTestCase):
    async def test_stops_after_short_page(self) -> None:
        client = _FakeGitHubClient([_page(1, 100), _page(2, 37)])
        sink = _RecordingSink()

        repos = await StarredService(client).fetch_all("alice", on_page=sink.write_page)

        self.assertEqual(len(repos), 137)
        self.assertEqual(client.requested, [("alice", 1), ("alice", 2)])
        self.assertEqual([len(call) for call in sink.calls], [100, 37])

    async def test_short_first_page_issues_single_request(self) -> None:
        for size in (1, 50, 99):
            client = _FakeGitHubClient([_page(1, size), _page(2, 100)])

            repos = await StarredService(client).fetch_all("alice")

            self.assertEqual(len(repos), size)
            self.assertEqual(client.requested, [("alice", 1)])

    async def test_full_pages_continue_until_empty_page(self) -> None:
        client = _FakeGitHubClient([_page(1, 100), _page(2, 100), _page(3, 100)])
        sink = _RecordingSink()

        repos = await StarredService(client).fetch_all("alice", on_page=sink.write_page)

        self.assertEqual(len(repos), 300)
        self.assertEqual([page for _, page in client.requested], [1, 2, 3, 4])
        # The empty page is not handed to the consumer
        self.assertEqual(len(sink.calls), 3)

    async def test_empty_first_page(self) -> None:
        client = _FakeGitHubClient([])
        sink = _RecordingSink()

        repos = await StarredService(client).fetch_all("alice", on_page=sink.write_page)

        self.assertEqual(repos, [])
        self.assertEqual(sink.calls, [])
        self.assertEqual(client.requested, [("alice", 1)])

    async def test_callback_inputs_concatenate_to_aggregate(self) -> None:
        client = _FakeGitHubClient([_page(1, 100), _page(2, 100), _page(3, 5)])
        sink = _RecordingSink()

        repos = await StarredService(client).fetch_all("alice", on_page=sink.write_page)

        flattened = [repo for call in sink.calls for repo in call]
        self.assertEqual(flattened, repos)
        self.assertEqual(repos[0].name, "repo-1-0")
        self.assertEqual(repos[-1].name, "repo-3-4")

    async def test_remote_error_on_page_k_propagates(self) -> None:
        client = _FakeGitHubClient([_page(1, 100), _page(2, 100), _page(3, 100)], fail_on_page=3)
        sink = _RecordingSink()

        with self.assertRaises(RemoteApiException):
            await StarredService(client).fetch_all("alice", on_page=sink.write_page)

        self.assertEqual([page for _, page in client.requested], [1, 2, 3])
        self.assertEqual([call[0].name for call in sink.calls], ["repo-1-0", "repo-2-0"])

    async def test_callback_failure_aborts_walk(self) -> None:
        client = _FakeGitHubClient([_page(1, 100), _page(2, 100), _page(3, 10)])
        calls = []

        async def failing_sink(repos) -> None:
            calls.append(len(repos))
            if len(calls) == 2:
                raise OSError("disk full")

        with self.assertRaises(SinkException) as ctx:
            await StarredService(client).fetch_all("alice", on_page=failing_sink)

        self.assertIsInstance(ctx.exception.__cause__, OSError)
        self.assertEqual(calls, [100, 100])
        self.assertEqual([page for _, page in client.requested], [1, 2])

    async def test_sink_exception_propagates_unchanged(self) -> None:
        client = _FakeGitHubClient([_page(1, 10)])
        error = SinkException("database unavailable")

        async def failing_sink(repos) -> None:
            raise error

        with self.assertRaises(SinkException) as ctx:
            await StarredService(client).fetch_all("alice", on_page=failing_sink)

        self.assertIs(ctx.exception, error)

    async def test_fetcher_errors_propagate_unchanged_and_stop_the_walk(self) -> None:
        for error in (DecodeException("bad body"), TransportException("connection reset")):
            client = _FakeGitHubClient(
                [_page(1, 100), _page(2, 100), _page(3, 100)], fail_on_page=2, error=error,
            )
            sink = _RecordingSink()

            with self.assertRaises(type(error)) as ctx:
                await StarredService(client).fetch_all("alice", on_page=sink.write_page)

            self.assertIs(ctx.exception, error)
            self.assertEqual([page for _, page in client.requested], [1, 2])
            self.assertEqual(len(sink.calls), 1)
