from pathlib import Path

import httpx
import pytest

from raidsearch.models import SearchCriteria
from raidsearch.services.downloads import BatchDownloader, DirectorySink
from raidsearch.services.search import SearchOrchestrator
from raidsearch.services.session import (
    MISSING_CRITERIA_MESSAGE,
    SEARCH_ERROR_MESSAGE,
    HtmlBuffer,
    SearchSession,
)
from raidsearch.settings import Settings
from conftest import StubEndpoint, make_record


class _RecordingContainer(HtmlBuffer):
    def __init__(self) -> None:
        super().__init__()
        self.history: list[str] = []

    def show(self, html: str) -> None:
        super().show(html)
        self.history.append(html)


class _ExplodingOrchestrator:
    async def search(self, criteria, operator):
        raise RuntimeError("unexpected")


def _session(endpoint: StubEndpoint, **overrides) -> SearchSession:
    settings = Settings(download_dir=Path("unused"), **overrides)
    return SearchSession(settings, SearchOrchestrator([endpoint]))


@pytest.mark.asyncio
async def test_search_renders_results_and_collects_artifacts() -> None:
    session = _session(StubEndpoint("one", [make_record("10.1/a")]))
    container = _RecordingContainer()

    outcome = await session.perform_search(SearchCriteria(title="ocean"), "AND", container)

    assert outcome is not None and len(outcome.views) == 1
    assert container.history[0] == "Loading..."
    assert "<mark>Ocean</mark>" in container.html
    assert session.artifacts.snapshot() == ["https://static.prod.raid.org.au/raids/10.1/a.download/"]


@pytest.mark.asyncio
async def test_blank_criteria_show_message_without_request() -> None:
    endpoint = StubEndpoint("one", [make_record()])
    session = _session(endpoint)
    container = HtmlBuffer()

    outcome = await session.perform_search(SearchCriteria(), "AND", container)

    assert outcome is not None and outcome.message == MISSING_CRITERIA_MESSAGE
    assert MISSING_CRITERIA_MESSAGE in container.html
    assert endpoint.calls == []


@pytest.mark.asyncio
async def test_missing_container_aborts_quietly() -> None:
    endpoint = StubEndpoint("one", [make_record()])
    session = _session(endpoint)

    assert await session.perform_search(SearchCriteria(title="x"), "AND", None) is None
    assert endpoint.calls == []


@pytest.mark.asyncio
async def test_unexpected_error_shows_generic_message() -> None:
    session = SearchSession(Settings(), _ExplodingOrchestrator())
    container = HtmlBuffer()

    outcome = await session.perform_search(SearchCriteria(title="x"), "AND", container)

    assert outcome is not None and outcome.error
    assert SEARCH_ERROR_MESSAGE in container.html


@pytest.mark.asyncio
async def test_total_failure_renders_no_results() -> None:
    session = _session(StubEndpoint("one", error=RuntimeError("down")))
    container = HtmlBuffer()

    outcome = await session.perform_search(SearchCriteria(title="x"), "AND", container)

    assert outcome is not None and not outcome.error
    assert container.html == "<p>No results found</p>"


@pytest.mark.asyncio
async def test_artifacts_accumulate_across_searches_until_reset() -> None:
    endpoint = StubEndpoint("one", [make_record("10.1/a")])
    session = _session(endpoint)
    await session.perform_search(SearchCriteria(title="x"), "AND", HtmlBuffer())
    endpoint.records = [make_record("10.1/b")]
    await session.perform_search(SearchCriteria(title="y"), "AND", HtmlBuffer())

    assert len(session.artifacts) == 2
    session.reset()
    assert len(session.artifacts) == 0


@pytest.mark.asyncio
async def test_per_search_reset_keeps_only_latest_artifacts() -> None:
    endpoint = StubEndpoint("one", [make_record("10.1/a")])
    session = _session(endpoint, reset_artifacts_per_search=True)
    await session.perform_search(SearchCriteria(title="x"), "AND", HtmlBuffer())
    endpoint.records = [make_record("10.1/b")]
    await session.perform_search(SearchCriteria(title="y"), "AND", HtmlBuffer())

    assert session.artifacts.snapshot() == ["https://static.prod.raid.org.au/raids/10.1/b.download/"]


@pytest.mark.asyncio
async def test_download_all_uses_session_artifacts(tmp_path: Path) -> None:
    session = _session(StubEndpoint("one", [make_record("10.1/a")]))
    await session.perform_search(SearchCriteria(title="x"), "AND", HtmlBuffer())
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, content=b"{}")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        downloader = BatchDownloader(
            client, DirectorySink(tmp_path), pacing_delay=0, cleanup_delay=0
        )
        report = await session.download_all(downloader)

    assert requested == ["https://static.prod.raid.org.au/raids/10.1/a.download/"]
    assert [path.name for path in report.saved] == ["raid-10.1-a.json"]


@pytest.mark.asyncio
async def test_download_all_with_nothing_collected(tmp_path: Path) -> None:
    session = _session(StubEndpoint("one"))
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(500))) as client:
        report = await session.download_all(BatchDownloader(client, DirectorySink(tmp_path)))

    assert report.attempted == 0
