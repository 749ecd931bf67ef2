"""Top-level search and download triggers with user-facing error handling."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

import structlog

from raidsearch.errors import CriteriaValidationError, RenderingFault
from raidsearch.models import SearchCriteria
from raidsearch.settings import Settings
from .artifacts import ArtifactURLSet
from .downloads import BatchDownloader, DownloadReport
from .projection import RecordView, ResultProjector, render_results_html
from .query import Operator
from .search import SearchOrchestrator

logger = structlog.get_logger(__name__)

MISSING_CRITERIA_MESSAGE = "Please enter at least one search term"
SEARCH_ERROR_MESSAGE = "Error fetching results. Please try again."
LOADING_MESSAGE = "Loading..."


class ResultsContainer(Protocol):
    def show(self, html: str) -> None:
        ...


class HtmlBuffer:
    """In-memory results container; keeps the last rendered fragment."""

    def __init__(self) -> None:
        self.html = ""

    def show(self, html: str) -> None:
        self.html = html


@dataclass(slots=True)
class SearchOutcome:
    views: list[RecordView] = field(default_factory=list)
    message: str | None = None
    error: bool = False


class SearchSession:
    """Owns the artifact URL set shared by result rendering and batch downloads."""

    def __init__(
        self,
        settings: Settings,
        orchestrator: SearchOrchestrator,
        artifacts: ArtifactURLSet | None = None,
    ) -> None:
        self._settings = settings
        self._orchestrator = orchestrator
        self.artifacts = artifacts if artifacts is not None else ArtifactURLSet()
        self._projector = ResultProjector(settings, self.artifacts)

    async def perform_search(
        self,
        criteria: SearchCriteria,
        operator: "str | Operator | None" = Operator.AND,
        container: ResultsContainer | None = None,
    ) -> SearchOutcome | None:
        try:
            container = _require_container(container)
        except RenderingFault as exc:
            logger.error("session.render_failed", error=str(exc))
            return None
        if not criteria.has_any():
            container.show(f"<p>{MISSING_CRITERIA_MESSAGE}</p>")
            return SearchOutcome(message=MISSING_CRITERIA_MESSAGE)
        container.show(LOADING_MESSAGE)
        try:
            records = await self._orchestrator.search(criteria, operator)
            if self._settings.reset_artifacts_per_search:
                self.artifacts.reset()
            views = self._projector.project(records, criteria)
            container.show(render_results_html(views))
        except CriteriaValidationError:
            container.show(f"<p>{MISSING_CRITERIA_MESSAGE}</p>")
            return SearchOutcome(message=MISSING_CRITERIA_MESSAGE)
        except Exception:  # noqa: BLE001 - the trigger must never crash its host
            logger.exception("session.search_failed")
            container.show(f"<p>{SEARCH_ERROR_MESSAGE}</p>")
            return SearchOutcome(message=SEARCH_ERROR_MESSAGE, error=True)
        return SearchOutcome(views=views)

    async def download_all(self, downloader: BatchDownloader) -> DownloadReport:
        urls = self.artifacts.snapshot()
        if not urls:
            logger.warning("session.nothing_to_download")
            return DownloadReport()
        try:
            return await downloader.download(urls)
        except Exception:  # noqa: BLE001 - the trigger must never crash its host
            logger.exception("session.download_failed")
            return DownloadReport()

    def reset(self) -> None:
        self.artifacts.reset()


def _require_container(container: ResultsContainer | None) -> ResultsContainer:
    if container is None:
        raise RenderingFault("Results container not found")
    return container
