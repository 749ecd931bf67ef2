"""Service layer for RAiD search: query compilation, fan-out, projection, downloads."""

from .artifacts import ArtifactURLSet, artifact_url_for
from .downloads import (
    ArtifactSink,
    BatchDownloader,
    DirectorySink,
    DownloadReport,
    download_name_for,
)
from .projection import RecordView, ResultProjector, render_record_html, render_results_html
from .query import CompiledQuery, Operator, QueryCompiler
from .search import (
    DataCiteEndpoint,
    EndpointOutcome,
    SearchEndpoint,
    SearchOrchestrator,
    build_orchestrator,
)
from .session import HtmlBuffer, ResultsContainer, SearchOutcome, SearchSession

__all__ = [
    "ArtifactURLSet",
    "artifact_url_for",
    "ArtifactSink",
    "BatchDownloader",
    "DirectorySink",
    "DownloadReport",
    "download_name_for",
    "RecordView",
    "ResultProjector",
    "render_record_html",
    "render_results_html",
    "CompiledQuery",
    "Operator",
    "QueryCompiler",
    "DataCiteEndpoint",
    "EndpointOutcome",
    "SearchEndpoint",
    "SearchOrchestrator",
    "build_orchestrator",
    "HtmlBuffer",
    "ResultsContainer",
    "SearchOutcome",
    "SearchSession",
]
