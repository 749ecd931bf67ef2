"""FastAPI search page for RAiD search."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Optional

import httpx
import structlog
from fastapi import BackgroundTasks, FastAPI, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from raidsearch.models import SearchCriteria
from raidsearch.services import (
    ArtifactURLSet,
    BatchDownloader,
    DirectorySink,
    HtmlBuffer,
    SearchSession,
    build_orchestrator,
)
from raidsearch.settings import Settings, get_settings

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
logger = structlog.get_logger(__name__)

# (input id, label, example value) for the form fields and their example buttons.
SEARCH_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("title-search", "Title", "Data Management Plan"),
    ("description-search", "Description", "research data"),
    ("creator-search", "Creator", "University of Queensland"),
    ("related-search", "Related Identifier", "https://doi.org/10.5281/zenodo.1234567"),
    ("organisation-search", "Organisation", "https://ror.org/00rqy9422"),
)


def create_app(
    settings: Optional[Settings] = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Factory used by uvicorn."""
    settings = settings or get_settings()
    templates = Jinja2Templates(directory=str(TEMPLATE_DIR))
    artifacts = ArtifactURLSet()
    state: dict[str, Any] = {}

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        client = state.pop("client", None)
        if client is not None:
            await client.aclose()

    app = FastAPI(title="RAiD Search", lifespan=lifespan)

    def client() -> httpx.AsyncClient:
        if "client" not in state:
            state["client"] = httpx.AsyncClient(
                timeout=settings.request_timeout, transport=transport
            )
        return state["client"]

    def session() -> SearchSession:
        if "session" not in state:
            state["session"] = SearchSession(
                settings, build_orchestrator(client(), settings), artifacts
            )
        return state["session"]

    def render(
        request: Request,
        *,
        criteria: SearchCriteria | None = None,
        operator: str = "AND",
        results_html: str | None = None,
    ) -> HTMLResponse:
        criteria = criteria or SearchCriteria()
        values = {
            "title-search": criteria.title,
            "description-search": criteria.description,
            "creator-search": criteria.creator,
            "related-search": criteria.related,
            "organisation-search": criteria.organisation,
        }
        return templates.TemplateResponse(
            request,
            "index.html",
            {
                "fields": SEARCH_FIELDS,
                "values": values,
                "operator": operator,
                "results_html": results_html,
                "pending_downloads": len(artifacts),
            },
        )

    @app.get("/", response_class=HTMLResponse)
    async def home(request: Request) -> HTMLResponse:
        return render(request)

    @app.post("/search", response_class=HTMLResponse)
    async def search(
        request: Request,
        title: str = Form(""),
        description: str = Form(""),
        creator: str = Form(""),
        related: str = Form(""),
        organisation: str = Form(""),
        operator: str = Form("AND"),
    ) -> HTMLResponse:
        criteria = SearchCriteria(
            title=title,
            description=description,
            creator=creator,
            related=related,
            organisation=organisation,
        )
        if operator.upper() not in {"AND", "OR"}:
            operator = "AND"
        container = HtmlBuffer()
        await session().perform_search(criteria, operator, container)
        return render(
            request, criteria=criteria, operator=operator.upper(), results_html=container.html
        )

    @app.post("/download")
    async def download(background: BackgroundTasks) -> RedirectResponse:
        downloader = BatchDownloader(
            client(),
            DirectorySink(settings.download_dir),
            pacing_delay=settings.pacing_delay,
            cleanup_delay=settings.cleanup_delay,
            timeout=settings.request_timeout * 2,
        )
        logger.info("web.download_scheduled", count=len(artifacts))
        background.add_task(session().download_all, downloader)
        return RedirectResponse("/", status_code=status.HTTP_302_FOUND)

    @app.post("/reset")
    async def reset() -> RedirectResponse:
        session().reset()
        return RedirectResponse("/", status_code=status.HTTP_302_FOUND)

    return app
