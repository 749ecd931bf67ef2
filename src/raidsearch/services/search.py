"""Federated search across DataCite-style endpoints."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Iterable, Protocol
from urllib.parse import urlsplit

import httpx
import structlog
from pydantic import ValidationError

from raidsearch.errors import CriteriaValidationError, EndpointFailure
from raidsearch.models import Record, SearchCriteria, SearchResponse
from raidsearch.settings import Settings
from .query import CompiledQuery, Operator, QueryCompiler

logger = structlog.get_logger(__name__)


class SearchEndpoint(Protocol):
    name: str

    async def search(self, query: CompiledQuery, *, page_size: int) -> list[Record]:
        ...


class DataCiteEndpoint:
    """One DataCite REST endpoint queried with a single bounded page."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        *,
        name: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._client = client
        self._base_url = base_url
        self._timeout = timeout
        self.name = name or urlsplit(base_url).netloc or base_url

    async def search(self, query: CompiledQuery, *, page_size: int) -> list[Record]:
        url = query.url_for(self._base_url, page_size)
        logger.debug("search.request", endpoint=self.name, url=url)
        try:
            response = await self._client.get(url, timeout=self._timeout)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise EndpointFailure(self.name, str(exc)) from exc
        except ValueError as exc:
            raise EndpointFailure(self.name, f"invalid JSON: {exc}") from exc
        try:
            envelope = SearchResponse.model_validate(payload)
        except ValidationError as exc:
            raise EndpointFailure(self.name, "response has no data array") from exc
        return envelope.data


@dataclass(slots=True)
class EndpointOutcome:
    endpoint: str
    records: list[Record] = field(default_factory=list)
    error: str | None = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


class SearchOrchestrator:
    """Fans one compiled query out to every endpoint and merges what succeeds.

    Every request is allowed to settle; failed endpoints are logged and left
    out of the merged result, and are never retried. When every endpoint fails
    the result is simply empty.
    """

    def __init__(
        self,
        endpoints: Iterable[SearchEndpoint],
        compiler: QueryCompiler | None = None,
        *,
        page_size: int = 10000,
    ) -> None:
        self._endpoints = list(endpoints)
        self._compiler = compiler or QueryCompiler()
        self._page_size = page_size

    @property
    def endpoints(self) -> list[SearchEndpoint]:
        return list(self._endpoints)

    async def search(
        self, criteria: SearchCriteria, operator: "str | Operator | None" = Operator.AND
    ) -> list[Record]:
        outcomes = await self.search_detailed(criteria, operator)
        combined: list[Record] = []
        for outcome in outcomes:
            combined.extend(outcome.records)
        return combined

    async def search_detailed(
        self, criteria: SearchCriteria, operator: "str | Operator | None" = Operator.AND
    ) -> list[EndpointOutcome]:
        """Return per-endpoint outcomes in completion order."""
        if not criteria.has_any():
            raise CriteriaValidationError()
        query = self._compiler.compile(criteria, operator)
        if query is None or not self._endpoints:
            return []
        logger.info(
            "search.fan_out",
            endpoints=len(self._endpoints),
            operator=query.operator.value,
            query=query.expression,
        )
        tasks = [
            asyncio.create_task(self._settle(endpoint, query)) for endpoint in self._endpoints
        ]
        outcomes: list[EndpointOutcome] = []
        for finished in asyncio.as_completed(tasks):
            outcomes.append(await finished)
        failed = sum(1 for outcome in outcomes if not outcome.ok)
        if failed == len(outcomes):
            logger.warning("search.all_endpoints_failed", endpoints=failed)
        logger.info(
            "search.merged",
            records=sum(len(outcome.records) for outcome in outcomes),
            failed=failed,
        )
        return outcomes

    async def _settle(self, endpoint: SearchEndpoint, query: CompiledQuery) -> EndpointOutcome:
        started = time.perf_counter()
        try:
            records = await endpoint.search(query, page_size=self._page_size)
        except Exception as exc:  # noqa: BLE001 - one endpoint must not sink the others
            elapsed = time.perf_counter() - started
            logger.warning(
                "search.endpoint_failed", endpoint=endpoint.name, error=str(exc)
            )
            return EndpointOutcome(endpoint=endpoint.name, error=str(exc), elapsed=elapsed)
        elapsed = time.perf_counter() - started
        logger.info("search.endpoint_done", endpoint=endpoint.name, count=len(records))
        return EndpointOutcome(endpoint=endpoint.name, records=list(records), elapsed=elapsed)


def build_orchestrator(client: httpx.AsyncClient, settings: Settings) -> SearchOrchestrator:
    """Wire one :class:`DataCiteEndpoint` per configured endpoint URL."""
    endpoints = [
        DataCiteEndpoint(client, base_url, timeout=settings.request_timeout)
        for base_url in settings.endpoints
    ]
    return SearchOrchestrator(
        endpoints,
        QueryCompiler(settings.namespace_domain),
        page_size=settings.page_size,
    )
