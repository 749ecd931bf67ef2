"""Sequential, paced retrieval of per-record artifact files."""

from __future__ import annotations

import asyncio
import os
import shutil
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import AsyncIterator, Iterable, Protocol

import httpx
import structlog

from raidsearch.errors import DownloadFailure
from raidsearch.utils import last_path_segment

logger = structlog.get_logger(__name__)


def download_name_for(url: str) -> str:
    """Pick the save-as name for ``url``.

    The final path segment wins when it is non-empty; artifact URLs end with a
    slash, so they fall back to ``raid-<prefix>-<suffix>.json`` built from the
    last three path segments.
    """
    final = last_path_segment(url)
    if final:
        return final
    parts = url.split("/")[-3:]
    prefix = parts[0] if parts else ""
    suffix_with_dot = parts[1] if len(parts) > 1 else ""
    suffix = suffix_with_dot.split(".")[0]
    return f"raid-{prefix}-{suffix}.json"


class ArtifactSink(Protocol):
    """Receives a downloaded temporary file and saves it under ``filename``."""

    async def save(self, source: Path, filename: str) -> Path:
        ...


class DirectorySink:
    """Saves artifacts into a local download directory."""

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    @property
    def directory(self) -> Path:
        return self._directory

    async def save(self, source: Path, filename: str) -> Path:
        self._directory.mkdir(parents=True, exist_ok=True)
        # Percent-encoded slashes or stray separators must not escape the directory.
        target = self._directory / Path(filename).name
        await asyncio.to_thread(shutil.copyfile, source, target)
        return target


@dataclass(slots=True)
class DownloadReport:
    saved: list[Path] = field(default_factory=list)
    failed: list[DownloadFailure] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.saved) + len(self.failed)


class BatchDownloader:
    """Downloads artifacts one at a time, pausing between requests.

    Each body is written to a temporary file that is handed to the sink and
    released after ``cleanup_delay`` seconds. ``pacing_delay`` seconds pass
    between successive downloads to stay clear of upstream rate limits. A failed
    URL is logged and skipped; it is never retried.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        sink: ArtifactSink,
        *,
        pacing_delay: float = 1.0,
        cleanup_delay: float = 0.1,
        timeout: float = 60.0,
        temp_dir: Path | None = None,
    ) -> None:
        self._client = client
        self._sink = sink
        self._pacing_delay = pacing_delay
        self._cleanup_delay = cleanup_delay
        self._timeout = timeout
        self._temp_dir = temp_dir

    async def download(self, urls: Iterable[str]) -> DownloadReport:
        report = DownloadReport()
        pending = [url for url in urls if url]
        logger.info("download.batch_start", count=len(pending))
        for index, url in enumerate(pending):
            try:
                saved = await self._download_one(url)
            except DownloadFailure as exc:
                logger.error("download.failed", url=url, error=exc.reason)
                report.failed.append(exc)
            except Exception as exc:  # noqa: BLE001 - one bad artifact must not end the batch
                logger.exception("download.failed", url=url)
                report.failed.append(DownloadFailure(url, str(exc)))
            else:
                logger.info("download.saved", url=url, target=str(saved))
                report.saved.append(saved)
            if index < len(pending) - 1:
                await asyncio.sleep(self._pacing_delay)
        logger.info(
            "download.batch_done", saved=len(report.saved), failed=len(report.failed)
        )
        return report

    async def _download_one(self, url: str) -> Path:
        filename = download_name_for(url)
        async with self._temporary_path() as temp_path:
            try:
                await self._fetch_to(url, temp_path)
            except httpx.HTTPError as exc:
                raise DownloadFailure(url, str(exc)) from exc
            try:
                return await self._sink.save(temp_path, filename)
            except OSError as exc:
                raise DownloadFailure(url, str(exc)) from exc

    async def _fetch_to(self, url: str, target: Path) -> None:
        async with self._client.stream("GET", url, timeout=self._timeout) as stream:
            stream.raise_for_status()
            with target.open("wb") as fh:
                async for chunk in stream.aiter_bytes():
                    fh.write(chunk)

    @asynccontextmanager
    async def _temporary_path(self) -> AsyncIterator[Path]:
        fd, name = tempfile.mkstemp(prefix="raid-", suffix=".part", dir=self._temp_dir)
        os.close(fd)
        temp_path = Path(name)
        try:
            yield temp_path
        finally:
            # Bounded grace period before the temporary copy is released; the
            # release still happens if the wait is cancelled.
            try:
                await asyncio.sleep(self._cleanup_delay)
            finally:
                temp_path.unlink(missing_ok=True)
