"""Session-scoped collection of artifact URLs discovered while rendering results."""

from __future__ import annotations

from typing import Iterable, Iterator

from raidsearch.settings import DEFAULT_ARTIFACT_TEMPLATE


def artifact_url_for(identifier: str, template: str = DEFAULT_ARTIFACT_TEMPLATE) -> str:
    return template.format(identifier=identifier)


class ArtifactURLSet:
    """Insertion-ordered set of artifact URLs; unique by the full URL string."""

    def __init__(self, urls: Iterable[str] = ()) -> None:
        self._urls: dict[str, None] = {}
        self.update(urls)

    def add(self, url: str) -> bool:
        """Add ``url``; returns False when it was already present."""
        if url in self._urls:
            return False
        self._urls[url] = None
        return True

    def update(self, urls: Iterable[str]) -> None:
        for url in urls:
            self.add(url)

    def snapshot(self) -> list[str]:
        return list(self._urls)

    def reset(self) -> None:
        self._urls.clear()

    def __contains__(self, url: object) -> bool:
        return url in self._urls

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        return len(self._urls)
