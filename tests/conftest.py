from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import pytest
import structlog

from raidsearch.models import Record
from raidsearch.services.query import CompiledQuery


def record_payload(doi: str = "10.26259/abc123", **attributes) -> dict:
    payload = {
        "id": doi,
        "type": "dois",
        "attributes": {
            "doi": doi,
            "titles": [{"title": "Ocean Data Management Plan"}, {"title": "Marine Survey", "lang": "en"}],
            "creators": [
                {"name": "Lovelace, Ada", "nameType": "Personal", "givenName": "Ada", "familyName": "Lovelace"},
                {"name": "Hopper, Grace"},
            ],
            "relatedIdentifiers": [
                {
                    "relatedIdentifier": "https://doi.org/10.5281/zenodo.42",
                    "relatedIdentifierType": "DOI",
                    "relationType": "IsReferencedBy",
                }
            ],
            "contributors": [
                {
                    "name": "Lovelace, Ada",
                    "contributorType": "ProjectLeader",
                    "nameIdentifiers": [
                        {"nameIdentifier": "https://orcid.org/0000-0002-1825-0097", "nameIdentifierScheme": "ORCID"},
                        {"nameIdentifier": "https://ror.org/0123abcd", "nameIdentifierScheme": "ROR"},
                    ],
                }
            ],
            "descriptions": [
                {"description": "Survey of reef data", "descriptionType": "Abstract"},
                {"description": "Ignored second description"},
            ],
            "publicationYear": 2024,
        },
    }
    payload["attributes"].update(attributes)
    return payload


def make_record(doi: str = "10.26259/abc123", **attributes) -> Record:
    return Record.model_validate(record_payload(doi, **attributes))


@dataclass
class StubEndpoint:
    name: str
    records: list[Record] = field(default_factory=list)
    delay: float = 0.0
    error: Exception | None = None
    calls: list[CompiledQuery] = field(default_factory=list)

    async def search(self, query: CompiledQuery, *, page_size: int) -> list[Record]:
        self.calls.append(query)
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.records)


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def sample_record() -> Record:
    return make_record()
