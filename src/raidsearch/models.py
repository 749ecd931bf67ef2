"""Core data models used throughout the RAiD search application."""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

logger = structlog.get_logger(__name__)


class SearchCriteria(BaseModel):
    """Per-field search terms entered by the user."""

    title: str = ""
    description: str = ""
    creator: str = ""
    related: str = ""
    organisation: str = ""

    def has_any(self) -> bool:
        return any(value.strip() for value in self.model_dump().values())


class _Facet(BaseModel):
    """Base for the nested record facets: camelCase on the wire, read-only.

    The backend sends ``null`` for absent values anywhere in a record; a null
    takes the field's default so one missing value never rejects the record.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None and info.field_name is not None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


class Title(_Facet):
    title: str = ""
    title_type: str | None = Field(default=None, alias="titleType")
    lang: str | None = None


class Description(_Facet):
    description: str = ""
    description_type: str | None = Field(default=None, alias="descriptionType")
    lang: str | None = None


class NameIdentifier(_Facet):
    name_identifier: str = Field(default="", alias="nameIdentifier")
    name_identifier_scheme: str | None = Field(default=None, alias="nameIdentifierScheme")
    scheme_uri: str | None = Field(default=None, alias="schemeUri")


class Creator(_Facet):
    name: str = ""
    name_type: str | None = Field(default=None, alias="nameType")
    given_name: str | None = Field(default=None, alias="givenName")
    family_name: str | None = Field(default=None, alias="familyName")
    name_identifiers: list[NameIdentifier] = Field(default_factory=list, alias="nameIdentifiers")


class Contributor(Creator):
    contributor_type: str | None = Field(default=None, alias="contributorType")


class RelatedIdentifier(_Facet):
    related_identifier: str = Field(default="", alias="relatedIdentifier")
    related_identifier_type: str | None = Field(default=None, alias="relatedIdentifierType")
    relation_type: str | None = Field(default=None, alias="relationType")


class RecordAttributes(_Facet):
    """Known record facets plus every other backend field kept in ``extra``."""

    doi: str | None = None
    titles: list[Title] = Field(default_factory=list)
    creators: list[Creator] = Field(default_factory=list)
    related_identifiers: list[RelatedIdentifier] = Field(
        default_factory=list, alias="relatedIdentifiers"
    )
    contributors: list[Contributor] = Field(default_factory=list)
    descriptions: list[Description] = Field(default_factory=list)
    extra: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_extra(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        known: set[str] = set()
        for name, field in cls.model_fields.items():
            known.add(name)
            if field.alias:
                known.add(field.alias)
        payload = {key: value for key, value in data.items() if key in known}
        extra = {key: value for key, value in data.items() if key not in known}
        if extra:
            payload["extra"] = {**payload.get("extra", {}), **extra}
        return payload


class Record(BaseModel):
    """One catalogue entry as returned by a search endpoint."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    type: str | None = None
    attributes: RecordAttributes = Field(default_factory=RecordAttributes)
    relationships: dict[str, Any] | None = None

    @property
    def doi(self) -> str | None:
        return self.attributes.doi


class SearchResponse(BaseModel):
    """Envelope of a search endpoint response. ``meta`` and ``links`` are ignored.

    ``data`` is required. Entries that are not readable records are logged and
    dropped so that one bad entry does not discard the rest of the page.
    """

    data: list[Record]
    meta: dict[str, Any] | None = None
    links: dict[str, Any] | None = None

    @field_validator("data", mode="before")
    @classmethod
    def _skip_unreadable(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        records: list[Record] = []
        for item in value:
            try:
                records.append(Record.model_validate(item))
            except ValidationError as exc:
                logger.warning(
                    "search.record_skipped",
                    record_id=item.get("id") if isinstance(item, dict) else None,
                    error=str(exc),
                )
        return records
