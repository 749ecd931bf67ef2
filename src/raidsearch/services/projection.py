"""Project raw catalogue records into highlighted display facets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

import structlog

from raidsearch.models import Record, SearchCriteria
from raidsearch.settings import Settings
from raidsearch.utils import highlight_text, last_path_segment
from .artifacts import ArtifactURLSet, artifact_url_for

logger = structlog.get_logger(__name__)

NO_TITLE = "No Title"
NO_DOI = "No DOI"
NO_CREATORS = "No creators"
NO_RELATED = "No related identifiers"
NO_ORGANISATIONS = "No organisations"
NO_DESCRIPTION = "No Description"
NO_RESULTS = "No results found"
LINK_SEPARATOR = " & "
TITLE_SEPARATOR = " | "


@dataclass(frozen=True, slots=True)
class RecordView:
    """Display-ready facets of one record; every field is an HTML fragment."""

    doi: str | None
    title_line: str
    identifier_link: str
    creator_links: str
    related_links: str
    organisation_links: str
    description: str
    artifact_url: str | None


def _link(href: str, text: str) -> str:
    return f'<a href="{href}" target="_blank">{text}</a>'


class ResultProjector:
    """Builds :class:`RecordView` objects and records each record's artifact URL."""

    def __init__(self, settings: Settings, artifacts: ArtifactURLSet) -> None:
        self._settings = settings
        self._artifacts = artifacts

    def project(self, records: Iterable[Record], criteria: SearchCriteria) -> list[RecordView]:
        views = [self.project_one(record, criteria) for record in records]
        logger.debug("projection.done", records=len(views), artifacts=len(self._artifacts))
        return views

    def project_one(self, record: Record, criteria: SearchCriteria) -> RecordView:
        attributes = record.attributes
        doi = attributes.doi
        artifact_url = None
        if doi:
            artifact_url = artifact_url_for(doi, self._settings.artifact_url_template)
            self._artifacts.add(artifact_url)
        else:
            logger.warning("projection.missing_doi", record_id=record.id)
        return RecordView(
            doi=doi,
            title_line=self._title_line(record, criteria),
            identifier_link=self._identifier_link(doi, criteria),
            creator_links=self._creator_links(record, criteria),
            related_links=self._related_links(record, criteria),
            organisation_links=self._organisation_links(record, criteria),
            description=self._description(record, criteria),
            artifact_url=artifact_url,
        )

    def _title_line(self, record: Record, criteria: SearchCriteria) -> str:
        titles = [
            highlight_text(entry.title, criteria.title)
            for entry in record.attributes.titles
            if entry.title
        ]
        return TITLE_SEPARATOR.join(titles) or NO_TITLE

    def _identifier_link(self, doi: str | None, criteria: SearchCriteria) -> str:
        if not doi:
            return NO_DOI
        # The identifier is matched against the related-identifier term.
        href = f"{self._settings.resolver_base_url}/{doi}"
        return _link(href, highlight_text(doi, criteria.related))

    def _creator_links(self, record: Record, criteria: SearchCriteria) -> str:
        # Creators link to their own name; kept as the catalogue UI renders it.
        links = [
            _link(creator.name, highlight_text(creator.name, criteria.creator))
            for creator in record.attributes.creators
        ]
        return LINK_SEPARATOR.join(links) or NO_CREATORS

    def _related_links(self, record: Record, criteria: SearchCriteria) -> str:
        links = [
            _link(
                entry.related_identifier,
                highlight_text(entry.related_identifier, criteria.related),
            )
            for entry in record.attributes.related_identifiers
        ]
        return LINK_SEPARATOR.join(links) or NO_RELATED

    def _organisation_links(self, record: Record, criteria: SearchCriteria) -> str:
        marker = self._settings.organisation_marker
        links: list[str] = []
        for contributor in record.attributes.contributors:
            for identifier in contributor.name_identifiers:
                value = identifier.name_identifier
                if not value or marker not in value:
                    continue
                registry_id = last_path_segment(value)
                href = f"{self._settings.organisation_base_url}/{registry_id}"
                links.append(_link(href, highlight_text(value, criteria.organisation)))
        return LINK_SEPARATOR.join(links) or NO_ORGANISATIONS

    def _description(self, record: Record, criteria: SearchCriteria) -> str:
        descriptions = record.attributes.descriptions
        text = (descriptions[0].description if descriptions else "") or NO_DESCRIPTION
        return highlight_text(text, criteria.description)


def render_record_html(view: RecordView) -> str:
    return (
        '<div class="search-result">\n'
        f"  <h3>{view.title_line}</h3>\n"
        f"  <p>RAiD: {view.identifier_link}</p>\n"
        f"  <p>Creators: {view.creator_links}</p>\n"
        f"  <p>Related Identifiers: {view.related_links}</p>\n"
        f"  <p>Organisations: {view.organisation_links}</p>\n"
        f"  <p>Description: {view.description}</p>\n"
        "</div>"
    )


def render_results_html(views: Sequence[RecordView]) -> str:
    """Render the results list, led by the download button when there is anything to show."""
    if not views:
        return f"<p>{NO_RESULTS}</p>"
    parts = [
        '<form method="post" action="/download">'
        '<button id="download-results" type="submit">Download Results</button>'
        "</form>"
    ]
    parts.extend(render_record_html(view) for view in views)
    return "\n".join(parts)
