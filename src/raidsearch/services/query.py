"""Compile structured search criteria into the DataCite query language."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from raidsearch.models import SearchCriteria
from raidsearch.utils import encode_uri_component


class Operator(str, Enum):
    AND = "AND"
    OR = "OR"

    @classmethod
    def parse(cls, value: "str | Operator | None") -> "Operator":
        if isinstance(value, Operator):
            return value
        if not value:
            return cls.AND
        try:
            return cls(value.strip().upper())
        except ValueError as exc:
            raise ValueError(f"Unsupported operator {value!r}; use AND or OR") from exc


# (criteria field, clause template) in the order clauses are emitted.
_CLAUSES: tuple[tuple[str, str], ...] = (
    ("title", "titles.title:*{value}*"),
    ("description", "descriptions.description:*{value}*"),
    ("creator", 'creators.name:"{value}"'),
    ("related", 'relatedIdentifiers.relatedIdentifier:"{value}"'),
    ("organisation", 'contributors.nameIdentifiers.nameIdentifier:"{value}"'),
)


@dataclass(frozen=True, slots=True)
class CompiledQuery:
    expression: str
    operator: Operator
    clauses: tuple[str, ...]

    def params(self, page_size: int) -> dict[str, str]:
        return {"query": self.expression, "page[size]": str(page_size)}

    def url_for(self, base_url: str, page_size: int) -> str:
        # Clause values are already percent-encoded, so the URL is assembled
        # verbatim instead of being encoded a second time.
        return f"{base_url}?query={self.expression}&page[size]={page_size}"


class QueryCompiler:
    """Builds one clause per non-blank field and scopes it to the catalogue namespace."""

    def __init__(self, namespace_domain: str = "raid.org.au") -> None:
        self._namespace_domain = namespace_domain

    @property
    def namespace_filter(self) -> str:
        return f"identifiers.identifier:*{self._namespace_domain}*"

    def clauses(self, criteria: SearchCriteria) -> list[str]:
        clauses: list[str] = []
        for field, template in _CLAUSES:
            value = getattr(criteria, field)
            if not value.strip():
                continue
            clauses.append(template.format(value=encode_uri_component(value)))
        return clauses

    def compile(
        self, criteria: SearchCriteria, operator: "str | Operator | None" = Operator.AND
    ) -> CompiledQuery | None:
        """Return the compiled query, or ``None`` when no clause can be produced."""
        op = Operator.parse(operator)
        clauses = self.clauses(criteria)
        if not clauses:
            return None
        joined = f" {op.value} ".join(clauses)
        expression = f"({self.namespace_filter} AND ({joined}))"
        return CompiledQuery(expression=expression, operator=op, clauses=tuple(clauses))
