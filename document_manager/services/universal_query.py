from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from document_manager.schemas.universal import FilterClause, Page, SortClause

_WILDCARD_SPECIAL_RE = re.compile(r"([*?\\])")


def escape_wildcard(value: Any) -> str:
    return _WILDCARD_SPECIAL_RE.sub(r"\\\1", str(value))


@dataclass(frozen=True)
class QueryCompilerConfig:
    # Exact-match sub-field per analysed text field, e.g. {"title": "title.keyword"}.
    keyword_fields: dict[str, str] = field(default_factory=dict)
    track_total_hits: bool = True


@dataclass
class CompiledQuery:
    query: dict[str, Any]
    offset: int
    limit: int
    sort: list[dict[str, str]] = field(default_factory=list)
    track_total_hits: bool = True

    def to_search_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "query": self.query,
            "from": self.offset,
            "size": self.limit,
            "track_total_hits": self.track_total_hits,
        }
        if self.sort:
            body["sort"] = [{clause["field"]: {"order": clause["direction"]}} for clause in self.sort]
        return body


class QueryCompiler:
    """Turns validated filter/sort/page clauses into an OpenSearch request.

    Filters are AND-combined; there is no OR or grouping. Inputs are expected
    to have passed :class:`ValidationEngine` already.
    """

    def __init__(self, config: QueryCompilerConfig):
        self.config = config
        self._clause_builders: dict[str, Callable[[str, Any], dict[str, Any]]] = {
            "eq": lambda name, value: {"term": {self._exact(name): value}},
            "neq": lambda name, value: {"bool": {"must_not": [{"term": {self._exact(name): value}}]}},
            "gt": lambda name, value: {"range": {name: {"gt": value}}},
            "gte": lambda name, value: {"range": {name: {"gte": value}}},
            "lt": lambda name, value: {"range": {name: {"lt": value}}},
            "lte": lambda name, value: {"range": {name: {"lte": value}}},
            "in": lambda name, value: {"terms": {self._exact(name): list(value)}},
            "between": lambda name, value: {"range": {name: {"gte": value[0], "lte": value[1]}}},
            "contains": lambda name, value: {
                "wildcard": {
                    self._exact(name): {"value": f"*{escape_wildcard(value)}*", "case_insensitive": True}
                }
            },
            "exists": lambda name, value: {"exists": {"field": name}},
        }

    def _exact(self, name: str) -> str:
        return self.config.keyword_fields.get(name, name)

    def compile_filter(self, clause: FilterClause) -> dict[str, Any]:
        builder = self._clause_builders.get(clause.operator)
        if builder is None:
            raise ValueError(f"Unsupported filter operator: {clause.operator}")
        return builder(clause.field, clause.value)

    def compile_query(self, filters: Sequence[FilterClause]) -> dict[str, Any]:
        if not filters:
            return {"match_all": {}}
        return {"bool": {"must": [self.compile_filter(clause) for clause in filters]}}

    def compile_sort(self, sort: Sequence[SortClause]) -> list[dict[str, str]]:
        # sorted() is stable, so equal priorities keep request order.
        ordered = sorted(sort, key=lambda clause: clause.priority)
        return [{"field": self._exact(clause.field), "direction": clause.direction} for clause in ordered]

    def compile(
        self,
        filters: Sequence[FilterClause],
        sort: Sequence[SortClause],
        pagination: Page,
    ) -> CompiledQuery:
        return CompiledQuery(
            query=self.compile_query(filters),
            offset=pagination.offset,
            limit=pagination.limit,
            sort=self.compile_sort(sort),
            track_total_hits=self.config.track_total_hits,
        )
