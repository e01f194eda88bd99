"""Full-text lookup over indexed endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

from .models import Endpoint


DISPLAY_LIMIT = 10


@dataclass(frozen=True)
class SearchResult:
    query: str
    matches: Tuple[Endpoint, ...]

    @property
    def total(self) -> int:
        return len(self.matches)

    @property
    def found(self) -> bool:
        return bool(self.matches)

    @property
    def truncated(self) -> bool:
        return self.total > DISPLAY_LIMIT

    def shown(self) -> Tuple[Endpoint, ...]:
        return self.matches[:DISPLAY_LIMIT]


def searchable_text(endpoint: Endpoint) -> str:
    return " ".join(
        part or ""
        for part in (
            endpoint.path,
            endpoint.summary,
            endpoint.description,
            endpoint.operation_id,
            endpoint.api_title,
            endpoint.api_name,
        )
    ).lower()


def search_endpoints(endpoints: Iterable[Endpoint], query: str) -> SearchResult:
    needle = query.lower()
    matches = tuple(endpoint for endpoint in endpoints if needle in searchable_text(endpoint))
    return SearchResult(query=query, matches=matches)
