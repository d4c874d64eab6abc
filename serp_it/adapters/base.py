"""Search backend contract shared by every adapter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class SearchResult:
    """A single hit as returned by one backend."""

    title: str
    url: str
    snippet: str = ""


@runtime_checkable
class SearchAdapter(Protocol):
    """Anything that can answer a query with a list of results."""

    async def search(self, query: str, region: str | None = None) -> list[SearchResult]:
        ...


@dataclass(frozen=True, slots=True)
class AdapterEntry:
    """A registered adapter and the name reported in ``sources``."""

    name: str
    adapter: SearchAdapter


__all__ = ["AdapterEntry", "SearchAdapter", "SearchResult"]
