"""Fan a query out to every backend and merge the answers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import NamedTuple, Sequence
from urllib.parse import urlsplit, urlunsplit

import structlog

from ..adapters.base import AdapterEntry, SearchResult
from ..errors import AdapterError
from ..logging_conf import get_logger


class CanonicalUrl(NamedTuple):
    key: str
    href: str


@dataclass(slots=True)
class AggregatedResult:
    title: str
    url: str
    snippet: str
    sources: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "title": self.title,
            "url": self.url,
            "snippet": self.snippet,
            "sources": list(self.sources),
        }


@dataclass(frozen=True, slots=True)
class EngineError:
    source_name: str
    message: str

    def __str__(self) -> str:
        return f"{self.source_name}: {self.message}"


@dataclass(slots=True)
class AggregatedSearch:
    results: list[AggregatedResult]
    engine_errors: list[EngineError]

    @property
    def error_messages(self) -> list[str]:
        return [str(error) for error in self.engine_errors]


def canonicalize_url(raw_url: str | None) -> CanonicalUrl | None:
    """Normalise a result URL for deduplication.

    ``//host`` becomes ``https://host``, scheme and host are lower-cased, the
    fragment is dropped and trailing slashes are stripped from non-root paths.
    ``key`` is the case-folded form used for comparison; ``href`` keeps the
    path/query casing as received, for display.
    """

    trimmed = (raw_url or "").strip()
    if not trimmed:
        return None
    if trimmed.startswith("//"):
        trimmed = f"https:{trimmed}"
    if not trimmed.lower().startswith(("http://", "https://")):
        return None
    try:
        parts = urlsplit(trimmed)
        parts.port  # raises ValueError on a malformed port
    except ValueError:
        return None
    if not parts.hostname:
        return None
    path = parts.path or "/"
    if path != "/":
        path = path.rstrip("/") or "/"
    href = urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, parts.query, ""))
    return CanonicalUrl(key=href.lower(), href=href)


def merge_result(
    accumulator: dict[str, AggregatedResult],
    incoming: SearchResult,
    source: str,
) -> bool:
    """Fold one result into ``accumulator``; returns False when the URL is rejected."""

    canonical = canonicalize_url(incoming.url)
    if canonical is None:
        return False
    title = incoming.title or ""
    snippet = incoming.snippet or ""
    existing = accumulator.get(canonical.key)
    if existing is None:
        accumulator[canonical.key] = AggregatedResult(
            title=title, url=canonical.href, snippet=snippet, sources=[source]
        )
        return True
    if source not in existing.sources:
        existing.sources.append(source)
    if not existing.title and title:
        existing.title = title
    if not existing.snippet and snippet:
        existing.snippet = snippet
    return True


class ResultAggregator:
    """Query every registered adapter and deduplicate by canonical URL.

    Adapters run concurrently but their results are merged in registration
    order, so when two backends disagree on a non-empty title or snippet the
    earlier-registered backend wins.
    """

    def __init__(
        self,
        adapters: Sequence[AdapterEntry],
        *,
        concurrent: bool = True,
        adapter_timeout: float | None = 20.0,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.adapters = list(adapters)
        self.concurrent = concurrent
        self.adapter_timeout = adapter_timeout
        self.logger = logger or get_logger("aggregator")

    @property
    def engine_names(self) -> list[str]:
        return [entry.name for entry in self.adapters]

    async def search(self, query: str, region: str | None = None) -> AggregatedSearch:
        if self.concurrent:
            outcomes = await asyncio.gather(*(self._run(entry, query, region) for entry in self.adapters))
        else:
            outcomes = [await self._run(entry, query, region) for entry in self.adapters]

        accumulator: dict[str, AggregatedResult] = {}
        errors: list[EngineError] = []
        for entry, outcome in zip(self.adapters, outcomes):
            if isinstance(outcome, EngineError):
                errors.append(outcome)
                continue
            rejected = sum(1 for result in outcome if not merge_result(accumulator, result, entry.name))
            if rejected:
                self.logger.debug("results_rejected", engine=entry.name, rejected=rejected)

        self.logger.info(
            "search_aggregated",
            query=query,
            region=region,
            results=len(accumulator),
            failed_engines=[error.source_name for error in errors],
        )
        return AggregatedSearch(results=list(accumulator.values()), engine_errors=errors)

    async def _run(
        self, entry: AdapterEntry, query: str, region: str | None
    ) -> list[SearchResult] | EngineError:
        try:
            if self.adapter_timeout:
                results = await asyncio.wait_for(
                    entry.adapter.search(query, region), timeout=self.adapter_timeout
                )
            else:
                results = await entry.adapter.search(query, region)
        except asyncio.TimeoutError:
            message = f"timed out after {self.adapter_timeout:g}s"
        except AdapterError as exc:
            message = exc.message
        except Exception as exc:  # noqa: BLE001
            message = str(exc) or type(exc).__name__
        else:
            self.logger.debug("adapter_succeeded", engine=entry.name, results=len(results))
            return list(results)
        self.logger.warning("adapter_failed", engine=entry.name, error=message)
        return EngineError(source_name=entry.name, message=message)


__all__ = [
    "AggregatedResult",
    "AggregatedSearch",
    "CanonicalUrl",
    "EngineError",
    "ResultAggregator",
    "canonicalize_url",
    "merge_result",
]
