"""Top-level operations: search, search + render, single URL fetch."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, Field, field_validator

from .engine.aggregator import AggregatedResult, AggregatedSearch, EngineError
from .errors import RenderError
from .logging_conf import get_logger
from .presentation import truncate_markdown

if TYPE_CHECKING:
    from .engine.aggregator import ResultAggregator
    from .engine.renderer import RenderPipeline
    from .runtime import RuntimeContext

DEFAULT_REGION = "en-US"


class SearchRequest(BaseModel):
    query: str = Field(min_length=1, max_length=500)
    region: str | None = Field(default=None, min_length=2, max_length=16)

    @field_validator("query")
    @classmethod
    def _strip_query(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("query cannot be blank")
        return value

    @field_validator("region", mode="before")
    @classmethod
    def _blank_region(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value


class SearchFetchRequest(SearchRequest):
    max_fetch: int = Field(default=10, ge=1, le=100)


class FetchRequest(BaseModel):
    url: str = Field(min_length=1)

    @field_validator("url")
    @classmethod
    def _require_http(cls, value: str) -> str:
        value = value.strip()
        if not value.lower().startswith(("http://", "https://")):
            raise ValueError("url must be an absolute http(s) URL")
        return value


@dataclass(slots=True)
class RenderedResult:
    title: str
    url: str
    snippet: str
    sources: list[str]
    markdown: str = ""

    @classmethod
    def from_aggregated(cls, result: AggregatedResult) -> "RenderedResult":
        return cls(
            title=result.title,
            url=result.url,
            snippet=result.snippet,
            sources=list(result.sources),
        )

    def as_dict(self) -> dict:
        return {
            "title": self.title,
            "url": self.url,
            "snippet": self.snippet,
            "sources": list(self.sources),
            "markdown": self.markdown,
        }


@dataclass(slots=True)
class SearchResponse:
    query: str
    region: str
    results: list[AggregatedResult]
    engine_errors: list[EngineError]
    engines_total: int

    @property
    def engines_succeeded(self) -> int:
        return self.engines_total - len(self.engine_errors)

    def as_dict(self) -> dict:
        payload: dict = {"results": [result.as_dict() for result in self.results]}
        if self.engine_errors:
            payload["engineErrors"] = [str(error) for error in self.engine_errors]
        return payload


@dataclass(slots=True)
class SearchFetchResponse:
    query: str
    region: str
    results: list[RenderedResult]
    engine_errors: list[EngineError]
    engines_total: int
    fetch_limit: int
    fetch_errors: list[str] = field(default_factory=list)

    @property
    def engines_succeeded(self) -> int:
        return self.engines_total - len(self.engine_errors)

    def as_dict(self) -> dict:
        payload: dict = {"results": [result.as_dict() for result in self.results]}
        if self.engine_errors:
            payload["engineErrors"] = [str(error) for error in self.engine_errors]
        if self.fetch_errors:
            payload["fetchErrors"] = list(self.fetch_errors)
        return payload


@dataclass(slots=True)
class FetchResponse:
    url: str
    markdown: str

    def as_dict(self) -> dict:
        return {"url": self.url, "markdown": self.markdown}


class Orchestrator:
    """Central coordinator composing the aggregator and the render pipeline."""

    def __init__(
        self,
        aggregator: "ResultAggregator",
        renderer: "RenderPipeline",
        *,
        default_region: str = DEFAULT_REGION,
        max_output_chars: int = 40_000,
        fetch_concurrency: int = 3,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.aggregator = aggregator
        self.renderer = renderer
        self.default_region = default_region
        self.max_output_chars = max_output_chars
        self.fetch_concurrency = fetch_concurrency
        self.logger = logger or get_logger("orchestrator")

    @classmethod
    def from_runtime(cls, runtime: "RuntimeContext") -> "Orchestrator":
        if not runtime.started or runtime.aggregator is None or runtime.renderer is None:
            raise RuntimeError("RuntimeContext must be started before building an orchestrator")
        cfg = runtime.config
        return cls(
            runtime.aggregator,
            runtime.renderer,
            default_region=cfg.search.default_region,
            max_output_chars=cfg.render.max_output_chars,
            fetch_concurrency=cfg.render.fetch_concurrency,
        )

    # ------------------------------------------------------------------
    async def search(self, query: str, region: str | None = None) -> SearchResponse:
        request = SearchRequest(query=query, region=region)
        region_code = request.region or self.default_region
        aggregated = await self.aggregator.search(request.query, region_code)
        return SearchResponse(
            query=request.query,
            region=region_code,
            results=aggregated.results,
            engine_errors=aggregated.engine_errors,
            engines_total=len(self.aggregator.adapters),
        )

    async def search_and_render(
        self, query: str, region: str | None = None, max_fetch: int = 10
    ) -> SearchFetchResponse:
        request = SearchFetchRequest(query=query, region=region, max_fetch=max_fetch)
        region_code = request.region or self.default_region
        aggregated: AggregatedSearch = await self.aggregator.search(request.query, region_code)
        enriched = [RenderedResult.from_aggregated(result) for result in aggregated.results]
        response = SearchFetchResponse(
            query=request.query,
            region=region_code,
            results=enriched,
            engine_errors=aggregated.engine_errors,
            engines_total=len(self.aggregator.adapters),
            fetch_limit=request.max_fetch,
        )
        targets = enriched[: request.max_fetch]
        if not targets:
            return response

        semaphore = asyncio.Semaphore(self.fetch_concurrency)

        async def _render(item: RenderedResult) -> str | None:
            async with semaphore:
                try:
                    rendered = await self.renderer.render(item.url)
                except RenderError as exc:
                    return f"{item.url}: {exc.message}"
                except Exception as exc:  # noqa: BLE001
                    return f"{item.url}: {exc}"
                item.markdown = truncate_markdown(rendered.text, self.max_output_chars)
                return None

        outcomes = await asyncio.gather(*(_render(item) for item in targets))
        response.fetch_errors = [error for error in outcomes if error]
        self.logger.info(
            "search_fetch_completed",
            query=request.query,
            rendered=len(targets) - len(response.fetch_errors),
            failed=len(response.fetch_errors),
        )
        return response

    async def fetch(self, url: str) -> FetchResponse:
        request = FetchRequest(url=url)
        rendered = await self.renderer.render(request.url)
        return FetchResponse(
            url=request.url,
            markdown=truncate_markdown(rendered.text, self.max_output_chars),
        )


__all__ = [
    "FetchRequest",
    "FetchResponse",
    "Orchestrator",
    "RenderedResult",
    "SearchFetchRequest",
    "SearchFetchResponse",
    "SearchRequest",
    "SearchResponse",
]
