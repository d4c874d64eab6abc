"""Error taxonomy shared by the aggregation and rendering layers."""

from __future__ import annotations


class SerpItError(Exception):
    """Base class for all serp-it errors."""


class AdapterError(SerpItError):
    """A single search backend failed; isolated and reported by the aggregator."""

    def __init__(self, source_name: str, message: str) -> None:
        super().__init__(f"{source_name}: {message}")
        self.source_name = source_name
        self.message = message


class PoolResourceError(SerpItError):
    """A renderer handle could not be created."""


class RenderError(SerpItError):
    """A URL could not be rendered after exhausting the attempt budget."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(message)
        self.url = url
        self.message = message


class ExtractionError(SerpItError):
    """Document download or parsing failed."""


__all__ = [
    "AdapterError",
    "ExtractionError",
    "PoolResourceError",
    "RenderError",
    "SerpItError",
]
