"""Engine components: aggregation, pooling, rendering and document extraction."""

from .aggregator import (
    AggregatedResult,
    AggregatedSearch,
    EngineError,
    ResultAggregator,
    canonicalize_url,
)
from .documents import DocumentExtractor, ExtractionRecord
from .merger import MergeThresholds, merge_extractions
from .ocr import OcrWorker
from .pool import PooledResource, ResourcePool
from .renderer import BrowserLauncher, RenderPipeline, RenderResult

__all__ = [
    "AggregatedResult",
    "AggregatedSearch",
    "BrowserLauncher",
    "DocumentExtractor",
    "EngineError",
    "ExtractionRecord",
    "MergeThresholds",
    "OcrWorker",
    "PooledResource",
    "RenderPipeline",
    "RenderResult",
    "ResourcePool",
    "ResultAggregator",
    "canonicalize_url",
    "merge_extractions",
]
