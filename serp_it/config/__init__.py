"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    BrowserConfig,
    ExtractionConfig,
    GlobalConfig,
    KNOWN_ENGINES,
    PoolConfig,
    RenderConfig,
    SearchConfig,
)

__all__ = [
    "BrowserConfig",
    "ConfigLocator",
    "ConfigRepository",
    "ExtractionConfig",
    "GlobalConfig",
    "KNOWN_ENGINES",
    "PoolConfig",
    "RenderConfig",
    "SearchConfig",
]
