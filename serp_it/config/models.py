"""Pydantic models describing serp-it runtime configuration."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)
KNOWN_ENGINES = ("aol", "brave", "bing", "duckduckgo", "yahoo", "startpage", "yandex")


class PoolConfig(BaseModel):
    """Browser pool sizing and idle eviction."""

    enabled: bool = True
    max_size: int = 3
    idle_timeout: float = 60.0
    sweep_interval: float = 30.0

    @model_validator(mode="after")
    def _validate_positive(self) -> "PoolConfig":
        if self.max_size < 1:
            raise ValueError("max_size must be >= 1")
        if self.idle_timeout <= 0:
            raise ValueError("idle_timeout must be > 0")
        if self.sweep_interval <= 0:
            raise ValueError("sweep_interval must be > 0")
        return self


class BrowserConfig(BaseModel):
    """Chromium launch options."""

    headless: bool = True
    executable_path: str | None = None
    launch_args: list[str] = Field(
        default_factory=lambda: ["--disable-dev-shm-usage", "--no-sandbox"]
    )


class RenderConfig(BaseModel):
    """Retry budget and per-step timeouts for page rendering (seconds)."""

    max_attempts: int = 3
    navigation_timeout: float = 15.0
    quiescence_timeout: float = 5.0
    backoff_base: float = 0.25
    max_output_chars: int = 40_000
    fetch_concurrency: int = 3

    @model_validator(mode="after")
    def _validate_budget(self) -> "RenderConfig":
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.navigation_timeout <= 0 or self.quiescence_timeout <= 0:
            raise ValueError("timeouts must be > 0")
        if self.backoff_base < 0:
            raise ValueError("backoff_base must be >= 0")
        if self.max_output_chars < 1:
            raise ValueError("max_output_chars must be >= 1")
        if self.fetch_concurrency < 1:
            raise ValueError("fetch_concurrency must be >= 1")
        return self


class ExtractionConfig(BaseModel):
    """Document extraction thresholds and OCR settings.

    The threshold defaults are empirical; they are kept exactly so merged
    output stays stable across releases.
    """

    text_layer_min_chars: int = 100
    structured_min_chars: int = 500
    ocr_min_chars: int = 200
    ocr_word_ratio: float = 1.5
    paragraph_min_chars: int = 20
    paragraph_key_chars: int = 100
    ocr_enabled: bool = True
    ocr_language: str = "eng"
    ocr_dpi: int = 200
    ocr_max_pages: int = 30
    download_timeout: float = 30.0
    probe_timeout: float = 10.0

    @model_validator(mode="after")
    def _validate_thresholds(self) -> "ExtractionConfig":
        if self.ocr_word_ratio <= 0:
            raise ValueError("ocr_word_ratio must be > 0")
        if self.paragraph_key_chars < 1:
            raise ValueError("paragraph_key_chars must be >= 1")
        if self.ocr_dpi < 36:
            raise ValueError("ocr_dpi must be >= 36")
        if self.ocr_max_pages < 1:
            raise ValueError("ocr_max_pages must be >= 1")
        return self


class SearchConfig(BaseModel):
    """Which backends to query and how."""

    engines: list[str] = Field(default_factory=lambda: list(KNOWN_ENGINES))
    default_region: str = "en-US"
    adapter_timeout: float = 20.0
    concurrent: bool = True
    user_agent: str = DEFAULT_USER_AGENT

    @field_validator("engines", mode="before")
    @classmethod
    def _coerce_engines(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            value = [part for part in value.split(",")]
        if not isinstance(value, (list, tuple)):
            raise ValueError("engines expects a list of engine names")
        names = [str(item).strip().lower() for item in value if str(item).strip()]
        unknown = [name for name in names if name not in KNOWN_ENGINES]
        if unknown:
            raise ValueError(f"Unknown engines: {unknown}; supported: {list(KNOWN_ENGINES)}")
        if not names:
            raise ValueError("At least one engine must be enabled")
        return list(dict.fromkeys(names))

    @field_validator("adapter_timeout")
    @classmethod
    def _validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("adapter_timeout must be > 0")
        return value


class GlobalConfig(BaseModel):
    """Top level configuration document."""

    pool: PoolConfig = Field(default_factory=PoolConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)


__all__ = [
    "BrowserConfig",
    "DEFAULT_USER_AGENT",
    "ExtractionConfig",
    "GlobalConfig",
    "KNOWN_ENGINES",
    "PoolConfig",
    "RenderConfig",
    "SearchConfig",
]
