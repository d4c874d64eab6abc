from __future__ import annotations

import pytest
import yaml

from serp_it.config import (
    BrowserConfig,
    ExtractionConfig,
    GlobalConfig,
    PoolConfig,
    RenderConfig,
    SearchConfig,
)


def test_defaults_match_documented_values() -> None:
    config = GlobalConfig()
    assert config.pool.max_size == 3
    assert config.pool.idle_timeout == 60.0
    assert config.render.max_attempts == 3
    assert config.render.backoff_base == 0.25
    assert config.render.max_output_chars == 40_000
    assert config.extraction.structured_min_chars == 500
    assert config.extraction.ocr_word_ratio == 1.5
    assert config.search.engines == ["aol", "brave", "bing", "duckduckgo", "yahoo", "startpage", "yandex"]


def test_engines_accept_comma_string_and_deduplicate() -> None:
    search = SearchConfig(engines=" Bing, brave ,bing,")
    assert search.engines == ["bing", "brave"]


@pytest.mark.parametrize("engines", [["google"], [], "", ["brave", "yahoo"]])
def test_engines_reject_unknown_or_empty(engines) -> None:  # noqa: ANN001
    with pytest.raises(ValueError):
        SearchConfig(engines=engines)


def test_adapter_timeout_must_be_positive() -> None:
    with pytest.raises(ValueError):
        SearchConfig(adapter_timeout=0)


@pytest.mark.parametrize(
    ("model", "overrides"),
    [
        (PoolConfig, {"max_size": 0}),
        (PoolConfig, {"idle_timeout": 0}),
        (RenderConfig, {"max_attempts": 0}),
        (RenderConfig, {"backoff_base": -1}),
        (RenderConfig, {"fetch_concurrency": 0}),
        (ExtractionConfig, {"ocr_word_ratio": 0}),
        (ExtractionConfig, {"ocr_dpi": 10}),
    ],
)
def test_invalid_budgets_are_rejected(model, overrides) -> None:  # noqa: ANN001
    with pytest.raises(ValueError):
        model(**overrides)


def test_browser_config_does_not_capture_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PLAYWRIGHT_CHROMIUM_EXECUTABLE_PATH", "/opt/chromium/chrome")
    assert BrowserConfig().executable_path is None
    assert "executable_path: null" in yaml.safe_dump(GlobalConfig().model_dump())
