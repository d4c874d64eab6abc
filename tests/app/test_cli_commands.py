from __future__ import annotations

import json
from contextlib import asynccontextmanager
from pathlib import Path
from types import SimpleNamespace

import pytest
from typer.testing import CliRunner

from serp_it.app import AppState, app, guess_title
from serp_it.config import GlobalConfig
from serp_it.engine.aggregator import AggregatedResult, EngineError
from serp_it.errors import RenderError
from serp_it.orchestrator import FetchResponse, RenderedResult, SearchFetchResponse, SearchResponse


class StubOrchestrator:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def search(self, query: str, region: str | None = None) -> SearchResponse:
        self.calls.append(("search", query, region))
        return SearchResponse(
            query=query,
            region=region or "en-US",
            results=[AggregatedResult("Example", "https://example.com/", "An example", ["Brave", "Bing"])],
            engine_errors=[EngineError("DuckDuckGo", "HTML endpoint responded with a challenge")],
            engines_total=3,
        )

    async def search_and_render(self, query: str, region: str | None = None, max_fetch: int = 10) -> SearchFetchResponse:
        self.calls.append(("search-fetch", query, region, max_fetch))
        return SearchFetchResponse(
            query=query,
            region=region or "en-US",
            results=[
                RenderedResult("Example", "https://example.com/", "", ["Brave"], markdown="# Example page"),
                RenderedResult("Down", "https://down.example/", "", ["Brave"]),
            ],
            engine_errors=[],
            engines_total=1,
            fetch_limit=max_fetch,
            fetch_errors=["https://down.example/: timeout"],
        )

    async def fetch(self, url: str) -> FetchResponse:
        self.calls.append(("fetch", url))
        if "down" in url:
            raise RenderError(url, "net::ERR_NAME_NOT_RESOLVED")
        return FetchResponse(url=url, markdown="# Fetched Title\n\nBody")


@pytest.fixture
def stub(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> StubOrchestrator:
    orchestrator = StubOrchestrator()
    repository = SimpleNamespace(locator=SimpleNamespace(global_config_path=lambda: tmp_path / "data" / "global_config.yaml"))
    state = AppState(repository=repository, config=GlobalConfig(search={"engines": ["bing", "brave"]}))

    @asynccontextmanager
    async def fake_open(config):  # noqa: ANN001
        yield orchestrator

    monkeypatch.setattr("serp_it.app.build_state", lambda verbose: state)
    monkeypatch.setattr("serp_it.app.open_orchestrator", fake_open)
    monkeypatch.setenv("SERP_IT_HOME", str(tmp_path))
    return orchestrator


runner = CliRunner()


def test_cli_search_text_output(stub: StubOrchestrator) -> None:
    result = runner.invoke(app, ["search", "example query", "--region", "de-DE"])
    assert result.exit_code == 0, result.stdout
    assert stub.calls == [("search", "example query", "de-DE")]
    assert 'Query: "example query"' in result.stdout
    assert "Engines: 2/3 succeeded" in result.stdout
    assert "## Result 1 (Medium Confidence)" in result.stdout
    assert "<engine-errors>\n- DuckDuckGo: HTML endpoint responded with a challenge" in result.stdout


def test_cli_search_json_output(stub: StubOrchestrator) -> None:
    result = runner.invoke(app, ["search", "example", "--json"])
    assert result.exit_code == 0, result.stdout
    payload = json.loads(result.stdout)
    assert payload["results"][0]["sources"] == ["Brave", "Bing"]
    assert payload["engineErrors"] == ["DuckDuckGo: HTML endpoint responded with a challenge"]


def test_cli_search_fetch_renders_pages_and_errors(stub: StubOrchestrator) -> None:
    result = runner.invoke(app, ["search-fetch", "example", "--max-fetch", "2"])
    assert result.exit_code == 0, result.stdout
    assert stub.calls == [("search-fetch", "example", None, 2)]
    assert "<page-content>\n\n# Example page" in result.stdout
    assert "<fetch-errors>\n- https://down.example/: timeout\n</fetch-errors>" in result.stdout
    assert "<search-notice>" not in result.stdout


def test_cli_search_fetch_notes_missing_page_content(stub: StubOrchestrator, monkeypatch: pytest.MonkeyPatch) -> None:
    async def nothing_rendered(query: str, region: str | None = None, max_fetch: int = 10) -> SearchFetchResponse:
        return SearchFetchResponse(
            query=query,
            region="en-US",
            results=[RenderedResult("Down", "https://down.example/", "", ["Brave"])],
            engine_errors=[],
            engines_total=1,
            fetch_limit=max_fetch,
            fetch_errors=["https://down.example/: timeout"],
        )

    monkeypatch.setattr(stub, "search_and_render", nothing_rendered)
    result = runner.invoke(app, ["search-fetch", "example"])
    assert result.exit_code == 0, result.stdout
    assert "<page-content>" not in result.stdout
    assert "</search-results>\n\n<search-notice>No page content was captured.</search-notice>" in result.stdout


def test_cli_fetch_success_and_failure(stub: StubOrchestrator) -> None:
    ok = runner.invoke(app, ["fetch", "https://example.com/"])
    assert ok.exit_code == 0, ok.stdout
    assert "Title: Fetched Title" in ok.stdout

    failed = runner.invoke(app, ["fetch", "https://down.example/"])
    assert failed.exit_code == 1
    assert "Tool: fetch" in failed.stdout
    assert "Error: net::ERR_NAME_NOT_RESOLVED" in failed.stdout
    assert "URL: https://down.example/" in failed.stdout


def test_cli_engines_table(stub: StubOrchestrator) -> None:
    result = runner.invoke(app, ["engines"])
    assert result.exit_code == 0, result.stdout
    assert "2 enabled" in result.stdout
    assert "DuckDuckGo" in result.stdout


def test_cli_config_show(stub: StubOrchestrator) -> None:
    result = runner.invoke(app, ["config", "show"])
    assert result.exit_code == 0, result.stdout
    assert "engines:" in result.stdout
    assert "- bing" in result.stdout


def test_cli_log_tail(stub: StubOrchestrator, tmp_path: Path) -> None:
    log_dir = tmp_path / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    (log_dir / "serp_it.log").write_text("".join(f"line {i}\n" for i in range(5)), encoding="utf-8")

    result = runner.invoke(app, ["log", "tail", "--lines", "2"])
    assert result.exit_code == 0, result.stdout
    assert "line 3\nline 4" in result.stdout
    assert "line 2" not in result.stdout


def test_guess_title_prefers_first_heading() -> None:
    assert guess_title("intro\n\n## Section\n\n# Later", "fallback") == "Section"
    assert guess_title("no headings", "https://x.example/") == "https://x.example/"
