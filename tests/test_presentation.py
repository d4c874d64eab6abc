from __future__ import annotations

from serp_it.engine.aggregator import AggregatedResult
from serp_it.presentation import (
    confidence_level,
    is_truncated,
    render_error_list,
    render_error_output,
    render_fetch_output,
    render_search_output,
    truncate_markdown,
)


def test_truncate_markdown() -> None:
    assert truncate_markdown("short", 10) == "short"
    truncated = truncate_markdown("abcdefghijkl", 5)
    assert truncated == "abcde\n\n... (truncated)"
    assert is_truncated(truncated)


def test_confidence_level() -> None:
    assert [confidence_level(n) for n in (1, 2, 3, 4)] == ["Low", "Medium", "High", "High"]


def test_search_output_ranks_by_engine_agreement() -> None:
    results = [
        AggregatedResult("Solo", "https://solo.example/", "", ["Brave"]),
        AggregatedResult("Shared", "https://shared.example/", "Everyone agrees", ["Brave", "Bing", "DuckDuckGo"]),
    ]
    output = render_search_output(
        results,
        query="agreement",
        region="en-US",
        engines_succeeded=3,
        engines_total=3,
        timestamp="2026-01-01T00:00:00+00:00",
    )

    assert output.startswith('<search-metadata>\nQuery: "agreement"\nRegion: en-US\nResults: 2 found')
    assert output.index("## Result 1 (High Confidence)") < output.index("**Title:** Solo")
    assert "**Sources:** Brave, Bing, DuckDuckGo (3 engines)" in output
    assert "**Sources:** Brave (1 engine)" in output
    assert "- High confidence results: #1" in output


def test_search_output_without_results() -> None:
    output = render_search_output(
        [], query="nothing", region="en-US", engines_succeeded=0, engines_total=3, timestamp="now"
    )
    assert "Engines: 0/3 succeeded" in output
    assert output.endswith("<search-results>\nNo results found.\n</search-results>")


def test_fetch_and_error_blocks() -> None:
    page = render_fetch_output("https://a.example/", "A", "body\n\n... (truncated)", fetched_at="now")
    assert "Content: 21 characters (truncated)" in page
    assert "<page-content>\n\nbody" in page

    assert render_error_list("engine-errors", ["Bing: HTTP 503"]) == "<engine-errors>\n- Bing: HTTP 503\n</engine-errors>"

    error = render_error_output("fetch", "timeout", {"URL": "https://a.example/"})
    assert error.startswith("<error>\nTool: fetch\nError: timeout\nURL: https://a.example/\n</error>")
