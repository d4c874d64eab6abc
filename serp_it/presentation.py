"""Text rendering of search and fetch results for terminal and agent output."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from .engine.aggregator import AggregatedResult

TRUNCATION_MARKER = "... (truncated)"
MAX_MARKDOWN_CHARS = 40_000


def truncate_markdown(markdown: str, limit: int = MAX_MARKDOWN_CHARS) -> str:
    if len(markdown) <= limit:
        return markdown
    return f"{markdown[:limit]}\n\n{TRUNCATION_MARKER}"


def is_truncated(markdown: str) -> bool:
    return markdown.endswith(TRUNCATION_MARKER)


def confidence_level(source_count: int) -> str:
    if source_count >= 3:
        return "High"
    if source_count >= 2:
        return "Medium"
    return "Low"


def rank_by_agreement(results: Sequence[AggregatedResult]) -> list[AggregatedResult]:
    """Stable sort, most engines first."""

    return sorted(results, key=lambda item: len(item.sources), reverse=True)


def render_search_output(
    results: Sequence[AggregatedResult],
    *,
    query: str,
    region: str,
    engines_succeeded: int,
    engines_total: int,
    timestamp: str,
) -> str:
    lines = [
        "<search-metadata>",
        f'Query: "{query}"',
        f"Region: {region}",
        f"Results: {len(results)} found",
        f"Engines: {engines_succeeded}/{engines_total} succeeded",
        f"Timestamp: {timestamp}",
        "</search-metadata>",
        "",
    ]
    if not results:
        lines.extend(["<search-results>", "No results found.", "</search-results>"])
        return "\n".join(lines)

    lines.extend(["<search-results>", ""])
    ranked = rank_by_agreement(results)
    for index, item in enumerate(ranked, start=1):
        count = len(item.sources)
        lines.append(f"## Result {index} ({confidence_level(count)} Confidence)")
        lines.append(f"**Title:** {item.title}")
        lines.append(f"**URL:** {item.url}")
        plural = "s" if count > 1 else ""
        lines.append(f"**Sources:** {', '.join(item.sources)} ({count} engine{plural})")
        if item.snippet:
            lines.append(f"**Snippet:** {item.snippet}")
        lines.extend(["", "---", ""])
    lines.append("</search-results>")

    high = [index for index, item in enumerate(ranked, start=1) if len(item.sources) >= 3]
    lines.extend(["", "<search-guidance>", "- Results sorted by confidence (engine agreement)"])
    if high:
        lines.append("- High confidence results: " + ", ".join(f"#{index}" for index in high))
    lines.append('- Use "fetch" on URLs for full page content')
    lines.append("</search-guidance>")
    return "\n".join(lines)


def render_fetch_output(url: str, title: str, markdown: str, *, fetched_at: str) -> str:
    suffix = " (truncated)" if is_truncated(markdown) else ""
    return "\n".join(
        [
            "<page-metadata>",
            f"URL: {url}",
            f"Title: {title}",
            f"Fetched: {fetched_at}",
            f"Content: {len(markdown)} characters{suffix}",
            "</page-metadata>",
            "",
            "<page-content>",
            "",
            markdown,
            "",
            "</page-content>",
        ]
    )


def render_error_list(tag: str, errors: Iterable[str]) -> str:
    body = "\n".join(f"- {error}" for error in errors)
    return f"<{tag}>\n{body}\n</{tag}>"


def render_notice(message: str) -> str:
    return f"<search-notice>{message}</search-notice>"


def render_error_output(tool: str, error: str, context: Mapping[str, str]) -> str:
    lines = ["<error>", f"Tool: {tool}", f"Error: {error}"]
    lines.extend(f"{key}: {value}" for key, value in context.items())
    lines.extend(
        [
            "</error>",
            "",
            "<error-guidance>",
            "- Check if the query/URL is valid",
            "- Network issues may be temporary - retry may help",
            "- Try alternative search terms or different URL",
            "</error-guidance>",
        ]
    )
    return "\n".join(lines)


__all__ = [
    "MAX_MARKDOWN_CHARS",
    "TRUNCATION_MARKER",
    "confidence_level",
    "is_truncated",
    "rank_by_agreement",
    "render_error_list",
    "render_error_output",
    "render_fetch_output",
    "render_notice",
    "render_search_output",
    "truncate_markdown",
]
