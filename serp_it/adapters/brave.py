"""Brave Search HTML adapter."""

from __future__ import annotations

import httpx
from selectolax.parser import HTMLParser

from .base import SearchResult
from .regions import parse_region
from .transport import fetch_html, node_text

BASE_URL = "https://search.brave.com/search"


class BraveAdapter:
    """Scrape the Brave web results page."""

    def __init__(self, client: httpx.AsyncClient, timeout: float | None = None) -> None:
        self.client = client
        self.timeout = timeout

    async def search(self, query: str, region: str | None = None) -> list[SearchResult]:
        params = {"q": query, "source": "web"}
        locale = parse_region(region)
        if locale:
            params["country"] = locale.country
            params["lang"] = locale.language
        page = await fetch_html(self.client, BASE_URL, params=params, timeout=self.timeout)
        return self.extract_results(page.tree)

    @staticmethod
    def extract_results(tree: HTMLParser) -> list[SearchResult]:
        results: list[SearchResult] = []
        seen: set[str] = set()
        for item in tree.css("div#results div.snippet"):
            classes = (item.attributes.get("class") or "").split()
            if "standalone" in classes:
                continue
            anchor = item.css_first("a[href]")
            href = (anchor.attributes.get("href") or "").strip() if anchor else ""
            if not href or href in seen:
                continue
            title = node_text(item.css_first("div.title")) or node_text(anchor)
            if not title:
                continue
            snippet = node_text(item.css_first("div.snippet-description"))
            results.append(SearchResult(title=title, url=href, snippet=snippet))
            seen.add(href)
        return results


__all__ = ["BraveAdapter"]
