"""AOL search adapter (Yahoo-backed results markup)."""

from __future__ import annotations

import httpx
from selectolax.parser import HTMLParser

from .base import SearchResult
from .transport import fetch_html, node_text, normalize_whitespace
from .yahoo import decode_ru_redirect

BASE_URL = "https://search.aol.com/aol/search"


class AolAdapter:
    """Scrape AOL results; the region is only passed as ``Accept-Language``."""

    def __init__(self, client: httpx.AsyncClient, timeout: float | None = None) -> None:
        self.client = client
        self.timeout = timeout

    async def search(self, query: str, region: str | None = None) -> list[SearchResult]:
        params = {"q": query, "nojs": "1", "ei": "UTF-8"}
        headers: dict[str, str] = {}
        if region and region.strip():
            headers["Accept-Language"] = region.strip().replace("_", "-")
        page = await fetch_html(self.client, BASE_URL, params=params, headers=headers, timeout=self.timeout)
        return self.extract_results(page.tree)

    @staticmethod
    def extract_results(tree: HTMLParser) -> list[SearchResult]:
        results: list[SearchResult] = []
        seen: set[str] = set()
        for item in tree.css("#web ol.reg > li"):
            anchor = item.css_first("div.compTitle h3.title a")
            if anchor is None:
                continue
            href = decode_ru_redirect((anchor.attributes.get("href") or "").strip())
            if href.startswith("//"):
                href = f"https:{href}"
            if not href.lower().startswith(("http://", "https://")) or href in seen:
                continue
            title = node_text(anchor)
            if not title:
                continue
            snippet = normalize_whitespace(" ".join(node.text(separator=" ") for node in item.css("p")))
            results.append(SearchResult(title=title, url=href, snippet=snippet))
            seen.add(href)
        return results


__all__ = ["AolAdapter"]
