"""Startpage adapter."""

from __future__ import annotations

import httpx
from selectolax.parser import HTMLParser

from .base import SearchResult
from .transport import fetch_html, node_text

BASE_URL = "https://www.startpage.com/sp/search"

HEADERS = {
    "Accept-Language": "en-US,en;q=0.5",
    "DNT": "1",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
}

# ISO language -> Startpage interface language
LANGUAGES = {
    "en": "english",
    "de": "deutsch",
    "fr": "francais",
    "es": "espanol",
    "it": "italiano",
    "nl": "nederlands",
    "pt": "portugues",
    "pl": "polski",
    "ru": "russian",
    "zh": "chinese",
    "ja": "japanese",
    "ko": "korean",
}


def to_language(region: str | None) -> str | None:
    """``de-DE`` -> ``deutsch``; no region means English, unmapped languages mean none."""

    if not region:
        return "english"
    return LANGUAGES.get(region.strip().lower().replace("_", "-").split("-")[0])


class StartpageAdapter:
    def __init__(self, client: httpx.AsyncClient, timeout: float | None = None) -> None:
        self.client = client
        self.timeout = timeout

    async def search(self, query: str, region: str | None = None) -> list[SearchResult]:
        params = {"query": query, "cat": "web", "pl": "ext-ff", "extVersion": "1.3.0"}
        language = to_language(region)
        if language:
            params["language"] = language
            params["lui"] = language
        page = await fetch_html(self.client, BASE_URL, params=params, headers=HEADERS, timeout=self.timeout)
        return self.extract_results(page.tree)

    @staticmethod
    def extract_results(tree: HTMLParser) -> list[SearchResult]:
        results: list[SearchResult] = []
        seen: set[str] = set()
        for item in tree.css("div.w-gl__result"):
            anchor = item.css_first("a.w-gl__result-title")
            href = (anchor.attributes.get("href") or "").strip() if anchor else ""
            if not href.startswith("http") or href in seen:
                continue
            title = node_text(anchor)
            if not title:
                continue
            snippet = node_text(item.css_first("p.w-gl__description"))
            results.append(SearchResult(title=title, url=href, snippet=snippet))
            seen.add(href)
        return results


__all__ = ["StartpageAdapter", "to_language"]
