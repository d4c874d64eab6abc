"""Yandex adapter (international ``yandex.com`` front end)."""

from __future__ import annotations

import httpx
from selectolax.parser import HTMLParser

from .base import SearchResult
from .regions import parse_region
from .transport import fetch_html, node_text

BASE_URL = "https://yandex.com/search/"
# Yandex region id for English-language results
DEFAULT_LR = "84"


def to_lang(region: str | None) -> str | None:
    if not region:
        return None
    locale = parse_region(region)
    if locale is None:
        return "en_US"
    return f"{locale.language}_{locale.country.upper()}"


class YandexAdapter:
    """Scrape Yandex organic results."""

    def __init__(self, client: httpx.AsyncClient, timeout: float | None = None) -> None:
        self.client = client
        self.timeout = timeout

    async def search(self, query: str, region: str | None = None) -> list[SearchResult]:
        params = {"text": query, "lr": DEFAULT_LR}
        lang = to_lang(region)
        if lang:
            params["lang"] = lang
        page = await fetch_html(self.client, BASE_URL, params=params, timeout=self.timeout)
        return self.extract_results(page.tree)

    @staticmethod
    def extract_results(tree: HTMLParser) -> list[SearchResult]:
        results: list[SearchResult] = []
        seen: set[str] = set()
        for item in tree.css("li.serp-item"):
            anchor = item.css_first("a.Link")
            href = (anchor.attributes.get("href") or "").strip() if anchor else ""
            if not href.startswith("http") or href in seen:
                continue
            title = node_text(item.css_first("h2, h3"))
            if not title:
                continue
            snippet = node_text(item.css_first("div.text-container, div.OrganicText"))
            results.append(SearchResult(title=title, url=href, snippet=snippet))
            seen.add(href)
        return results


__all__ = ["YandexAdapter", "to_lang"]
