"""Yahoo web results adapter and the ``/RU=`` redirect decoder Yahoo and AOL share."""

from __future__ import annotations

from urllib.parse import unquote

import httpx
from selectolax.parser import HTMLParser

from .base import SearchResult
from .regions import parse_region
from .transport import fetch_html, node_text

BASE_URL = "https://search.yahoo.com/search"

_RU_MARKER = "/RU="


def decode_ru_redirect(url: str) -> str:
    """Unwrap ``r.search.yahoo.com/.../RU=<quoted target>/RK=...`` tracking links."""

    if not url:
        return url
    index = url.find(_RU_MARKER)
    if index == -1:
        return url
    encoded = url[index + len(_RU_MARKER):]
    end = encoded.find("/R")
    if end != -1:
        encoded = encoded[:end]
    return unquote(encoded)


class YahooAdapter:
    """Scrape the no-JS Yahoo results page."""

    def __init__(self, client: httpx.AsyncClient, timeout: float | None = None) -> None:
        self.client = client
        self.timeout = timeout

    async def search(self, query: str, region: str | None = None) -> list[SearchResult]:
        params = {"p": query, "ei": "UTF-8", "nojs": "1"}
        locale = parse_region(region)
        if locale:
            params["vl"] = locale.language
            params["vc"] = locale.country.upper()
        page = await fetch_html(self.client, BASE_URL, params=params, timeout=self.timeout)
        return self.extract_results(page.tree)

    @staticmethod
    def extract_results(tree: HTMLParser) -> list[SearchResult]:
        results: list[SearchResult] = []
        seen: set[str] = set()
        for item in tree.css("div#web li div.dd.algo.algo-sr"):
            anchor = item.css_first("a[href]")
            if anchor is None:
                continue
            url = decode_ru_redirect((anchor.attributes.get("href") or "").strip())
            if not url or url in seen:
                continue
            title = node_text(item.css_first("h3.title"))
            if not title:
                continue
            snippet = node_text(item.css_first("div.compText"))
            results.append(SearchResult(title=title, url=url, snippet=snippet))
            seen.add(url)
        return results


__all__ = ["YahooAdapter", "decode_ru_redirect"]
