"""Bing web results adapter."""

from __future__ import annotations

import base64
import binascii
from urllib.parse import parse_qs, urlsplit

import httpx
from selectolax.parser import HTMLParser

from .base import SearchResult
from .regions import parse_region
from .transport import fetch_html, node_text

BASE_URL = "https://www.bing.com/search"


def decode_redirect(url: str) -> str:
    """Unwrap ``bing.com/ck/a?...&u=a1<base64>`` tracking links."""

    if not url:
        return url
    parts = urlsplit(url)
    if not parts.netloc.endswith("bing.com"):
        return url
    encoded = parse_qs(parts.query).get("u")
    if not encoded:
        return url
    token = encoded[0]
    token = token[2:] if len(token) > 2 else token
    padded = token + "=" * (-len(token) % 4)
    try:
        decoded = base64.urlsafe_b64decode(padded).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return url
    return decoded if decoded.startswith(("http://", "https://")) else url


class BingAdapter:
    """Scrape the Bing web results page."""

    def __init__(self, client: httpx.AsyncClient, timeout: float | None = None) -> None:
        self.client = client
        self.timeout = timeout

    async def search(self, query: str, region: str | None = None) -> list[SearchResult]:
        params = {"q": query}
        locale = parse_region(region)
        if locale:
            params["setlang"] = locale.language
            params["cc"] = locale.country
        page = await fetch_html(self.client, BASE_URL, params=params, timeout=self.timeout)
        return self.extract_results(page.tree)

    @staticmethod
    def extract_results(tree: HTMLParser) -> list[SearchResult]:
        results: list[SearchResult] = []
        seen: set[str] = set()
        for item in tree.css("li.b_algo"):
            anchor = item.css_first("h2 a")
            if anchor is None:
                continue
            url = decode_redirect((anchor.attributes.get("href") or "").strip())
            if not url or url in seen:
                continue
            title = node_text(anchor)
            if not title:
                continue
            snippet = node_text(item.css_first("div.b_caption p")) or node_text(item.css_first("p"))
            results.append(SearchResult(title=title, url=url, snippet=snippet))
            seen.add(url)
        return results


__all__ = ["BingAdapter", "decode_redirect"]
