"""DuckDuckGo HTML endpoint adapter."""

from __future__ import annotations

from urllib.parse import parse_qs, urljoin, urlsplit

import httpx
from selectolax.parser import HTMLParser

from ..errors import AdapterError
from .base import SearchResult
from .regions import parse_region
from .transport import fetch_html, node_text

HTML_ENDPOINT = "https://html.duckduckgo.com/html/"
NAME = "DuckDuckGo"


def decode_redirect(href: str) -> str | None:
    """Resolve ``/l/?uddg=...`` redirect links to their target URL."""

    href = urljoin(HTML_ENDPOINT, href.strip())
    parts = urlsplit(href)
    if parts.netloc.endswith("duckduckgo.com") and parts.path.startswith("/l/"):
        targets = parse_qs(parts.query).get("uddg")
        if not targets:
            return None
        href = targets[0]
    if not href.lower().startswith(("http://", "https://")):
        return None
    return href


def to_market(region: str | None) -> str:
    locale = parse_region(region)
    if locale is None:
        return "wt-wt"
    return f"{locale.country}-{locale.language}"


class DuckDuckGoAdapter:
    """Scrape html.duckduckgo.com, following the "next" form for extra pages."""

    def __init__(self, client: httpx.AsyncClient, timeout: float | None = None, max_pages: int = 2) -> None:
        self.client = client
        self.timeout = timeout
        self.max_pages = max_pages

    async def search(self, query: str, region: str | None = None) -> list[SearchResult]:
        market = to_market(region)
        form: dict[str, str] | None = {"q": query, "kl": market}
        collected: list[SearchResult] = []
        seen: set[str] = set()
        for _ in range(self.max_pages):
            if form is None:
                break
            page = await fetch_html(
                self.client,
                HTML_ENDPOINT,
                method="POST",
                data=form,
                headers={"Referer": "https://html.duckduckgo.com/", "Origin": "https://html.duckduckgo.com"},
                timeout=self.timeout,
            )
            if "anomaly-modal__title" in page.html:
                raise AdapterError(NAME, "HTML endpoint responded with a challenge")
            collected.extend(self.extract_results(page.tree, seen))
            form = self.next_form(page.tree, form)
        return collected

    @staticmethod
    def extract_results(tree: HTMLParser, seen: set[str] | None = None) -> list[SearchResult]:
        seen = seen if seen is not None else set()
        results: list[SearchResult] = []
        for item in tree.css("div.result"):
            classes = (item.attributes.get("class") or "").split()
            if "result--ad" in classes:
                continue
            anchor = item.css_first("a.result__a")
            if anchor is None:
                continue
            url = decode_redirect(anchor.attributes.get("href") or "")
            if not url or url in seen or "duckduckgo.com/y.js" in url:
                continue
            title = node_text(anchor)
            if not title:
                continue
            snippet = node_text(item.css_first(".result__snippet"))
            results.append(SearchResult(title=title, url=url, snippet=snippet))
            seen.add(url)
        return results

    @staticmethod
    def next_form(tree: HTMLParser, current: dict[str, str]) -> dict[str, str] | None:
        forms = tree.css("div.nav-link form")
        if not forms:
            return None
        params: dict[str, str] = {}
        for field in forms[-1].css("input[name]"):
            name = field.attributes.get("name")
            value = field.attributes.get("value") or ""
            if name and value:
                params[name] = value
        if not params:
            return None
        params.setdefault("q", current.get("q", ""))
        params.setdefault("kl", current.get("kl", "wt-wt"))
        if params == current:
            return None
        return params


__all__ = ["DuckDuckGoAdapter", "decode_redirect", "to_market"]
