"""HTTP fetch + HTML parse helper used by the scraping adapters."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import httpx
from selectolax.parser import HTMLParser

from ..config.models import DEFAULT_USER_AGENT

DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": DEFAULT_USER_AGENT,
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
}

_WHITESPACE = re.compile(r"\s+")


@dataclass(slots=True)
class FetchedPage:
    """Standardised response wrapper."""

    url: str
    status_code: int
    html: str
    tree: HTMLParser = field(repr=False)


def normalize_whitespace(text: str | None) -> str:
    return _WHITESPACE.sub(" ", text or "").strip()


def build_headers(*overrides: dict[str, str] | None) -> dict[str, str]:
    headers = dict(DEFAULT_HEADERS)
    for extra in overrides:
        if extra:
            headers.update(extra)
    return headers


async def fetch_html(
    client: httpx.AsyncClient,
    url: str,
    *,
    method: str = "GET",
    params: dict[str, Any] | None = None,
    data: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
) -> FetchedPage:
    """Fetch ``url`` and parse the body; HTTP error statuses raise ``httpx.HTTPStatusError``."""

    request_kwargs: dict[str, Any] = {
        "params": params,
        "headers": build_headers(headers),
        "follow_redirects": True,
    }
    if data is not None:
        request_kwargs["data"] = data
    if timeout is not None:
        request_kwargs["timeout"] = timeout
    response = await client.request(method, url, **request_kwargs)
    response.raise_for_status()
    html = response.text
    return FetchedPage(
        url=str(response.url),
        status_code=response.status_code,
        html=html,
        tree=HTMLParser(html),
    )


def node_text(node: Any) -> str:
    if node is None:
        return ""
    return normalize_whitespace(node.text(separator=" "))


__all__ = [
    "DEFAULT_HEADERS",
    "FetchedPage",
    "build_headers",
    "fetch_html",
    "node_text",
    "normalize_whitespace",
]
