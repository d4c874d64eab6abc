"""Search backend adapters and their static registry."""

from __future__ import annotations

from typing import Callable, Iterable

import httpx

from .aol import AolAdapter
from .base import AdapterEntry, SearchAdapter, SearchResult
from .bing import BingAdapter
from .brave import BraveAdapter
from .duckduckgo import DuckDuckGoAdapter
from .startpage import StartpageAdapter
from .yahoo import YahooAdapter
from .yandex import YandexAdapter

# config key -> (display name, constructor)
ADAPTER_REGISTRY: dict[str, tuple[str, Callable[..., SearchAdapter]]] = {
    "aol": ("AOL", AolAdapter),
    "brave": ("Brave", BraveAdapter),
    "bing": ("Bing", BingAdapter),
    "duckduckgo": ("DuckDuckGo", DuckDuckGoAdapter),
    "yahoo": ("Yahoo", YahooAdapter),
    "startpage": ("Startpage", StartpageAdapter),
    "yandex": ("Yandex", YandexAdapter),
}


def build_adapters(
    names: Iterable[str],
    client: httpx.AsyncClient,
    timeout: float | None = None,
) -> list[AdapterEntry]:
    entries: list[AdapterEntry] = []
    for key in names:
        try:
            display, factory = ADAPTER_REGISTRY[key]
        except KeyError as exc:
            raise ValueError(f"Unknown engine: {key}") from exc
        entries.append(AdapterEntry(name=display, adapter=factory(client, timeout=timeout)))
    return entries


__all__ = [
    "ADAPTER_REGISTRY",
    "AdapterEntry",
    "AolAdapter",
    "BingAdapter",
    "BraveAdapter",
    "DuckDuckGoAdapter",
    "SearchAdapter",
    "SearchResult",
    "StartpageAdapter",
    "YahooAdapter",
    "YandexAdapter",
    "build_adapters",
]
