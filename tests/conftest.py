"""Shared fixtures: isolated config home, fake search backends, fake browsers."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Iterable

import pytest

from serp_it.adapters.base import AdapterEntry, SearchResult
from serp_it.config import ConfigLocator, ConfigRepository, GlobalConfig


@pytest.fixture
def sample_global_config() -> GlobalConfig:
    return GlobalConfig(
        pool={"max_size": 2, "idle_timeout": 5.0, "sweep_interval": 1.0},
        render={"max_attempts": 3, "backoff_base": 0.25, "max_output_chars": 200},
        extraction={"ocr_enabled": False},
        search={"engines": ["brave", "duckduckgo"], "adapter_timeout": 2.0},
    )


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("SERP_IT_HOME", str(tmp_path))
    locator = ConfigLocator(project_root=tmp_path)
    repository = ConfigRepository(locator)
    yield repository


class FakeAdapter:
    """Search backend returning canned results or raising a canned error."""

    def __init__(self, results: list[SearchResult] | None = None, error: Exception | None = None, delay: float = 0.0) -> None:
        self.results = results or []
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, str | None]] = []

    async def search(self, query: str, region: str | None = None) -> list[SearchResult]:
        self.calls.append((query, region))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.results)


@pytest.fixture
def make_entry() -> Callable[..., AdapterEntry]:
    def _builder(name: str, *results: tuple[str, str, str], **kwargs: Any) -> AdapterEntry:
        items = [SearchResult(title=title, url=url, snippet=snippet) for title, url, snippet in results]
        return AdapterEntry(name=name, adapter=FakeAdapter(items, **kwargs))

    return _builder


class FakeLocator:
    def __init__(self, page: "FakePage") -> None:
        self.page = page

    async def inner_text(self) -> str:
        return self.page.body_text


class FakePage:
    def __init__(self, html: str, *, goto_error: Exception | None = None, body_text: str = "") -> None:
        self.html = html
        self.goto_error = goto_error
        self.body_text = body_text
        self.url = "about:blank"

    async def goto(self, url: str, wait_until: str, timeout: float) -> None:
        self.url = url
        if self.goto_error is not None:
            raise self.goto_error

    async def wait_for_load_state(self, state: str, timeout: float) -> None:
        return None

    async def content(self) -> str:
        return self.html

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self)


class FakeContext:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.closed = False

    async def new_page(self) -> FakePage:
        return self.page

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    """Stands in for a Playwright browser; each context yields the next scripted page."""

    def __init__(self, pages: list[FakePage]) -> None:
        self.pages = pages
        self.contexts: list[FakeContext] = []
        self.closed = False

    async def new_context(self) -> FakeContext:
        page = self.pages.pop(0) if len(self.pages) > 1 else self.pages[0]
        context = FakeContext(page)
        self.contexts.append(context)
        return context

    async def close(self) -> None:
        self.closed = True


class FakeLauncher:
    def __init__(self, pages: list[FakePage]) -> None:
        self.pages = pages
        self.launched: list[FakeBrowser] = []
        self.closed: list[FakeBrowser] = []

    async def launch(self) -> FakeBrowser:
        browser = FakeBrowser(self.pages)
        self.launched.append(browser)
        return browser

    async def close_browser(self, browser: FakeBrowser) -> None:
        await browser.close()
        self.closed.append(browser)

    async def stop(self) -> None:
        return None


class FakeDocuments:
    """Document extractor double: routes URLs listed in ``documents``."""

    def __init__(self, documents: dict[str, str] | None = None, error: Exception | None = None) -> None:
        self.documents = documents or {}
        self.error = error

    async def is_document(self, url: str) -> bool:
        return url in self.documents

    async def extract_from_url(self, url: str) -> str:
        if self.error is not None:
            raise self.error
        return self.documents[url]


@pytest.fixture
def fake_page() -> Callable[..., FakePage]:
    return FakePage


@pytest.fixture
def fake_launcher() -> Callable[..., FakeLauncher]:
    return FakeLauncher


@pytest.fixture
def fake_documents() -> Callable[..., FakeDocuments]:
    return FakeDocuments
