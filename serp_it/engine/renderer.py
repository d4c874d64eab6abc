"""Headless browser rendering of pages into Markdown with bounded retries."""

from __future__ import annotations

import asyncio
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, AsyncIterator, Awaitable, Callable

import structlog
from markdownify import markdownify
from playwright.async_api import Error as PlaywrightError
from selectolax.parser import HTMLParser

from ..config import BrowserConfig, RenderConfig
from ..errors import RenderError
from ..logging_conf import get_logger

if TYPE_CHECKING:
    from playwright.async_api import Browser, Page, Playwright

    from .documents import DocumentExtractor
    from .pool import ResourcePool

_STRIPPED_TAGS = ["script", "style", "noscript", "template", "svg"]
CHROMIUM_EXECUTABLE_ENV = "PLAYWRIGHT_CHROMIUM_EXECUTABLE_PATH"


@dataclass(slots=True)
class RenderResult:
    raw_content: str
    text: str


def html_to_markdown(html: str) -> str:
    """Convert page HTML to Markdown (ATX headings, fenced code, ``*`` emphasis)."""

    tree = HTMLParser(html)
    tree.strip_tags(_STRIPPED_TAGS)
    root = tree.body or tree.root
    cleaned = root.html if root is not None else ""
    markdown = markdownify(
        cleaned or "",
        heading_style="ATX",
        bullets="-",
        strong_em_symbol="*",
        code_language="",
    )
    return _collapse_blank_lines(markdown).strip()


def _collapse_blank_lines(text: str) -> str:
    lines = [line.rstrip() for line in text.splitlines()]
    collapsed: list[str] = []
    for line in lines:
        if not line and collapsed and not collapsed[-1]:
            continue
        collapsed.append(line)
    return "\n".join(collapsed)


class BrowserLauncher:
    """Launch Chromium instances from a lazily started Playwright driver."""

    def __init__(self, settings: BrowserConfig | None = None, logger: structlog.BoundLogger | None = None) -> None:
        self.settings = settings or BrowserConfig()
        self.logger = logger or get_logger("launcher")
        self._playwright: Playwright | None = None
        self._lock = asyncio.Lock()

    async def _ensure_started(self) -> "Playwright":
        async with self._lock:
            if self._playwright is None:
                from playwright.async_api import async_playwright

                self._playwright = await async_playwright().start()
                self.logger.info("playwright_started")
            return self._playwright

    def launch_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"headless": self.settings.headless, "args": list(self.settings.launch_args)}
        executable = self.settings.executable_path or os.environ.get(CHROMIUM_EXECUTABLE_ENV)
        if executable:
            options["executable_path"] = executable
        return options

    async def launch(self) -> "Browser":
        playwright = await self._ensure_started()
        browser = await playwright.chromium.launch(**self.launch_options())
        self.logger.debug("browser_launched")
        return browser

    async def close_browser(self, browser: "Browser") -> None:
        await browser.close()

    async def stop(self) -> None:
        async with self._lock:
            playwright, self._playwright = self._playwright, None
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as exc:  # noqa: BLE001
                self.logger.warning("playwright_stop_failed", error=str(exc))
            else:
                self.logger.info("playwright_stopped")


class RenderPipeline:
    """Render URLs to Markdown.

    PDFs are routed to the document extractor. Everything else is loaded in a
    fresh browser context, retried up to ``max_attempts`` times with a linear
    backoff of ``backoff_base * attempt`` seconds between attempts.
    """

    def __init__(
        self,
        launcher: BrowserLauncher,
        documents: "DocumentExtractor",
        settings: RenderConfig | None = None,
        pool: "ResourcePool[Browser] | None" = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.launcher = launcher
        self.documents = documents
        self.settings = settings or RenderConfig()
        self.pool = pool
        self._sleep = sleep
        self.logger = logger or get_logger("renderer")

    async def render(self, url: str) -> RenderResult:
        if await self.documents.is_document(url):
            self.logger.info("render_document", url=url)
            try:
                markdown = await self.documents.extract_from_url(url)
            except Exception as exc:  # noqa: BLE001
                raise RenderError(url, f"PDF rendering failed: {exc}") from exc
            return RenderResult(raw_content="", text=markdown)

        last_error: Exception | None = None
        attempts = self.settings.max_attempts
        for attempt in range(1, attempts + 1):
            try:
                result = await self._attempt(url)
            except Exception as exc:  # noqa: BLE001
                last_error = exc
                self.logger.warning(
                    "render_attempt_failed",
                    url=url,
                    attempt=attempt,
                    max_attempts=attempts,
                    error=str(exc),
                )
                if attempt < attempts:
                    await self._sleep(self.settings.backoff_base * attempt)
                continue
            self.logger.info("render_succeeded", url=url, attempt=attempt, chars=len(result.text))
            return result

        message = str(last_error) if last_error else f"Unknown error rendering {url}"
        raise RenderError(url, message or type(last_error).__name__) from last_error

    # ------------------------------------------------------------------
    @asynccontextmanager
    async def _browser(self) -> AsyncIterator["Browser"]:
        if self.pool is not None:
            async with self.pool.lease() as browser:
                yield browser
            return
        browser = await self.launcher.launch()
        try:
            yield browser
        finally:
            await asyncio.shield(self._close_ephemeral(browser))

    async def _close_ephemeral(self, browser: "Browser") -> None:
        try:
            await self.launcher.close_browser(browser)
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("browser_close_failed", error=str(exc))

    async def _attempt(self, url: str) -> RenderResult:
        async with self._browser() as browser:
            context = await browser.new_context()
            try:
                page = await context.new_page()
                await page.goto(
                    url,
                    wait_until="domcontentloaded",
                    timeout=self.settings.navigation_timeout * 1000,
                )
                try:
                    await page.wait_for_load_state(
                        "networkidle", timeout=self.settings.quiescence_timeout * 1000
                    )
                except PlaywrightError:
                    self.logger.debug("quiescence_timeout", url=url)
                html = await page.content()
                markdown = await self._convert(page, html)
            finally:
                await asyncio.shield(self._close_context(context))
        return RenderResult(raw_content=html, text=markdown)

    async def _close_context(self, context: Any) -> None:
        try:
            await context.close()
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("context_close_failed", error=str(exc))

    async def _convert(self, page: "Page", html: str) -> str:
        try:
            markdown = html_to_markdown(html)
        except Exception as exc:  # noqa: BLE001
            fallback = await self._visible_text(page)
            if fallback:
                return fallback
            raise RenderError(page.url, f"Failed to convert HTML to Markdown: {exc}") from exc
        if markdown:
            return markdown
        return await self._visible_text(page)

    async def _visible_text(self, page: "Page") -> str:
        try:
            text = await page.locator("body").inner_text()
        except PlaywrightError:
            return ""
        return (text or "").strip()


__all__ = ["BrowserLauncher", "RenderPipeline", "RenderResult", "html_to_markdown"]
