"""Process-scoped owner of shared resources (HTTP client, browser pool, OCR)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import structlog

from .adapters import build_adapters
from .config import GlobalConfig
from .engine import (
    BrowserLauncher,
    DocumentExtractor,
    OcrWorker,
    RenderPipeline,
    ResourcePool,
    ResultAggregator,
)
from .logging_conf import get_logger
from .scheduler import MaintenanceScheduler

if TYPE_CHECKING:
    from playwright.async_api import Browser


class RuntimeContext:
    """Construct once at start-up, pass down, close once at shutdown.

    ``start`` and ``close`` are idempotent. Expensive members (Playwright
    driver, browsers, the OCR thread) are only created on first use.
    """

    def __init__(self, config: GlobalConfig | None = None, logger: structlog.BoundLogger | None = None) -> None:
        self.config = config or GlobalConfig()
        self.logger = logger or get_logger("runtime")
        self.client: httpx.AsyncClient | None = None
        self.scheduler: MaintenanceScheduler | None = None
        self.launcher: BrowserLauncher | None = None
        self.pool: ResourcePool[Browser] | None = None
        self.ocr: OcrWorker | None = None
        self.documents: DocumentExtractor | None = None
        self.renderer: RenderPipeline | None = None
        self.aggregator: ResultAggregator | None = None
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> "RuntimeContext":
        if self._started:
            return self
        cfg = self.config
        self.client = httpx.AsyncClient(
            follow_redirects=True,
            timeout=cfg.search.adapter_timeout,
            headers={"User-Agent": cfg.search.user_agent},
        )
        self.scheduler = MaintenanceScheduler()
        self.scheduler.start()
        self.launcher = BrowserLauncher(cfg.browser)
        if cfg.pool.enabled:
            self.pool = ResourcePool(
                self.launcher.launch,
                self.launcher.close_browser,
                max_size=cfg.pool.max_size,
                idle_timeout=cfg.pool.idle_timeout,
                sweep_interval=cfg.pool.sweep_interval,
            )
            self.pool.start(self.scheduler)
        if cfg.extraction.ocr_enabled:
            self.ocr = OcrWorker(
                language=cfg.extraction.ocr_language,
                dpi=cfg.extraction.ocr_dpi,
                max_pages=cfg.extraction.ocr_max_pages,
            )
        self.documents = DocumentExtractor(
            self.client,
            cfg.extraction,
            ocr=self.ocr,
            user_agent=cfg.search.user_agent,
        )
        self.renderer = RenderPipeline(self.launcher, self.documents, cfg.render, pool=self.pool)
        self.aggregator = ResultAggregator(
            build_adapters(cfg.search.engines, self.client, timeout=cfg.search.adapter_timeout),
            concurrent=cfg.search.concurrent,
            adapter_timeout=cfg.search.adapter_timeout,
        )
        self._started = True
        self.logger.info(
            "runtime_started",
            engines=self.aggregator.engine_names,
            pooling=cfg.pool.enabled,
            ocr=cfg.extraction.ocr_enabled,
        )
        return self

    async def close(self) -> None:
        if not self._started:
            return
        self._started = False
        if self.pool is not None:
            await self.pool.close_all()
        if self.ocr is not None:
            self._quietly("ocr", self.ocr.close)
        if self.launcher is not None:
            await self.launcher.stop()
        if self.scheduler is not None:
            self._quietly("scheduler", self.scheduler.shutdown)
        if self.client is not None:
            try:
                await self.client.aclose()
            except Exception as exc:  # noqa: BLE001
                self.logger.warning("teardown_failed", resource="http_client", error=str(exc))
        self.logger.info("runtime_closed")

    def _quietly(self, resource: str, closer: Any) -> None:
        try:
            closer()
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("teardown_failed", resource=resource, error=str(exc))

    async def __aenter__(self) -> "RuntimeContext":
        return await self.start()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


__all__ = ["RuntimeContext"]
