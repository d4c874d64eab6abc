"""Tesseract OCR worker for rasterised PDF pages."""

from __future__ import annotations

import asyncio
import io
from concurrent.futures import ThreadPoolExecutor
from threading import Lock

import fitz  # PyMuPDF
import pytesseract
import structlog
from PIL import Image

from ..logging_conf import get_logger

PAGE_BREAK_TEMPLATE = "--- Page {number} ---"


def page_break(number: int) -> str:
    return PAGE_BREAK_TEMPLATE.format(number=number)


def join_pages(pages: list[str]) -> str:
    """Concatenate per-page OCR output with explicit page-break markers."""

    parts: list[str] = []
    for number, text in enumerate(pages, start=1):
        text = text.strip()
        if text:
            parts.append(f"{page_break(number)}\n\n{text}")
    return "\n\n".join(parts)


class OcrWorker:
    """Run Tesseract on a dedicated thread so the event loop never blocks.

    The executor is created on first use; ``close`` is idempotent.
    """

    def __init__(
        self,
        language: str = "eng",
        dpi: int = 200,
        max_pages: int = 30,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.language = language
        self.dpi = dpi
        self.max_pages = max_pages
        self.logger = logger or get_logger("ocr")
        self._executor: ThreadPoolExecutor | None = None
        self._lock = Lock()
        self._closed = False

    def _ensure_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._closed:
                raise RuntimeError("OCR worker has been closed")
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ocr")
            return self._executor

    async def recognize_pdf(self, data: bytes) -> str:
        """Rasterise every page and return the recognised text."""

        executor = self._ensure_executor()
        loop = asyncio.get_running_loop()
        pages = await loop.run_in_executor(executor, self._recognize_pages, data)
        return join_pages(pages)

    def _recognize_pages(self, data: bytes) -> list[str]:
        pages: list[str] = []
        with fitz.open(stream=data, filetype="pdf") as document:
            for index, page in enumerate(document):
                if index >= self.max_pages:
                    self.logger.info("ocr_page_limit_reached", max_pages=self.max_pages)
                    break
                pages.append(self._recognize_page(page, index + 1))
        return pages

    def _recognize_page(self, page: "fitz.Page", number: int) -> str:
        try:
            pixmap = page.get_pixmap(dpi=self.dpi)
            image = Image.open(io.BytesIO(pixmap.tobytes("png")))
            return pytesseract.image_to_string(image, lang=self.language)
        except (RuntimeError, pytesseract.TesseractError, OSError) as exc:
            self.logger.warning("ocr_page_failed", page=number, error=str(exc))
            return ""

    def close(self) -> None:
        with self._lock:
            executor = self._executor
            self._executor = None
            self._closed = True
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)
            self.logger.info("ocr_worker_closed")


__all__ = ["OcrWorker", "PAGE_BREAK_TEMPLATE", "join_pages", "page_break"]
