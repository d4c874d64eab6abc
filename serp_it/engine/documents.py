"""PDF detection, download and text extraction."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

import fitz  # PyMuPDF
import httpx
import structlog

from ..config import ExtractionConfig
from ..config.models import DEFAULT_USER_AGENT
from ..errors import ExtractionError
from ..logging_conf import get_logger
from .merger import METHOD_OCR, METHOD_TEXT_LAYER, MergeThresholds, merge_extractions

if TYPE_CHECKING:
    from .ocr import OcrWorker

DOCUMENT_SUFFIXES = (".pdf",)
_METHOD_LABELS = {METHOD_TEXT_LAYER: "Text layer", METHOD_OCR: "OCR"}


def is_document_url(url: str) -> bool:
    try:
        path = urlsplit(url).path.lower()
    except ValueError:
        return False
    return path.endswith(DOCUMENT_SUFFIXES)


def is_document_content_type(content_type: str | None) -> bool:
    return bool(content_type) and "pdf" in content_type.lower()


@dataclass(slots=True)
class ExtractionRecord:
    """Intermediate state of one document extraction."""

    structured_text: str = ""
    ocr_text: str = ""
    merged_text: str = ""
    has_structured_text: bool = False
    page_count: int = 0
    metadata: dict[str, str] = field(default_factory=dict)
    methods: tuple[str, ...] = ()


def read_text_layer(data: bytes) -> tuple[str, int, dict[str, str]]:
    """Return the embedded text, page count and non-empty metadata of a PDF."""

    with fitz.open(stream=data, filetype="pdf") as document:
        text = "\n\n".join(page.get_text("text").strip() for page in document)
        metadata = {
            str(key): str(value).strip()
            for key, value in (document.metadata or {}).items()
            if value and str(value).strip()
        }
        return text.strip(), document.page_count, metadata


def format_document(record: ExtractionRecord, source_url: str | None = None) -> str:
    lines: list[str] = []
    title = record.metadata.get("title")
    if title:
        lines.extend([f"# {title}", ""])
    if source_url:
        lines.extend([f"**Source:** {source_url}", ""])
    author = record.metadata.get("author")
    if author:
        lines.append(f"**Author:** {author}")
    subject = record.metadata.get("subject")
    if subject:
        lines.append(f"**Subject:** {subject}")
    if record.page_count:
        lines.append(f"**Pages:** {record.page_count}")
    if record.methods:
        labels = " + ".join(_METHOD_LABELS[method] for method in record.methods)
        lines.append(f"**Extraction:** {labels}")
    if lines:
        lines.extend(["", "---", ""])
    lines.append(record.merged_text)
    return "\n".join(lines)


class DocumentExtractor:
    """Turn PDF documents into Markdown by merging the text layer with OCR."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: ExtractionConfig | None = None,
        ocr: "OcrWorker | None" = None,
        user_agent: str = DEFAULT_USER_AGENT,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.client = client
        self.settings = settings or ExtractionConfig()
        self.ocr = ocr if self.settings.ocr_enabled else None
        self.user_agent = user_agent
        self.logger = logger or get_logger("documents")
        self.thresholds = MergeThresholds(
            structured_min_chars=self.settings.structured_min_chars,
            ocr_word_ratio=self.settings.ocr_word_ratio,
            ocr_min_chars=self.settings.ocr_min_chars,
            paragraph_min_chars=self.settings.paragraph_min_chars,
            paragraph_key_chars=self.settings.paragraph_key_chars,
        )

    async def is_document(self, url: str) -> bool:
        if is_document_url(url):
            return True
        return await self.probe_content_type(url)

    async def probe_content_type(self, url: str) -> bool:
        try:
            response = await self.client.head(
                url,
                headers={"User-Agent": self.user_agent},
                timeout=self.settings.probe_timeout,
                follow_redirects=True,
            )
        except httpx.HTTPError as exc:
            self.logger.debug("document_probe_failed", url=url, error=str(exc))
            return False
        return is_document_content_type(response.headers.get("content-type"))

    async def extract_from_url(self, url: str) -> str:
        try:
            response = await self.client.get(
                url,
                headers={"User-Agent": self.user_agent},
                timeout=self.settings.download_timeout,
                follow_redirects=True,
            )
        except httpx.HTTPError as exc:
            raise ExtractionError(f"Failed to fetch PDF: {exc}") from exc
        if response.status_code >= 400:
            raise ExtractionError(
                f"Failed to fetch PDF: {response.status_code} {response.reason_phrase}"
            )
        content_type = response.headers.get("content-type")
        if content_type and not is_document_content_type(content_type):
            raise ExtractionError(f"URL does not return a PDF (Content-Type: {content_type})")
        return await self.extract_from_bytes(response.content, source_url=url)

    async def extract_from_bytes(self, data: bytes, source_url: str | None = None) -> str:
        record = await self.extract_record(data)
        return format_document(record, source_url)

    async def extract_record(self, data: bytes) -> ExtractionRecord:
        record = ExtractionRecord()
        try:
            text, page_count, metadata = await asyncio.to_thread(read_text_layer, data)
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("text_layer_failed", error=str(exc))
        else:
            record.structured_text = text
            record.page_count = page_count
            record.metadata = metadata
            record.has_structured_text = len(text) > self.settings.text_layer_min_chars

        record.ocr_text = await self._recognize(data)

        outcome = merge_extractions(record.structured_text, record.ocr_text, self.thresholds)
        record.merged_text = outcome.text
        record.methods = outcome.methods
        self.logger.info(
            "document_extracted",
            pages=record.page_count,
            has_text_layer=record.has_structured_text,
            text_chars=len(record.structured_text),
            ocr_chars=len(record.ocr_text),
            methods=list(outcome.methods),
        )
        return record

    async def _recognize(self, data: bytes) -> str:
        if self.ocr is None:
            return ""
        try:
            return await self.ocr.recognize_pdf(data)
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("ocr_failed", error=str(exc))
            return ""


__all__ = [
    "DOCUMENT_SUFFIXES",
    "DocumentExtractor",
    "ExtractionRecord",
    "format_document",
    "is_document_content_type",
    "is_document_url",
    "read_text_layer",
]
