from __future__ import annotations

import fitz
import pytest

from serp_it.engine import ocr as ocr_module
from serp_it.engine.ocr import OcrWorker, join_pages


def blank_pdf(pages: int) -> bytes:
    document = fitz.open()
    for _ in range(pages):
        document.new_page(width=200, height=200)
    data = document.tobytes()
    document.close()
    return data


def test_join_pages_marks_page_numbers_and_skips_blank_pages() -> None:
    assert join_pages(["first", "  ", "third\n"]) == "--- Page 1 ---\n\nfirst\n\n--- Page 3 ---\n\nthird"
    assert join_pages([]) == ""


@pytest.mark.asyncio
async def test_recognize_pdf_respects_page_limit(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []

    def fake_image_to_string(image, lang):  # noqa: ANN001
        calls.append(lang)
        return f"page text {len(calls)}"

    monkeypatch.setattr(ocr_module.pytesseract, "image_to_string", fake_image_to_string)
    worker = OcrWorker(language="deu", dpi=50, max_pages=2)
    try:
        text = await worker.recognize_pdf(blank_pdf(3))
    finally:
        worker.close()

    assert calls == ["deu", "deu"]
    assert text == "--- Page 1 ---\n\npage text 1\n\n--- Page 2 ---\n\npage text 2"


@pytest.mark.asyncio
async def test_failed_page_is_skipped(monkeypatch: pytest.MonkeyPatch) -> None:
    outcomes = iter([ocr_module.pytesseract.TesseractError(1, "bad image"), "second page"])

    def fake_image_to_string(image, lang):  # noqa: ANN001
        result = next(outcomes)
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(ocr_module.pytesseract, "image_to_string", fake_image_to_string)
    worker = OcrWorker(dpi=50)
    try:
        text = await worker.recognize_pdf(blank_pdf(2))
    finally:
        worker.close()
    assert text == "--- Page 2 ---\n\nsecond page"


@pytest.mark.asyncio
async def test_closed_worker_refuses_work() -> None:
    worker = OcrWorker()
    worker.close()
    worker.close()
    with pytest.raises(RuntimeError, match="closed"):
        await worker.recognize_pdf(blank_pdf(1))
