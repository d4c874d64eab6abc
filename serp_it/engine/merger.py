"""Reconcile a PDF text layer with an OCR extraction of the same document.

The decision policy, evaluated in order:

* A substantial text layer (more than ``structured_min_chars``) wins on its
  own unless OCR found materially more words (``ocr_word_ratio`` times as
  many, and more than ``ocr_min_chars`` characters). In that case the OCR
  paragraphs missing from the text layer are appended in a separate section.
* Otherwise, when both extractions have content, the longer one becomes the
  body and the other contributes its unique paragraphs.
* A single non-empty extraction is returned verbatim, and when neither has
  content a placeholder is returned.

Everything here is deterministic: the same inputs always produce the same
output.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

NO_CONTENT_PLACEHOLDER = "*No text content could be extracted from this PDF.*"
OCR_SECTION_TITLE = "Additional Content from Images"
TEXT_LAYER_SECTION_TITLE = "Additional Content from Text Layer"

METHOD_TEXT_LAYER = "text"
METHOD_OCR = "ocr"

_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
_NON_ALNUM = re.compile(r"[\W_]+", re.UNICODE)


@dataclass(frozen=True, slots=True)
class MergeThresholds:
    structured_min_chars: int = 500
    ocr_word_ratio: float = 1.5
    ocr_min_chars: int = 200
    paragraph_min_chars: int = 20
    paragraph_key_chars: int = 100


DEFAULT_THRESHOLDS = MergeThresholds()


@dataclass(frozen=True, slots=True)
class MergeOutcome:
    text: str
    methods: tuple[str, ...]


def split_paragraphs(text: str) -> list[str]:
    return [part.strip() for part in _PARAGRAPH_SPLIT.split(text) if part.strip()]


def paragraph_key(paragraph: str, key_chars: int = DEFAULT_THRESHOLDS.paragraph_key_chars) -> str:
    """Comparison key: lower-cased alphanumerics only, truncated."""

    return _NON_ALNUM.sub("", paragraph.lower())[:key_chars]


def unique_paragraphs(
    secondary: str,
    primary: str,
    thresholds: MergeThresholds = DEFAULT_THRESHOLDS,
) -> list[str]:
    """Paragraphs of ``secondary`` whose key is long enough and absent from ``primary``."""

    seen = {paragraph_key(p, thresholds.paragraph_key_chars) for p in split_paragraphs(primary)}
    unique: list[str] = []
    for paragraph in split_paragraphs(secondary):
        key = paragraph_key(paragraph, thresholds.paragraph_key_chars)
        if len(key) > thresholds.paragraph_min_chars and key not in seen:
            unique.append(paragraph)
    return unique


def word_count(text: str) -> int:
    return len(text.split())


def _append_section(body: str, title: str, paragraphs: list[str]) -> str:
    return f"{body}\n\n---\n\n## {title}\n\n" + "\n\n".join(paragraphs)


def merge_extractions(
    structured: str,
    ocr: str,
    thresholds: MergeThresholds = DEFAULT_THRESHOLDS,
) -> MergeOutcome:
    structured = (structured or "").strip()
    ocr = (ocr or "").strip()

    if len(structured) > thresholds.structured_min_chars:
        richer_ocr = (
            word_count(ocr) > thresholds.ocr_word_ratio * word_count(structured)
            and len(ocr) > thresholds.ocr_min_chars
        )
        if richer_ocr:
            extra = unique_paragraphs(ocr, structured, thresholds)
            if extra:
                return MergeOutcome(
                    _append_section(structured, OCR_SECTION_TITLE, extra),
                    (METHOD_TEXT_LAYER, METHOD_OCR),
                )
        return MergeOutcome(structured, (METHOD_TEXT_LAYER,))

    if structured and ocr:
        if len(ocr) > len(structured):
            extra = unique_paragraphs(structured, ocr, thresholds)
            if not extra:
                return MergeOutcome(ocr, (METHOD_OCR,))
            return MergeOutcome(
                _append_section(ocr, TEXT_LAYER_SECTION_TITLE, extra),
                (METHOD_OCR, METHOD_TEXT_LAYER),
            )
        extra = unique_paragraphs(ocr, structured, thresholds)
        if not extra:
            return MergeOutcome(structured, (METHOD_TEXT_LAYER,))
        return MergeOutcome(
            _append_section(structured, OCR_SECTION_TITLE, extra),
            (METHOD_TEXT_LAYER, METHOD_OCR),
        )
    if structured:
        return MergeOutcome(structured, (METHOD_TEXT_LAYER,))
    if ocr:
        return MergeOutcome(ocr, (METHOD_OCR,))
    return MergeOutcome(NO_CONTENT_PLACEHOLDER, ())


__all__ = [
    "DEFAULT_THRESHOLDS",
    "METHOD_OCR",
    "METHOD_TEXT_LAYER",
    "MergeOutcome",
    "MergeThresholds",
    "NO_CONTENT_PLACEHOLDER",
    "OCR_SECTION_TITLE",
    "TEXT_LAYER_SECTION_TITLE",
    "merge_extractions",
    "paragraph_key",
    "split_paragraphs",
    "unique_paragraphs",
    "word_count",
]
