"""Locale code helpers shared by adapters."""

from __future__ import annotations

from typing import NamedTuple


class Locale(NamedTuple):
    language: str
    country: str


def parse_region(region: str | None) -> Locale | None:
    """Split ``en-US`` / ``en_US`` into lower-cased language and country."""

    if not region:
        return None
    language, _, country = region.strip().replace("_", "-").partition("-")
    if not language or not country:
        return None
    return Locale(language.lower(), country.lower())


__all__ = ["Locale", "parse_region"]
