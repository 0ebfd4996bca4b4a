"""Normalised keys used for uniqueness checks."""

from __future__ import annotations

import re
import unicodedata

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_NON_DIGIT_RE = re.compile(r"\D")


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text or "")
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def slugify(text: str | None) -> str:
    """``"Acesso e Permissões"`` -> ``"acesso-e-permissoes"``."""

    normalized = strip_accents(str(text or "")).strip().lower()
    return _NON_ALNUM_RE.sub("-", normalized).strip("-")


def category_key(group: str, name: str) -> str:
    return f"{slugify(group)}::{slugify(name)}"


def cnpj_digits(cnpj: str | None) -> str:
    return _NON_DIGIT_RE.sub("", str(cnpj or ""))


def sort_text(text: str | None) -> str:
    """Case- and accent-insensitive ordering key."""

    return strip_accents(str(text or "")).casefold()
