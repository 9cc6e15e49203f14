"""Vietnamese text folding used as the matching key everywhere in seedgen."""

from __future__ import annotations

import re
import unicodedata
from typing import Dict, Optional

# Base letter -> every lower-case Vietnamese variant (tone marks and modifiers).
_VIETNAMESE_VARIANTS: Dict[str, str] = {
    "a": "àáạảãâầấậẩẫăằắặẳẵ",
    "e": "èéẹẻẽêềếệểễ",
    "i": "ìíịỉĩ",
    "o": "òóọỏõôồốộổỗơờớợởỡ",
    "u": "ùúụủũưừứựửữ",
    "y": "ỳýỵỷỹ",
    "d": "đ",
}
_FOLD_TABLE = str.maketrans(
    {variant: base for base, variants in _VIETNAMESE_VARIANTS.items() for variant in variants}
)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

# Province spellings the administrative dataset does not carry.
PROVINCE_ALIASES: Dict[str, str] = {
    "tp hcm": "ho chi minh",
    "tphcm": "ho chi minh",
    "hcm": "ho chi minh",
    "h c m": "ho chi minh",
    "sai gon": "ho chi minh",
    "saigon": "ho chi minh",
    "tp ha noi": "ha noi",
    "hn": "ha noi",
    "tth": "thua thien hue",
    "t t h": "thua thien hue",
    "brvt": "ba ria vung tau",
}


def fold_diacritics(text: Optional[str]) -> str:
    """Lower-case and map every Vietnamese letter variant to its base Latin letter."""
    if not text:
        return ""
    s = unicodedata.normalize("NFC", text).lower().translate(_FOLD_TABLE)
    # Anything the table does not cover (stray combining marks, other Latin accents)
    s = unicodedata.normalize("NFD", s)
    return "".join(ch for ch in s if unicodedata.category(ch) != "Mn")


def normalize(text: Optional[str]) -> str:
    """Matching key for administrative units: ``"Đà Nẵng" -> "da nang"``.

    Administrative prefixes (tinh, quan, huyen, ...) are kept on purpose; the
    resolution cascade decides when to ignore them.
    """
    s = _NON_ALNUM.sub(" ", fold_diacritics(text))
    return s.strip()


def to_slug(text: Optional[str]) -> str:
    """URL slug form: ``"Bến xe Miền Đông" -> "ben-xe-mien-dong"``."""
    return _NON_ALNUM.sub("-", fold_diacritics(text)).strip("-")


def expand_aliases(normalized: str) -> str:
    """Replace a known colloquial or abbreviated province form by its canonical name."""
    if not normalized:
        return ""
    alias = PROVINCE_ALIASES.get(normalized)
    if alias:
        return alias
    padded = f" {normalized} "
    for short, full in PROVINCE_ALIASES.items():
        padded = padded.replace(f" {short} ", f" {full} ")
    return re.sub(r"\s+", " ", padded).strip()
