"""Field-name normalization: loose source columns -> canonical trade fields."""

import re
from collections.abc import Mapping
from typing import Any

from tradevault.utils.constants import FIELD_ALIASES

_WHITESPACE_RE = re.compile(r"\s+")
_NON_SLUG_RE = re.compile(r"[^a-z_]")


def slugify_key(key: Any) -> str:
    """Lower-case, collapse whitespace to '_' and drop anything but a-z and '_'.

    "Entry Price" -> "entry_price", "Fee ($)" -> "fee_", "P&L" -> "pl".
    """
    text = str(key).strip().lower()
    text = _WHITESPACE_RE.sub("_", text)
    return _NON_SLUG_RE.sub("", text)


def canonical_key(key: Any) -> str:
    slug = slugify_key(key)
    return FIELD_ALIASES.get(slug, slug)


def normalize_fields(raw: Mapping[Any, Any]) -> dict[str, Any]:
    """Re-key a raw row onto canonical field names. Values are untouched.

    Unknown keys survive under their slug. If two raw keys land on the same
    canonical key, the later one wins.
    """
    normalized: dict[str, Any] = {}
    for key, value in raw.items():
        normalized[canonical_key(key)] = value
    return normalized
