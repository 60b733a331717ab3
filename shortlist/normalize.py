from __future__ import annotations

"""
Text normalisation helpers shared by the match filter, the providers and
intent construction.

Matching is deliberately literal: containment first, then token overlap.
Everything here has to produce the same view of a string for queries,
extracted product names and candidate titles.

Public helpers:

* normalize_category(text) -> str
    lower-case, trim, keep only ``[a-z0-9]`` and whitespace.

* normalize_title(text) -> str
    ``normalize_category`` plus whitespace collapse.

* keywords(text) -> List[str]
    whitespace tokens long enough to count as shared keywords.

* clamp_query(text) -> str
    Light clean of raw user input before an intent is built.
"""

import re
import unicodedata
from typing import List, Optional

from .config import MAX_QUERY_CHARS, MIN_KEYWORD_LENGTH

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_WS_RE = re.compile(r"\s+")

# ---------------------------------------------------------------------------
# Low-level helpers
# ---------------------------------------------------------------------------


def fold_ascii(text: Optional[str]) -> str:
    """Fold accented Latin letters to ASCII ("Café" -> "Cafe"); drop the rest."""
    if not text:
        return ""
    if not isinstance(text, str):
        text = str(text)
    decomposed = unicodedata.normalize("NFKD", text)
    return decomposed.encode("ascii", "ignore").decode("ascii")


def _strip_to_alnum(text: Optional[str]) -> str:
    return _NON_ALNUM_RE.sub("", fold_ascii(text).lower())


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize_category(text: Optional[str]) -> str:
    """Normalise a category label for compatibility checks."""
    return _strip_to_alnum(text).strip()


def normalize_title(text: Optional[str]) -> str:
    """Normalise a product title or query for similarity checks."""
    return _WS_RE.sub(" ", _strip_to_alnum(text)).strip()


def keywords(text: str) -> List[str]:
    """Tokens of an already-normalised string that are long enough to match on."""
    return [tok for tok in text.split() if len(tok) >= MIN_KEYWORD_LENGTH]


def shared_keyword_count(a: str, b: str) -> int:
    """Number of distinct keywords two normalised strings have in common."""
    return len(set(keywords(a)) & set(keywords(b)))


def contains_either(a: str, b: str) -> bool:
    """Substring containment in either direction."""
    return a in b or b in a


def clamp_query(text: Optional[str]) -> str:
    """Trim, drop angle brackets and cap the length of raw user input."""
    if text is None:
        return ""
    text = str(text).strip().replace("<", "").replace(">", "")
    return text[:MAX_QUERY_CHARS]
