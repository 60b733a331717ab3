"""
Product attribute extraction for the strict matching gates.

Pulls a few hard attributes out of a free-text title (storage size, screen
size, form-factor keywords) so that e.g. a 128GB phone is not offered as an
alternative to a 256GB one, or a phone case as an alternative to a phone.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple

from .normalize import normalize_category, normalize_title

STORAGE_TOLERANCE_GB = 5
SCREEN_TOLERANCE_INCHES = 0.3

_STORAGE_RE = re.compile(r"(\d+)\s*gb", re.IGNORECASE)
_SCREEN_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:inch|\"|″)", re.IGNORECASE)

_KEYWORD_PATTERNS: Dict[str, re.Pattern] = {
    "wireless": re.compile(r"wireless"),
    "wired": re.compile(r"\bwired\b"),
    "fastcharge": re.compile(r"fast.?charg|quick.?charg"),
    "case": re.compile(r"\bcase\b|\bcover\b"),
    "cable": re.compile(r"cable|cord"),
    "charger": re.compile(r"charger"),
    "headphones": re.compile(r"headphones|earbuds|earphones"),
    "laptop": re.compile(r"laptop|notebook|macbook"),
    "phone": re.compile(r"phone|smartphone|iphone|galaxy|pixel"),
    "tablet": re.compile(r"tablet|ipad"),
}

_CONFLICTING_KEYWORDS: List[Tuple[str, str]] = [
    ("wireless", "wired"),
]

# Category pairs that are never interchangeable (main product vs accessory).
MAJOR_MISMATCHES: List[Tuple[str, str]] = [
    ("phone", "accessory"),
    ("phone", "case"),
    ("phone", "charger"),
    ("phone", "cable"),
    ("phone", "screen protector"),
    ("laptop", "bag"),
    ("laptop", "mouse"),
    ("laptop", "keyboard"),
]


@dataclass(frozen=True)
class AttributeProfile:
    storage_gb: Optional[int] = None
    screen_inches: Optional[float] = None
    keywords: FrozenSet[str] = field(default_factory=frozenset)


def extract_attributes(title: Optional[str]) -> AttributeProfile:
    raw = title or ""
    storage = _STORAGE_RE.search(raw)
    screen = _SCREEN_RE.search(raw)
    normalized = normalize_title(raw)
    found = frozenset(name for name, rx in _KEYWORD_PATTERNS.items() if rx.search(normalized))
    return AttributeProfile(
        storage_gb=int(storage.group(1)) if storage else None,
        screen_inches=float(screen.group(1)) if screen else None,
        keywords=found,
    )


def attributes_compatible(source: AttributeProfile, candidate: AttributeProfile) -> bool:
    """False when both sides state an attribute and the values disagree."""
    if source.storage_gb is not None and candidate.storage_gb is not None:
        if abs(source.storage_gb - candidate.storage_gb) > STORAGE_TOLERANCE_GB:
            return False

    if source.screen_inches is not None and candidate.screen_inches is not None:
        if abs(source.screen_inches - candidate.screen_inches) > SCREEN_TOLERANCE_INCHES + 1e-9:
            return False

    for a, b in _CONFLICTING_KEYWORDS:
        if a in source.keywords and b in candidate.keywords:
            return False
        if b in source.keywords and a in candidate.keywords:
            return False
    return True


def is_major_category_mismatch(source_category: Optional[str], candidate_category: Optional[str]) -> bool:
    if not source_category or not candidate_category:
        return False
    src = normalize_category(source_category)
    cand = normalize_category(candidate_category)
    for main, accessory in MAJOR_MISMATCHES:
        if main in src and accessory in cand:
            return True
        if accessory in src and main in cand:
            return True
    return False
