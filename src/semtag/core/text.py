"""Pure text and numeric helpers shared by the analysis pipeline.

No I/O, no database access. Everything here must stay deterministic:
scores are rounded to 6 decimals at the same points on every run.
"""

from __future__ import annotations

import hashlib
import html
import math
import re
from collections.abc import Sequence

import numpy as np

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")


def plain_text(markup: str | None) -> str:
    """Strip rich-text markup down to its text content.

    Tags become spaces (so ``a<br>b`` stays two words) and entities are
    unescaped. Whitespace runs are collapsed.
    """
    if not markup:
        return ""
    stripped = _TAG_RE.sub(" ", markup)
    return _WS_RE.sub(" ", html.unescape(stripped)).strip()


def stable_hash(text: str) -> str:
    """Hex SHA-256 of UTF-8 text. Used for every cache key in the system."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def clamp(value: float, lo: float, hi: float) -> float:
    if not math.isfinite(value):
        return lo
    return max(lo, min(hi, value))


def clamp01(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return max(0.0, min(1.0, value))


def round6(value: float) -> float:
    """Six-decimal rounding with halves rounded up (towards +inf)."""
    if not math.isfinite(value):
        return 0.0
    return math.floor(value * 1_000_000 + 0.5) / 1_000_000


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine over the common prefix of two vectors; 0.0 for zero vectors."""
    n = min(len(a), len(b))
    if n == 0:
        return 0.0
    va = np.asarray(a[:n], dtype=np.float64)
    vb = np.asarray(b[:n], dtype=np.float64)
    na = float(np.dot(va, va))
    nb = float(np.dot(vb, vb))
    if na <= 0.0 or nb <= 0.0:
        return 0.0
    return float(np.dot(va, vb)) / (math.sqrt(na) * math.sqrt(nb))


def word_count(text: str) -> int:
    return len([w for w in _WS_RE.split(text) if w])
