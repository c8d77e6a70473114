"""Deterministic pseudo-embeddings.

A stand-in for a neural embedder: the vector is a pure function of
``(text, model_id)``, so every analysis is reproducible bit for bit across
runs and processes. Similarity between two vectors carries no meaning
beyond identity of the inputs; semantic proximity comes from the heuristic
channels instead. A real backend can replace ``embed`` without touching the
activation code as long as it keeps the same signature.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

import numpy as np

from semtag.config.constants import EMPTY_MODEL_ID, ONTOLOGY_DIMS

_MASK32 = 0xFFFFFFFF
# xorshift32 has a fixed point at 0
_ZERO_SEED_REPLACEMENT = 0x9E3779B9


@dataclass(frozen=True)
class Embedding:
    model_id: str
    dims: int
    vector: tuple[float, ...]


def _seed(text: str, model_id: str) -> int:
    digest = hashlib.sha256(f"{model_id}::{text}".encode()).hexdigest()
    return int(digest[:8], 16) or _ZERO_SEED_REPLACEMENT


def _xorshift32(state: int, count: int) -> list[int]:
    out: list[int] = []
    x = state
    for _ in range(count):
        x ^= (x << 13) & _MASK32
        x ^= x >> 17
        x ^= (x << 5) & _MASK32
        out.append(x)
    return out


def embed(text: str, model_id: str, dims: int = ONTOLOGY_DIMS) -> Embedding:
    """Embed text into an L2-normalized ``dims``-length vector.

    Blank text returns the all-zero vector under model id ``"empty"``.
    """
    normalized = (text or "").strip()
    if not normalized:
        return Embedding(model_id=EMPTY_MODEL_ID, dims=dims, vector=(0.0,) * dims)

    raw = np.asarray(_xorshift32(_seed(normalized, model_id), dims), dtype=np.float64)
    values = raw / float(_MASK32) * 2.0 - 1.0
    norm = float(np.linalg.norm(values))
    if norm > 0.0:
        values = values / norm
    return Embedding(model_id=model_id, dims=dims, vector=tuple(float(v) for v in values))
