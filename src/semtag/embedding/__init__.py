"""Embedding generator and content-hashed vector cache."""

from semtag.embedding.cache import EmbeddingCache
from semtag.embedding.generator import Embedding, embed

__all__ = ["Embedding", "EmbeddingCache", "embed"]
