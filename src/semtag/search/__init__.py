"""Hybrid lexical + vector question search."""

from semtag.search.hybrid import IndexStats, SearchHit, hybrid_search, index_questions, rrf_merge

__all__ = ["IndexStats", "SearchHit", "hybrid_search", "index_questions", "rrf_merge"]
