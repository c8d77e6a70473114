"""Tag selection: threshold, rank, truncate."""

from __future__ import annotations

from semtag.analysis.activation import ActivationResult
from semtag.config.constants import DEFAULT_TOP_K
from semtag.core.text import round6
from semtag.store.models import TagAssignment


def select_tags(
    activation: ActivationResult,
    threshold: float,
    top_k: int = DEFAULT_TOP_K,
) -> list[TagAssignment]:
    """Nodes scoring >= threshold, best first, ranked 1..k.

    An empty list is a valid result when nothing clears the threshold.
    """
    picked = [n for n in activation.ranked() if n.final_score >= threshold][: max(top_k, 0)]
    return [
        TagAssignment(
            tag_id=n.tag_id,
            tag_name=n.tag_name,
            score=round6(n.final_score),
            rank=rank,
            explanation=n.description or None,
        )
        for rank, n in enumerate(picked, start=1)
    ]
