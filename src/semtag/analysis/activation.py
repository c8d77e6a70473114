"""Activation engine: per-node relevance scores for one question.

Steps, in order:
1. base similarity: clamp01(cosine(question vector, node vector))
2. heuristic boost from the fixed boost table
3. initial = clamp01(base + boost)
4. sibling suppression under parents whose dominant child reaches 0.35
5. upward propagation, deepest nodes first
6. downward propagation, shallowest nodes first
7. final = clamp01(with_up + down), rounded to 6 decimals

Every intermediate stays in [0, 1]. Orderings are (score desc, id asc).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

import structlog

from semtag.config.constants import SIBLING_SUPPRESSION_MIN
from semtag.config.models import SemanticTuningParams
from semtag.core.text import clamp01, cosine_similarity, round6
from semtag.ontology.graph import OntologyGraph

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class NodeActivation:
    tag_id: str
    tag_name: str
    description: str
    depth: int
    base_similarity: float
    heuristic_boost: float
    initial: float
    suppressed: float
    propagated_up: float
    with_up: float
    propagated_down: float
    final_score: float


@dataclass
class ActivationResult:
    nodes: dict[str, NodeActivation] = field(default_factory=dict)
    sibling_suppression_applied: bool = False

    @property
    def final_scores(self) -> dict[str, float]:
        return {tag_id: n.final_score for tag_id, n in self.nodes.items()}

    def score(self, tag_id: str) -> float:
        node = self.nodes.get(tag_id)
        return node.final_score if node else 0.0

    def ranked(self) -> list[NodeActivation]:
        """All nodes by (final score desc, id asc)."""
        return sorted(self.nodes.values(), key=lambda n: (-n.final_score, n.tag_id))


@dataclass(frozen=True)
class _Propagation:
    suppressed: dict[str, float]
    up: dict[str, float]
    with_up: dict[str, float]
    down: dict[str, float]
    final: dict[str, float]
    sibling_suppression_applied: bool


def suppress_siblings(
    graph: OntologyGraph,
    scores: Mapping[str, float],
    sibling_lambda: float,
) -> tuple[dict[str, float], bool]:
    """Damp non-dominant siblings when one sibling clearly dominates.

    Nodes tied at the maximum keep their score.
    """
    out = {n.id: scores.get(n.id, 0.0) for n in graph}
    applied = False
    for parent_id in graph.parents_with_children:
        kids = graph.children(parent_id)
        if len(kids) < 2:
            continue
        max_score = max(out[k] for k in kids)
        if max_score < SIBLING_SUPPRESSION_MIN:
            continue
        applied = True
        for kid in kids:
            s = out[kid]
            if s == max_score:
                continue
            out[kid] = round6(clamp01(s * (1 - sibling_lambda * max_score)))
    return out, applied


def propagate(
    graph: OntologyGraph,
    initial: Mapping[str, float],
    params: SemanticTuningParams,
) -> _Propagation:
    """Steps 4-7 over precomputed initial scores."""
    suppressed, applied = suppress_siblings(graph, initial, params.sibling_lambda)
    nodes = graph.nodes

    up: dict[str, float] = {}
    for node in sorted(nodes, key=lambda n: (-graph.depth(n.id), n.id)):
        s = suppressed[node.id]
        if node.parent_id is None or s <= 0:
            continue
        up[node.parent_id] = round6(up.get(node.parent_id, 0.0) + params.up_beta * s)

    with_up = {n.id: round6(clamp01(suppressed[n.id] + up.get(n.id, 0.0))) for n in nodes}

    down: dict[str, float] = {}
    for node in sorted(nodes, key=lambda n: (graph.depth(n.id), n.id)):
        parent_score = with_up[node.id]
        for kid in graph.children(node.id):
            delta = params.down_gamma * parent_score * (1 - with_up[kid])
            down[kid] = round6(down.get(kid, 0.0) + delta)

    final = {n.id: round6(clamp01(with_up[n.id] + down.get(n.id, 0.0))) for n in nodes}
    return _Propagation(
        suppressed=suppressed,
        up=up,
        with_up=with_up,
        down=down,
        final=final,
        sibling_suppression_applied=applied,
    )


def run_activation(
    graph: OntologyGraph,
    question_vector: Sequence[float],
    node_vectors: Mapping[str, Sequence[float]],
    boosts: Mapping[str, float],
    params: SemanticTuningParams,
) -> ActivationResult:
    """Score every ontology node against one question."""
    base: dict[str, float] = {}
    initial: dict[str, float] = {}
    for node in graph:
        vector = node_vectors.get(node.id, ())
        base[node.id] = clamp01(cosine_similarity(question_vector, vector))
        initial[node.id] = clamp01(base[node.id] + boosts.get(node.id, 0.0))

    prop = propagate(graph, initial, params)

    result = ActivationResult(sibling_suppression_applied=prop.sibling_suppression_applied)
    for node in graph:
        result.nodes[node.id] = NodeActivation(
            tag_id=node.id,
            tag_name=node.name,
            description=node.description,
            depth=graph.depth(node.id),
            base_similarity=base[node.id],
            heuristic_boost=boosts.get(node.id, 0.0),
            initial=initial[node.id],
            suppressed=prop.suppressed[node.id],
            propagated_up=prop.up.get(node.id, 0.0),
            with_up=prop.with_up[node.id],
            propagated_down=prop.down.get(node.id, 0.0),
            final_score=prop.final[node.id],
        )

    logger.debug(
        "activation_complete",
        nodes=len(result.nodes),
        sibling_suppression=prop.sibling_suppression_applied,
    )
    return result
