"""Multi-axis difficulty model.

Five factors feed a fixed weighted sum; consistency rules then apply floors
and caps, each leaving an auditable record. Factors depend on activation
scores, not on how many tags cleared the threshold, so difficulty is
defined even for questions with no tags.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from semtag.analysis.activation import ActivationResult
from semtag.analysis.heuristics import HeuristicSignals, estimate_reasoning_steps, estimate_symbol_density
from semtag.config import constants as C
from semtag.core.text import clamp01, round6
from semtag.ontology.graph import OntologyGraph
from semtag.store.models import (
    ConsistencyAdjustment,
    DifficultyBand,
    DifficultyComponents,
    DifficultyFactors,
    TopSignal,
)


def map_score_to_band(score: float) -> DifficultyBand:
    s = clamp01(score)
    for edge, band in C.BAND_EDGES:
        if s < edge:
            return DifficultyBand(band)
    return DifficultyBand.OLYMPIAD


@dataclass
class DifficultyResult:
    score: float
    band: DifficultyBand
    factors: DifficultyFactors
    components: DifficultyComponents
    consistency: list[ConsistencyAdjustment] = field(default_factory=list)
    top_signals: list[TopSignal] = field(default_factory=list)


def apply_consistency_rules(
    raw: float,
    final_scores: Mapping[str, float],
    abstraction_depth: float,
    reasoning_chain: float,
) -> tuple[float, list[ConsistencyAdjustment]]:
    """Floors then caps. Returns the adjusted score and one record per firing rule."""
    score = raw
    fired: list[ConsistencyAdjustment] = []

    def active(tag_id: str) -> bool:
        return final_scores.get(tag_id, 0.0) >= C.RULE_ACTIVE_SCORE

    has_prove = active(C.PROVE_TAG_ID)
    has_multi = active(C.MULTI_STEP_TAG_ID)
    has_compute = any(active(t) for t in C.COMPUTE_TAG_IDS)
    arithmetic_heavy = final_scores.get(C.ARITHMETIC_TAG_ID, 0.0) >= C.RULE_ARITHMETIC_HEAVY

    def floor(rule: str, minimum: float, detail: str) -> None:
        nonlocal score
        if score < minimum:
            fired.append(ConsistencyAdjustment(rule=rule, delta=round6(minimum - score), detail=detail))
            score = minimum

    if has_prove and (has_multi or reasoning_chain >= C.RULE_REASONING_CHAIN):
        floor(
            "floor.prove_multi_step",
            C.FLOOR_PROVE_MULTI_STEP,
            "Proof + multi-step reasoning implies a minimum difficulty.",
        )
    if has_prove:
        floor("floor.prove", C.FLOOR_PROVE, "Constructing a proof implies at least a hard band.")
    if has_multi:
        floor("floor.multi_step", C.FLOOR_MULTI_STEP, "Multi-step reasoning implies a moderate difficulty floor.")

    if arithmetic_heavy and has_compute and not has_prove and abstraction_depth < C.RULE_LOW_ABSTRACTION:
        if score > C.CAP_ARITHMETIC_COMPUTE:
            fired.append(
                ConsistencyAdjustment(
                    rule="cap.arithmetic_compute",
                    delta=round6(C.CAP_ARITHMETIC_COMPUTE - score),
                    detail="Pure arithmetic compute tasks are capped unless other signals dominate.",
                )
            )
            score = C.CAP_ARITHMETIC_COMPUTE

    return score, fired


def score_difficulty(
    activation: ActivationResult,
    graph: OntologyGraph,
    combined_text: str,
    question_text: str,
    signals: HeuristicSignals,
) -> DifficultyResult:
    """Difficulty for one analyzed question.

    Args:
        activation: Final activation scores for every node.
        graph: The graph the activation ran over.
        combined_text: Question plus explanation, plain text.
        question_text: Question text alone, plain text (symbol density).
        signals: Heuristic signals of the combined text.
    """
    ranked = activation.ranked()
    final_scores = activation.final_scores

    foundation = max((final_scores.get(t, 0.0) for t in sorted(C.FOUNDATIONAL_TAG_IDS)), default=0.0)
    foundational_distance = clamp01(1 - foundation)

    max_depth = max(graph.max_depth, 1)
    deep = [n for n in ranked if n.final_score >= C.ABSTRACTION_MIN_SCORE][: C.ABSTRACTION_MAX_NODES]
    weight_sum = sum(n.final_score for n in deep)
    abstraction_depth = clamp01(
        sum((n.depth / max_depth) * n.final_score for n in deep) / weight_sum if weight_sum > 0 else 0.0
    )

    reasoning_chain = clamp01(0.55 * estimate_reasoning_steps(combined_text) + 0.45 * signals.multi_step)

    strong = [n for n in ranked if n.final_score >= C.BREADTH_MIN_SCORE][: C.BREADTH_MAX_NODES]
    branches = {graph.branch_of(n.tag_id) for n in strong}
    prerequisite_breadth = clamp01(len(branches) / C.BREADTH_BRANCHES)

    symbol_density = estimate_symbol_density(question_text)
    conceptual_depth = clamp01((abstraction_depth + foundational_distance + prerequisite_breadth) / 3)

    raw = clamp01(
        C.WEIGHT_FOUNDATIONAL_DISTANCE * foundational_distance
        + C.WEIGHT_ABSTRACTION_DEPTH * abstraction_depth
        + C.WEIGHT_REASONING_CHAIN * reasoning_chain
        + C.WEIGHT_PREREQUISITE_BREADTH * prerequisite_breadth
        + C.WEIGHT_SYMBOL_DENSITY * symbol_density
    )
    adjusted, consistency = apply_consistency_rules(raw, final_scores, abstraction_depth, reasoning_chain)
    score = round6(adjusted)

    factors = DifficultyFactors(
        semantic_complexity=foundational_distance,
        conceptual_depth=conceptual_depth,
        reasoning_steps=reasoning_chain,
        abstraction_level=abstraction_depth,
        symbol_density=symbol_density,
        prerequisite_load=prerequisite_breadth,
    )
    components = DifficultyComponents(
        foundational_distance=round6(foundational_distance),
        abstraction_depth=round6(abstraction_depth),
        reasoning_chain=round6(reasoning_chain),
        prerequisite_breadth=round6(prerequisite_breadth),
        consistency_adjustment=round6(sum(r.delta for r in consistency)),
    )
    top_signals = sorted(
        [
            TopSignal(
                label="Foundational distance",
                weight=foundational_distance,
                detail="Distance from foundational concepts raises difficulty.",
            ),
            TopSignal(
                label="Abstraction depth",
                weight=abstraction_depth,
                detail="Deeper activated nodes imply more abstraction.",
            ),
            TopSignal(
                label="Reasoning chain",
                weight=reasoning_chain,
                detail="Multi-step / justificatory framing increases difficulty.",
            ),
            TopSignal(
                label="Prerequisite breadth",
                weight=prerequisite_breadth,
                detail="More distinct activated branches imply broader prerequisites.",
            ),
            TopSignal(
                label="Symbol density",
                weight=symbol_density,
                detail="Symbolic content increases cognitive load.",
            ),
        ],
        key=lambda s: -s.weight,
    )

    return DifficultyResult(
        score=score,
        band=map_score_to_band(score),
        factors=factors,
        components=components,
        consistency=consistency,
        top_signals=top_signals,
    )
