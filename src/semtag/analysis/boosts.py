"""Fixed map from heuristic signals to additive per-node boosts."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from semtag.analysis.heuristics import HeuristicSignals
from semtag.config.constants import LEXICON_BOOST_FIRST, LEXICON_BOOST_MAX, LEXICON_BOOST_STEP
from semtag.core.text import round6
from semtag.store.models import HeuristicArtifact, HeuristicContribution


def lexicon_boost(hit_count: int) -> float:
    if hit_count <= 0:
        return 0.0
    return min(LEXICON_BOOST_MAX, LEXICON_BOOST_FIRST + LEXICON_BOOST_STEP * (hit_count - 1))


def compute_boosts(
    signals: HeuristicSignals,
    hits: Mapping[str, Sequence[str]] | None = None,
) -> tuple[dict[str, float], list[HeuristicArtifact]]:
    """Boost per tag id plus the rationale artifacts describing them.

    Boosts accumulate per node and are rounded to 6 decimals after every
    addition.
    """
    boosts: dict[str, float] = {}

    def boost(tag_id: str, weight: float) -> None:
        boosts[tag_id] = round6(boosts.get(tag_id, 0.0) + weight)

    # Operations
    boost("operation.compute", 0.25 * signals.computation)
    boost("operation.solve", 0.18 * signals.computation)
    boost("operation.simplify", 0.22 * signals.computation)
    boost("operation.prove", 0.40 * signals.justification)

    # Skills
    boost("skill.symbolic-manipulation", 0.35 * signals.symbol_density)
    boost("skill.conceptual-reasoning", 0.35 * signals.explanation + 0.20 * signals.justification)
    boost("skill.multi-step-reasoning", 0.45 * signals.multi_step)
    boost("skill.procedural-execution", 0.25 * signals.computation + 0.25 * signals.symbol_density)

    artifacts = [
        HeuristicArtifact(
            key="heur.symbol_density",
            score=round6(signals.symbol_density),
            contributed_to=[
                HeuristicContribution(tag_id="skill.symbolic-manipulation", weight=round6(0.35 * signals.symbol_density)),
                HeuristicContribution(tag_id="skill.procedural-execution", weight=round6(0.25 * signals.symbol_density)),
            ],
        ),
        HeuristicArtifact(
            key="heur.command_verbs",
            score=round6(max(signals.computation, signals.justification, signals.explanation)),
            contributed_to=[
                HeuristicContribution(tag_id="operation.prove", weight=round6(0.40 * signals.justification)),
                HeuristicContribution(tag_id="operation.compute", weight=round6(0.25 * signals.computation)),
                HeuristicContribution(tag_id="skill.conceptual-reasoning", weight=round6(0.35 * signals.explanation)),
            ],
        ),
        HeuristicArtifact(
            key="heur.multi_step",
            score=round6(signals.multi_step),
            contributed_to=[
                HeuristicContribution(tag_id="skill.multi-step-reasoning", weight=round6(0.45 * signals.multi_step)),
            ],
        ),
    ]

    if hits:
        lexicon: list[HeuristicContribution] = []
        for tag_id in sorted(hits):
            weight = lexicon_boost(len(hits[tag_id]))
            if weight <= 0:
                continue
            boost(tag_id, weight)
            lexicon.append(HeuristicContribution(tag_id=tag_id, weight=round6(weight)))
        artifacts.append(
            HeuristicArtifact(
                key="heur.concept_lexicon",
                score=round6(min(1.0, sum(len(terms) for terms in hits.values()) / 10)),
                contributed_to=lexicon,
            )
        )

    # Zero entries carry no information downstream
    return {k: v for k, v in sorted(boosts.items()) if v != 0.0}, artifacts
