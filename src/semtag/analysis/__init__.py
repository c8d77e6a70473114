"""Analysis pipeline: heuristics, activation, tag selection, difficulty.

Entry point is ``SemanticEngine.analyze``; the other modules are pure
functions over an ontology graph and can be exercised in isolation.
"""

from semtag.analysis.activation import ActivationResult, NodeActivation, propagate, run_activation
from semtag.analysis.difficulty import DifficultyResult, apply_consistency_rules, map_score_to_band, score_difficulty
from semtag.analysis.engine import SemanticEngine, combined_text, input_hash
from semtag.analysis.heuristics import HeuristicSignals, concept_hits, extract_signals
from semtag.analysis.overrides import EffectiveResult, effective_result, has_override, record_override
from semtag.analysis.selector import select_tags

__all__ = [
    "ActivationResult",
    "DifficultyResult",
    "EffectiveResult",
    "HeuristicSignals",
    "NodeActivation",
    "SemanticEngine",
    "apply_consistency_rules",
    "combined_text",
    "concept_hits",
    "effective_result",
    "extract_signals",
    "has_override",
    "input_hash",
    "map_score_to_band",
    "propagate",
    "record_override",
    "run_activation",
    "score_difficulty",
    "select_tags",
]
