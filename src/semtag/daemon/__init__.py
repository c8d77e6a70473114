"""Background queue and auto-apply write-back."""

from semtag.daemon.autoapply import ApplyOutcome, apply_analysis_to_question, band_to_legacy_difficulty, band_to_level
from semtag.daemon.queue import BatchStats, QueueState, QueueStatus, SemanticQueue, purge_ai_state

__all__ = [
    "ApplyOutcome",
    "BatchStats",
    "QueueState",
    "QueueStatus",
    "SemanticQueue",
    "apply_analysis_to_question",
    "band_to_legacy_difficulty",
    "band_to_level",
    "purge_ai_state",
]
