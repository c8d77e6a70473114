"""Persistent store: SQLite engine and table schemas."""

from semtag.store.database import Database
from semtag.store.models import (
    ActivatedNode,
    AnalysisSource,
    ConsistencyAdjustment,
    DifficultyBand,
    DifficultyComponents,
    DifficultyFactors,
    EmbeddingRecord,
    EmbeddingScope,
    HeuristicArtifact,
    HeuristicContribution,
    HierarchyRationale,
    OntologyTag,
    Question,
    QuestionAnalysis,
    QuestionOverride,
    Rationale,
    RootActivation,
    SearchDoc,
    TagAssignment,
    TagKind,
    TopSignal,
    TuningState,
)

__all__ = [
    "Database",
    "ActivatedNode",
    "AnalysisSource",
    "ConsistencyAdjustment",
    "DifficultyBand",
    "DifficultyComponents",
    "DifficultyFactors",
    "EmbeddingRecord",
    "EmbeddingScope",
    "HeuristicArtifact",
    "HeuristicContribution",
    "HierarchyRationale",
    "OntologyTag",
    "Question",
    "QuestionAnalysis",
    "QuestionOverride",
    "Rationale",
    "RootActivation",
    "SearchDoc",
    "TagAssignment",
    "TagKind",
    "TopSignal",
    "TuningState",
]
