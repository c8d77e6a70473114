"""Algorithm constants. Changing any value here changes analysis output.

These are part of the analysis contract: bump ANALYSIS_VERSION whenever a
value below changes so every cached analysis is invalidated.

For user-configurable defaults, see models.py.
"""

ANALYSIS_VERSION = 1

# Embedding model identifiers
DEFAULT_MODEL_ID = "deterministic-embed-v1"
EMPTY_MODEL_ID = "empty"
ONTOLOGY_DIMS = 64
SEARCH_DIMS = 384

# Tag selection
DEFAULT_TOP_K = 8

# Sibling suppression fires only when the dominant sibling reaches this score
SIBLING_SUPPRESSION_MIN = 0.35

# Concept lexicon boost: first hit, increment per extra hit, ceiling
LEXICON_BOOST_FIRST = 0.45
LEXICON_BOOST_STEP = 0.05
LEXICON_BOOST_MAX = 0.6

# Difficulty model
FOUNDATIONAL_TAG_IDS = frozenset(
    {
        "topic.arithmetic",
        "subtopic.fractions",
        "subtopic.percent",
        "subtopic.ratio",
        "subtopic.linear",
    }
)
ABSTRACTION_MIN_SCORE = 0.35
ABSTRACTION_MAX_NODES = 10
BREADTH_MIN_SCORE = 0.40
BREADTH_MAX_NODES = 18
BREADTH_BRANCHES = 6

WEIGHT_FOUNDATIONAL_DISTANCE = 0.28
WEIGHT_ABSTRACTION_DEPTH = 0.22
WEIGHT_REASONING_CHAIN = 0.25
WEIGHT_PREREQUISITE_BREADTH = 0.15
WEIGHT_SYMBOL_DENSITY = 0.10

# Consistency rules (fixed, not tunable)
RULE_ACTIVE_SCORE = 0.45
RULE_REASONING_CHAIN = 0.55
RULE_ARITHMETIC_HEAVY = 0.55
RULE_LOW_ABSTRACTION = 0.25
FLOOR_PROVE_MULTI_STEP = 0.62
FLOOR_PROVE = 0.52
FLOOR_MULTI_STEP = 0.52
CAP_ARITHMETIC_COMPUTE = 0.48

PROVE_TAG_ID = "operation.prove"
MULTI_STEP_TAG_ID = "skill.multi-step-reasoning"
ARITHMETIC_TAG_ID = "topic.arithmetic"
COMPUTE_TAG_IDS = ("operation.compute", "operation.solve", "operation.simplify")

# Upper band edges, ascending. Anything >= the last edge is "olympiad".
BAND_EDGES = (
    (0.18, "very_easy"),
    (0.33, "easy"),
    (0.52, "moderate"),
    (0.70, "hard"),
    (0.84, "very_hard"),
)

# Rationale size limits
RATIONALE_ACTIVATED_NODES = 24
RATIONALE_ROOTS = 8

# Calibration / tuning
CALIBRATION_MIN_ANALYSES = 3
TUNING_MIN_SAMPLES = 5
TUNING_THRESHOLD_MIN = 0.20
TUNING_THRESHOLD_MAX = 0.60
TUNING_THRESHOLD_STEP = 0.01

# Hybrid search
SEARCH_CANDIDATE_LIMIT = 60
SEARCH_DEFAULT_LIMIT = 30
SEARCH_RRF_K = 60
SEARCH_SHORT_QUERY_CHARS = 3
SEARCH_PREVIEW_WORDS = 5
