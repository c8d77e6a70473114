"""Regex/lexical signal extraction.

Pure functions only. The regex classes, divisors and the concept lexicon
are part of the analysis contract: changing any of them changes scores, so
bump ANALYSIS_VERSION alongside.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass

from semtag.core.text import clamp, clamp01

# re.ASCII keeps \b and [a-zA-Z] to plain Latin letters
_PROVE_RE = re.compile(r"\b(prove|show|justify|deduce|hence|therefore)\b", re.ASCII)
_COMPUTE_RE = re.compile(r"\b(compute|calculate|evaluate|simplify|find|determine|solve)\b", re.ASCII)
_EXPLAIN_RE = re.compile(r"\b(explain|describe|reason|why|interpret)\b", re.ASCII)
_GRAPH_RE = re.compile(r"\b(graph|plot|diagram|figure|draw)\b", re.ASCII)

_SYMBOL_RE = re.compile(r"[=<>±√∞∑∫πθλμσφψΩωΔ∇^_]")
_LATEX_RE = re.compile(r"\\[a-zA-Z]+|\\frac|\\sum|\\int|\\lim|\\sqrt", re.ASCII)
_MATH_TOKEN_RE = re.compile(r"\\[a-zA-Z]+|\\frac|\\sum|\\int|\\lim|\\sqrt|[=<>±√∞∑∫πθλμσφψΩωΔ∇^_]")
_VARIABLE_RE = re.compile(r"\b[a-zA-Z]\b", re.ASCII)
_MAX_COUNTED_VARIABLES = 12

_TRANSITION_RE = re.compile(r"\b(then|next|after that|therefore|hence|so that)\b", re.ASCII)
_ORDINAL_RE = re.compile(r"\b(first|second|third|finally)\b", re.ASCII)

_CONNECTOR_RE = re.compile(
    r"\b(then|therefore|hence|so|thus|because|if|implies|assume|given|show|prove|deduce|find|determine)\b",
    re.ASCII,
)
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]")
_WS_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class HeuristicSignals:
    """Normalized lexical signals, each in [0, 1]."""

    symbol_density: float = 0.0
    computation: float = 0.0
    justification: float = 0.0
    explanation: float = 0.0
    multi_step: float = 0.0
    diagram: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def extract_signals(text: str) -> HeuristicSignals:
    """Command verbs, symbol density and multi-step connectors of ``text``.

    Verb and connector counts run on the lowercased text; symbols and
    single-letter variables on the text as given.
    """
    lower = text.lower()

    def count(pattern: re.Pattern[str], source: str = lower) -> int:
        return len(pattern.findall(source))

    symbols = count(_SYMBOL_RE, text)
    latex = count(_LATEX_RE, text)
    variables = count(_VARIABLE_RE, text)

    return HeuristicSignals(
        symbol_density=clamp01((symbols + latex + min(variables, _MAX_COUNTED_VARIABLES)) / 40),
        computation=clamp01(count(_COMPUTE_RE) / 4),
        justification=clamp01(count(_PROVE_RE) / 3),
        explanation=clamp01(count(_EXPLAIN_RE) / 3),
        multi_step=clamp01((count(_TRANSITION_RE) + count(_ORDINAL_RE)) / 6),
        diagram=clamp01(count(_GRAPH_RE) / 2),
    )


def estimate_symbol_density(source: str) -> float:
    """Math tokens per ~12 characters of text. Independent of extract_signals."""
    if not source:
        return 0.0
    math_tokens = len(_MATH_TOKEN_RE.findall(source))
    variables = len(_VARIABLE_RE.findall(source))
    chars = max(len(_WS_RE.sub(" ", source).strip()), 1)
    return clamp01((math_tokens + min(variables, _MAX_COUNTED_VARIABLES)) / max(10, chars / 12))


def estimate_reasoning_steps(plain: str) -> float:
    normalized = plain.lower()
    connectors = len(_CONNECTOR_RE.findall(normalized))
    sentences = max(1, len([s for s in _SENTENCE_SPLIT_RE.split(normalized) if s.strip()]))
    return clamp((connectors * 0.6 + sentences * 0.4) / 6, 0, 1)


# Surface terms per ontology node. Matched case-insensitively; alphanumeric
# term edges get word boundaries, symbol edges match literally.
CONCEPT_LEXICON: dict[str, tuple[str, ...]] = {
    "topic.arithmetic": ("%", "percent", "percentage", "fraction", "decimal", "ratio", "remainder"),
    "subtopic.fractions": ("fraction", "fractions", "numerator", "denominator", "rational number"),
    "subtopic.percent": ("%", "percent", "percentage", "discount", "per cent"),
    "subtopic.ratio": ("ratio", "proportion", "proportional", "unit rate"),
    "topic.algebra": ("equation", "expression", "variable", "algebraic"),
    "subtopic.linear": ("linear", "inequality", "straight line"),
    "subtopic.quadratic": ("quadratic", "x^2", "discriminant", "completing the square"),
    "subtopic.polynomials": ("polynomial", "factorise", "factorize", "factorization", "degree of"),
    "subtopic.functions": ("function", "domain", "f(x)", "inverse function", "composition"),
    "topic.geometry": ("angle", "area", "perimeter", "polygon", "shape"),
    "subtopic.triangles": ("triangle", "hypotenuse", "pythagoras", "congruent", "isosceles"),
    "subtopic.circles": ("circle", "radius", "diameter", "chord", "circumference", "arc"),
    "subtopic.coordinate": ("coordinate", "coordinates", "slope", "gradient", "midpoint"),
    "topic.trigonometry": ("sin", "cos", "tan", "sine", "cosine", "trigonometric"),
    "subtopic.trig-identities": ("identity", "identities", "sin^2", "cos^2"),
    "topic.calculus": ("derivative", "differentiate", "integral", "integrate", "limit", "d/dx"),
    "subtopic.derivatives": ("derivative", "derivatives", "differentiate", "differentiation", "d/dx", "rate of change"),
    "subtopic.integrals": ("integral", "integrals", "integrate", "integration", "antiderivative", "area under"),
    "topic.probability": ("probability", "chance", "dice", "coin", "at random"),
    "topic.statistics": ("median", "mode", "standard deviation", "variance", "average", "data set"),
    "topic.physics.mechanics": ("force", "velocity", "acceleration", "momentum", "newton"),
    "topic.physics.electricity": ("current", "voltage", "resistance", "circuit", "magnetic"),
    "topic.physics.waves": ("wave", "frequency", "wavelength", "lens", "refraction"),
    "topic.chem.atomic": ("atom", "electron", "proton", "neutron", "isotope"),
    "topic.chem.bonding": ("ionic", "covalent", "chemical bond", "polarity"),
    "topic.chem.stoichiometry": ("mole", "moles", "molar", "limiting reagent", "concentration"),
    "topic.bio.cell": ("cell", "organelle", "membrane", "mitochondria", "nucleus"),
    "topic.bio.genetics": ("gene", "dna", "allele", "inheritance", "chromosome"),
    "topic.bio.ecology": ("ecosystem", "food chain", "food web", "habitat", "biodiversity"),
    "topic.eng.grammar": ("noun", "verb", "adjective", "tense", "punctuation"),
    "topic.eng.comprehension": ("passage", "main idea", "the author", "infer"),
    "topic.eng.vocab": ("synonym", "antonym", "meaning of the word", "vocabulary"),
    "topic.history.ancient": ("ancient", "empire", "civilization", "dynasty"),
    "topic.history.modern": ("revolution", "independence", "colonial", "world war"),
    "topic.evs.environment": ("pollution", "conservation", "climate", "recycle"),
    "topic.evs.health": ("nutrition", "hygiene", "disease", "vitamin"),
    "topic.ss.geography": ("map", "latitude", "longitude", "landform"),
    "topic.ss.civics": ("constitution", "government", "parliament", "citizen"),
    "topic.ss.economics": ("market", "demand", "supply", "inflation"),
    "skill.symbolic-manipulation": ("rearrange", "substitute", "expand", "make the subject"),
    "skill.conceptual-reasoning": ("explain why", "interpret", "what does it mean"),
    "skill.procedural-execution": ("apply the formula", "use the formula", "step by step"),
    "skill.multi-step-reasoning": ("hence", "and then", "using your answer", "in two steps"),
    "operation.simplify": ("simplify", "simplest form", "reduce"),
    "operation.solve": ("solve", "find the value", "roots of"),
    "operation.prove": ("prove", "show that", "justify", "deduce"),
    "operation.compute": ("calculate", "compute", "evaluate", "what is", "how much", "how many"),
}


def _is_word_char(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch == "_")


def _term_pattern(term: str) -> re.Pattern[str]:
    body = re.escape(term)
    prefix = r"\b" if _is_word_char(term[0]) else ""
    suffix = r"\b" if _is_word_char(term[-1]) else ""
    return re.compile(prefix + body + suffix, re.ASCII)


_LEXICON_PATTERNS: dict[str, tuple[tuple[str, re.Pattern[str]], ...]] = {
    tag_id: tuple((term, _term_pattern(term)) for term in terms) for tag_id, terms in CONCEPT_LEXICON.items()
}


def concept_hits(text: str) -> dict[str, list[str]]:
    """Distinct lexicon terms found in ``text``, per tag id (sorted)."""
    lower = text.lower()
    out: dict[str, list[str]] = {}
    for tag_id in sorted(_LEXICON_PATTERNS):
        found = [term for term, pattern in _LEXICON_PATTERNS[tag_id] if pattern.search(lower)]
        if found:
            out[tag_id] = found
    return out
