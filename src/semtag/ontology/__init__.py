"""Ontology store and in-memory concept graph."""

from semtag.ontology.graph import OntologyGraph, OntologyNode
from semtag.ontology.seed import ONTOLOGY_SEED, TagSeed
from semtag.ontology.seeding import SeedResult, load_graph, seed_ontology, validate_ontology

__all__ = [
    "ONTOLOGY_SEED",
    "OntologyGraph",
    "OntologyNode",
    "SeedResult",
    "TagSeed",
    "load_graph",
    "seed_ontology",
    "validate_ontology",
]
