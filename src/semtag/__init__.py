"""semtag - deterministic semantic tagging and difficulty inference for questions."""

__version__ = "0.1.0"
