"""Hybrid sentiment analysis package."""

__all__ = [
    "types",
    "errors",
    "lexicons",
    "language",
    "tokenizer",
    "rule_model",
    "naive_bayes",
    "hybrid",
    "feedback",
    "evaluation",
    "datasets",
    "engine",
]
