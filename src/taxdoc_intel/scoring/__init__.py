"""Field confidence scoring."""

from .confidence_scorer import ConfidenceScorer, FieldScore

__all__ = ["ConfidenceScorer", "FieldScore"]
