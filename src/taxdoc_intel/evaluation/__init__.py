"""Evaluation of classification and extraction quality."""

from .metrics import ClassificationMetrics, FieldExtractionMetrics, evaluate_classifier

__all__ = ["ClassificationMetrics", "FieldExtractionMetrics", "evaluate_classifier"]
