"""Document type classification."""

from .document_classifier import DEFAULT_RULES, DocumentTypeClassifier

__all__ = ["DocumentTypeClassifier", "DEFAULT_RULES"]
