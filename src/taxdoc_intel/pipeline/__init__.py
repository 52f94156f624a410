"""Extraction orchestration and the processing facade."""

from .extraction_orchestrator import (
    FALLBACK_MODEL,
    FORM_1099_MODEL,
    GENERIC_MODEL,
    W2_MODEL,
    ExtractionOrchestrator,
    select_model,
)
from .tax_document_processor import TaxDocumentProcessor

__all__ = [
    "ExtractionOrchestrator",
    "TaxDocumentProcessor",
    "select_model",
    "W2_MODEL",
    "FORM_1099_MODEL",
    "GENERIC_MODEL",
    "FALLBACK_MODEL",
]
