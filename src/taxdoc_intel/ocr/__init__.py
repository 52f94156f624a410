"""Document analysis backends and image preprocessing."""

from .document_intelligence import (
    AnalyzedDocument,
    AnalyzeOperation,
    AnalyzeResult,
    AzureDocumentIntelligenceClient,
    BaseDocumentAnalyzer,
)
from .preprocessing import load_document, preprocess_image

__all__ = [
    "AnalyzedDocument",
    "AnalyzeOperation",
    "AnalyzeResult",
    "AzureDocumentIntelligenceClient",
    "BaseDocumentAnalyzer",
    "load_document",
    "preprocess_image",
]
