"""
taxdoc-intel: tax document extraction and Form 1040 mapping.

Extracts box-level values from W-2 and 1099-INT/DIV/MISC/NEC documents
through Azure AI Document Intelligence, corrects mis-declared document
types, and folds every document into one consolidated Form 1040.
"""

__version__ = "1.0.0"
__author__ = "taxdoc-intel Team"

from .classifiers.document_classifier import DocumentTypeClassifier
from .config import Settings
from .document_types import UNKNOWN, DocumentType, ExtractedFieldData
from .exceptions import BackendError, ConfigurationMissing, ExtractionFailed, ModelUnavailable, TaxDocError
from .mapping import Form1040Data, create_mapping_summary, map_record
from .ocr.document_intelligence import AzureDocumentIntelligenceClient
from .pipeline import ExtractionOrchestrator, TaxDocumentProcessor, select_model
from .records import project_record
from .scoring.confidence_scorer import ConfidenceScorer
from .tracing import Tracer

__all__ = [
    "DocumentTypeClassifier",
    "Settings",
    "UNKNOWN",
    "DocumentType",
    "ExtractedFieldData",
    "BackendError",
    "ConfigurationMissing",
    "ExtractionFailed",
    "ModelUnavailable",
    "TaxDocError",
    "Form1040Data",
    "create_mapping_summary",
    "map_record",
    "AzureDocumentIntelligenceClient",
    "ExtractionOrchestrator",
    "TaxDocumentProcessor",
    "select_model",
    "project_record",
    "ConfidenceScorer",
    "Tracer",
]
