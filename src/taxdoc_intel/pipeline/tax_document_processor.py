"""
Main Tax Document Processor Pipeline.

This module ties the components together for callers: document loading and
image preprocessing, extraction with fallback and type correction, typed
record projection, confidence scoring and mapping into a Form 1040.
"""

import time
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..classifiers.document_classifier import DocumentTypeClassifier
from ..config import Settings
from ..document_types import DocumentType, ExtractedFieldData
from ..mapping.form_1040 import Form1040Data
from ..mapping.form_mapper import create_mapping_summary, map_record
from ..ocr.document_intelligence import AzureDocumentIntelligenceClient, BaseDocumentAnalyzer
from ..ocr.preprocessing import load_document
from ..records import project_record
from ..scoring.confidence_scorer import ConfidenceScorer
from ..tracing import Tracer
from .extraction_orchestrator import ExtractionOrchestrator

logger = logging.getLogger(__name__)

DocumentSource = Union[str, Path, bytes]
DocumentRequest = Tuple[DocumentSource, Union[DocumentType, str, None]]

CRITICAL_FIELDS = {
    DocumentType.W2: ['employee_ssn', 'employer_ein', 'wages'],
    DocumentType.FORM_1099_INT: ['recipient_tin', 'payer_name', 'interest_income'],
    DocumentType.FORM_1099_DIV: ['recipient_tin', 'payer_name', 'ordinary_dividends'],
    DocumentType.FORM_1099_MISC: ['recipient_tin', 'payer_name'],
    DocumentType.FORM_1099_NEC: ['recipient_tin', 'payer_name', 'nonemployee_compensation'],
}


class TaxDocumentProcessor:
    """
    Main pipeline for processing tax documents.

    This class orchestrates the complete tax document processing pipeline:
    1. Document loading and image preprocessing
    2. Extraction with model fallback and type correction
    3. Confidence scoring
    4. Mapping into a consolidated Form 1040
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        backend: Optional[BaseDocumentAnalyzer] = None,
        classifier: Optional[DocumentTypeClassifier] = None,
        confidence_weights: Optional[Dict[str, float]] = None,
        preprocess: bool = True,
        tracer: Optional[Tracer] = None
    ):
        """
        Initialize the TaxDocumentProcessor.

        Args:
            settings: Backend settings (loaded from the environment if None)
            backend: Analysis backend; overrides settings when given
            classifier: Document type classifier
            confidence_weights: Weights for confidence scoring
            preprocess: Clean up photographed images before analysis
            tracer: Tracer shared by all pipeline components (events are only
                logged, not kept, when the processor creates its own)
        """
        self.settings = settings
        self.preprocess = preprocess
        self.tracer = tracer if tracer is not None else Tracer("processor", keep_events=False)

        self._initialize_components(backend, classifier, confidence_weights)

        logger.info("TaxDocumentProcessor initialized successfully")

    def _initialize_components(
        self,
        backend: Optional[BaseDocumentAnalyzer],
        classifier: Optional[DocumentTypeClassifier],
        confidence_weights: Optional[Dict[str, float]]
    ):
        """Initialize all pipeline components."""
        try:
            self.backend = backend or self._initialize_backend()
            self.classifier = classifier or DocumentTypeClassifier()
            self.orchestrator = ExtractionOrchestrator(self.backend, self.classifier, self.tracer)
            self.confidence_scorer = ConfidenceScorer(weights=confidence_weights)
        except Exception as e:
            logger.error(f"Failed to initialize components: {e}")
            raise

    def _initialize_backend(self) -> BaseDocumentAnalyzer:
        settings = self.settings or Settings.from_env()
        self.settings = settings
        return AzureDocumentIntelligenceClient(settings)

    def extract_document(self, document: DocumentSource, asserted_type: Union[DocumentType, str, None]) -> ExtractedFieldData:
        """
        Extract the field bag of one document.

        Args:
            document: Path to the document or its raw bytes
            asserted_type: Type the caller believes the document is

        Returns:
            Extracted field bag
        """
        content = load_document(document, preprocess=self.preprocess)
        return self.orchestrator.extract(content, asserted_type)

    def process_document(self, document: DocumentSource, asserted_type: Union[DocumentType, str, None]) -> Dict[str, Any]:
        """
        Process a single tax document.

        Args:
            document: Path to the document or its raw bytes
            asserted_type: Type the caller believes the document is

        Returns:
            Dictionary containing processing results
        """
        start_time = time.time()
        source = str(document) if not isinstance(document, bytes) else f"<{len(document)} bytes>"

        try:
            logger.info(f"Processing document: {source}")

            data = self.extract_document(document, asserted_type)
            scores = self.confidence_scorer.score_field_data(data)

            mapping_summary = []
            if data.effective_document_type is not None:
                mapping_summary = create_mapping_summary(project_record(data))

            processing_time = time.time() - start_time

            result = {
                'document_type': _type_name(data.document_type),
                'asserted_type': _type_name(asserted_type),
                'corrected_document_type': _type_name(data.corrected_document_type),
                'extraction': data.to_dict(),
                'mapping_summary': mapping_summary,
                'field_confidence': {s.field_name: s.confidence for s in scores},
                'confidence_summary': self.confidence_scorer.get_confidence_summary(scores),
                'processing_metadata': {
                    'model_id': data.model_id,
                    'used_fallback': data.used_fallback,
                    'processing_time_seconds': processing_time,
                    'timestamp': datetime.now().isoformat(),
                    'source': source
                }
            }

            logger.info(f"Document processed successfully in {processing_time:.2f} seconds")
            return result

        except Exception as e:
            logger.error(f"Error processing document {source}: {e}")
            raise

    def build_return(
        self,
        documents: Sequence[DocumentRequest],
        existing: Optional[Form1040Data] = None
    ) -> Form1040Data:
        """
        Extract several documents and map them into one Form 1040.

        Documents are mapped one after another into the same aggregate. A
        document whose type cannot be determined is skipped with a warning.

        Args:
            documents: (document, asserted type) pairs
            existing: Aggregate to extend (a new one is created if None)

        Returns:
            The consolidated aggregate
        """
        aggregate = existing if existing is not None else Form1040Data()

        for i, (document, asserted_type) in enumerate(documents):
            logger.info(f"Mapping document {i + 1}/{len(documents)}")
            data = self.extract_document(document, asserted_type)
            if data.effective_document_type is None:
                logger.warning(f"Skipping document {i + 1}: unsupported document type {asserted_type!r}")
                self.tracer.emit("document_skipped", index=i, asserted_type=str(asserted_type))
                continue
            map_record(project_record(data), aggregate, self.tracer)

        return aggregate

    def process_batch(self, documents: Iterable[DocumentRequest]) -> List[Dict[str, Any]]:
        """
        Process multiple documents in batch.

        Args:
            documents: (document, asserted type) pairs

        Returns:
            List of processing results; failed documents carry an error entry
        """
        results = []
        documents = list(documents)

        for i, (document, asserted_type) in enumerate(documents):
            source = str(document) if not isinstance(document, bytes) else f"<{len(document)} bytes>"
            try:
                logger.info(f"Processing document {i + 1}/{len(documents)}: {source}")
                results.append(self.process_document(document, asserted_type))

            except Exception as e:
                logger.error(f"Failed to process {source}: {e}")
                results.append({
                    'error': str(e),
                    'source': source,
                    'asserted_type': _type_name(asserted_type),
                    'processing_metadata': {
                        'timestamp': datetime.now().isoformat(),
                        'status': 'failed'
                    }
                })

        return results

    def validate_document(self, document: DocumentSource, expected_type: Union[DocumentType, str, None]) -> Dict[str, Any]:
        """
        Validate document processing results.

        Args:
            document: Path to the document or its raw bytes
            expected_type: Expected document type

        Returns:
            Validation results
        """
        result = self.process_document(document, expected_type)

        validation = {
            'is_valid': True,
            'issues': [],
            'warnings': [],
            'confidence_score': result['confidence_summary']['average_confidence']
        }

        if result['corrected_document_type']:
            validation['warnings'].append(
                f"Expected {_type_name(expected_type)}, document reads as {result['corrected_document_type']}"
            )

        if result['processing_metadata']['used_fallback']:
            validation['warnings'].append("Structured model unavailable, fields read from OCR text")

        if validation['confidence_score'] < 0.5:
            validation['issues'].append("Low overall confidence score")

        document_type = DocumentType.parse(result['corrected_document_type'] or result['document_type'])
        if document_type is None:
            validation['issues'].append("Unsupported document type")
        else:
            fields = result['extraction']['fields']
            missing_fields = [name for name in CRITICAL_FIELDS[document_type] if name not in fields]
            if missing_fields:
                validation['warnings'].append(f"Missing critical fields: {', '.join(missing_fields)}")

        validation['is_valid'] = len(validation['issues']) == 0

        return validation

    def get_processing_stats(self) -> Dict[str, Any]:
        """Get information about the configured pipeline."""
        return {
            'backend': type(self.backend).__name__,
            'endpoint': self.settings.endpoint if self.settings else None,
            'classifier_rules': self.classifier.get_rule_info(),
            'confidence_weights': self.confidence_scorer.weights,
            'preprocess': self.preprocess
        }


def _type_name(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, DocumentType):
        return value.value
    return str(value)
