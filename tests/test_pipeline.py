"""
Tests for the main tax document processing pipeline.
"""

import pytest
import tempfile
import os
from decimal import Decimal
from unittest.mock import patch
import sys
from pathlib import Path

# Add src to path
sys.path.append(str(Path(__file__).parent.parent / "src"))

from conftest import DIV_TEXT, W2_TEXT, FakeBackend, structured_result, text_result
from taxdoc_intel.config import API_KEY_ENV, ENDPOINT_ENV
from taxdoc_intel.exceptions import BackendError, ConfigurationMissing, ExtractionFailed, ModelUnavailable
from taxdoc_intel.mapping.form_1040 import Form1040Data
from taxdoc_intel.ocr.document_intelligence import AzureDocumentIntelligenceClient
from taxdoc_intel.pipeline.extraction_orchestrator import (
    FALLBACK_MODEL,
    FORM_1099_MODEL,
    GENERIC_MODEL,
    W2_MODEL,
)
from taxdoc_intel.pipeline.tax_document_processor import TaxDocumentProcessor
from taxdoc_intel.tracing import Tracer


@pytest.fixture
def backend(w2_fields):
    return FakeBackend({
        W2_MODEL: structured_result(w2_fields, content=W2_TEXT),
        FORM_1099_MODEL: text_result(DIV_TEXT),
        GENERIC_MODEL: text_result("Form 1098 Mortgage Interest Statement"),
    })


class TestTaxDocumentProcessor:
    """Test cases for TaxDocumentProcessor."""

    def test_initialization(self, backend):
        """Test processor initialization."""
        processor = TaxDocumentProcessor(backend=backend, preprocess=False)
        assert processor is not None
        assert processor.backend is backend
        assert processor.classifier is not None
        assert processor.orchestrator is not None
        assert processor.confidence_scorer is not None

    def test_initialization_from_env(self):
        """Test that the Azure backend is built from the environment."""
        env = {ENDPOINT_ENV: "https://taxdoc.cognitiveservices.azure.com", API_KEY_ENV: "secret"}
        with patch.dict(os.environ, env, clear=True):
            processor = TaxDocumentProcessor()

        assert isinstance(processor.backend, AzureDocumentIntelligenceClient)
        assert processor.settings.endpoint == "https://taxdoc.cognitiveservices.azure.com"

    def test_initialization_without_configuration(self):
        """Test that missing credentials fail fast."""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigurationMissing):
                TaxDocumentProcessor()

    def test_get_processing_stats(self, backend):
        """Test getting processing statistics."""
        processor = TaxDocumentProcessor(backend=backend)
        stats = processor.get_processing_stats()

        assert stats['backend'] == 'FakeBackend'
        assert stats['endpoint'] is None
        assert 'classifier_rules' in stats
        assert 'confidence_weights' in stats
        assert stats['preprocess'] is True

    def test_process_document(self, backend):
        """Test processing a single W-2 from bytes."""
        processor = TaxDocumentProcessor(backend=backend, preprocess=False)

        result = processor.process_document(b"%PDF-1.7 w2", "W2")

        assert result['document_type'] == 'W2'
        assert result['asserted_type'] == 'W2'
        assert result['corrected_document_type'] is None
        assert result['extraction']['fields']['wages'] == '75000'
        assert result['processing_metadata']['model_id'] == W2_MODEL
        assert result['processing_metadata']['used_fallback'] is False
        assert 'processing_time_seconds' in result['processing_metadata']
        assert 'wages' in result['field_confidence']
        assert result['confidence_summary']['total_results'] == len(result['extraction']['fields'])

        rows = {row['field']: row for row in result['mapping_summary']}
        assert rows['wages']['destination'] == 'Form 1040 line 1'

    def test_process_document_from_path(self, backend):
        """Test processing a document read from disk."""
        processor = TaxDocumentProcessor(backend=backend, preprocess=False)

        with tempfile.NamedTemporaryFile(suffix='.pdf', delete=False) as f:
            f.write(b"%PDF-1.7 dividends")
            path = f.name

        try:
            result = processor.process_document(path, "1099-DIV")
        finally:
            os.unlink(path)

        assert result['document_type'] == 'FORM_1099_DIV'
        assert result['extraction']['fields']['ordinary_dividends'] == '1250.00'
        assert result['processing_metadata']['source'] == path

    def test_process_document_unsupported_type(self, backend):
        """Test that an unsupported document has no mapping summary."""
        processor = TaxDocumentProcessor(backend=backend, preprocess=False)

        result = processor.process_document(b"data", "1098")

        assert result['document_type'] is None
        assert result['mapping_summary'] == []

    def test_process_document_failure(self):
        """Test that extraction errors propagate."""
        backend = FakeBackend({W2_MODEL: BackendError("Access denied", code="Unauthorized", status_code=401)})
        processor = TaxDocumentProcessor(backend=backend, preprocess=False)

        with pytest.raises(ExtractionFailed):
            processor.process_document(b"data", "W2")

    def test_build_return(self, backend):
        """Test mapping several documents into one return."""
        tracer = Tracer()
        processor = TaxDocumentProcessor(backend=backend, preprocess=False, tracer=tracer)

        aggregate = processor.build_return([
            (b"w2", "W2"),
            (b"div", "1099-DIV"),
            (b"mortgage", "1098"),
        ])

        # W-2 wages plus 2,000 of dependent care over the exclusion limit
        assert aggregate.line_1 == Decimal("77000")
        assert aggregate.line_25a == Decimal("9500")
        assert aggregate.line_3b == Decimal("1250.00")
        assert aggregate.line_3a == Decimal("900.00")
        assert aggregate.line_7 == Decimal("450.00")
        assert aggregate.schedule_a.retirement_contributions == Decimal("5000")
        assert aggregate.schedule_a.employer_health_coverage == Decimal("8400")
        assert aggregate.schedule_a.retirement_plan_participation is True
        assert aggregate.schedule_a.fatca_filing_required is True
        assert aggregate.foreign_tax_credit.countries == ["Canada"]
        assert aggregate.personal_info.ssn == "123-45-6789"
        assert aggregate.personal_info.source_document == "Enhanced W2, Enhanced 1099-DIV"
        assert len(tracer.find("document_skipped")) == 1

    def test_default_tracer_keeps_no_events(self, backend):
        """Test that a long-lived processor does not accumulate trace events."""
        processor = TaxDocumentProcessor(backend=backend, preprocess=False)

        processor.build_return([(b"w2", "W2"), (b"div", "1099-DIV")])
        processor.process_batch([(b"w2", "W2")])

        assert processor.tracer.keep_events is False
        assert processor.tracer.events == []
        assert processor.orchestrator.tracer is processor.tracer

    def test_build_return_extends_existing(self, backend):
        processor = TaxDocumentProcessor(backend=backend, preprocess=False)
        existing = Form1040Data(line_2b=Decimal("10"))

        aggregate = processor.build_return([(b"div", "1099-DIV")], existing)

        assert aggregate is existing
        assert aggregate.line_2b == Decimal("10")
        assert aggregate.line_3b == Decimal("1250.00")

    def test_build_return_with_correction(self):
        """Test that a 1099-DIV sent as a W-2 is mapped as a 1099-DIV."""
        backend = FakeBackend({W2_MODEL: text_result(DIV_TEXT)})
        processor = TaxDocumentProcessor(backend=backend, preprocess=False)

        aggregate = processor.build_return([(b"div", "W2")])

        assert aggregate.line_1 == Decimal("0")
        assert aggregate.line_3b == Decimal("1250.00")

    def test_build_return_with_fallback(self):
        """Test mapping when the tax model is not provisioned."""
        backend = FakeBackend({
            W2_MODEL: ModelUnavailable("Model not found"),
            FALLBACK_MODEL: text_result(W2_TEXT),
        })
        processor = TaxDocumentProcessor(backend=backend, preprocess=False)

        aggregate = processor.build_return([(b"w2", "W2")])

        assert aggregate.line_1 == Decimal("77000.00")
        assert aggregate.state_data.state == "IL"
        assert backend.calls == [W2_MODEL, FALLBACK_MODEL]

    def test_process_batch(self, backend):
        """Test batch processing records failures per document."""
        backend.outcomes[GENERIC_MODEL] = BackendError("Service unavailable", status_code=503)
        processor = TaxDocumentProcessor(backend=backend, preprocess=False)

        results = processor.process_batch([
            (b"w2", "W2"),
            (b"other", None),
        ])

        assert len(results) == 2
        assert results[0]['document_type'] == 'W2'
        assert 'error' in results[1]
        assert results[1]['processing_metadata']['status'] == 'failed'
        assert results[1]['source'] == '<5 bytes>'

    def test_validate_document(self, backend):
        """Test document validation."""
        processor = TaxDocumentProcessor(backend=backend, preprocess=False)

        validation = processor.validate_document(b"w2", "W2")

        assert validation['is_valid'] is True
        assert validation['issues'] == []
        assert validation['warnings'] == []
        assert 0.0 <= validation['confidence_score'] <= 1.0

    def test_validate_corrected_document(self):
        """Test that a type correction and fallback are reported as warnings."""
        backend = FakeBackend({
            W2_MODEL: ModelUnavailable("Model not found"),
            FALLBACK_MODEL: text_result(DIV_TEXT),
        })
        processor = TaxDocumentProcessor(backend=backend, preprocess=False)

        validation = processor.validate_document(b"div", "W2")

        assert any("reads as FORM_1099_DIV" in warning for warning in validation['warnings'])
        assert any("OCR text" in warning for warning in validation['warnings'])

    def test_preprocessing_applied(self, backend):
        """Test that documents are preprocessed before submission."""
        processor = TaxDocumentProcessor(backend=backend)

        with patch('taxdoc_intel.pipeline.tax_document_processor.load_document') as mock_load:
            mock_load.return_value = b"processed"
            processor.extract_document(b"raw", "W2")

        mock_load.assert_called_once_with(b"raw", preprocess=True)
