"""
Tests for the document type classifier.
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.append(str(Path(__file__).parent.parent / "src"))

from conftest import DIV_TEXT, W2_TEXT
from taxdoc_intel.classifiers.document_classifier import DocumentTypeClassifier
from taxdoc_intel.document_types import UNKNOWN, DocumentType


class TestDocumentTypeClassifier:
    """Test cases for DocumentTypeClassifier."""

    def setup_method(self):
        self.classifier = DocumentTypeClassifier()

    @pytest.mark.parametrize("text,expected", [
        ("Form W-2 Wage and Tax Statement", DocumentType.W2),
        ("WAGE AND TAX STATEMENT 2024", DocumentType.W2),
        ("Form 1099-INT Interest Income", DocumentType.FORM_1099_INT),
        ("Dividends and Distributions", DocumentType.FORM_1099_DIV),
        ("Form 1099-MISC Miscellaneous Information", DocumentType.FORM_1099_MISC),
        ("Miscellaneous Income", DocumentType.FORM_1099_MISC),
        ("Form 1099-NEC", DocumentType.FORM_1099_NEC),
    ])
    def test_markers(self, text, expected):
        """Test each form's printed markers."""
        assert self.classifier.classify(text) is expected

    def test_first_rule_wins(self):
        """Test that a W-2 mentioning interest income stays a W-2."""
        text = "Form W-2 ... see interest income worksheet"
        assert self.classifier.classify(text) is DocumentType.W2

    def test_unknown(self):
        """Test text without markers and empty text."""
        assert self.classifier.classify("Form 1098 Mortgage Interest Statement") == UNKNOWN
        assert self.classifier.classify("") == UNKNOWN
        assert self.classifier.classify(None) == UNKNOWN

    def test_classify_with_evidence(self):
        """Test that the deciding marker is reported."""
        document_type, marker = self.classifier.classify_with_evidence(DIV_TEXT)

        assert document_type is DocumentType.FORM_1099_DIV
        assert marker == "1099-div"

    def test_classify_batch(self):
        assert self.classifier.classify_batch([W2_TEXT, DIV_TEXT, "nothing"]) == [
            DocumentType.W2, DocumentType.FORM_1099_DIV, UNKNOWN
        ]

    def test_custom_rules(self):
        """Test custom rule order and case-insensitive markers."""
        classifier = DocumentTypeClassifier(rules=[(DocumentType.FORM_1099_NEC, ("NONEMPLOYEE",))])

        assert classifier.classify("nonemployee compensation") is DocumentType.FORM_1099_NEC
        assert classifier.classify("Form W-2") == UNKNOWN
        assert classifier.get_rule_info() == [("FORM_1099_NEC", ("nonemployee",))]
