"""
Tax document type classifier over recognized text.

This module identifies the form a document really is (W-2, 1099-INT,
1099-DIV, 1099-MISC, 1099-NEC) by looking for the markers printed on each
form. Rules are checked in order and the first match wins, so a W-2 that
mentions "interest income" is still a W-2.
"""

import logging
from typing import List, Optional, Sequence, Tuple, Union

from ..document_types import UNKNOWN, DocumentType

logger = logging.getLogger(__name__)

ClassifierRule = Tuple[DocumentType, Tuple[str, ...]]
Classification = Union[DocumentType, str]

DEFAULT_RULES: Tuple[ClassifierRule, ...] = (
    (DocumentType.W2, ("w-2", "wage and tax statement")),
    (DocumentType.FORM_1099_INT, ("1099-int", "interest income")),
    (DocumentType.FORM_1099_DIV, ("1099-div", "dividends and distributions")),
    (DocumentType.FORM_1099_MISC, ("1099-misc", "miscellaneous income", "miscellaneous information")),
    (DocumentType.FORM_1099_NEC, ("1099-nec", "nonemployee compensation")),
)


class DocumentTypeClassifier:
    """
    Ordered substring classifier for tax documents.

    Matching is case-insensitive. Text that matches no rule classifies as
    UNKNOWN.
    """

    def __init__(self, rules: Optional[Sequence[ClassifierRule]] = None):
        """
        Initialize the DocumentTypeClassifier.

        Args:
            rules: Ordered (document type, markers) pairs; defaults to the
                standard W-2 then 1099-INT/DIV/MISC/NEC order
        """
        self.rules: Tuple[ClassifierRule, ...] = tuple(
            (document_type, tuple(marker.lower() for marker in markers))
            for document_type, markers in (rules if rules is not None else DEFAULT_RULES)
        )

    def classify(self, full_text: Optional[str]) -> Classification:
        """
        Classify recognized document text.

        Args:
            full_text: Text recognized from the document

        Returns:
            Matching DocumentType, or UNKNOWN
        """
        document_type, _ = self.classify_with_evidence(full_text)
        return document_type

    def classify_with_evidence(self, full_text: Optional[str]) -> Tuple[Classification, Optional[str]]:
        """Classify and also return the marker that decided the result."""
        text = (full_text or "").lower()
        if not text:
            return UNKNOWN, None

        for document_type, markers in self.rules:
            for marker in markers:
                if marker in text:
                    logger.debug(f"Classified as {document_type.value} on marker {marker!r}")
                    return document_type, marker

        return UNKNOWN, None

    def classify_batch(self, texts: List[str]) -> List[Classification]:
        return [self.classify(text) for text in texts]

    def get_rule_info(self) -> List[Tuple[str, Tuple[str, ...]]]:
        """Rule order as (type name, markers) for display."""
        return [(document_type.value, markers) for document_type, markers in self.rules]
