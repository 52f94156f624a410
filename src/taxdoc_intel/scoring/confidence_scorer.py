"""
Confidence scoring for extracted tax document fields.

This module combines the confidence reported by the analysis backend with
format validation of the value itself (SSN, EIN, amounts, names, addresses)
into one composite score per field.
"""

import re
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Union

import numpy as np

from ..document_types import ExtractedFieldData, FieldKind, FieldValue

logger = logging.getLogger(__name__)

# Backend confidence assumed when a field carries none
STRUCTURED_DEFAULT_CONFIDENCE = 0.8
TEXT_DEFAULT_CONFIDENCE = 0.6


@dataclass
class FieldScore:
    """Confidence breakdown for one extracted field."""

    field_name: str
    value: Any
    kind: FieldKind
    confidence: float
    provider_confidence: float
    validation_score: float


class ConfidenceScorer:
    """
    Confidence scoring for extracted tax fields.

    Combines backend confidence and business-rule validation using
    configurable weights.
    """

    def __init__(self, weights: Optional[Dict[str, float]] = None):
        """
        Initialize the confidence scorer.

        Args:
            weights: Weights for the 'provider' and 'validation' components
        """
        self.weights = weights or {
            'provider': 0.6,
            'validation': 0.4
        }

        total_weight = sum(self.weights.values())
        if abs(total_weight - 1.0) > 0.01:
            logger.warning(f"Confidence weights sum to {total_weight}, normalizing to 1.0")
            self.weights = {k: v / total_weight for k, v in self.weights.items()}

        self.validators = self._initialize_validators()

    def _initialize_validators(self) -> Dict[str, Callable[[str], float]]:
        """Validators keyed by field name suffix."""
        return {
            '_ssn': self._validate_ssn,
            '_tin': self._validate_tin,
            '_ein': self._validate_ein,
            '_name': self._validate_name,
            '_address': self._validate_address,
            'account_number': self._validate_account_number,
        }

    def calculate_composite_confidence(self, provider_confidence: float, validation_score: float) -> float:
        composite_score = (
            provider_confidence * self.weights['provider'] +
            validation_score * self.weights['validation']
        )
        return min(composite_score, 1.0)

    def validate_field(self, field_name: str, item: FieldValue) -> float:
        """
        Validate one field value using business rules.

        Args:
            field_name: Name of the field in the field bag
            item: Extracted value

        Returns:
            Validation score (0-1)
        """
        if item.kind is FieldKind.AMOUNT:
            return self._validate_amount(item.value)
        if item.kind is FieldKind.CODES:
            return self._validate_box12(item.value)
        if item.kind in (FieldKind.FLAG, FieldKind.CHECKBOXES):
            return 0.7

        value = str(item.value).strip()
        if not value:
            return 0.0

        for suffix, validator in self.validators.items():
            if field_name.endswith(suffix):
                return validator(value)
        return 0.5

    def _validate_ssn(self, ssn: str) -> float:
        """Validate SSN format and ranges."""
        digits = re.sub(r'\D', '', ssn)

        if len(digits) != 9:
            # masked recipient TINs keep only the last four digits
            if re.match(r'^[x*]{3}-?[x*]{2}-?\d{4}$', ssn, re.IGNORECASE):
                return 0.6
            return 0.0

        first_three = int(digits[:3])
        middle_two = int(digits[3:5])
        last_four = int(digits[5:])

        if first_three == 0 or first_three == 666 or first_three >= 900:
            return 0.0

        if middle_two == 0 or last_four == 0:
            return 0.0

        if self._is_sequential(digits):
            return 0.2

        return 0.9

    def _validate_ein(self, ein: str) -> float:
        """Validate EIN format."""
        digits = re.sub(r'\D', '', ein)

        if len(digits) != 9:
            return 0.0

        if int(digits[:2]) < 10:
            return 0.3

        return 0.8

    def _validate_tin(self, tin: str) -> float:
        """A TIN is either an EIN (XX-XXXXXXX) or an SSN."""
        if re.match(r'^\d{2}-\d{7}$', tin):
            return self._validate_ein(tin)
        return self._validate_ssn(tin)

    def _validate_amount(self, amount: Decimal) -> float:
        """Validate the range and precision of an amount."""
        if amount < 0:
            return 0.3

        if amount > 10000000:
            return 0.2

        if amount.as_tuple().exponent < -2:
            return 0.4

        return 0.9

    def _validate_box12(self, entries) -> float:
        if not entries:
            return 0.0
        known = sum(1 for entry in entries if entry.is_known)
        return 0.3 + 0.6 * known / len(entries)

    def _validate_name(self, name: str) -> float:
        """Validate name format."""
        if len(name) < 2:
            return 0.1

        if re.match(r"^[A-Za-z0-9\s\.,'&-]+$", name):
            special_chars = len(re.findall(r'[^\w\s]', name))
            if special_chars > len(name) * 0.3:
                return 0.3
            return 0.8
        return 0.2

    def _validate_address(self, address: str) -> float:
        """Validate address format."""
        if len(address) < 10:
            return 0.2

        if re.search(r'\d+', address):
            return 0.7
        return 0.3

    def _validate_account_number(self, account: str) -> float:
        if re.match(r'^[A-Za-z0-9\-]{4,20}$', account):
            return 0.8
        return 0.3

    def _is_sequential(self, digits: str) -> bool:
        """Check for a fully ascending digit run such as 123456789."""
        return all(int(digits[i + 1]) == (int(digits[i]) + 1) % 10 for i in range(len(digits) - 1))

    def score_field_data(self, data: ExtractedFieldData) -> List[FieldScore]:
        """
        Score every field in a field bag.

        Args:
            data: Field bag produced by an extractor

        Returns:
            One FieldScore per field
        """
        default_confidence = TEXT_DEFAULT_CONFIDENCE if data.used_fallback else STRUCTURED_DEFAULT_CONFIDENCE
        scores = []

        for field_name, item in data.fields.items():
            provider_confidence = item.confidence if item.confidence is not None else default_confidence
            validation_score = self.validate_field(field_name, item)
            scores.append(FieldScore(
                field_name=field_name,
                value=item.value,
                kind=item.kind,
                confidence=self.calculate_composite_confidence(provider_confidence, validation_score),
                provider_confidence=provider_confidence,
                validation_score=validation_score,
            ))

        return scores

    def get_confidence_summary(self, scores: List[FieldScore]) -> Dict[str, Union[float, int]]:
        """
        Get summary statistics for confidence scores.

        Args:
            scores: Scored fields

        Returns:
            Dictionary with confidence statistics
        """
        if not scores:
            return {
                'total_results': 0,
                'average_confidence': 0.0,
                'high_confidence_count': 0,
                'medium_confidence_count': 0,
                'low_confidence_count': 0,
                'confidence_std': 0.0
            }

        confidences = [s.confidence for s in scores]

        high_confidence = sum(1 for c in confidences if c >= 0.8)
        medium_confidence = sum(1 for c in confidences if 0.5 <= c < 0.8)
        low_confidence = sum(1 for c in confidences if c < 0.5)

        return {
            'total_results': len(scores),
            'average_confidence': float(np.mean(confidences)),
            'high_confidence_count': high_confidence,
            'medium_confidence_count': medium_confidence,
            'low_confidence_count': low_confidence,
            'confidence_std': float(np.std(confidences))
        }

    def low_confidence_fields(self, scores: List[FieldScore], threshold: float = 0.5) -> List[str]:
        """Names of fields scoring below the threshold, for manual review."""
        return [s.field_name for s in scores if s.confidence < threshold]
