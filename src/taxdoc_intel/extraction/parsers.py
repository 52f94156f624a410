"""Tolerant value coercion for extracted box values."""

import re
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from ..document_types import Box12Entry

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

TRUE_STRINGS = {"true", "1", "yes", "x", "✓", "checked", "selected"}

# "D 5000.00 W 2500.00", "D$5000 DD$1,200.50"
BOX12_PAIR_PATTERN = re.compile(r"(?<![A-Za-z])([A-Z]{1,2})\s*\$?\s*(\d[\d,]*(?:\.\d{1,2})?)")


def parse_amount(value: Any) -> Decimal:
    """
    Coerce a box value to a Decimal amount.

    Currency symbols, thousands separators and whitespace are stripped and
    accounting-style negatives '(1,234.00)' are honoured. Anything that
    cannot be parsed becomes 0; this function never raises.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, (int, float)):
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            return ZERO
        return amount if amount.is_finite() else ZERO
    if not isinstance(value, str):
        return ZERO

    cleaned = re.sub(r"[$,\s]", "", value)
    negative = cleaned.startswith("(") and cleaned.endswith(")")
    if negative:
        cleaned = cleaned[1:-1]
    if not cleaned:
        return ZERO
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        logger.debug(f"Unparseable amount {value!r}, defaulting to 0")
        return ZERO
    if not amount.is_finite():
        return ZERO
    return -amount if negative else amount


def parse_boolean(value: Any) -> bool:
    """'true', '1', 'yes' (any case) and checkbox marks are True; all else False."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return False


def parse_box12_codes(raw: Optional[str]) -> List[Box12Entry]:
    """
    Parse Box 12 code/amount pairs from free text.

    Codes outside the IRS list are kept so that nothing printed on the form
    is lost; their description reads 'Unknown code'.
    """
    if not raw:
        return []

    entries = []
    for match in BOX12_PAIR_PATTERN.finditer(raw):
        amount = parse_amount(match.group(2))
        entries.append(Box12Entry.create(match.group(1), amount))
    return entries


def normalize_label(label: str) -> str:
    """Lower-case a key/value label and collapse punctuation for comparison."""
    return re.sub(r"[^a-z0-9]+", " ", label.lower()).strip()
