"""Mapper dispatch and the per-document mapping summary."""

import logging
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from ..document_types import Box12Entry, Box13Checkboxes, DocumentType
from ..records import TaxDocumentRecord
from ..tracing import Tracer
from .form_1040 import Form1040Data
from .form_1099_mappers import map_1099_div, map_1099_int, map_1099_misc, map_1099_nec
from .w2_mapper import map_w2

logger = logging.getLogger(__name__)

MAPPERS: Dict[DocumentType, Callable[..., Form1040Data]] = {
    DocumentType.W2: map_w2,
    DocumentType.FORM_1099_INT: map_1099_int,
    DocumentType.FORM_1099_DIV: map_1099_div,
    DocumentType.FORM_1099_MISC: map_1099_misc,
    DocumentType.FORM_1099_NEC: map_1099_nec,
}

INFORMATIONAL = "Informational"

DESTINATIONS: Dict[DocumentType, Dict[str, str]] = {
    DocumentType.W2: {
        "employee_name": "Personal information",
        "employee_ssn": "Personal information",
        "employee_address": "Personal information",
        "wages": "Form 1040 line 1",
        "federal_tax_withheld": "Form 1040 line 25a",
        "social_security_tips": "Schedule A tips",
        "allocated_tips": "Schedule A tips",
        "dependent_care_benefits": "Schedule A dependent care (excess to line 1)",
        "nonqualified_plans": "Schedule A nonqualified plans",
        "box12_codes": "Box 12 dispatch",
        "box13_checkboxes": "Schedule A / Schedule 1 flags",
        "state": "State data",
        "state_employer_id": "State data",
        "state_wages": "State data",
        "state_tax_withheld": "State data",
        "local_wages": "State data",
        "local_tax_withheld": "State data",
        "locality_name": "State data",
    },
    DocumentType.FORM_1099_INT: {
        "interest_income": "Form 1040 line 2b",
        "us_savings_bond_interest": "Form 1040 line 2b",
        "tax_exempt_interest": "Form 1040 line 2a",
        "early_withdrawal_penalty": "Schedule 1 early withdrawal penalty",
        "federal_tax_withheld": "Form 1040 line 25b",
        "investment_expenses": "Schedule A investment expenses",
        "foreign_tax_paid": "Foreign tax credit",
        "foreign_country": "Foreign tax credit",
        "private_activity_bond_interest": "Special-rate ledger (AMT)",
        "market_discount": "Schedule A market discount",
        "bond_premium": "Schedule A bond premium",
        "treasury_bond_premium": "Schedule A bond premium",
        "tax_exempt_bond_premium": "Schedule A bond premium",
        "state": "State data",
        "state_payer_number": "State data",
        "state_tax_withheld": "State data",
    },
    DocumentType.FORM_1099_DIV: {
        "ordinary_dividends": "Form 1040 line 3b",
        "qualified_dividends": "Form 1040 line 3a",
        "total_capital_gain": "Form 1040 line 7",
        "unrecaptured_section_1250_gain": "Form 1040 line 7 + special-rate ledger (25%)",
        "section_1202_gain": "Form 1040 line 7 + special-rate ledger (exclusion)",
        "collectibles_gain": "Form 1040 line 7 + special-rate ledger (28%)",
        "section_897_ordinary_dividends": "Form 1040 line 7 + special-rate ledger (FIRPTA)",
        "section_897_capital_gain": "Form 1040 line 7 + special-rate ledger (FIRPTA)",
        "nondividend_distributions": "Schedule A nondividend distributions",
        "federal_tax_withheld": "Form 1040 line 25b",
        "section_199a_dividends": "Schedule A section 199A dividends",
        "investment_expenses": "Schedule A investment expenses",
        "foreign_tax_paid": "Foreign tax credit",
        "foreign_country": "Foreign tax credit",
        "cash_liquidation_distributions": "Form 1040 line 7 + special-rate ledger",
        "noncash_liquidation_distributions": "Schedule A noncash liquidation",
        "fatca_filing_requirement": "Schedule A FATCA flag",
        "exempt_interest_dividends": "Form 1040 line 2a",
        "private_activity_bond_dividends": "Special-rate ledger (AMT)",
        "state": "State data",
        "state_payer_number": "State data",
        "state_tax_withheld": "State data",
    },
    DocumentType.FORM_1099_MISC: {
        "rents": "Schedule 1 rental and royalty income",
        "royalties": "Schedule 1 rental and royalty income",
        "other_income": "Schedule 1 other income",
        "federal_tax_withheld": "Form 1040 line 25b",
        "fishing_boat_proceeds": "Schedule 1 business income",
        "medical_health_payments": "Schedule 1 business income",
        "direct_sales_indicator": "Schedule 1 direct sales flag",
        "substitute_payments": "Schedule 1 other income",
        "crop_insurance_proceeds": "Schedule 1 other income",
        "fatca_filing_requirement": "Schedule A FATCA flag",
        "excess_golden_parachute": "Schedule 1 excess golden parachute",
        "nonqualified_deferred_compensation": "Schedule 1 other income",
        "state_tax_withheld": "State data",
        "state_payer_number": "State data",
        "state_income": "State data",
    },
    DocumentType.FORM_1099_NEC: {
        "nonemployee_compensation": "Schedule 1 business income",
        "direct_sales_indicator": "Schedule 1 direct sales flag",
        "federal_tax_withheld": "Form 1040 line 25b",
        "state_tax_withheld": "State data",
        "state_payer_number": "State data",
        "state_income": "State data",
    },
}


def map_record(
    record: TaxDocumentRecord,
    existing: Optional[Form1040Data] = None,
    tracer: Optional[Tracer] = None,
) -> Form1040Data:
    """
    Fold any typed record into the aggregate using its form's mapper.

    Raises:
        ValueError: If the record's type has no mapper
    """
    mapper = MAPPERS.get(getattr(record, "document_type", None))
    if mapper is None:
        raise ValueError(f"No mapper for record type {type(record).__name__}")
    return mapper(record, existing, tracer)


def create_mapping_summary(record: TaxDocumentRecord) -> List[Dict[str, Any]]:
    """
    Describe where each populated box of a record lands on the return.

    Returns:
        One row per populated box with box, label, value and destination
    """
    destinations = DESTINATIONS.get(record.document_type, {})
    rows = []
    for name, box, label in record.box_fields():
        value = getattr(record, name)
        if value is None:
            continue
        rows.append({
            "box": box,
            "field": name,
            "label": label,
            "value": _display(value),
            "destination": destinations.get(name, INFORMATIONAL),
        })
    return rows


def _display(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Box13Checkboxes):
        checked = [
            name for name in ("retirement_plan", "third_party_sick_pay", "statutory_employee")
            if getattr(value, name)
        ]
        return ", ".join(checked)
    if isinstance(value, tuple) and all(isinstance(item, Box12Entry) for item in value):
        return ", ".join(f"{entry.code} {entry.amount}" for entry in value)
    return value
