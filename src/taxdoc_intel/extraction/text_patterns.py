"""
Regular-expression patterns for reading box values out of recognized text.

Each amount box is looked up twice: by its box number ("Box 10: $5,000.00")
and by its printed label ("Dependent care benefits 5000.00"). The first
pattern that matches wins. Box-number patterns are generated from the record
definitions so they always agree with the field layout.
"""

import re
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Pattern

from ..document_types import Box12Entry, Box13Checkboxes, DocumentType, FieldKind
from ..records import record_type_for
from .parsers import parse_amount, parse_box12_codes

logger = logging.getLogger(__name__)

NUMBER = r"(\d[\d,]*(?:\.\d{1,2})?)"
# A following box number and label ("2 Federal income tax withheld") is not an amount.
NOT_BOX_NUMBER = r"(?!\d{1,2}[a-f]?[ \t]+[a-z])"
# Without a dollar sign an amount needs thousands separators or cents.
CURRENCY_SHAPED = r"(?=\d{1,3}(?:,\d{3})+|\d+\.\d)"
MARK = r"(?:x|✓|checked|yes)(?![a-z])"
NUMERIC_BOX = re.compile(r"^\d{1,2}[a-f]?$")

_FLAGS = re.IGNORECASE


def _compile(*patterns: str) -> List[Pattern]:
    return [re.compile(pattern, _FLAGS) for pattern in patterns]


def box_amount_pattern(box: str) -> str:
    return rf"\bbox[ \t]*{box}\b[ \t:]*\$?[ \t]*{NOT_BOX_NUMBER}{NUMBER}"


def label_amount_pattern(label: str) -> str:
    return rf"(?:{label})[ \t:]*(?:\$[ \t]*{NOT_BOX_NUMBER}|{CURRENCY_SHAPED}){NUMBER}"


LABEL_PATTERNS: Dict[DocumentType, Dict[str, str]] = {
    DocumentType.W2: {
        "wages": r"wages,?\s+tips,?\s+(?:and\s+)?other\s+compensation",
        "federal_tax_withheld": r"federal\s+income\s+tax\s+withheld",
        "social_security_wages": r"social\s+security\s+wages",
        "social_security_tax_withheld": r"social\s+security\s+tax\s+withheld",
        "medicare_wages": r"medicare\s+wages\s+and\s+tips",
        "medicare_tax_withheld": r"medicare\s+tax\s+withheld",
        "social_security_tips": r"social\s+security\s+tips",
        "allocated_tips": r"allocated\s+tips",
        "advance_eic": r"advance\s+eic(?:\s+payment)?",
        "dependent_care_benefits": r"dependent\s+care\s+benefits",
        "nonqualified_plans": r"nonqualified\s+plans",
        "state_wages": r"state\s+wages,?\s+tips,?\s+etc\.?|state\s+wages",
        "state_tax_withheld": r"state\s+income\s+tax",
        "local_wages": r"local\s+wages,?\s+tips,?\s+etc\.?|local\s+wages",
        "local_tax_withheld": r"local\s+income\s+tax",
    },
    DocumentType.FORM_1099_INT: {
        "interest_income": r"(?<!tax-exempt\s)(?<!exempt\s)interest\s+income",
        "early_withdrawal_penalty": r"early\s+withdrawal\s+penalty",
        "us_savings_bond_interest": r"interest\s+on\s+u\.?s\.?\s+savings\s+bonds(?:\s+and\s+treas(?:ury|\.)\s+obligations)?",
        "federal_tax_withheld": r"federal\s+income\s+tax\s+withheld",
        "investment_expenses": r"investment\s+expenses",
        "foreign_tax_paid": r"foreign\s+tax\s+paid",
        "tax_exempt_interest": r"tax[\s-]exempt\s+interest",
        "private_activity_bond_interest": r"specified\s+private\s+activity\s+bond\s+interest",
        "market_discount": r"market\s+discount",
        "bond_premium": r"(?<!on\s)bond\s+premium(?!\s+on)",
        "treasury_bond_premium": r"bond\s+premium\s+on\s+treasury\s+obligations",
        "tax_exempt_bond_premium": r"bond\s+premium\s+on\s+tax[\s-]exempt\s+bond",
        "state_tax_withheld": r"state\s+tax\s+withheld",
    },
    DocumentType.FORM_1099_DIV: {
        "ordinary_dividends": r"total\s+ordinary\s+dividends",
        "qualified_dividends": r"qualified\s+dividends",
        "total_capital_gain": r"total\s+capital\s+gain\s+distr(?:ibutions|\.)?",
        "unrecaptured_section_1250_gain": r"unrecap(?:tured)?\.?\s+sec(?:tion|\.)?\s*1250\s+gain",
        "section_1202_gain": r"section\s*1202\s+gain",
        "collectibles_gain": r"collectibles\s*\(28%\)\s+gain",
        "section_897_ordinary_dividends": r"section\s*897\s+ordinary\s+dividends",
        "section_897_capital_gain": r"section\s*897\s+capital\s+gain",
        "nondividend_distributions": r"nondividend\s+distributions",
        "federal_tax_withheld": r"federal\s+income\s+tax\s+withheld",
        "section_199a_dividends": r"section\s*199a\s+dividends",
        "investment_expenses": r"investment\s+expenses",
        "foreign_tax_paid": r"foreign\s+tax\s+paid",
        "cash_liquidation_distributions": r"(?<!non)cash\s+liquidation\s+distributions",
        "noncash_liquidation_distributions": r"noncash\s+liquidation\s+distributions",
        "exempt_interest_dividends": r"exempt[\s-]interest\s+dividends",
        "private_activity_bond_dividends": r"specified\s+private\s+activity\s+bond\s+interest\s+dividends",
        "state_tax_withheld": r"state\s+tax\s+withheld",
    },
    DocumentType.FORM_1099_MISC: {
        "rents": r"\brents",
        "royalties": r"\broyalties",
        "other_income": r"other\s+income",
        "federal_tax_withheld": r"federal\s+income\s+tax\s+withheld",
        "fishing_boat_proceeds": r"fishing\s+boat\s+proceeds",
        "medical_health_payments": r"medical\s+and\s+health\s+care\s+payments",
        "substitute_payments": r"substitute\s+payments\s+in\s+lieu\s+of\s+dividends\s+or\s+interest",
        "crop_insurance_proceeds": r"crop\s+insurance\s+proceeds",
        "gross_proceeds_attorney": r"gross\s+proceeds\s+paid\s+to\s+an\s+attorney",
        "fish_purchased_for_resale": r"fish\s+purchased\s+for\s+resale",
        "section_409a_deferrals": r"section\s*409a\s+deferrals",
        "excess_golden_parachute": r"excess\s+golden\s+parachute\s+payments",
        "nonqualified_deferred_compensation": r"nonqualified\s+deferred\s+compensation",
        "state_tax_withheld": r"state\s+tax\s+withheld",
        "state_income": r"state\s+income",
    },
    DocumentType.FORM_1099_NEC: {
        "nonemployee_compensation": r"nonemployee\s+compensation",
        "federal_tax_withheld": r"federal\s+income\s+tax\s+withheld",
        "state_tax_withheld": r"state\s+tax\s+withheld",
        "state_income": r"state\s+income",
    },
}

_NAME = r"\s*[:\-]\s*([^\n]+)"
_SSN = r"((?:\d|[x*]){3}-?(?:\d|[x*]){2}-?\d{4})"
_EIN = r"(\d{2}-?\d{7})"

_PAYER_RECIPIENT = {
    "payer_name": rf"payer(?:'?s)?\s+name{_NAME}",
    "payer_tin": rf"payer(?:'?s)?\s+(?:federal\s+)?(?:tin|identification\s+number)\s*[:\-]?\s*(?:{_EIN}|{_SSN})",
    "payer_address": rf"payer(?:'?s)?\s+(?:street\s+)?address{_NAME}",
    "recipient_name": rf"recipient(?:'?s)?\s+name{_NAME}",
    "recipient_tin": rf"recipient(?:'?s)?\s+(?:tin|identification\s+number)\s*[:\-]?\s*(?:{_SSN}|{_EIN})",
    "recipient_address": rf"recipient(?:'?s)?\s+(?:street\s+)?address{_NAME}",
    "account_number": r"account\s+number(?:\s*\(see\s+instructions\))?\s*[:\-]\s*(\S+)",
}

TEXT_PATTERNS: Dict[DocumentType, Dict[str, str]] = {
    DocumentType.W2: {
        "employee_name": rf"employee(?:'?s)?\s+(?:first\s+)?name{_NAME}",
        "employee_ssn": rf"employee(?:'?s)?\s+social\s+security\s+number\s*[:\-]?\s*{_SSN}",
        "employee_address": rf"employee(?:'?s)?\s+address{_NAME}",
        "employer_name": rf"employer(?:'?s)?\s+name{_NAME}",
        "employer_ein": rf"employer\s+identification\s+number(?:\s*\(ein\))?\s*[:\-]?\s*{_EIN}",
        "employer_address": rf"employer(?:'?s)?\s+address{_NAME}",
        "state": r"\bbox\s*15\b[:\s]*([A-Z]{2})\b",
        "state_employer_id": r"employer(?:'?s)?\s+state\s+id(?:\s+number)?\s*[:\-]?\s*([A-Z0-9\-]+)",
        "locality_name": r"(?:\bbox\s*20\b|locality\s+name)[:\s\-]*([A-Za-z][A-Za-z ]*)",
        "other_tax_info": r"\bbox\s*14\b[:\s]*([^\n]+)",
    },
    DocumentType.FORM_1099_INT: dict(
        _PAYER_RECIPIENT,
        foreign_country=r"foreign\s+country\s+or\s+u\.?s\.?\s+possession\s*[:\-]?\s*([A-Za-z][A-Za-z .]*)",
        state=r"\bbox\s*15\b[:\s]*([A-Z]{2})\b",
        state_payer_number=r"\bbox\s*16\b[:\s]*([A-Z0-9\-]+)",
    ),
    DocumentType.FORM_1099_DIV: dict(
        _PAYER_RECIPIENT,
        foreign_country=r"(?:\bbox\s*8\b|foreign\s+country\s+or\s+u\.?s\.?\s+possession)[:\s\-]*([A-Za-z][A-Za-z .]*)",
        state=r"\bbox\s*14\b[:\s]*([A-Z]{2})\b",
        state_payer_number=r"\bbox\s*15\b[:\s]*([A-Z0-9\-]+)",
    ),
    DocumentType.FORM_1099_MISC: dict(
        _PAYER_RECIPIENT,
        state_payer_number=r"\bbox\s*17\b[:\s]*([A-Z0-9\-]+)",
    ),
    DocumentType.FORM_1099_NEC: dict(
        _PAYER_RECIPIENT,
        state_payer_number=r"\bbox\s*6\b[:\s]*([A-Z0-9\-]+)",
    ),
}

FLAG_PATTERNS: Dict[DocumentType, Dict[str, List[str]]] = {
    DocumentType.W2: {},
    DocumentType.FORM_1099_INT: {},
    DocumentType.FORM_1099_DIV: {
        "fatca_filing_requirement": [rf"\bbox\s*11\b[:\s]*{MARK}", rf"fatca\s+filing\s+requirement[:\s]*{MARK}"],
    },
    DocumentType.FORM_1099_MISC: {
        "direct_sales_indicator": [rf"\bbox\s*7\b[:\s]*{MARK}", rf"direct\s+sales[^\n]*?[:\s]{MARK}"],
        "fatca_filing_requirement": [rf"\bbox\s*13\b[:\s]*{MARK}", rf"fatca\s+filing\s+requirement[:\s]*{MARK}"],
    },
    DocumentType.FORM_1099_NEC: {
        "direct_sales_indicator": [rf"\bbox\s*2\b[:\s]*{MARK}", rf"direct\s+sales[^\n]*?[:\s]{MARK}"],
    },
}

BOX12_LINE = re.compile(r"\bbox\s*12[a-d]?\b[:\s]*([^\n]+)", _FLAGS)

BOX13_PATTERNS = {
    "retirement_plan": _compile(
        rf"retirement\s+plan\s*[:\s]*{MARK}",
        rf"\bbox\s*13\b[^\n]*retirement[^\n]*{MARK}",
    ),
    "third_party_sick_pay": _compile(
        rf"third[\s-]party\s+sick\s+pay\s*[:\s]*{MARK}",
        rf"\bbox\s*13\b[^\n]*sick\s+pay[^\n]*{MARK}",
    ),
    "statutory_employee": _compile(
        rf"statutory\s+employee\s*[:\s]*{MARK}",
        rf"\bbox\s*13\b[^\n]*statutory[^\n]*{MARK}",
    ),
}


class FormPatterns:
    """Compiled text patterns for one document type."""

    def __init__(self, document_type: DocumentType):
        self.document_type = document_type
        record_type = record_type_for(document_type)
        kinds = record_type.field_kinds()
        labels = LABEL_PATTERNS[document_type]

        self.amounts: Dict[str, List[Pattern]] = {}
        for name, box, _ in record_type.box_fields():
            if kinds[name] is not FieldKind.AMOUNT:
                continue
            patterns = []
            if NUMERIC_BOX.match(box):
                patterns.append(box_amount_pattern(box))
            if name in labels:
                patterns.append(label_amount_pattern(labels[name]))
            self.amounts[name] = _compile(*patterns)

        self.texts: Dict[str, Pattern] = {
            name: re.compile(pattern, _FLAGS)
            for name, pattern in TEXT_PATTERNS[document_type].items()
        }
        self.flags: Dict[str, List[Pattern]] = {
            name: _compile(*patterns)
            for name, patterns in FLAG_PATTERNS[document_type].items()
        }

    def find_amount(self, name: str, text: str) -> Optional[Decimal]:
        for pattern in self.amounts.get(name, ()):
            match = pattern.search(text)
            if match:
                return parse_amount(match.group(1))
        return None

    def find_text(self, name: str, text: str) -> Optional[str]:
        pattern = self.texts.get(name)
        if pattern is None:
            return None
        match = pattern.search(text)
        if not match:
            return None
        value = next((group for group in match.groups() if group), "").strip()
        return value or None

    def find_flag(self, name: str, text: str) -> Optional[bool]:
        patterns = self.flags.get(name)
        if not patterns:
            return None
        return any(pattern.search(text) for pattern in patterns)


_FORM_PATTERNS: Dict[DocumentType, FormPatterns] = {}


def patterns_for(document_type: DocumentType) -> FormPatterns:
    if document_type not in _FORM_PATTERNS:
        _FORM_PATTERNS[document_type] = FormPatterns(document_type)
    return _FORM_PATTERNS[document_type]


def find_box12_codes(text: str) -> List[Box12Entry]:
    """Box 12 entries printed as 'Box 12a: D 5000.00' lines, in order."""
    entries: List[Box12Entry] = []
    for match in BOX12_LINE.finditer(text or ""):
        entries.extend(parse_box12_codes(match.group(1)))
    return entries


def find_box13_checkboxes(text: str) -> Optional[Box13Checkboxes]:
    """Checked Box 13 boxes, or None when no checkbox mark is found."""
    found = {
        name: any(pattern.search(text or "") for pattern in patterns)
        for name, patterns in BOX13_PATTERNS.items()
    }
    if not any(found.values()):
        return None
    return Box13Checkboxes(**found)
