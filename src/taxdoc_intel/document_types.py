"""
Document type definitions and the extracted field bag.

The field bag stores every extracted box as a tagged FieldValue so the
per-form projections in ``records`` can read typed values without casting.
"""

import re
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Union

UNKNOWN = "UNKNOWN"


class DocumentType(Enum):
    """Supported tax information returns."""

    W2 = "W2"
    FORM_1099_INT = "FORM_1099_INT"
    FORM_1099_DIV = "FORM_1099_DIV"
    FORM_1099_MISC = "FORM_1099_MISC"
    FORM_1099_NEC = "FORM_1099_NEC"

    @property
    def label(self) -> str:
        """Human readable form name, e.g. '1099-DIV'."""
        if self is DocumentType.W2:
            return "W2"
        return "1099-" + self.value.rsplit("_", 1)[-1]

    @property
    def is_1099(self) -> bool:
        return self is not DocumentType.W2

    @classmethod
    def parse(cls, value: Any) -> Optional["DocumentType"]:
        """
        Resolve a caller supplied type name.

        Accepts enum members, member names and common spellings such as
        'W-2', '1099-DIV' or 'form_1099_div'. Returns None for anything else.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None

        key = re.sub(r"[\s\-]+", "_", value.strip().upper())
        key = key.replace("FORM_", "")
        if key in ("W2", "W_2"):
            return cls.W2
        key = key.replace("1099INT", "1099_INT").replace("1099DIV", "1099_DIV")
        key = key.replace("1099MISC", "1099_MISC").replace("1099NEC", "1099_NEC")
        try:
            return cls("FORM_" + key)
        except ValueError:
            return None


def is_valid_document_type(candidate: Any) -> bool:
    """Membership test every proposed type correction must pass."""
    if isinstance(candidate, DocumentType):
        return True
    return isinstance(candidate, str) and candidate in DocumentType.__members__


# W-2 Box 12 codes and their IRS descriptions
BOX12_DESCRIPTIONS: Dict[str, str] = {
    "A": "Uncollected social security or RRTA tax on tips",
    "B": "Uncollected Medicare tax on tips",
    "C": "Taxable cost of group-term life insurance over $50,000",
    "D": "Elective deferrals under a section 401(k) plan",
    "E": "Elective deferrals under a section 403(b) plan",
    "F": "Elective deferrals under a section 408(k)(6) salary reduction SEP",
    "G": "Elective deferrals under a section 457(b) plan",
    "H": "Elective deferrals under a section 501(c)(18)(D) plan",
    "J": "Nontaxable sick pay",
    "K": "20% excise tax on excess golden parachute payments",
    "L": "Substantiated employee business expense reimbursements",
    "M": "Uncollected social security tax on group-term life insurance",
    "N": "Uncollected Medicare tax on group-term life insurance",
    "P": "Excludable moving expense reimbursements (Armed Forces)",
    "Q": "Nontaxable combat pay",
    "R": "Employer contributions to an Archer MSA",
    "S": "Employee salary reduction contributions under a section 408(p) SIMPLE plan",
    "T": "Adoption benefits",
    "V": "Income from nonstatutory stock options",
    "W": "Employer contributions to employee HSA",
    "Y": "Deferrals under a section 409A plan",
    "Z": "Income under a section 409A plan",
    "AA": "Designated Roth contributions under a 401(k) plan",
    "BB": "Designated Roth contributions under a 403(b) plan",
    "DD": "Cost of employer-sponsored health coverage",
    "EE": "Designated Roth contributions under a governmental 457(b) plan",
    "FF": "Qualified small employer health reimbursement arrangement",
    "GG": "Income from qualified equity grants under section 83(i)",
    "HH": "Aggregate deferrals for section 83(i) elections",
    "II": "Medicaid waiver payments excluded from gross income",
}

BOX12_CODES = frozenset(BOX12_DESCRIPTIONS)


def box12_description(code: str) -> str:
    return BOX12_DESCRIPTIONS.get(code, "Unknown code")


@dataclass(frozen=True)
class Box12Entry:
    """One Box 12 code/amount pair, in the order it appears on the form."""

    code: str
    amount: Decimal
    description: str = ""

    @classmethod
    def create(cls, code: str, amount: Union[Decimal, int, float, str]) -> "Box12Entry":
        code = code.strip().upper()
        return cls(code=code, amount=Decimal(str(amount)), description=box12_description(code))

    @property
    def is_known(self) -> bool:
        return self.code in BOX12_CODES


@dataclass(frozen=True)
class Box13Checkboxes:
    """W-2 Box 13 checkbox group."""

    retirement_plan: Optional[bool] = None
    third_party_sick_pay: Optional[bool] = None
    statutory_employee: Optional[bool] = None

    def any_checked(self) -> bool:
        return bool(self.retirement_plan or self.third_party_sick_pay or self.statutory_employee)


class FieldKind(Enum):
    """Semantic kind of an extracted field."""

    TEXT = "text"
    AMOUNT = "amount"
    FLAG = "flag"
    CODES = "codes"
    CHECKBOXES = "checkboxes"


@dataclass(frozen=True)
class FieldValue:
    """A tagged extracted value with optional provider confidence."""

    kind: FieldKind
    value: Any
    confidence: Optional[float] = None

    @classmethod
    def text(cls, value: str, confidence: Optional[float] = None) -> "FieldValue":
        return cls(FieldKind.TEXT, str(value).strip(), confidence)

    @classmethod
    def amount(cls, value: Decimal, confidence: Optional[float] = None) -> "FieldValue":
        return cls(FieldKind.AMOUNT, Decimal(value), confidence)

    @classmethod
    def flag(cls, value: bool, confidence: Optional[float] = None) -> "FieldValue":
        return cls(FieldKind.FLAG, bool(value), confidence)

    @classmethod
    def codes(cls, entries: List[Box12Entry], confidence: Optional[float] = None) -> "FieldValue":
        return cls(FieldKind.CODES, tuple(entries), confidence)

    @classmethod
    def checkboxes(cls, boxes: Box13Checkboxes, confidence: Optional[float] = None) -> "FieldValue":
        return cls(FieldKind.CHECKBOXES, boxes, confidence)


@dataclass
class ExtractedFieldData:
    """
    Field bag produced by one extraction attempt.

    ``full_text`` is always present (possibly empty). ``corrected_document_type``
    is only ever set to a DocumentType member.
    """

    fields: Dict[str, FieldValue] = field(default_factory=dict)
    full_text: str = ""
    document_type: Optional[DocumentType] = None
    corrected_document_type: Optional[DocumentType] = None
    model_id: Optional[str] = None
    used_fallback: bool = False
    key_value_pairs: List[Dict[str, str]] = field(default_factory=list)

    @property
    def effective_document_type(self) -> Optional[DocumentType]:
        return self.corrected_document_type or self.document_type

    def set(self, name: str, value: FieldValue) -> None:
        self.fields[name] = value

    def has(self, name: str) -> bool:
        return name in self.fields

    def _get(self, name: str, kind: FieldKind) -> Any:
        item = self.fields.get(name)
        if item is None or item.kind is not kind:
            return None
        return item.value

    def get_text(self, name: str) -> Optional[str]:
        return self._get(name, FieldKind.TEXT)

    def get_amount(self, name: str) -> Optional[Decimal]:
        return self._get(name, FieldKind.AMOUNT)

    def get_flag(self, name: str) -> Optional[bool]:
        return self._get(name, FieldKind.FLAG)

    def get_codes(self, name: str) -> Optional[List[Box12Entry]]:
        codes = self._get(name, FieldKind.CODES)
        return list(codes) if codes is not None else None

    def get_checkboxes(self, name: str) -> Optional[Box13Checkboxes]:
        return self._get(name, FieldKind.CHECKBOXES)

    def to_dict(self) -> Dict[str, Any]:
        """JSON friendly representation."""
        def plain(item: FieldValue) -> Any:
            if item.kind is FieldKind.AMOUNT:
                return str(item.value)
            if item.kind is FieldKind.CODES:
                return [
                    {"code": e.code, "amount": str(e.amount), "description": e.description}
                    for e in item.value
                ]
            if item.kind is FieldKind.CHECKBOXES:
                return {
                    "retirement_plan": item.value.retirement_plan,
                    "third_party_sick_pay": item.value.third_party_sick_pay,
                    "statutory_employee": item.value.statutory_employee,
                }
            return item.value

        return {
            "document_type": self.document_type.value if self.document_type else None,
            "corrected_document_type": (
                self.corrected_document_type.value if self.corrected_document_type else None
            ),
            "model_id": self.model_id,
            "used_fallback": self.used_fallback,
            "fields": {name: plain(item) for name, item in self.fields.items()},
            "full_text": self.full_text,
        }
