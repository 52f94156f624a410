"""
Typed per-form projections of the extracted field bag.

Every record field corresponds to one IRS box (or identity line). Field
metadata carries the box label and the FieldKind the value is read as, so
the projection is driven by the record definition itself. Missing boxes
stay None; nothing is defaulted here.
"""

from dataclasses import dataclass, field, fields
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar, Union

from .document_types import (
    Box12Entry,
    Box13Checkboxes,
    DocumentType,
    ExtractedFieldData,
    FieldKind,
)


def _box(kind: FieldKind, box: str = "", label: str = "") -> Any:
    return field(default=None, metadata={"kind": kind, "box": box, "label": label})


def _amount(box: str, label: str) -> Any:
    return _box(FieldKind.AMOUNT, box, label)


def _text(box: str = "", label: str = "") -> Any:
    return _box(FieldKind.TEXT, box, label)


def _flag(box: str, label: str) -> Any:
    return _box(FieldKind.FLAG, box, label)


R = TypeVar("R", bound="TaxRecord")


@dataclass(frozen=True)
class TaxRecord:
    """Base class for the per-form records."""

    document_type = None  # overridden per subclass

    @classmethod
    def from_field_data(cls: Type[R], data: ExtractedFieldData) -> R:
        values: Dict[str, Any] = {}
        for f in fields(cls):
            kind = f.metadata.get("kind")
            if kind is FieldKind.AMOUNT:
                values[f.name] = data.get_amount(f.name)
            elif kind is FieldKind.FLAG:
                values[f.name] = data.get_flag(f.name)
            elif kind is FieldKind.CODES:
                codes = data.get_codes(f.name)
                values[f.name] = tuple(codes) if codes is not None else None
            elif kind is FieldKind.CHECKBOXES:
                values[f.name] = data.get_checkboxes(f.name)
            else:
                values[f.name] = data.get_text(f.name)
        return cls(**values)

    @classmethod
    def box_fields(cls) -> List[Tuple[str, str, str]]:
        """(field name, box, label) for every boxed field, in form order."""
        return [
            (f.name, f.metadata["box"], f.metadata["label"])
            for f in fields(cls)
            if f.metadata.get("box")
        ]

    @classmethod
    def field_kinds(cls) -> Dict[str, FieldKind]:
        return {f.name: f.metadata["kind"] for f in fields(cls) if "kind" in f.metadata}


@dataclass(frozen=True)
class W2Result(TaxRecord):
    """Form W-2, Wage and Tax Statement."""

    document_type = DocumentType.W2

    document_id: Optional[str] = _text()
    employee_name: Optional[str] = _text("e", "Employee's name")
    employee_ssn: Optional[str] = _text("a", "Employee's social security number")
    employee_address: Optional[str] = _text("f", "Employee's address")
    employer_name: Optional[str] = _text("c", "Employer's name")
    employer_ein: Optional[str] = _text("b", "Employer identification number")
    employer_address: Optional[str] = _text("c", "Employer's address")
    wages: Optional[Decimal] = _amount("1", "Wages, tips, other compensation")
    federal_tax_withheld: Optional[Decimal] = _amount("2", "Federal income tax withheld")
    social_security_wages: Optional[Decimal] = _amount("3", "Social security wages")
    social_security_tax_withheld: Optional[Decimal] = _amount("4", "Social security tax withheld")
    medicare_wages: Optional[Decimal] = _amount("5", "Medicare wages and tips")
    medicare_tax_withheld: Optional[Decimal] = _amount("6", "Medicare tax withheld")
    social_security_tips: Optional[Decimal] = _amount("7", "Social security tips")
    allocated_tips: Optional[Decimal] = _amount("8", "Allocated tips")
    advance_eic: Optional[Decimal] = _amount("9", "Advance EIC payment")
    dependent_care_benefits: Optional[Decimal] = _amount("10", "Dependent care benefits")
    nonqualified_plans: Optional[Decimal] = _amount("11", "Nonqualified plans")
    box12_codes: Optional[Tuple[Box12Entry, ...]] = _box(FieldKind.CODES, "12", "Box 12 codes")
    box13_checkboxes: Optional[Box13Checkboxes] = _box(FieldKind.CHECKBOXES, "13", "Box 13 checkboxes")
    other_tax_info: Optional[str] = _text("14", "Other")
    state: Optional[str] = _text("15", "State")
    state_employer_id: Optional[str] = _text("15", "Employer's state ID number")
    state_wages: Optional[Decimal] = _amount("16", "State wages, tips, etc.")
    state_tax_withheld: Optional[Decimal] = _amount("17", "State income tax")
    local_wages: Optional[Decimal] = _amount("18", "Local wages, tips, etc.")
    local_tax_withheld: Optional[Decimal] = _amount("19", "Local income tax")
    locality_name: Optional[str] = _text("20", "Locality name")


@dataclass(frozen=True)
class _Form1099Identity(TaxRecord):
    document_id: Optional[str] = _text()
    payer_name: Optional[str] = _text("payer", "Payer's name")
    payer_tin: Optional[str] = _text("payer", "Payer's TIN")
    payer_address: Optional[str] = _text("payer", "Payer's address")
    recipient_name: Optional[str] = _text("recipient", "Recipient's name")
    recipient_tin: Optional[str] = _text("recipient", "Recipient's TIN")
    recipient_address: Optional[str] = _text("recipient", "Recipient's address")
    account_number: Optional[str] = _text("account", "Account number")


@dataclass(frozen=True)
class Form1099IntResult(_Form1099Identity):
    """Form 1099-INT, Interest Income."""

    document_type = DocumentType.FORM_1099_INT

    interest_income: Optional[Decimal] = _amount("1", "Interest income")
    early_withdrawal_penalty: Optional[Decimal] = _amount("2", "Early withdrawal penalty")
    us_savings_bond_interest: Optional[Decimal] = _amount("3", "Interest on U.S. Savings Bonds and Treasury obligations")
    federal_tax_withheld: Optional[Decimal] = _amount("4", "Federal income tax withheld")
    investment_expenses: Optional[Decimal] = _amount("5", "Investment expenses")
    foreign_tax_paid: Optional[Decimal] = _amount("6", "Foreign tax paid")
    foreign_country: Optional[str] = _text("7", "Foreign country or U.S. possession")
    tax_exempt_interest: Optional[Decimal] = _amount("8", "Tax-exempt interest")
    private_activity_bond_interest: Optional[Decimal] = _amount("9", "Specified private activity bond interest")
    market_discount: Optional[Decimal] = _amount("10", "Market discount")
    bond_premium: Optional[Decimal] = _amount("11", "Bond premium")
    treasury_bond_premium: Optional[Decimal] = _amount("12", "Bond premium on Treasury obligations")
    tax_exempt_bond_premium: Optional[Decimal] = _amount("13", "Bond premium on tax-exempt bond")
    state: Optional[str] = _text("15", "State")
    state_payer_number: Optional[str] = _text("16", "State identification no.")
    state_tax_withheld: Optional[Decimal] = _amount("17", "State tax withheld")


@dataclass(frozen=True)
class Form1099DivResult(_Form1099Identity):
    """Form 1099-DIV, Dividends and Distributions."""

    document_type = DocumentType.FORM_1099_DIV

    ordinary_dividends: Optional[Decimal] = _amount("1a", "Total ordinary dividends")
    qualified_dividends: Optional[Decimal] = _amount("1b", "Qualified dividends")
    total_capital_gain: Optional[Decimal] = _amount("2a", "Total capital gain distributions")
    unrecaptured_section_1250_gain: Optional[Decimal] = _amount("2b", "Unrecaptured Sec. 1250 gain")
    section_1202_gain: Optional[Decimal] = _amount("2c", "Section 1202 gain")
    collectibles_gain: Optional[Decimal] = _amount("2d", "Collectibles (28%) gain")
    section_897_ordinary_dividends: Optional[Decimal] = _amount("2e", "Section 897 ordinary dividends")
    section_897_capital_gain: Optional[Decimal] = _amount("2f", "Section 897 capital gain")
    nondividend_distributions: Optional[Decimal] = _amount("3", "Nondividend distributions")
    federal_tax_withheld: Optional[Decimal] = _amount("4", "Federal income tax withheld")
    section_199a_dividends: Optional[Decimal] = _amount("5", "Section 199A dividends")
    investment_expenses: Optional[Decimal] = _amount("6", "Investment expenses")
    foreign_tax_paid: Optional[Decimal] = _amount("7", "Foreign tax paid")
    foreign_country: Optional[str] = _text("8", "Foreign country or U.S. possession")
    cash_liquidation_distributions: Optional[Decimal] = _amount("9", "Cash liquidation distributions")
    noncash_liquidation_distributions: Optional[Decimal] = _amount("10", "Noncash liquidation distributions")
    fatca_filing_requirement: Optional[bool] = _flag("11", "FATCA filing requirement")
    exempt_interest_dividends: Optional[Decimal] = _amount("12", "Exempt-interest dividends")
    private_activity_bond_dividends: Optional[Decimal] = _amount("13", "Specified private activity bond interest dividends")
    state: Optional[str] = _text("14", "State")
    state_payer_number: Optional[str] = _text("15", "State identification no.")
    state_tax_withheld: Optional[Decimal] = _amount("16", "State tax withheld")


@dataclass(frozen=True)
class Form1099MiscResult(_Form1099Identity):
    """Form 1099-MISC, Miscellaneous Information."""

    document_type = DocumentType.FORM_1099_MISC

    rents: Optional[Decimal] = _amount("1", "Rents")
    royalties: Optional[Decimal] = _amount("2", "Royalties")
    other_income: Optional[Decimal] = _amount("3", "Other income")
    federal_tax_withheld: Optional[Decimal] = _amount("4", "Federal income tax withheld")
    fishing_boat_proceeds: Optional[Decimal] = _amount("5", "Fishing boat proceeds")
    medical_health_payments: Optional[Decimal] = _amount("6", "Medical and health care payments")
    direct_sales_indicator: Optional[bool] = _flag("7", "Direct sales of $5,000 or more")
    substitute_payments: Optional[Decimal] = _amount("8", "Substitute payments in lieu of dividends or interest")
    crop_insurance_proceeds: Optional[Decimal] = _amount("9", "Crop insurance proceeds")
    gross_proceeds_attorney: Optional[Decimal] = _amount("10", "Gross proceeds paid to an attorney")
    fish_purchased_for_resale: Optional[Decimal] = _amount("11", "Fish purchased for resale")
    section_409a_deferrals: Optional[Decimal] = _amount("12", "Section 409A deferrals")
    fatca_filing_requirement: Optional[bool] = _flag("13", "FATCA filing requirement")
    excess_golden_parachute: Optional[Decimal] = _amount("14", "Excess golden parachute payments")
    nonqualified_deferred_compensation: Optional[Decimal] = _amount("15", "Nonqualified deferred compensation")
    state_tax_withheld: Optional[Decimal] = _amount("16", "State tax withheld")
    state_payer_number: Optional[str] = _text("17", "State/Payer's state no.")
    state_income: Optional[Decimal] = _amount("18", "State income")


@dataclass(frozen=True)
class Form1099NecResult(_Form1099Identity):
    """Form 1099-NEC, Nonemployee Compensation."""

    document_type = DocumentType.FORM_1099_NEC

    nonemployee_compensation: Optional[Decimal] = _amount("1", "Nonemployee compensation")
    direct_sales_indicator: Optional[bool] = _flag("2", "Direct sales of $5,000 or more")
    federal_tax_withheld: Optional[Decimal] = _amount("4", "Federal income tax withheld")
    state_tax_withheld: Optional[Decimal] = _amount("5", "State tax withheld")
    state_payer_number: Optional[str] = _text("6", "State/Payer's state no.")
    state_income: Optional[Decimal] = _amount("7", "State income")


TaxDocumentRecord = Union[W2Result, Form1099IntResult, Form1099DivResult, Form1099MiscResult, Form1099NecResult]

RECORD_TYPES: Dict[DocumentType, Type[TaxRecord]] = {
    DocumentType.W2: W2Result,
    DocumentType.FORM_1099_INT: Form1099IntResult,
    DocumentType.FORM_1099_DIV: Form1099DivResult,
    DocumentType.FORM_1099_MISC: Form1099MiscResult,
    DocumentType.FORM_1099_NEC: Form1099NecResult,
}


def record_type_for(document_type: DocumentType) -> Type[TaxRecord]:
    return RECORD_TYPES[document_type]


def project_record(data: ExtractedFieldData) -> TaxDocumentRecord:
    """
    Build the typed record matching the bag's effective document type.

    Raises:
        ValueError: If the bag has no supported document type
    """
    document_type = data.effective_document_type
    if document_type is None:
        raise ValueError("Extracted data has no supported document type to project")
    return record_type_for(document_type).from_field_data(data)
