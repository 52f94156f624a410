"""Form 1099 (INT, DIV, MISC, NEC) to Form 1040 mapping."""

import logging
from decimal import Decimal
from typing import Optional, Union

from ..document_types import DocumentType
from ..records import (
    Form1099DivResult,
    Form1099IntResult,
    Form1099MiscResult,
    Form1099NecResult,
)
from ..tracing import Tracer, ensure_tracer
from .form_1040 import Form1040Data, add_amount, has_amount
from .identity import apply_identity

logger = logging.getLogger(__name__)

Form1099Record = Union[Form1099IntResult, Form1099DivResult, Form1099MiscResult, Form1099NecResult]

# DIV boxes taxed at special rates: (record field, ledger attribute)
DIV_SPECIAL_RATE_BOXES = (
    ("unrecaptured_section_1250_gain", "unrecaptured_1250"),
    ("section_1202_gain", "section_1202"),
    ("collectibles_gain", "collectibles"),
    ("section_897_ordinary_dividends", "section_897_ordinary_dividends"),
    ("section_897_capital_gain", "section_897_capital_gain"),
    ("cash_liquidation_distributions", "cash_liquidation"),
)

MISC_OTHER_INCOME_BOXES = (
    "other_income",
    "substitute_payments",
    "crop_insurance_proceeds",
    "nonqualified_deferred_compensation",
)
MISC_BUSINESS_INCOME_BOXES = ("fishing_boat_proceeds", "medical_health_payments")
MISC_INFORMATIONAL_BOXES = (
    "gross_proceeds_attorney",
    "fish_purchased_for_resale",
    "section_409a_deferrals",
)


def _begin(
    record: Form1099Record,
    document_type: DocumentType,
    existing: Optional[Form1040Data],
    tracer: Tracer,
) -> Form1040Data:
    aggregate = existing if existing is not None else Form1040Data()
    apply_identity(
        aggregate,
        document_type,
        record.recipient_name,
        record.recipient_tin,
        record.recipient_address,
        record.document_id,
        tracer,
    )
    add_amount(aggregate, "line_25b", record.federal_tax_withheld)
    return aggregate


def _finish(record: Form1099Record, document_type: DocumentType, aggregate: Form1040Data, tracer: Tracer) -> Form1040Data:
    tracer.emit(
        "document_mapped",
        document_type=document_type.value,
        document_id=record.document_id,
        payer=record.payer_name,
    )
    return aggregate


def _map_foreign_tax(aggregate: Form1040Data, paid: Optional[Decimal], country: Optional[str]) -> None:
    if not has_amount(paid) and not country:
        return
    credit = aggregate.ensure_foreign_tax_credit()
    add_amount(credit, "foreign_tax_paid", paid)
    if country and country not in credit.countries:
        credit.countries.append(country)


def _map_state(
    aggregate: Form1040Data,
    state: Optional[str] = None,
    payer_number: Optional[str] = None,
    tax_withheld: Optional[Decimal] = None,
    income: Optional[Decimal] = None,
) -> None:
    if state is None and payer_number is None and tax_withheld is None and income is None:
        return
    state_data = aggregate.ensure_state_data()
    if state:
        state_data.state = state
    if payer_number:
        state_data.state_payer_number = payer_number
    add_amount(state_data, "state_tax_withheld", tax_withheld)
    add_amount(state_data, "state_income", income)


def _add_if_present(target_factory, attribute: str, amount: Optional[Decimal]) -> None:
    """Add to a lazily created sub-object only when the box carries an amount."""
    if has_amount(amount):
        add_amount(target_factory(), attribute, amount)


def map_1099_div(
    record: Form1099DivResult,
    existing: Optional[Form1040Data] = None,
    tracer: Optional[Tracer] = None,
) -> Form1040Data:
    """
    Fold a 1099-DIV into a Form 1040 aggregate.

    Special-rate capital items are added to line 7 and also recorded in the
    special-rate ledger so rate-specific calculations can find them.
    """
    tracer = ensure_tracer(tracer, "1099_div_mapper")
    document_type = DocumentType.FORM_1099_DIV
    aggregate = _begin(record, document_type, existing, tracer)

    add_amount(aggregate, "line_3b", record.ordinary_dividends)
    add_amount(aggregate, "line_3a", record.qualified_dividends)
    add_amount(aggregate, "line_7", record.total_capital_gain)
    add_amount(aggregate, "line_2a", record.exempt_interest_dividends)

    for box, ledger_attribute in DIV_SPECIAL_RATE_BOXES:
        amount = getattr(record, box)
        if not has_amount(amount):
            continue
        aggregate.line_7 += amount
        add_amount(aggregate.ensure_special_rate_gains(), ledger_attribute, amount)
        tracer.emit("special_rate_gain", box=box, amount=str(amount))

    _add_if_present(aggregate.ensure_special_rate_gains, "private_activity_bond_interest", record.private_activity_bond_dividends)
    _map_foreign_tax(aggregate, record.foreign_tax_paid, record.foreign_country)

    _add_if_present(aggregate.ensure_schedule_a, "investment_expenses", record.investment_expenses)
    _add_if_present(aggregate.ensure_schedule_a, "nondividend_distributions", record.nondividend_distributions)
    _add_if_present(aggregate.ensure_schedule_a, "noncash_liquidation_distributions", record.noncash_liquidation_distributions)
    _add_if_present(aggregate.ensure_schedule_a, "section_199a_dividends", record.section_199a_dividends)
    if record.fatca_filing_requirement:
        aggregate.ensure_schedule_a().fatca_filing_required = True

    _map_state(aggregate, record.state, record.state_payer_number, record.state_tax_withheld)
    return _finish(record, document_type, aggregate, tracer)


def map_1099_int(
    record: Form1099IntResult,
    existing: Optional[Form1040Data] = None,
    tracer: Optional[Tracer] = None,
) -> Form1040Data:
    """Fold a 1099-INT into a Form 1040 aggregate."""
    tracer = ensure_tracer(tracer, "1099_int_mapper")
    document_type = DocumentType.FORM_1099_INT
    aggregate = _begin(record, document_type, existing, tracer)

    add_amount(aggregate, "line_2b", record.interest_income)
    add_amount(aggregate, "line_2b", record.us_savings_bond_interest)
    add_amount(aggregate, "line_2a", record.tax_exempt_interest)

    _add_if_present(aggregate.ensure_schedule_1, "early_withdrawal_penalty", record.early_withdrawal_penalty)
    _add_if_present(aggregate.ensure_schedule_a, "investment_expenses", record.investment_expenses)
    _add_if_present(aggregate.ensure_schedule_a, "market_discount", record.market_discount)
    _add_if_present(aggregate.ensure_schedule_a, "bond_premium", record.bond_premium)
    _add_if_present(aggregate.ensure_schedule_a, "treasury_bond_premium", record.treasury_bond_premium)
    _add_if_present(aggregate.ensure_schedule_a, "tax_exempt_bond_premium", record.tax_exempt_bond_premium)
    _add_if_present(aggregate.ensure_special_rate_gains, "private_activity_bond_interest", record.private_activity_bond_interest)
    _map_foreign_tax(aggregate, record.foreign_tax_paid, record.foreign_country)

    _map_state(aggregate, record.state, record.state_payer_number, record.state_tax_withheld)
    return _finish(record, document_type, aggregate, tracer)


def map_1099_misc(
    record: Form1099MiscResult,
    existing: Optional[Form1040Data] = None,
    tracer: Optional[Tracer] = None,
) -> Form1040Data:
    """Fold a 1099-MISC into a Form 1040 aggregate."""
    tracer = ensure_tracer(tracer, "1099_misc_mapper")
    document_type = DocumentType.FORM_1099_MISC
    aggregate = _begin(record, document_type, existing, tracer)

    _add_if_present(aggregate.ensure_schedule_1, "rental_royalty_income", record.rents)
    _add_if_present(aggregate.ensure_schedule_1, "rental_royalty_income", record.royalties)
    for box in MISC_OTHER_INCOME_BOXES:
        _add_if_present(aggregate.ensure_schedule_1, "other_income", getattr(record, box))
    for box in MISC_BUSINESS_INCOME_BOXES:
        _add_if_present(aggregate.ensure_schedule_1, "business_income", getattr(record, box))
    _add_if_present(aggregate.ensure_schedule_1, "excess_golden_parachute", record.excess_golden_parachute)
    if record.direct_sales_indicator:
        aggregate.ensure_schedule_1().direct_sales_over_5000 = True

    for box in MISC_INFORMATIONAL_BOXES:
        amount = getattr(record, box)
        if has_amount(amount):
            informational = aggregate.ensure_schedule_a().misc_informational
            informational[box] = informational.get(box, Decimal("0")) + amount
    if record.fatca_filing_requirement:
        aggregate.ensure_schedule_a().fatca_filing_required = True

    _map_state(
        aggregate,
        payer_number=record.state_payer_number,
        tax_withheld=record.state_tax_withheld,
        income=record.state_income,
    )
    return _finish(record, document_type, aggregate, tracer)


def map_1099_nec(
    record: Form1099NecResult,
    existing: Optional[Form1040Data] = None,
    tracer: Optional[Tracer] = None,
) -> Form1040Data:
    """Fold a 1099-NEC into a Form 1040 aggregate."""
    tracer = ensure_tracer(tracer, "1099_nec_mapper")
    document_type = DocumentType.FORM_1099_NEC
    aggregate = _begin(record, document_type, existing, tracer)

    _add_if_present(aggregate.ensure_schedule_1, "business_income", record.nonemployee_compensation)
    if record.direct_sales_indicator:
        aggregate.ensure_schedule_1().direct_sales_over_5000 = True

    _map_state(
        aggregate,
        payer_number=record.state_payer_number,
        tax_withheld=record.state_tax_withheld,
        income=record.state_income,
    )
    return _finish(record, document_type, aggregate, tracer)
