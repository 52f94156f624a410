"""
W-2 Box 12 code dispatch.

Each IRS Box 12 code resolves to one treatment category; the category decides
where the amount lands on the return. Codes without a specific treatment,
and codes the IRS does not define, are kept verbatim in the overflow list.
"""

import logging
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional

from ..document_types import BOX12_CODES, Box12Entry
from ..tracing import Tracer, ensure_tracer
from .form_1040 import Form1040Data, add_amount

logger = logging.getLogger(__name__)

ADOPTION_BENEFIT_CAP = Decimal("15950")


class Box12Category(Enum):
    PRE_TAX_DEFERRAL = "pre_tax_deferral"
    ROTH_CONTRIBUTION = "roth_contribution"
    TAXABLE_ADD_BACK = "taxable_add_back"
    TAX_CREDIT_ADJUSTMENT = "tax_credit_adjustment"
    CAPPED_EXCLUSION = "capped_exclusion"
    DEDUCTION = "deduction"
    INFORMATIONAL = "informational"
    OTHER = "other"


CATEGORY_BY_CODE: Dict[str, Box12Category] = {
    "D": Box12Category.PRE_TAX_DEFERRAL,
    "E": Box12Category.PRE_TAX_DEFERRAL,
    "F": Box12Category.PRE_TAX_DEFERRAL,
    "G": Box12Category.PRE_TAX_DEFERRAL,
    "H": Box12Category.PRE_TAX_DEFERRAL,
    "S": Box12Category.PRE_TAX_DEFERRAL,
    "AA": Box12Category.ROTH_CONTRIBUTION,
    "BB": Box12Category.ROTH_CONTRIBUTION,
    "EE": Box12Category.ROTH_CONTRIBUTION,
    "C": Box12Category.TAXABLE_ADD_BACK,
    "A": Box12Category.TAX_CREDIT_ADJUSTMENT,
    "B": Box12Category.TAX_CREDIT_ADJUSTMENT,
    "T": Box12Category.CAPPED_EXCLUSION,
    "W": Box12Category.DEDUCTION,
    "DD": Box12Category.INFORMATIONAL,
}


def resolve(code: str) -> Box12Category:
    """Category for a Box 12 code; anything without a specific rule is OTHER."""
    code = code.strip().upper()
    if code not in BOX12_CODES:
        return Box12Category.OTHER
    return CATEGORY_BY_CODE.get(code, Box12Category.OTHER)


def apply_box12_entry(
    entry: Box12Entry,
    aggregate: Form1040Data,
    tracer: Optional[Tracer] = None,
) -> Box12Category:
    """
    Fold one Box 12 entry into the aggregate.

    Args:
        entry: Parsed Box 12 code and amount
        aggregate: Return being built, updated in place
        tracer: Optional tracer for the mapping events

    Returns:
        The category the entry was dispatched to
    """
    tracer = ensure_tracer(tracer, "box12")
    category = resolve(entry.code)
    amount = entry.amount

    if category is Box12Category.PRE_TAX_DEFERRAL:
        add_amount(aggregate.ensure_schedule_a(), "retirement_contributions", amount)
    elif category is Box12Category.ROTH_CONTRIBUTION:
        add_amount(aggregate.ensure_schedule_a(), "roth_contributions", amount)
    elif category is Box12Category.TAXABLE_ADD_BACK:
        add_amount(aggregate.ensure_schedule_a(), "group_term_life_insurance", amount)
    elif category is Box12Category.TAX_CREDIT_ADJUSTMENT:
        add_amount(aggregate.ensure_schedule_1(), "uncollected_tax_on_tips", amount)
    elif category is Box12Category.CAPPED_EXCLUSION:
        _apply_adoption_benefits(amount, aggregate, tracer)
    elif category is Box12Category.DEDUCTION:
        add_amount(aggregate.ensure_schedule_1(), "hsa_contributions", amount)
    elif category is Box12Category.INFORMATIONAL:
        add_amount(aggregate.ensure_schedule_a(), "employer_health_coverage", amount)
    else:
        aggregate.ensure_schedule_a().other_box12_codes.append(
            {"code": entry.code, "amount": amount, "description": entry.description}
        )
        if not entry.is_known:
            logger.warning(f"Unrecognized Box 12 code {entry.code!r} kept for review")

    tracer.emit("box12_applied", code=entry.code, amount=str(amount), category=category.value)
    return category


def _apply_adoption_benefits(amount: Decimal, aggregate: Form1040Data, tracer: Tracer) -> None:
    excludable = min(amount, ADOPTION_BENEFIT_CAP)
    taxable = amount - excludable

    schedule_a = aggregate.ensure_schedule_a()
    add_amount(schedule_a, "adoption_benefits_excludable", excludable)
    if taxable > 0:
        add_amount(schedule_a, "adoption_benefits_taxable", taxable)
        aggregate.line_1 += taxable
        tracer.emit("adoption_benefits_over_cap", taxable=str(taxable))
