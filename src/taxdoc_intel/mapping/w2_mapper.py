"""Form W-2 to Form 1040 mapping."""

import logging
from decimal import Decimal
from typing import Optional

from ..document_types import DocumentType
from ..records import W2Result
from ..tracing import Tracer, ensure_tracer
from .box12_resolver import apply_box12_entry
from .form_1040 import Form1040Data, add_amount, has_amount
from .identity import apply_identity

logger = logging.getLogger(__name__)

DEPENDENT_CARE_EXCLUSION_LIMIT = Decimal("5000")


def map_w2(
    record: W2Result,
    existing: Optional[Form1040Data] = None,
    tracer: Optional[Tracer] = None,
) -> Form1040Data:
    """
    Fold a W-2 into a Form 1040 aggregate.

    Args:
        record: Typed W-2 record
        existing: Aggregate to update in place; a new one is created if None
        tracer: Optional tracer for mapping events

    Returns:
        The updated aggregate
    """
    tracer = ensure_tracer(tracer, "w2_mapper")
    aggregate = existing if existing is not None else Form1040Data()

    apply_identity(
        aggregate,
        DocumentType.W2,
        record.employee_name,
        record.employee_ssn,
        record.employee_address,
        record.document_id,
        tracer,
    )

    add_amount(aggregate, "line_1", record.wages)
    add_amount(aggregate, "line_25a", record.federal_tax_withheld)

    _map_dependent_care(record, aggregate, tracer)

    for entry in record.box12_codes or ():
        apply_box12_entry(entry, aggregate, tracer)

    _map_box13(record, aggregate)

    if has_amount(record.social_security_tips):
        add_amount(aggregate.ensure_schedule_a(), "social_security_tips", record.social_security_tips)
    if has_amount(record.allocated_tips):
        add_amount(aggregate.ensure_schedule_a(), "allocated_tips", record.allocated_tips)
    if has_amount(record.nonqualified_plans):
        add_amount(aggregate.ensure_schedule_a(), "nonqualified_plans", record.nonqualified_plans)

    _map_state_and_local(record, aggregate)

    tracer.emit(
        "document_mapped",
        document_type=DocumentType.W2.value,
        document_id=record.document_id,
        line_1=str(aggregate.line_1),
    )
    return aggregate


def _map_dependent_care(record: W2Result, aggregate: Form1040Data, tracer: Tracer) -> None:
    benefits = record.dependent_care_benefits
    if not has_amount(benefits):
        return

    excludable = min(benefits, DEPENDENT_CARE_EXCLUSION_LIMIT)
    taxable = benefits - excludable

    schedule_a = aggregate.ensure_schedule_a()
    add_amount(schedule_a, "dependent_care_excludable", excludable)
    add_amount(schedule_a, "dependent_care_taxable", taxable)
    if taxable > 0:
        aggregate.line_1 += taxable
        logger.info(f"Dependent care benefits over limit: {taxable} added to wages")
        tracer.emit("dependent_care_over_limit", taxable=str(taxable))


def _map_box13(record: W2Result, aggregate: Form1040Data) -> None:
    boxes = record.box13_checkboxes
    if boxes is None or not boxes.any_checked():
        return

    if boxes.retirement_plan:
        aggregate.ensure_schedule_a().retirement_plan_participation = True
    if boxes.third_party_sick_pay:
        aggregate.ensure_schedule_a().third_party_sick_pay = True
    if boxes.statutory_employee:
        aggregate.ensure_schedule_1().statutory_employee = True


def _map_state_and_local(record: W2Result, aggregate: Form1040Data) -> None:
    present = (
        record.state,
        record.state_employer_id,
        record.state_wages,
        record.state_tax_withheld,
        record.local_wages,
        record.local_tax_withheld,
        record.locality_name,
    )
    if all(value is None for value in present):
        return

    state_data = aggregate.ensure_state_data()
    if record.state:
        state_data.state = record.state
    if record.state_employer_id:
        state_data.state_employer_id = record.state_employer_id
    if record.locality_name:
        state_data.locality_name = record.locality_name
    add_amount(state_data, "state_wages", record.state_wages)
    add_amount(state_data, "state_tax_withheld", record.state_tax_withheld)
    add_amount(state_data, "local_wages", record.local_wages)
    add_amount(state_data, "local_tax_withheld", record.local_tax_withheld)
