"""
Tests for W-2 to Form 1040 mapping.
"""

import pytest
import sys
from decimal import Decimal
from pathlib import Path

# Add src to path
sys.path.append(str(Path(__file__).parent.parent / "src"))

from taxdoc_intel.document_types import Box12Entry, Box13Checkboxes
from taxdoc_intel.mapping.form_1040 import Form1040Data
from taxdoc_intel.mapping.w2_mapper import DEPENDENT_CARE_EXCLUSION_LIMIT, map_w2
from taxdoc_intel.records import W2Result
from taxdoc_intel.tracing import Tracer


def make_w2(**overrides):
    values = dict(
        document_id="CN-001",
        employee_name="Jane Q Public",
        employee_ssn="123456789",
        employee_address="100 Main St, Springfield, IL 62701",
        employer_name="Acme Widgets Inc",
        employer_ein="12-3456789",
        wages=Decimal("75000.00"),
        federal_tax_withheld=Decimal("9500.00"),
    )
    values.update(overrides)
    return W2Result(**values)


class TestMapW2:
    """Test cases for map_w2."""

    def test_basic_lines(self):
        """Test wages, withholding and identity."""
        aggregate = map_w2(make_w2())

        assert aggregate.line_1 == Decimal("75000.00")
        assert aggregate.line_25a == Decimal("9500.00")
        assert aggregate.line_25b == Decimal("0")
        assert aggregate.total_withholding == Decimal("9500.00")

        info = aggregate.personal_info
        assert info.first_name == "Jane"
        assert info.last_name == "Q Public"
        assert info.ssn == "123-45-6789"
        assert info.street == "100 Main St"
        assert info.city == "Springfield"
        assert info.state == "IL"
        assert info.zip_code == "62701"
        assert info.source_document == "Enhanced W2"
        assert info.source_document_id == "CN-001"

    def test_untouched_schedules_stay_empty(self):
        """Test that a plain W-2 creates no sub-schedules."""
        aggregate = map_w2(make_w2())

        assert aggregate.schedule_a is None
        assert aggregate.schedule_1 is None
        assert aggregate.state_data is None

    def test_dependent_care_over_limit(self):
        """Test that benefits over the exclusion limit are taxable wages."""
        tracer = Tracer()

        aggregate = map_w2(make_w2(dependent_care_benefits=Decimal("7000")), tracer=tracer)

        assert DEPENDENT_CARE_EXCLUSION_LIMIT == Decimal("5000")
        assert aggregate.schedule_a.dependent_care_excludable == Decimal("5000")
        assert aggregate.schedule_a.dependent_care_taxable == Decimal("2000")
        assert aggregate.line_1 == Decimal("77000.00")
        assert len(tracer.find("dependent_care_over_limit")) == 1

    def test_dependent_care_under_limit(self):
        aggregate = map_w2(make_w2(dependent_care_benefits=Decimal("3000")))

        assert aggregate.schedule_a.dependent_care_excludable == Decimal("3000")
        assert aggregate.schedule_a.dependent_care_taxable == Decimal("0")
        assert aggregate.line_1 == Decimal("75000.00")

    def test_box12_and_box13(self):
        """Test Box 12 dispatch and Box 13 flags."""
        record = make_w2(
            box12_codes=(Box12Entry.create("D", "5000"), Box12Entry.create("W", "1200")),
            box13_checkboxes=Box13Checkboxes(retirement_plan=True, statutory_employee=True),
        )

        aggregate = map_w2(record)

        assert aggregate.schedule_a.retirement_contributions == Decimal("5000")
        assert aggregate.schedule_1.hsa_contributions == Decimal("1200")
        assert aggregate.schedule_a.retirement_plan_participation is True
        assert aggregate.schedule_a.third_party_sick_pay is False
        assert aggregate.schedule_1.statutory_employee is True

    def test_tips_and_nonqualified_plans(self):
        record = make_w2(
            social_security_tips=Decimal("800"),
            allocated_tips=Decimal("150"),
            nonqualified_plans=Decimal("2000"),
        )

        aggregate = map_w2(record)

        assert aggregate.schedule_a.social_security_tips == Decimal("800")
        assert aggregate.schedule_a.allocated_tips == Decimal("150")
        assert aggregate.schedule_a.nonqualified_plans == Decimal("2000")

    def test_state_and_local(self):
        record = make_w2(
            state="IL",
            state_employer_id="IL-998877",
            state_wages=Decimal("75000"),
            state_tax_withheld=Decimal("3712.50"),
            locality_name="Springfield",
            local_tax_withheld=Decimal("100"),
        )

        aggregate = map_w2(record)

        state_data = aggregate.state_data
        assert state_data.state == "IL"
        assert state_data.state_employer_id == "IL-998877"
        assert state_data.state_wages == Decimal("75000")
        assert state_data.state_tax_withheld == Decimal("3712.50")
        assert state_data.locality_name == "Springfield"
        assert state_data.local_tax_withheld == Decimal("100")

    def test_mapping_accumulates(self):
        """Test that mapping the same W-2 twice doubles every amount."""
        record = make_w2(dependent_care_benefits=Decimal("7000"))

        aggregate = map_w2(record)
        same = map_w2(record, aggregate)

        assert same is aggregate
        assert aggregate.line_1 == Decimal("154000.00")
        assert aggregate.line_25a == Decimal("19000.00")
        assert aggregate.schedule_a.dependent_care_taxable == Decimal("4000")
        assert aggregate.personal_info.source_document == "Enhanced W2, Enhanced W2"

    def test_missing_amounts(self):
        """Test a W-2 with no amounts leaves the lines at zero."""
        aggregate = map_w2(W2Result(employee_name="Jane Public"))

        assert aggregate.line_1 == Decimal("0")
        assert aggregate.line_25a == Decimal("0")
        assert aggregate.personal_info.first_name == "Jane"
        assert aggregate.personal_info.ssn == ""

    def test_to_dict(self):
        """Test the JSON friendly aggregate."""
        result = map_w2(make_w2()).to_dict()

        assert result["line_1"] == "75000.00"
        assert result["total_withholding"] == "9500.00"
        assert result["personal_info"]["ssn"] == "123-45-6789"
        assert result["schedule_a"] is None
