"""
Consolidated Form 1040 aggregate.

Every numeric line accumulates: mappers add to the current value and never
overwrite, so any number of documents can be folded into one aggregate.
Sub-schedules stay None until the first mapper writes to them.
"""

from dataclasses import dataclass, field, fields, is_dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

ZERO = Decimal("0")


def _money() -> Any:
    return field(default=ZERO)


@dataclass
class PersonalInfo:
    """Taxpayer identity and the trail of documents that supplied it."""

    first_name: str = ""
    last_name: str = ""
    ssn: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    source_document: str = ""
    source_document_id: Optional[str] = None
    source_rank: int = 0

    def append_source(self, label: str) -> None:
        if self.source_document:
            self.source_document = f"{self.source_document}, {label}"
        else:
            self.source_document = label


@dataclass
class ScheduleAData:
    """Itemized and informational amounts carried alongside the return."""

    dependent_care_excludable: Decimal = _money()
    dependent_care_taxable: Decimal = _money()
    retirement_plan_participation: bool = False
    third_party_sick_pay: bool = False
    social_security_tips: Decimal = _money()
    allocated_tips: Decimal = _money()
    nonqualified_plans: Decimal = _money()
    retirement_contributions: Decimal = _money()
    roth_contributions: Decimal = _money()
    group_term_life_insurance: Decimal = _money()
    adoption_benefits_excludable: Decimal = _money()
    adoption_benefits_taxable: Decimal = _money()
    employer_health_coverage: Decimal = _money()
    other_box12_codes: List[Dict[str, Any]] = field(default_factory=list)
    investment_expenses: Decimal = _money()
    market_discount: Decimal = _money()
    bond_premium: Decimal = _money()
    treasury_bond_premium: Decimal = _money()
    tax_exempt_bond_premium: Decimal = _money()
    nondividend_distributions: Decimal = _money()
    noncash_liquidation_distributions: Decimal = _money()
    section_199a_dividends: Decimal = _money()
    fatca_filing_required: bool = False
    misc_informational: Dict[str, Decimal] = field(default_factory=dict)


@dataclass
class Schedule1Data:
    """Additional income and adjustments."""

    statutory_employee: bool = False
    uncollected_tax_on_tips: Decimal = _money()
    hsa_contributions: Decimal = _money()
    early_withdrawal_penalty: Decimal = _money()
    rental_royalty_income: Decimal = _money()
    other_income: Decimal = _money()
    business_income: Decimal = _money()
    direct_sales_over_5000: bool = False
    excess_golden_parachute: Decimal = _money()


@dataclass
class StateData:
    """State and local figures; amounts add up, identifiers keep the last value."""

    state: str = ""
    state_employer_id: str = ""
    state_payer_number: str = ""
    state_wages: Decimal = _money()
    state_income: Decimal = _money()
    state_tax_withheld: Decimal = _money()
    local_wages: Decimal = _money()
    local_tax_withheld: Decimal = _money()
    locality_name: str = ""


@dataclass
class ForeignTaxCredit:
    foreign_tax_paid: Decimal = _money()
    countries: List[str] = field(default_factory=list)


@dataclass
class SpecialRateGains:
    """Side ledger of gains taxed at rates other than the ordinary schedule."""

    unrecaptured_1250: Decimal = _money()  # 25%
    section_1202: Decimal = _money()
    collectibles: Decimal = _money()  # 28%
    section_897_ordinary_dividends: Decimal = _money()
    section_897_capital_gain: Decimal = _money()
    cash_liquidation: Decimal = _money()
    private_activity_bond_interest: Decimal = _money()  # AMT preference


@dataclass
class Form1040Data:
    """Consolidated return built from any number of mapped documents."""

    line_1: Decimal = _money()  # wages
    line_2a: Decimal = _money()  # tax-exempt interest
    line_2b: Decimal = _money()  # taxable interest
    line_3a: Decimal = _money()  # qualified dividends
    line_3b: Decimal = _money()  # ordinary dividends
    line_7: Decimal = _money()  # capital gain or loss
    line_25a: Decimal = _money()  # withholding from W-2s
    line_25b: Decimal = _money()  # withholding from 1099s

    personal_info: Optional[PersonalInfo] = None
    schedule_a: Optional[ScheduleAData] = None
    schedule_1: Optional[Schedule1Data] = None
    state_data: Optional[StateData] = None
    foreign_tax_credit: Optional[ForeignTaxCredit] = None
    special_rate_gains: Optional[SpecialRateGains] = None

    @property
    def total_withholding(self) -> Decimal:
        return self.line_25a + self.line_25b

    def ensure_personal_info(self) -> PersonalInfo:
        if self.personal_info is None:
            self.personal_info = PersonalInfo()
        return self.personal_info

    def ensure_schedule_a(self) -> ScheduleAData:
        if self.schedule_a is None:
            self.schedule_a = ScheduleAData()
        return self.schedule_a

    def ensure_schedule_1(self) -> Schedule1Data:
        if self.schedule_1 is None:
            self.schedule_1 = Schedule1Data()
        return self.schedule_1

    def ensure_state_data(self) -> StateData:
        if self.state_data is None:
            self.state_data = StateData()
        return self.state_data

    def ensure_foreign_tax_credit(self) -> ForeignTaxCredit:
        if self.foreign_tax_credit is None:
            self.foreign_tax_credit = ForeignTaxCredit()
        return self.foreign_tax_credit

    def ensure_special_rate_gains(self) -> SpecialRateGains:
        if self.special_rate_gains is None:
            self.special_rate_gains = SpecialRateGains()
        return self.special_rate_gains

    def to_dict(self) -> Dict[str, Any]:
        """JSON friendly representation with amounts rendered as strings."""
        result = _plain(self)
        result["total_withholding"] = str(self.total_withholding)
        return result


def has_amount(amount: Optional[Decimal]) -> bool:
    """True when a box carries a non-zero amount."""
    return amount is not None and amount != ZERO


def add_amount(target: Any, attribute: str, amount: Optional[Decimal]) -> None:
    """Accumulate ``amount`` onto ``target.attribute``; None is a no-op."""
    if amount is None:
        return
    setattr(target, attribute, getattr(target, attribute) + amount)


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if is_dataclass(value):
        return {f.name: _plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value
