"""Form 1040 aggregate and the per-form mappers."""

from .box12_resolver import Box12Category, apply_box12_entry, resolve
from .form_1040 import (
    ForeignTaxCredit,
    Form1040Data,
    PersonalInfo,
    Schedule1Data,
    ScheduleAData,
    SpecialRateGains,
    StateData,
)
from .form_1099_mappers import map_1099_div, map_1099_int, map_1099_misc, map_1099_nec
from .form_mapper import create_mapping_summary, map_record
from .identity import format_ssn, parse_address, split_name
from .w2_mapper import map_w2

__all__ = [
    "Box12Category",
    "apply_box12_entry",
    "resolve",
    "ForeignTaxCredit",
    "Form1040Data",
    "PersonalInfo",
    "Schedule1Data",
    "ScheduleAData",
    "SpecialRateGains",
    "StateData",
    "map_1099_div",
    "map_1099_int",
    "map_1099_misc",
    "map_1099_nec",
    "map_w2",
    "map_record",
    "create_mapping_summary",
    "format_ssn",
    "parse_address",
    "split_name",
]
