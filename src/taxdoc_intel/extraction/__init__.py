"""Field extraction from analysis results."""

from .field_extractor import (
    FieldExtractor,
    Form1099DivFieldExtractor,
    Form1099IntFieldExtractor,
    Form1099MiscFieldExtractor,
    Form1099NecFieldExtractor,
    GenericFieldExtractor,
    W2FieldExtractor,
    get_field_extractor,
)
from .parsers import parse_amount, parse_boolean, parse_box12_codes

__all__ = [
    "FieldExtractor",
    "Form1099DivFieldExtractor",
    "Form1099IntFieldExtractor",
    "Form1099MiscFieldExtractor",
    "Form1099NecFieldExtractor",
    "GenericFieldExtractor",
    "W2FieldExtractor",
    "get_field_extractor",
    "parse_amount",
    "parse_boolean",
    "parse_box12_codes",
]
