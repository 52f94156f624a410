"""
Shared fixtures: an in-memory analysis backend and Azure-shaped field builders.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.append(str(Path(__file__).parent.parent / "src"))

from taxdoc_intel.ocr.document_intelligence import (
    AnalyzedDocument,
    AnalyzeOperation,
    AnalyzeResult,
    BaseDocumentAnalyzer,
)


class FakeOperation(AnalyzeOperation):
    def __init__(self, outcome):
        self.outcome = outcome

    def await_result(self):
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome


class FakeBackend(BaseDocumentAnalyzer):
    """Backend returning a canned result (or raising) per model id."""

    def __init__(self, outcomes):
        self.outcomes = outcomes
        self.calls = []

    def submit(self, document, model_id):
        self.calls.append(model_id)
        return FakeOperation(self.outcomes[model_id])


def string_field(value, confidence=0.95):
    return {"type": "string", "valueString": value, "content": value, "confidence": confidence}


def number_field(value, confidence=0.95):
    return {"type": "number", "valueNumber": value, "content": str(value), "confidence": confidence}


def object_field(**children):
    return {"type": "object", "valueObject": children}


def array_field(*items):
    return {"type": "array", "valueArray": list(items)}


def structured_result(fields, content="", doc_type="tax.us.w2", key_value_pairs=None):
    return AnalyzeResult(
        content=content,
        documents=[AnalyzedDocument(doc_type=doc_type, fields=fields, confidence=0.98)],
        key_value_pairs=key_value_pairs or [],
    )


def text_result(content, key_value_pairs=None):
    return AnalyzeResult(content=content, documents=[], key_value_pairs=key_value_pairs or [])


W2_TEXT = """Form W-2 Wage and Tax Statement 2024
Employee's name: Jane Q Public
Employee's social security number: 123-45-6789
Employee's address: 100 Main St, Springfield, IL 62701
Employer's name: Acme Widgets Inc
Employer identification number (EIN): 12-3456789
Box 1: $75,000.00
Box 2: $9,500.00
Box 10: $7,000.00
Box 12a: D 5000.00
Box 12b: DD 8,400.00
Retirement plan: X
Box 15: IL
Box 16: 75,000.00
Box 17: 3,712.50
"""

W2_READ_LAYOUT = """Form W-2 Wage and Tax Statement 2024
a Employee's social security number
123-45-6789
1 Wages, tips, other compensation 2 Federal income tax withheld
75000.00 9500.00
3 Social security wages 4 Social security tax withheld
75000.00 4650.00
"""

DIV_TEXT = """Form 1099-DIV Dividends and Distributions
Payer's name: Big Brokerage LLC
Recipient's name: Jane Q Public
Recipient's TIN: 123-45-6789
Box 1a: $1,250.00
Box 1b: $900.00
Box 2a: $400.00
Box 2b: $50.00
Box 7: $12.34
Foreign country or U.S. possession: Canada
Box 11: X
"""


@pytest.fixture
def w2_fields():
    """Structured W-2 fields in the shape the prebuilt W-2 model returns."""
    return {
        "Employee": object_field(
            Name=string_field("Jane Q Public"),
            SocialSecurityNumber=string_field("123456789"),
            Address={"type": "address", "content": "100 Main St, Springfield, IL 62701", "confidence": 0.9},
        ),
        "Employer": object_field(
            Name=string_field("Acme Widgets Inc"),
            IdNumber=string_field("12-3456789"),
        ),
        "ControlNumber": string_field("CN-001"),
        "WagesTipsAndOtherCompensation": number_field(75000),
        "FederalIncomeTaxWithheld": number_field(9500),
        "SocialSecurityWages": number_field(75000),
        "MedicareWagesAndTips": number_field(75000),
        "AdditionalInfo": array_field(
            object_field(LetterCode=string_field("D"), Amount=number_field(5000)),
            object_field(LetterCode=string_field("DD"), Amount=number_field(8400)),
        ),
        "IsRetirementPlan": {"type": "boolean", "valueBoolean": True},
        "StateTaxInfos": array_field(
            object_field(
                State=string_field("IL"),
                EmployerStateIdNumber=string_field("IL-998877"),
                StateWagesTipsEtc=number_field(75000),
                StateIncomeTax=number_field(3712.5),
            )
        ),
    }
