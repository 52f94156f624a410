"""
Field extraction from document analysis results.

Each supported form has one extractor with two paths that produce the same
field names:

- structured: reads ``documents[0].fields`` returned by a prebuilt tax model,
  then fills boxes the model missed from the recognized text
- text: reads only ``content`` and ``key_value_pairs`` (OCR fallback)

Downstream mapping does not need to know which path produced a field bag.
"""

import re
import logging
from typing import Any, Dict, List, Optional, Tuple

from ..document_types import (
    Box12Entry,
    Box13Checkboxes,
    DocumentType,
    ExtractedFieldData,
    FieldKind,
    FieldValue,
)
from ..ocr.document_intelligence import AnalyzeResult
from ..records import record_type_for
from .parsers import normalize_label, parse_amount, parse_boolean, parse_box12_codes
from .text_patterns import find_box12_codes, find_box13_checkboxes, patterns_for

logger = logging.getLogger(__name__)

INDEXED_PART = re.compile(r"^(\w+)\[(\d+)\]$")

_SCALAR_KEYS = (
    "valueString",
    "valueNumber",
    "valueInteger",
    "valueBoolean",
    "valueDate",
    "valueSelectionMark",
    "valueCountryRegion",
    "valuePhoneNumber",
)


def _lookup(container: Dict[str, Any], key: str) -> Any:
    if key in container:
        return container[key]
    lowered = key.lower()
    for name, value in container.items():
        if name.lower() == lowered:
            return value
    return None


def resolve_field(fields: Dict[str, Any], path: str) -> Any:
    """
    Resolve a provider field by dotted path.

    'Employee.Name' walks into the ``valueObject`` of 'Employee';
    'StateTaxInfos[0].State' indexes into a ``valueArray``. Key lookup is
    case-insensitive. Returns None when any step is missing.
    """
    current: Any = fields
    parts = path.split(".")
    for position, part in enumerate(parts):
        if not isinstance(current, dict):
            return None

        match = INDEXED_PART.match(part)
        key, index = (match.group(1), int(match.group(2))) if match else (part, None)

        node = _lookup(current, key)
        if node is None:
            return None
        if index is not None:
            items = node.get("valueArray") if isinstance(node, dict) else node
            if not isinstance(items, list) or index >= len(items):
                return None
            node = items[index]

        if position == len(parts) - 1:
            return node
        current = node.get("valueObject", node) if isinstance(node, dict) else None
    return None


def field_value(raw: Any) -> Any:
    """Plain value of a provider field (scalars pass through)."""
    if not isinstance(raw, dict):
        return raw
    for key in _SCALAR_KEYS:
        if raw.get(key) is not None:
            return raw[key]
    currency = raw.get("valueCurrency")
    if isinstance(currency, dict) and currency.get("amount") is not None:
        return currency["amount"]
    if raw.get("value") is not None:
        return raw["value"]
    return raw.get("content")


def field_confidence(raw: Any) -> Optional[float]:
    if isinstance(raw, dict):
        return raw.get("confidence")
    return None


def _camel(name: str) -> str:
    return "".join(part.capitalize() for part in name.split("_"))


class FieldExtractor:
    """
    Base extractor for one document type.

    Subclasses list provider field names per record field in PROVIDER_FIELDS.
    'Box<N>' and the CamelCase form of the field name are always accepted
    as well.
    """

    document_type: DocumentType = None
    PROVIDER_FIELDS: Dict[str, Tuple[str, ...]] = {}

    def __init__(self):
        self.record_type = record_type_for(self.document_type)
        self.kinds = self.record_type.field_kinds()
        self.patterns = patterns_for(self.document_type)
        self.provider_paths = self._build_provider_paths()

    def _build_provider_paths(self) -> Dict[str, List[str]]:
        boxes = {name: box for name, box, _ in self.record_type.box_fields()}
        paths: Dict[str, List[str]] = {}
        for name, kind in self.kinds.items():
            if kind in (FieldKind.CODES, FieldKind.CHECKBOXES):
                continue
            candidates = list(self.PROVIDER_FIELDS.get(name, ()))
            candidates.append(_camel(name))
            box = boxes.get(name, "")
            if box and box[0].isdigit():
                candidates.append(f"Box{box}")
            paths[name] = list(dict.fromkeys(candidates))
        return paths

    def extract(self, result: AnalyzeResult, structured: bool = True) -> ExtractedFieldData:
        """
        Project an analysis result into a field bag for this document type.

        Args:
            result: Backend analysis result
            structured: Use the structured-field path; False for text only

        Returns:
            Field bag tagged with this extractor's document type
        """
        if structured:
            data = self.extract_structured(result)
        else:
            data = self.extract_text(result)
        logger.info(
            f"Extracted {len(data.fields)} fields as {self.document_type.value} "
            f"({'structured' if structured else 'text'} path)"
        )
        return data

    def _new_bag(self, result: AnalyzeResult) -> ExtractedFieldData:
        return ExtractedFieldData(
            full_text=result.content or "",
            document_type=self.document_type,
            model_id=result.model_id,
            key_value_pairs=list(result.key_value_pairs),
        )

    # Structured path

    def extract_structured(self, result: AnalyzeResult) -> ExtractedFieldData:
        data = self._new_bag(result)
        fields = result.documents[0].fields if result.documents else {}

        for name, paths in self.provider_paths.items():
            for path in paths:
                raw = resolve_field(fields, path)
                if raw is None:
                    continue
                value = self._coerce(name, field_value(raw), field_confidence(raw))
                if value is not None:
                    data.set(name, value)
                    break

        self._extract_structured_extras(fields, data)
        self._fill_from_text(data)
        return data

    def _coerce(self, name: str, value: Any, confidence: Optional[float]) -> Optional[FieldValue]:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        kind = self.kinds[name]
        if kind is FieldKind.AMOUNT:
            return FieldValue.amount(parse_amount(value), confidence)
        if kind is FieldKind.FLAG:
            return FieldValue.flag(parse_boolean(value), confidence)
        return FieldValue.text(str(value), confidence)

    def _extract_structured_extras(self, fields: Dict[str, Any], data: ExtractedFieldData) -> None:
        """Hook for form-specific structured fields."""

    def _fill_from_text(self, data: ExtractedFieldData) -> None:
        """Fill boxes the structured model did not return from the recognized text."""
        text = data.full_text
        if not text:
            return

        filled = []
        for name in self.patterns.amounts:
            if data.has(name):
                continue
            amount = self.patterns.find_amount(name, text)
            if amount is not None and amount > 0:
                data.set(name, FieldValue.amount(amount))
                filled.append(name)
        for name in self.patterns.flags:
            if not data.has(name) and self.patterns.find_flag(name, text):
                data.set(name, FieldValue.flag(True))
                filled.append(name)

        if filled:
            logger.info(f"Filled {len(filled)} missing fields from text: {', '.join(filled)}")

    # Text path

    def extract_text(self, result: AnalyzeResult) -> ExtractedFieldData:
        data = self._new_bag(result)
        text = data.full_text

        for name in self.patterns.amounts:
            amount = self.patterns.find_amount(name, text)
            if amount is not None:
                data.set(name, FieldValue.amount(amount))
        for name in self.patterns.texts:
            value = self.patterns.find_text(name, text)
            if value:
                data.set(name, FieldValue.text(value))
        for name in self.patterns.flags:
            flag = self.patterns.find_flag(name, text)
            if flag is not None:
                data.set(name, FieldValue.flag(flag))

        self._fill_from_key_value_pairs(data)
        self._extract_text_extras(text, data)
        return data

    def _fill_from_key_value_pairs(self, data: ExtractedFieldData) -> None:
        """Match key/value pair labels against the printed box labels."""
        labels = [
            (name, normalize_label(label))
            for name, _, label in self.record_type.box_fields()
            if label and self.kinds[name] in (FieldKind.AMOUNT, FieldKind.TEXT, FieldKind.FLAG)
        ]
        for pair in data.key_value_pairs:
            key = normalize_label(pair.get("key", ""))
            if not key:
                continue
            for name, label in labels:
                if data.has(name) or key != label and not key.endswith(" " + label):
                    continue
                value = self._coerce(name, pair.get("value"), None)
                if value is not None:
                    data.set(name, value)
                break

    def _extract_text_extras(self, text: str, data: ExtractedFieldData) -> None:
        """Hook for form-specific text fields."""


class W2FieldExtractor(FieldExtractor):
    """Form W-2 extractor, including Box 12 codes and Box 13 checkboxes."""

    document_type = DocumentType.W2
    PROVIDER_FIELDS = {
        "employee_name": ("Employee.Name",),
        "employee_ssn": ("Employee.SocialSecurityNumber", "Employee.SSN"),
        "employee_address": ("Employee.Address",),
        "employer_name": ("Employer.Name",),
        "employer_ein": ("Employer.IdNumber", "Employer.EIN"),
        "employer_address": ("Employer.Address",),
        "document_id": ("ControlNumber",),
        "wages": ("WagesTipsAndOtherCompensation", "WagesAndTips"),
        "federal_tax_withheld": ("FederalIncomeTaxWithheld",),
        "social_security_wages": ("SocialSecurityWages",),
        "social_security_tax_withheld": ("SocialSecurityTaxWithheld",),
        "medicare_wages": ("MedicareWagesAndTips",),
        "medicare_tax_withheld": ("MedicareTaxWithheld",),
        "social_security_tips": ("SocialSecurityTips",),
        "allocated_tips": ("AllocatedTips",),
        "advance_eic": ("AdvanceEIC",),
        "dependent_care_benefits": ("DependentCareBenefits",),
        "nonqualified_plans": ("NonQualifiedPlans", "NonqualifiedPlans"),
        "other_tax_info": ("Other", "OtherTaxInfo"),
        "state": ("StateTaxInfos[0].State", "State"),
        "state_employer_id": ("StateTaxInfos[0].EmployerStateIdNumber", "StateEmployerID"),
        "state_wages": ("StateTaxInfos[0].StateWagesTipsEtc", "StateWagesTipsEtc"),
        "state_tax_withheld": ("StateTaxInfos[0].StateIncomeTax", "StateIncomeTax"),
        "local_wages": ("LocalTaxInfos[0].LocalWagesTipsEtc", "LocalWagesTipsEtc"),
        "local_tax_withheld": ("LocalTaxInfos[0].LocalIncomeTax", "LocalIncomeTax"),
        "locality_name": ("LocalTaxInfos[0].LocalityName", "LocalityName"),
    }

    BOX12_RAW_FIELDS = ("Box12", "DeferredCompensation")
    BOX13_FIELDS = {
        "retirement_plan": ("IsRetirementPlan", "RetirementPlan"),
        "third_party_sick_pay": ("IsThirdPartySickPay", "ThirdPartySickPay"),
        "statutory_employee": ("IsStatutoryEmployee", "StatutoryEmployee"),
    }

    def _extract_structured_extras(self, fields: Dict[str, Any], data: ExtractedFieldData) -> None:
        entries = self._structured_box12(fields) or find_box12_codes(data.full_text)
        if entries:
            data.set("box12_codes", FieldValue.codes(entries))

        checkboxes = self._structured_box13(fields) or find_box13_checkboxes(data.full_text)
        if checkboxes is not None:
            data.set("box13_checkboxes", FieldValue.checkboxes(checkboxes))

    def _structured_box12(self, fields: Dict[str, Any]) -> List[Box12Entry]:
        additional = resolve_field(fields, "AdditionalInfo")
        items = additional.get("valueArray") if isinstance(additional, dict) else None
        entries = []
        for item in items or []:
            obj = item.get("valueObject", {}) if isinstance(item, dict) else {}
            code = field_value(_lookup(obj, "LetterCode"))
            if not code:
                continue
            amount = parse_amount(field_value(_lookup(obj, "Amount")))
            entries.append(Box12Entry.create(str(code), amount))
        if entries:
            return entries

        for path in self.BOX12_RAW_FIELDS:
            raw = field_value(resolve_field(fields, path))
            if isinstance(raw, str) and raw.strip():
                return parse_box12_codes(raw)
        return []

    def _structured_box13(self, fields: Dict[str, Any]) -> Optional[Box13Checkboxes]:
        values = {}
        for name, paths in self.BOX13_FIELDS.items():
            values[name] = None
            for path in paths:
                raw = resolve_field(fields, path)
                if raw is not None:
                    values[name] = parse_boolean(field_value(raw))
                    break
        if all(value is None for value in values.values()):
            return None
        return Box13Checkboxes(**values)

    def _extract_text_extras(self, text: str, data: ExtractedFieldData) -> None:
        entries = find_box12_codes(text)
        if entries:
            data.set("box12_codes", FieldValue.codes(entries))
        checkboxes = find_box13_checkboxes(text)
        if checkboxes is not None:
            data.set("box13_checkboxes", FieldValue.checkboxes(checkboxes))


_IDENTITY_FIELDS = {
    "payer_name": ("Payer.Name", "PayerName"),
    "payer_tin": ("Payer.TIN", "PayerTIN"),
    "payer_address": ("Payer.Address", "PayerAddress"),
    "recipient_name": ("Recipient.Name", "RecipientName"),
    "recipient_tin": ("Recipient.TIN", "RecipientTIN"),
    "recipient_address": ("Recipient.Address", "RecipientAddress"),
    "account_number": ("AccountNumber",),
}

_STATE_FIELDS = {
    "state": ("StateTaxInfos[0].State", "State"),
    "state_payer_number": ("StateTaxInfos[0].PayerStateIdNumber", "StatePayerNumber"),
    "state_tax_withheld": ("StateTaxInfos[0].StateTaxWithheld", "StateTaxWithheld"),
    "state_income": ("StateTaxInfos[0].StateIncome", "StateIncome"),
}


class Form1099IntFieldExtractor(FieldExtractor):
    document_type = DocumentType.FORM_1099_INT
    PROVIDER_FIELDS = dict(
        _IDENTITY_FIELDS,
        us_savings_bond_interest=("InterestOnUSSavingsBondsAndTreasuryObligations",),
        private_activity_bond_interest=("SpecifiedPrivateActivityBondInterest",),
        treasury_bond_premium=("BondPremiumOnTreasuryObligations",),
        tax_exempt_bond_premium=("BondPremiumOnTaxExemptBond",),
        **_STATE_FIELDS,
    )


class Form1099DivFieldExtractor(FieldExtractor):
    document_type = DocumentType.FORM_1099_DIV
    PROVIDER_FIELDS = dict(
        _IDENTITY_FIELDS,
        ordinary_dividends=("TotalOrdinaryDividends", "OrdinaryDividends"),
        total_capital_gain=("TotalCapitalGainDistributions",),
        section_199a_dividends=("Section199ADividends",),
        fatca_filing_requirement=("FATCAFilingRequirement",),
        private_activity_bond_dividends=("SpecifiedPrivateActivityBondInterestDividends",),
        **_STATE_FIELDS,
    )


class Form1099MiscFieldExtractor(FieldExtractor):
    document_type = DocumentType.FORM_1099_MISC
    PROVIDER_FIELDS = dict(
        _IDENTITY_FIELDS,
        direct_sales_indicator=("DirectSales", "PayerMadeDirectSales"),
        fatca_filing_requirement=("FATCAFilingRequirement",),
        substitute_payments=("SubstitutePaymentsInLieuOfDividendsOrInterest",),
        gross_proceeds_attorney=("GrossProceedsPaidToAnAttorney",),
        excess_golden_parachute=("ExcessGoldenParachutePayments",),
        section_409a_deferrals=("Section409ADeferrals",),
        **_STATE_FIELDS,
    )


class Form1099NecFieldExtractor(FieldExtractor):
    document_type = DocumentType.FORM_1099_NEC
    PROVIDER_FIELDS = dict(
        _IDENTITY_FIELDS,
        direct_sales_indicator=("DirectSales", "PayerMadeDirectSales"),
        **_STATE_FIELDS,
    )


class GenericFieldExtractor:
    """
    Extractor for documents of no supported type.

    Every key/value pair the backend found is kept as a text field named
    after its normalized key.
    """

    def extract(self, result: AnalyzeResult, structured: bool = True) -> ExtractedFieldData:
        data = ExtractedFieldData(
            full_text=result.content or "",
            model_id=result.model_id,
            key_value_pairs=list(result.key_value_pairs),
        )
        for pair in result.key_value_pairs:
            name = normalize_label(pair.get("key", "")).replace(" ", "_")
            value = (pair.get("value") or "").strip()
            if name and value and not data.has(name):
                data.set(name, FieldValue.text(value))
        logger.info(f"Extracted {len(data.fields)} key/value fields from unsupported document")
        return data


EXTRACTOR_TYPES = {
    DocumentType.W2: W2FieldExtractor,
    DocumentType.FORM_1099_INT: Form1099IntFieldExtractor,
    DocumentType.FORM_1099_DIV: Form1099DivFieldExtractor,
    DocumentType.FORM_1099_MISC: Form1099MiscFieldExtractor,
    DocumentType.FORM_1099_NEC: Form1099NecFieldExtractor,
}

_EXTRACTORS: Dict[DocumentType, FieldExtractor] = {}


def get_field_extractor(document_type: Optional[DocumentType]):
    """Extractor for a document type; the generic extractor for None."""
    if document_type is None:
        return GenericFieldExtractor()
    if document_type not in _EXTRACTORS:
        _EXTRACTORS[document_type] = EXTRACTOR_TYPES[document_type]()
    return _EXTRACTORS[document_type]
