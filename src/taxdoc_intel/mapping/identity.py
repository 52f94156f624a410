"""Taxpayer identity helpers shared by the form mappers."""

import re
import logging
from typing import Optional, Tuple

from ..document_types import DocumentType
from ..tracing import Tracer
from .form_1040 import Form1040Data

logger = logging.getLogger(__name__)

# W-2 identity outranks anything printed on a 1099
SOURCE_RANKS = {DocumentType.W2: 2}
DEFAULT_RANK = 1

STATE_ZIP_PATTERN = re.compile(r"^([A-Z]{2})\s*(\d{5}(?:-\d{4})?)$")


def source_label(document_type: DocumentType) -> str:
    return f"Enhanced {document_type.label}"


def format_ssn(ssn: Optional[str]) -> str:
    """Format nine digits as ###-##-####; anything else is returned stripped."""
    if not ssn:
        return ""
    digits = re.sub(r"\D", "", ssn)
    if len(digits) != 9:
        return ssn.strip()
    return f"{digits[:3]}-{digits[3:5]}-{digits[5:]}"


def split_name(name: Optional[str]) -> Tuple[str, str]:
    """Split a full name into (first, last) on whitespace."""
    parts = (name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def parse_address(address: Optional[str]) -> Tuple[str, str, str, str]:
    """
    Parse 'street, city, ST 12345' into (street, city, state, zip).

    Addresses that do not follow that layout are kept whole as the street.
    """
    if not address:
        return "", "", "", ""
    address = " ".join(address.split())
    parts = [part.strip() for part in address.split(",")]
    if len(parts) >= 3:
        match = STATE_ZIP_PATTERN.match(parts[-1])
        if match:
            street = ", ".join(parts[:-2])
            return street, parts[-2], match.group(1), match.group(2)
    return address, "", "", ""


def apply_identity(
    aggregate: Form1040Data,
    document_type: DocumentType,
    name: Optional[str],
    ssn: Optional[str],
    address: Optional[str],
    document_id: Optional[str],
    tracer: Tracer,
) -> bool:
    """
    Record the taxpayer identity printed on a document.

    Identity is written when none is recorded yet or when the incoming
    document ranks at least as high as the current source; blank values on
    the incoming document leave the recorded ones alone. The provenance
    trail is extended either way.

    Returns:
        True if the identity fields were written
    """
    info = aggregate.personal_info
    rank = SOURCE_RANKS.get(document_type, DEFAULT_RANK)
    label = source_label(document_type)

    write = info is None or rank >= info.source_rank
    info = aggregate.ensure_personal_info()

    if write:
        # blank boxes never erase what an earlier document supplied
        if name:
            info.first_name, info.last_name = split_name(name)
        if ssn:
            info.ssn = format_ssn(ssn)
        if address:
            info.street, info.city, info.state, info.zip_code = parse_address(address)
        info.source_rank = rank
        info.source_document_id = document_id
        tracer.emit("identity_written", source=label, document_id=document_id)
    else:
        logger.debug(f"Keeping existing identity over {label}")
        tracer.emit("identity_kept", source=label, document_id=document_id)

    info.append_source(label)
    return write
