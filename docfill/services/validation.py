"""Presence and type checks for submitted forms. Business rules live elsewhere."""

from typing import Any, List, Mapping, Sequence, Tuple

from ..errors import ValidationError
from ..utils.math_utils import is_number

INVOICE_REQUIRED_FIELDS = (
    "projectName",
    "invoiceNumber",
    "invoiceDate",
    "dueDate",
    "subtotal",
    "tax",
)

CREDIT_NOTE_REQUIRED_FIELDS = (
    "projectName",
    "creditNoteNumber",
    "clientName",
    "clientAddress",
    "clientNumber",
    "creditNoteDate",
    "tax",
    "subtotal",
    "total",
    "currency",
    "ourCompany",
    "items",
)

CONTRACT_REQUIRED_FIELDS = ("contractorName", "contractNumber")


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def missing_fields(data: Mapping[str, Any], required: Sequence[str]) -> List[str]:
    return [f"{field} is required" for field in required if _is_missing(data.get(field))]


def _number_errors(data: Mapping[str, Any], fields: Sequence[Tuple[str, str]]) -> List[str]:
    return [
        f"{label} must be a valid number"
        for field, label in fields
        if not _is_missing(data.get(field)) and not is_number(data.get(field))
    ]


def validate_invoice(data: Mapping[str, Any]) -> None:
    errors = missing_fields(data, INVOICE_REQUIRED_FIELDS)
    errors += _number_errors(data, (("subtotal", "Subtotal"), ("tax", "Tax rate")))
    items = data.get("items")
    if not isinstance(items, (list, tuple)) or len(items) == 0:
        errors.append("At least one invoice item is required")
    if errors:
        raise ValidationError(errors)


def validate_credit_note(data: Mapping[str, Any]) -> None:
    errors = missing_fields(data, CREDIT_NOTE_REQUIRED_FIELDS)
    errors += _number_errors(data, (("tax", "Tax rate"), ("subtotal", "Subtotal"), ("total", "Total")))
    items = data.get("items")
    if items is not None and not isinstance(items, (list, tuple)):
        errors.append("Items must be a list")
    elif isinstance(items, (list, tuple)) and len(items) == 0:
        errors.append("At least one item is required")
    if errors:
        raise ValidationError(errors)


def validate_contract(data: Mapping[str, Any]) -> None:
    errors = missing_fields(data, CONTRACT_REQUIRED_FIELDS)
    if errors:
        raise ValidationError(errors)
