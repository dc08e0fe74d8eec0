# docfill/documents/placeholders.py
"""
Placeholder maps for each record type.

Tokens are literal "{...}" substrings of template cells and are replaced
wherever they occur, including inside longer text.
"""

import logging
from typing import Dict, Mapping

from ..models import Contract, CreditNote, Invoice
from ..schema.registry import INVOICE_MAX_ROWS, ContractField
from ..utils.math_utils import format_currency
from ..utils.text import cell_text, format_display_date
from .template_document import TemplateDocument

logger = logging.getLogger(__name__)

EXCHANGE_RATE_TOKEN = "{Exchange Rate}"
AMOUNT_IN_EUR_TOKEN = "{Amount in EUR}"

# Invoice item tokens, by item column
INVOICE_ITEM_TOKENS = (
    (1, "{{Вид работ-{n}}}", False),
    (2, "{{Период работы-{n}}}", False),
    (3, "{{Часы-{n}}}", False),
    (4, "{{Рейт-{n}}}", True),
    (5, "{{Сумма-{n}}}", True),
)


def _money(value: str, currency: str) -> str:
    return format_currency(value, currency) if cell_text(value) else ""


def invoice_placeholders(invoice: Invoice) -> Dict[str, str]:
    values = {
        "{Project Name}": invoice.project_name,
        "{Название клиента}": invoice.client_name,
        "{Адрес клиента}": invoice.client_address,
        "{Номер клиента}": invoice.client_number,
        "{Номер счета}": invoice.invoice_number,
        "{Дата счета}": format_display_date(invoice.invoice_date),
        "{Due date}": format_display_date(invoice.due_date),
        "{VAT%}": invoice.tax_rate,
        "{Сумма НДС}": _money(invoice.tax_amount, invoice.currency),
        "{Сумма общая}": _money(invoice.total, invoice.currency),
        "{Банковские реквизиты1}": invoice.bank_details_1,
        "{Банковские реквизиты2}": invoice.bank_details_2,
        "{Комментарий}": invoice.comment,
    }
    # Tokens of rows beyond the submitted items are blanked
    for n in range(1, INVOICE_MAX_ROWS + 1):
        item = invoice.items[n - 1] if n <= len(invoice.items) else []
        for index, pattern, is_money in INVOICE_ITEM_TOKENS:
            raw = item[index] if index < len(item) else ""
            values[pattern.format(n=n)] = _money(raw, invoice.currency) if is_money else cell_text(raw)
    return values


def credit_note_placeholders(credit_note: CreditNote) -> Dict[str, str]:
    return {
        "{Номер CN}": credit_note.credit_note_number,
        "{Название клиента}": credit_note.client_name,
        "{Адрес клиента}": credit_note.client_address,
        "{Номер клиента}": credit_note.client_number,
        "{Дата CN}": format_display_date(credit_note.credit_note_date),
        "{VAT%}": credit_note.tax_rate,
        "{Сумма НДС}": _money(credit_note.tax_amount, credit_note.currency),
        "{Сумма общая}": _money(credit_note.total, credit_note.currency),
        "{Комментарий}": credit_note.comment,
    }


def contract_placeholders(contract: Contract) -> Dict[str, str]:
    return {
        field.placeholder: contract.get(field.form_key)
        for field in ContractField
        if field.placeholder
    }


def apply_placeholders(document: TemplateDocument, values: Mapping[str, str]) -> int:
    """Replaces every token of values in the document. Returns the number of cells changed."""
    changed = 0
    for token, value in values.items():
        count = document.replace_text(token, value)
        if count:
            logger.debug(f"Replaced '{token}' in {count} cell(s)")
        changed += count
    logger.info(f"Placeholder substitution changed {changed} cell(s) in {document.path.name}")
    return changed
