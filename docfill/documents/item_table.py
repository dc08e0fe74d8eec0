"""
Item table anchoring and filling.

The item table of a template is found by its header signature. Invoices
require the exact ordered header; credit notes accept localized or reworded
headers, matched per column by case-insensitive substring.
"""

import logging
from enum import Enum
from typing import Any, Optional, Sequence, Tuple

from openpyxl.styles import Alignment

from ..errors import TableNotFound
from ..schema.registry import ItemBlockLayout
from ..utils.math_utils import format_currency
from ..utils.text import cell_text
from .template_document import DocumentTable, TemplateDocument

logger = logging.getLogger(__name__)

right_alignment = Alignment(horizontal='right', vertical='center')


class AnchorPolicy(str, Enum):
    STRICT = "strict"
    LENIENT = "lenient"


class MissingTablePolicy(str, Enum):
    FAIL = "fail"
    SKIP = "skip"


def matches_strict(headers: Sequence[str], signature: Sequence[str]) -> bool:
    return tuple(headers) == tuple(signature)


def matches_lenient(headers: Sequence[str], alternatives: Sequence[Sequence[str]]) -> bool:
    if len(headers) < len(alternatives):
        return False
    for header, options in zip(headers, alternatives):
        text = header.lower()
        if not any(option.lower() in text for option in options):
            return False
    return True


def find_item_table(
    document: TemplateDocument,
    policy: AnchorPolicy,
    signature: Sequence[str],
    alternatives: Sequence[Sequence[str]] = (),
) -> Optional[DocumentTable]:
    """First table of the document whose header matches under the given policy."""
    tables = document.tables()
    logger.debug(f"Found {len(tables)} tables in document {document.path.name}")
    for table in tables:
        if policy is AnchorPolicy.STRICT:
            matched = matches_strict(table.headers, signature)
        else:
            matched = matches_lenient(table.headers, alternatives)
        if matched:
            logger.debug(f"Item table anchored at {table!r}")
            return table
        logger.debug(f"Table {table!r} does not match the item table header")
    return None


def fill_item_table(
    document: TemplateDocument,
    table: DocumentTable,
    items: Sequence[Sequence[Any]],
    layout: ItemBlockLayout,
    currency: str,
) -> int:
    """
    Replaces the table body with one row per item.

    Existing body rows are reused (keeping their styling), missing rows are
    inserted styled like the first body row and surplus rows are deleted.
    Currency columns are formatted with the currency symbol and right-aligned.
    Returns the number of rows written.
    """
    worksheet = document.workbook[table.sheet_title]
    first_body = table.header_row + 1
    existing = len(table.body_rows)
    needed = len(items)

    for row_idx in table.body_rows:
        for col_idx in range(table.first_col, table.last_col + 1):
            worksheet.cell(row=row_idx, column=col_idx).value = None

    if needed > existing:
        style_row = table.body_rows[0] if table.body_rows else None
        document.insert_rows(worksheet, first_body + existing, needed - existing, style_row=style_row)
    elif needed < existing:
        document.delete_rows(worksheet, first_body + needed, existing - needed)

    for offset, item in enumerate(items):
        row_idx = first_body + offset
        for index, value in enumerate(list(item)[:table.width]):
            cell = worksheet.cell(row=row_idx, column=table.first_col + index)
            text = cell_text(value)
            if index in layout.currency_indexes:
                cell.value = format_currency(text, currency) if text else ""
                cell.alignment = right_alignment
            else:
                cell.value = text
    logger.info(f"Item table filled with {needed} rows ({existing} template rows)")
    return needed


def apply_item_table(
    document: TemplateDocument,
    items: Sequence[Sequence[Any]],
    layout: ItemBlockLayout,
    currency: str,
    policy: AnchorPolicy,
    missing_policy: MissingTablePolicy,
    signature: Tuple[str, ...],
    alternatives: Sequence[Sequence[str]] = (),
) -> bool:
    """
    Anchors and fills the item table. Returns False when no table matched
    and missing_policy is SKIP.

    Raises:
        TableNotFound: no table matched and missing_policy is FAIL.
    """
    table = find_item_table(document, policy, signature, alternatives)
    if table is None:
        if missing_policy is MissingTablePolicy.FAIL:
            raise TableNotFound(list(signature))
        logger.warning(f"No item table found in {document.path.name}, skipping table update")
        return False
    fill_item_table(document, table, items, layout, currency)
    return True
