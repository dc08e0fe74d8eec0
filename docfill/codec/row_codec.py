"""
Row Codec

Maps records to flat sheet rows and back.

Header fields are placed by looking their label up in a ColumnIndex built
from the live header row. The repeated item block is addressed by position
(slot n starts at start_column + n * columns_per_item), so the header must be
long enough to hold MAX_ROWS slots; ColumnIndex.validate_layout checks that
once per operation.
"""

import datetime
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Union

from ..errors import MissingColumn
from ..models import Contract, CreditNote, Invoice, LineItem
from ..schema.registry import (
    CONTRACT_DOC_LINK_COLUMN,
    CONTRACT_ID_COLUMN,
    TEXT_MARKER,
    USD_SYMBOL,
    ContractField,
    CreditNoteColumn,
    InvoiceColumn,
    ItemBlockLayout,
    RecordKind,
    RecordSchema,
)
from ..utils.math_utils import format_fixed
from ..utils.text import cell_text, format_display_date, parse_date

logger = logging.getLogger(__name__)

Record = Union[Invoice, CreditNote]

# Column -> model attribute, per record type
INVOICE_FIELDS: Dict[InvoiceColumn, str] = {
    InvoiceColumn.ID: "id",
    InvoiceColumn.PROJECT_NAME: "project_name",
    InvoiceColumn.INVOICE_NUMBER: "invoice_number",
    InvoiceColumn.CLIENT_NAME: "client_name",
    InvoiceColumn.CLIENT_ADDRESS: "client_address",
    InvoiceColumn.CLIENT_NUMBER: "client_number",
    InvoiceColumn.INVOICE_DATE: "invoice_date",
    InvoiceColumn.DUE_DATE: "due_date",
    InvoiceColumn.TAX_RATE: "tax_rate",
    InvoiceColumn.SUBTOTAL: "subtotal",
    InvoiceColumn.TAX_AMOUNT: "tax_amount",
    InvoiceColumn.TOTAL: "total",
    InvoiceColumn.EXCHANGE_RATE: "exchange_rate",
    InvoiceColumn.CURRENCY: "currency",
    InvoiceColumn.AMOUNT_IN_EUR: "amount_in_eur",
    InvoiceColumn.BANK_DETAILS_1: "bank_details_1",
    InvoiceColumn.BANK_DETAILS_2: "bank_details_2",
    InvoiceColumn.OUR_COMPANY: "our_company",
    InvoiceColumn.COMMENT: "comment",
    InvoiceColumn.DOC_LINK: "doc_url",
    InvoiceColumn.PDF_LINK: "pdf_url",
}

CREDIT_NOTE_FIELDS: Dict[CreditNoteColumn, str] = {
    CreditNoteColumn.ID: "id",
    CreditNoteColumn.PROJECT_NAME: "project_name",
    CreditNoteColumn.CREDIT_NOTE_NUMBER: "credit_note_number",
    CreditNoteColumn.CLIENT_NAME: "client_name",
    CreditNoteColumn.CLIENT_ADDRESS: "client_address",
    CreditNoteColumn.CLIENT_NUMBER: "client_number",
    CreditNoteColumn.CREDIT_NOTE_DATE: "credit_note_date",
    CreditNoteColumn.TAX_RATE: "tax_rate",
    CreditNoteColumn.SUBTOTAL: "subtotal",
    CreditNoteColumn.TAX_AMOUNT: "tax_amount",
    CreditNoteColumn.TOTAL: "total",
    CreditNoteColumn.EXCHANGE_RATE: "exchange_rate",
    CreditNoteColumn.CURRENCY: "currency",
    CreditNoteColumn.AMOUNT_IN_EUR: "amount_in_eur",
    CreditNoteColumn.OUR_COMPANY: "our_company",
    CreditNoteColumn.COMMENT: "comment",
    CreditNoteColumn.DOC_LINK: "doc_url",
    CreditNoteColumn.PDF_LINK: "pdf_url",
}

DATE_COLUMNS = {InvoiceColumn.INVOICE_DATE, InvoiceColumn.DUE_DATE, CreditNoteColumn.CREDIT_NOTE_DATE}
USD_ONLY_COLUMNS = {
    InvoiceColumn.EXCHANGE_RATE, InvoiceColumn.AMOUNT_IN_EUR,
    CreditNoteColumn.EXCHANGE_RATE, CreditNoteColumn.AMOUNT_IN_EUR,
}


def _label(column: Union[Enum, str]) -> str:
    return column.value if isinstance(column, Enum) else str(column)


def strip_text_marker(value: Any) -> str:
    text = cell_text(value)
    return text[len(TEXT_MARKER):] if text.startswith(TEXT_MARKER) else text


@dataclass(frozen=True)
class ColumnIndex:
    """Label -> 0-based position map of a live header row."""
    positions: Dict[str, int]
    width: int
    sheet: Optional[str] = None

    @classmethod
    def from_header(cls, header: Sequence[Any], sheet: Optional[str] = None) -> "ColumnIndex":
        positions: Dict[str, int] = {}
        for index, label in enumerate(header):
            text = cell_text(label)
            # First occurrence wins
            if text and text not in positions:
                positions[text] = index
        return cls(positions=positions, width=len(header), sheet=sheet)

    def get(self, column: Union[Enum, str]) -> Optional[int]:
        return self.positions.get(_label(column))

    def index_of(self, column: Union[Enum, str]) -> int:
        index = self.get(column)
        if index is None:
            raise MissingColumn(_label(column), self.sheet)
        return index

    def require(self, columns: Sequence[Union[Enum, str]]) -> None:
        for column in columns:
            self.index_of(column)

    def validate_layout(self, layout: ItemBlockLayout) -> None:
        layout.validate(self.width, self.sheet)


def build_column_index(header: Sequence[Any], schema: RecordSchema, sheet: Optional[str] = None) -> ColumnIndex:
    """ColumnIndex for a positional record sheet, validated against the item block layout."""
    column_index = ColumnIndex.from_header(header, sheet)
    column_index.validate_layout(schema.item_layout)
    return column_index


class RowMatch(NamedTuple):
    row_number: int
    values: List[Any]


class _NotFound:
    """Result of find_row when no row carries the id."""

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND = _NotFound()


def find_row(rows: Sequence[Sequence[Any]], column_index: ColumnIndex, record_id: Any,
             id_column: Union[Enum, str, int] = "ID") -> Union[RowMatch, _NotFound]:
    """
    Locates a record row by id. rows[0] is the header; row_number is the
    1-based sheet row of the match.
    """
    wanted = cell_text(record_id)
    if not wanted:
        return NOT_FOUND
    id_col = id_column if isinstance(id_column, int) else column_index.index_of(id_column)
    for offset, row in enumerate(rows[1:], start=2):
        if id_col < len(row) and cell_text(row[id_col]) == wanted:
            return RowMatch(row_number=offset, values=list(row))
    return NOT_FOUND


# ========== Item block ==========

def normalize_items(items: Sequence[Sequence[Any]], layout: ItemBlockLayout) -> List[LineItem]:
    """
    Items cut or padded to columns_per_item text cells, position cell stamped
    with the 1-based index. Items past max_rows are dropped.
    """
    if len(items) > layout.max_rows:
        logger.warning(f"{len(items)} items submitted, only the first {layout.max_rows} are kept")
    normalized: List[LineItem] = []
    for position, item in enumerate(items[:layout.max_rows], start=1):
        slot = [strip_text_marker(value) for value in list(item)[:layout.columns_per_item]]
        slot.extend([""] * (layout.columns_per_item - len(slot)))
        slot[0] = str(position)
        normalized.append(slot)
    return normalized


def flatten_items(items: Sequence[Sequence[Any]], layout: ItemBlockLayout) -> List[Any]:
    """
    Items as exactly layout.width cells, periods prefixed with the text
    marker and missing slots blank.
    """
    cells: List[Any] = []
    for slot in normalize_items(items, layout):
        period = slot[layout.period_index]
        slot[layout.period_index] = f"{TEXT_MARKER}{period}" if period else ""
        cells.extend(slot)
    cells.extend([""] * (layout.width - len(cells)))
    return cells


def parse_items(row: Sequence[Any], layout: ItemBlockLayout) -> List[LineItem]:
    """Items present in a stored row (a slot counts when any cell is non-blank)."""
    items: List[LineItem] = []
    for n in range(layout.max_rows):
        base = layout.slot_offset(n)
        slot = [strip_text_marker(row[i]) if i < len(row) else "" for i in range(base, base + layout.columns_per_item)]
        if any(slot):
            items.append(slot)
    return items


# ========== Invoice / credit note rows ==========

def _fields_for(kind: RecordKind) -> Dict[Enum, str]:
    return INVOICE_FIELDS if kind is RecordKind.INVOICE else CREDIT_NOTE_FIELDS


def _encode_value(column: Enum, value: Any, currency: str) -> Any:
    if column in USD_ONLY_COLUMNS and currency != USD_SYMBOL:
        return ""
    if column in DATE_COLUMNS:
        return value if isinstance(value, datetime.date) else ""
    return "" if value is None else value


def encode(record: Record, column_index: ColumnIndex, schema: RecordSchema) -> List[Any]:
    """
    Flat row for a record, as wide as the live header.

    Raises:
        MissingColumn: a header field of the record type has no column.
    """
    row: List[Any] = [""] * column_index.width
    for column, attr in _fields_for(schema.kind).items():
        row[column_index.index_of(column)] = _encode_value(column, getattr(record, attr), record.currency)

    layout = schema.item_layout
    item_cells = flatten_items(record.items, layout)
    row[layout.start_column:layout.start_column + layout.width] = item_cells
    return row


def decode(row: Sequence[Any], column_index: ColumnIndex, schema: RecordSchema) -> Record:
    """Record from a stored row; cells the row does not reach read as blank."""
    values: Dict[str, Any] = {}
    for column, attr in _fields_for(schema.kind).items():
        index = column_index.get(column)
        raw = row[index] if index is not None and index < len(row) else None
        if column in DATE_COLUMNS:
            # Due dates typed by hand follow the day-first convention of the form
            values[attr] = parse_date(raw, dayfirst=True)
        else:
            values[attr] = strip_text_marker(raw)
    values["items"] = parse_items(row, schema.item_layout)
    model = Invoice if schema.kind is RecordKind.INVOICE else CreditNote
    return model(**values)


def summarize(row: Sequence[Any], column_index: ColumnIndex, schema: RecordSchema) -> Dict[str, str]:
    """
    List view of a row: the schema's list columns keyed by model field alias.
    Dates are shown as DD/MM/YYYY and totals with two decimals.
    """
    fields = _fields_for(schema.kind)
    model = Invoice if schema.kind is RecordKind.INVOICE else CreditNote
    summary: Dict[str, str] = {}
    for column in schema.list_columns:
        index = column_index.index_of(column)
        raw = row[index] if index < len(row) else None
        attr = fields[column]
        key = model.model_fields[attr].alias or attr
        if column in DATE_COLUMNS:
            summary[key] = format_display_date(raw, dayfirst=True)
        elif attr == "total":
            summary[key] = format_fixed(raw, 2) if cell_text(raw) else ""
        else:
            summary[key] = strip_text_marker(raw)
    return summary


# ========== Contract rows ==========

def encode_contract(contract: Contract, column_index: ColumnIndex) -> List[Any]:
    """
    Contract row: ID in column 0, document link in column 1, every other
    field under its localized label. Fields without a column are not stored.
    """
    row: List[Any] = [""] * max(column_index.width, CONTRACT_DOC_LINK_COLUMN + 1)
    row[CONTRACT_ID_COLUMN] = contract.id
    row[CONTRACT_DOC_LINK_COLUMN] = contract.document_url
    for field in ContractField:
        index = column_index.get(field.label)
        if index is None:
            continue
        row[index] = contract.get(field.form_key)
    return row


def decode_contract(row: Sequence[Any], column_index: ColumnIndex) -> Contract:
    def at(index: Optional[int]) -> str:
        return strip_text_marker(row[index]) if index is not None and index < len(row) else ""

    values = {}
    for field in ContractField:
        index = column_index.get(field.label)
        if index is None:
            continue
        raw = row[index] if index < len(row) else None
        if isinstance(raw, (datetime.date, datetime.datetime)):
            values[field.form_key] = format_display_date(raw)
        else:
            values[field.form_key] = at(index)
    return Contract(
        id=at(CONTRACT_ID_COLUMN),
        document_url=at(CONTRACT_DOC_LINK_COLUMN),
        field_values=values,
    )
