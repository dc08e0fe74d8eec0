"""
Schema Registry

Fixed column layouts for every record type stored in the workbook:

- Invoice:     21 header columns, then MAX_ROWS x 6 item columns
- Credit note: 18 header columns, then MAX_ROWS x 4 item columns
- Contract:    header-driven, columns addressed by localized labels

Header fields are enum keyed (the enum value is the column label) so callers
never pass raw strings around. The live header row of a sheet is validated
against these declarations before any row is encoded or decoded.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Type

from ..errors import MissingColumn

TEXT_MARKER = "'"

CURRENCY_SYMBOLS: Dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "UAH": "₴",
    "PLN": "zł",
}

USD_SYMBOL = "$"
EUR_SYMBOL = "€"


class RecordKind(str, Enum):
    INVOICE = "invoice"
    CREDIT_NOTE = "credit_note"
    CONTRACT = "contract"


class InvoiceColumn(str, Enum):
    ID = "ID"
    PROJECT_NAME = "Project Name"
    INVOICE_NUMBER = "Invoice Number"
    CLIENT_NAME = "Client Name"
    CLIENT_ADDRESS = "Client Address"
    CLIENT_NUMBER = "Client Number"
    INVOICE_DATE = "Invoice Date"
    DUE_DATE = "Due Date"
    TAX_RATE = "Tax Rate (%)"
    SUBTOTAL = "Subtotal"
    TAX_AMOUNT = "Tax Amount"
    TOTAL = "Total"
    EXCHANGE_RATE = "Exchange Rate"
    CURRENCY = "Currency"
    AMOUNT_IN_EUR = "Amount in EUR"
    BANK_DETAILS_1 = "Bank Details 1"
    BANK_DETAILS_2 = "Bank Details 2"
    OUR_COMPANY = "Our Company"
    COMMENT = "Comment"
    DOC_LINK = "Google Doc Link"
    PDF_LINK = "PDF Link"


class CreditNoteColumn(str, Enum):
    ID = "ID"
    PROJECT_NAME = "Project Name"
    CREDIT_NOTE_NUMBER = "CN Number"
    CLIENT_NAME = "Client Name"
    CLIENT_ADDRESS = "Client Address"
    CLIENT_NUMBER = "Client Number"
    CREDIT_NOTE_DATE = "CN Date"
    TAX_RATE = "Tax Rate (%)"
    SUBTOTAL = "Subtotal"
    TAX_AMOUNT = "Tax Amount"
    TOTAL = "Total"
    EXCHANGE_RATE = "Exchange Rate"
    CURRENCY = "Currency"
    AMOUNT_IN_EUR = "Amount in EUR"
    OUR_COMPANY = "Our Company"
    COMMENT = "Comment"
    DOC_LINK = "Google Doc Link"
    PDF_LINK = "PDF Link"


class ContractField(Enum):
    """Contract form field -> (form key, sheet column label, document placeholder)."""
    FOLDER_LINK = ("folderLink", "Ссылка на папку с дого", None)
    CONTRACTOR_NAME = ("contractorName", "Название контрактора", "{Название контрактора}")
    PE = ("pe", "ФОП", "{ФОП}")
    OUR_COMPANY = ("ourCompany", "Наша компания", "{Наша компания}")
    SERVICE_TYPE = ("serviceType", "Вид услуг", "{Вид услуг}")
    COOPERATION_TYPE = ("cooperationType", "Вид сотрудничества", "{Вид сотрудничества}")
    DOCUMENT_TYPE = ("documentType", "Вид документа", None)
    CONTRACT_NUMBER = ("contractNumber", "№ договора", "{№ договора}")
    CONTRACT_DATE = ("contractDate", "Дата договора", "{Дата договора}")
    PROBATION_PERIOD = ("probationPeriod", "Срок ИС", "{Срок ИС}")
    TERMINATION_DATE = ("terminationDate", "Дата окончания договора", "{Дата окончания договора}")
    REGISTRATION_NUMBER = ("registrationNumber", "№ гос.регистрации", "{№ гос.регистрации}")
    REGISTRATION_DATE = ("registrationDate", "Дата гос.регистрации", "{Дата гос.регистрации}")
    CONTRACTOR_ID = ("contractorId", "Номер контрактора", "{Номер контрактора}")
    CONTRACTOR_VAT_ID = ("contractorVatId", "Номер НДС контрактора", "{Номер НДС контрактора}")
    CONTRACTOR_JURISDICTION = ("contractorJurisdiction", "Юрисдикция контрактора", "{Юрисдикция контрактора}")
    CONTRACTOR_ADDRESS = ("contractorAddress", "Адрес контрактора", "{Адрес контрактора}")
    BANK_ACCOUNT_UAH = ("bankAccountUAH", "Счет (грн)", "{Счет грн}")
    BANK_ACCOUNT_USD = ("bankAccountUSD", "Счет (долл)", "{Счет долл}")
    BANK_ACCOUNT_EUR = ("bankAccountEUR", "Счет (евро)", "{Счет евро}")
    BANK_NAME = ("bankName", "Банк", "{Банк}")
    ACCOUNT_TYPE = ("accountType", "Тип счета", "{Тип счета}")
    BANK_CODE = ("bankCode", "Код банка", "{Код банка}")
    CONTRACTOR_EMAIL = ("contractorEmail", "Эл.почта", "{Эл.почта}")
    CONTRACTOR_ROLE = ("contractorRole", "Роль контрактора", "{Роль контрактора}")
    CONTRACTOR_RATE = ("contractorRate", "Рейт контрактора", "{Рейт контрактора}")
    CURRENCY_OF_RATE = ("currencyOfRate", "Валюта рейта", "{Валюта рейта}")
    ATTACHMENT_NUMBER = ("attachmentNumber", "Номер приложения", "{Номер приложения}")
    SOW_START_DATE_REQUIRED = ("sowStartDateRequired", "Дата старта термин", "{Дата старта термин}")
    SOW_START_DATE = ("sowStartDate", "Дата старта", "{Дата старта}")
    TEMPLATE_LINK = ("templateLink", "Шаблон договора", None)

    @property
    def form_key(self) -> str:
        return self.value[0]

    @property
    def label(self) -> str:
        return self.value[1]

    @property
    def placeholder(self) -> Optional[str]:
        return self.value[2]

    @classmethod
    def by_form_key(cls, key: str) -> Optional["ContractField"]:
        for member in cls:
            if member.form_key == key:
                return member
        return None


CONTRACT_ID_COLUMN = 0
CONTRACT_DOC_LINK_COLUMN = 1
CONTRACT_ID_LABEL = "ID"
CONTRACT_DOC_LINK_LABEL = "Document Link"

# Lists sheet of the contractors book: one option list per column A..G
CONTRACT_OPTION_COLUMNS: Tuple[Tuple[str, int], ...] = (
    ("cooperationTypes", 0),
    ("ourCompanies", 1),
    ("serviceTypes", 2),
    ("peOptions", 3),
    ("accountTypes", 4),
    ("currencies", 5),
    ("documentTypes", 6),
)


@dataclass(frozen=True)
class ReferenceColumns:
    """Zero-based column positions in the project reference (Lists) sheet."""
    project_name: int = 0
    client_name: int = 1
    client_number_part1: int = 2
    client_number_part2: int = 3
    client_address: int = 4
    tax_rate: int = 5
    currency: int = 6
    payment_delay: int = 7
    day_type: int = 8
    our_company: int = 9
    bank_short_1: int = 10
    bank_short_2: int = 11
    folder_link: int = 12
    template_name: int = 13
    bank_short_col: int = 16
    bank_full_col: int = 17
    template_name_col: int = 19
    template_id_col: int = 20


REFERENCE_COLUMNS = ReferenceColumns()


@dataclass(frozen=True)
class ItemBlockLayout:
    """
    Physical layout of the repeated item block in a flat record row.

    Item columns are named per row index ("Row 3 Period"), so the block is
    addressed by position: slot n starts at start_column + n * columns_per_item.
    """
    start_column: int
    columns_per_item: int
    max_rows: int
    item_labels: Tuple[str, ...]
    period_index: int
    currency_indexes: Tuple[int, ...]

    @property
    def width(self) -> int:
        return self.columns_per_item * self.max_rows

    def slot_offset(self, row_number: int) -> int:
        return self.start_column + row_number * self.columns_per_item

    def item_headers(self) -> List[str]:
        headers = []
        for n in range(1, self.max_rows + 1):
            headers.extend(f"Row {n} {label}" for label in self.item_labels)
        return headers

    def validate(self, header_length: int, sheet: Optional[str] = None) -> None:
        """Fail fast when the live header cannot hold the declared item block."""
        required = self.start_column + self.width
        if header_length < required:
            missing_slot = (header_length - self.start_column) // self.columns_per_item + 1
            raise MissingColumn(f"Row {max(missing_slot, 1)} {self.item_labels[0]}", sheet)


@dataclass(frozen=True)
class RecordSchema:
    """Everything the codec and the services need to know about one record type."""
    kind: RecordKind
    type_label: str
    columns: Type[Enum]
    item_layout: ItemBlockLayout
    list_cache_key: str
    list_columns: Tuple[Enum, ...]
    anchor_signature: Tuple[str, ...]

    @property
    def header_labels(self) -> List[str]:
        return [member.value for member in self.columns]

    def full_header(self) -> List[str]:
        return self.header_labels + self.item_layout.item_headers()


INVOICE_MAX_ROWS = 20
CREDIT_NOTE_MAX_ROWS = 20

INVOICE_ITEM_LAYOUT = ItemBlockLayout(
    start_column=len(InvoiceColumn),
    columns_per_item=6,
    max_rows=INVOICE_MAX_ROWS,
    item_labels=("#", "Service", "Period", "Quantity", "Rate/hour", "Amount"),
    period_index=2,
    currency_indexes=(4, 5),
)

CREDIT_NOTE_ITEM_LAYOUT = ItemBlockLayout(
    start_column=len(CreditNoteColumn),
    columns_per_item=4,
    max_rows=CREDIT_NOTE_MAX_ROWS,
    item_labels=("#", "Description", "Period", "Amount"),
    period_index=2,
    currency_indexes=(3,),
)

INVOICE_SCHEMA = RecordSchema(
    kind=RecordKind.INVOICE,
    type_label="Invoice",
    columns=InvoiceColumn,
    item_layout=INVOICE_ITEM_LAYOUT,
    list_cache_key="invoiceList",
    list_columns=(
        InvoiceColumn.ID,
        InvoiceColumn.PROJECT_NAME,
        InvoiceColumn.INVOICE_NUMBER,
        InvoiceColumn.INVOICE_DATE,
        InvoiceColumn.DUE_DATE,
        InvoiceColumn.TOTAL,
        InvoiceColumn.CURRENCY,
    ),
    anchor_signature=("#", "Services", "Period", "Quantity", "Rate/hour", "Amount"),
)

CREDIT_NOTE_SCHEMA = RecordSchema(
    kind=RecordKind.CREDIT_NOTE,
    type_label="CreditNote",
    columns=CreditNoteColumn,
    item_layout=CREDIT_NOTE_ITEM_LAYOUT,
    list_cache_key="creditNoteList",
    list_columns=(
        CreditNoteColumn.ID,
        CreditNoteColumn.PROJECT_NAME,
        CreditNoteColumn.CREDIT_NOTE_NUMBER,
        CreditNoteColumn.CREDIT_NOTE_DATE,
        CreditNoteColumn.TOTAL,
        CreditNoteColumn.CURRENCY,
    ),
    anchor_signature=("#", "Description", "Period", "Amount"),
)

CONTRACT_LIST_CACHE_KEY = "contractList"

# Lenient per-column alternatives for the credit note anchor (case-insensitive substring)
CREDIT_NOTE_ANCHOR_ALTERNATIVES: Tuple[Tuple[str, ...], ...] = (
    ("#", "№"),
    ("description", "описание", "services"),
    ("period", "период"),
    ("amount", "сумма"),
)


def contract_header() -> List[str]:
    """Default header row for an empty contracts sheet."""
    return [CONTRACT_ID_LABEL, CONTRACT_DOC_LINK_LABEL] + [
        field.label for field in ContractField if field is not ContractField.FOLDER_LINK
    ] + [ContractField.FOLDER_LINK.label]

