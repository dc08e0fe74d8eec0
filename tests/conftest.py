from pathlib import Path

import openpyxl
import pytest

from docfill.orchestrator import Orchestrator
from docfill.services.cache import ListCache
from docfill.system_config import AppConfig

ACME_FOLDER_ID = "acme-folder-id-000000000000000"
DEFAULT_FOLDER_ID = "default-folder-id-00000000000"
OUTPUT_FOLDER_ID = "pdf-output-folder-0000000000"

LINK_BASE = "https://drive.local/file/d"

INVOICE_HEADER = ["#", "Services", "Period", "Quantity", "Rate/hour", "Amount"]
CREDIT_NOTE_HEADER = ["№", "Описание услуг", "Период", "Сумма"]


def _reference_row(**cells):
    row = [None] * 21
    for index, value in cells.items():
        row[int(index.lstrip("c"))] = value
    return row


def write_reference_workbook(path: Path) -> None:
    """Lists, Contract Lists and Templates sheets of the storage workbook."""
    workbook = openpyxl.Workbook()
    lists = workbook.active
    lists.title = "Lists"
    lists.append(["Project"] + [f"col{i}" for i in range(1, 21)])
    lists.append(_reference_row(
        c0="Acme Project", c1="Acme Ltd", c2="AC", c3="123", c4="1 Main St",
        c5=0.2, c6="USD", c7=30, c8="calendar", c9="Our Co",
        c10="B1", c11="B2", c12=f"https://drive.local/drive/folders/{ACME_FOLDER_ID}",
        c13="Standard",
        c16="B1", c17="Bank One, IBAN 111", c19="Standard", c20="invoice-template",
    ))
    lists.append(_reference_row(
        c0="Euro Project", c1="Euro GmbH", c2="EU", c3="9", c4="Berlin",
        c5="15%", c6="EUR", c7="14", c8="working", c9="Our Co",
        c10="B2", c13="standard",
        c16="B2", c17="Bank Two, IBAN 222", c19="Plain", c20="plain-template",
    ))
    lists.append(_reference_row(c0="Unassigned Project", c1="Nobody", c6="GBP"))
    lists.append(_reference_row(c0="Broken Project", c1="Broken", c13="Missing"))
    lists.append(_reference_row(c0="Plain Project", c1="Plain Client", c6="EUR", c13="Plain"))

    options = workbook.create_sheet("Contract Lists")
    options.append(["Cooperation", "Company", "Service", "PE", "Account", "Currency", "Document"])
    options.append(["Full-time", "Our Co", "Development", "Yes", "Current", "USD", "Contract"])
    options.append(["Part-time", "Other Co", "Design", "No", "Savings", "EUR", "Attachment"])
    options.append(["Full-time", None, "Development", None, None, "UAH", None])

    templates = workbook.create_sheet("Templates")
    templates.append(["Cooperation", "Company", "Service", "Document", "Link"])
    templates.append(["Full-time", "Our Co", "Development", "Contract", f"{LINK_BASE}/contract-template/edit"])
    templates.append(["Part-time", "Our Co", "Design", "Attachment", f"{LINK_BASE}/addendum-template/edit"])
    templates.append(["Part-time", "Other Co", "Design", "Contract", None])
    workbook.save(path)


def write_invoice_template(path: Path, header=INVOICE_HEADER) -> None:
    workbook = openpyxl.Workbook()
    ws = workbook.active
    ws.title = "Invoice"
    ws["A1"] = "INVOICE {Номер счета}"
    ws["A2"] = "Client: {Название клиента}, {Адрес клиента}"
    ws["A3"] = "Date: {Дата счета}, due {Due date}"
    for col, label in enumerate(header, start=1):
        ws.cell(row=5, column=col, value=label)
    for col, value in enumerate(["1", "-", "-", "0", "0", "0"][:len(header)], start=1):
        ws.cell(row=6, column=col, value=value)
    ws["A8"] = "Total: {Сумма общая} (VAT {VAT%}%: {Сумма НДС})"
    ws["A9"] = "Exchange Rate Notice: 1 USD = {Exchange Rate} EUR"
    ws["A10"] = "Amount in EUR: {Amount in EUR}"
    ws["A11"] = "Bank: {Банковские реквизиты1}"
    ws.merge_cells("A11:D11")
    workbook.save(path)


def write_plain_template(path: Path) -> None:
    workbook = openpyxl.Workbook()
    ws = workbook.active
    ws["A1"] = "Document for {Название клиента}"
    ws["A2"] = "Total {Сумма общая}"
    workbook.save(path)


def write_credit_note_template(path: Path) -> None:
    workbook = openpyxl.Workbook()
    ws = workbook.active
    ws.title = "Credit Note"
    ws["A1"] = "CREDIT NOTE {Номер CN} of {Дата CN}"
    ws["A2"] = "{Название клиента}"
    for col, label in enumerate(CREDIT_NOTE_HEADER, start=1):
        ws.cell(row=4, column=col, value=label)
    for col, value in enumerate(["1", "-", "-", "0"], start=1):
        ws.cell(row=5, column=col, value=value)
        ws.cell(row=6, column=col, value=value)
    ws["A8"] = "Total: {Сумма общая}"
    ws["A9"] = "Exchange Rate Notice"
    ws["A10"] = "Rate {Exchange Rate}, {Amount in EUR}"
    ws["A11"] = "Comment: {Комментарий}"
    workbook.save(path)


def write_contract_template(path: Path) -> None:
    workbook = openpyxl.Workbook()
    ws = workbook.active
    ws["A1"] = "Договор № {№ договора} от {Дата договора}"
    ws["A2"] = "{Наша компания} и {Название контрактора}"
    ws["A3"] = "Эл.почта: {Эл.почта}"
    workbook.save(path)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeConverter:
    """Stands in for LibreOffice: writes a small PDF next to the request."""

    def __init__(self):
        self.calls = []

    def __call__(self, source: Path, out_dir: Path):
        self.calls.append(source)
        produced = out_dir / f"{source.stem}.pdf"
        produced.write_bytes(b"%PDF-1.4\n% test document\n")
        return produced


@pytest.fixture
def app_config(tmp_path):
    data_root = tmp_path / "data"
    templates_dir = data_root / "templates"
    templates_dir.mkdir(parents=True)
    write_invoice_template(templates_dir / "invoice-template.xlsx")
    write_plain_template(templates_dir / "plain-template.xlsx")
    write_credit_note_template(templates_dir / "credit-note-template.xlsx")
    write_contract_template(templates_dir / "contract-template.xlsx")
    write_contract_template(templates_dir / "addendum-template.xlsx")

    workbook_path = data_root / "records.xlsx"
    write_reference_workbook(workbook_path)

    return AppConfig(
        data_root=data_root,
        workbook_path=workbook_path,
        run_log_dir=tmp_path / "logs",
        default_folder_id=DEFAULT_FOLDER_ID,
        output_folder_id=OUTPUT_FOLDER_ID,
        credit_note_template_id="credit-note-template",
        export_delay_seconds=1.0,
        link_base=LINK_BASE,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def converter():
    return FakeConverter()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def orchestrator(app_config, converter, sleeps, clock):
    return Orchestrator(app_config, converter=converter, sleep=sleeps.append, cache=ListCache(clock=clock))


@pytest.fixture
def invoice_form():
    return {
        "projectName": "Acme Project",
        "invoiceNumber": "INV-001",
        "clientName": "Acme Ltd",
        "clientAddress": "1 Main St",
        "clientNumber": "AC 123",
        "invoiceDate": "2024-03-01",
        "dueDate": "31/03/2024",
        "tax": "20",
        "subtotal": "1000",
        "currency": "$",
        "exchangeRate": "1.0845",
        "amountInEUR": "1106.19",
        "bankDetails1": "Bank One, IBAN 111",
        "bankDetails2": "",
        "ourCompany": "Our Co",
        "comment": "Thanks",
        "items": [
            ["", "Development", "01/2024", "10", "50", "500"],
            ["", "Support", "02/2024", "10", "50", "500"],
        ],
    }


@pytest.fixture
def credit_note_form():
    return {
        "projectName": "Acme Project",
        "creditNoteNumber": "CN-7",
        "clientName": "Old Client Name",
        "clientAddress": "Old Address",
        "clientNumber": "OLD 1",
        "creditNoteDate": "2024-04-15",
        "tax": "0",
        "subtotal": "250.5",
        "total": "250.50",
        "currency": "€",
        "ourCompany": "Our Co",
        "comment": "Refund",
        "items": [["", "Refund for March", "03/2024", "250.5"]],
    }


@pytest.fixture
def contract_form():
    return {
        "contractorName": "Ivan Petrenko",
        "contractNumber": "C-42",
        "contractDate": "01.02.2024",
        "ourCompany": "Our Co",
        "documentType": "Contract",
        "contractorEmail": "ivan@example.com",
        "templateLink": f"{LINK_BASE}/contract-template/edit",
        "folderLink": "https://drive.local/drive/folders/contracts-folder",
    }


def sheet_rows(config: AppConfig, sheet: str):
    workbook = openpyxl.load_workbook(config.workbook_path)
    try:
        return [list(row) for row in workbook[sheet].iter_rows(values_only=True)]
    finally:
        workbook.close()


def document_text(path: Path):
    """All non-empty string cells of a document, in reading order."""
    workbook = openpyxl.load_workbook(path)
    try:
        return [
            cell.value
            for ws in workbook.worksheets
            for row in ws.iter_rows()
            for cell in row
            if isinstance(cell.value, str) and cell.value
        ]
    finally:
        workbook.close()
