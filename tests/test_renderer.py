import datetime

import openpyxl
import pytest

from docfill.documents.item_table import (
    AnchorPolicy,
    matches_lenient,
    matches_strict,
)
from docfill.documents.renderer import (
    TemplateRenderer,
    apply_exchange_rate_section,
    contract_document_name,
    record_file_prefix,
)
from docfill.documents.template_document import TemplateDocument
from docfill.errors import TableNotFound, TemplateError
from docfill.models import Contract, CreditNote, Invoice
from docfill.schema.registry import CREDIT_NOTE_ANCHOR_ALTERNATIVES, INVOICE_SCHEMA
from docfill.storage.drive import LocalDrive

from conftest import LINK_BASE, document_text, write_invoice_template

FOLDER = "client-folder-00000000000000000"


@pytest.fixture
def drive(app_config):
    return LocalDrive(app_config.drive_root, LINK_BASE, templates_dir=app_config.templates_dir)


@pytest.fixture
def renderer(drive):
    return TemplateRenderer(drive)


def make_invoice(**overrides):
    values = dict(
        id="inv-1",
        invoice_number="INV-001",
        client_name="Acme Ltd",
        client_address="1 Main St",
        invoice_date=datetime.date(2024, 3, 1),
        due_date=datetime.date(2024, 3, 31),
        tax_rate="20",
        subtotal="1000.00",
        tax_amount="200.00",
        total="1200.00",
        exchange_rate="1.0845",
        amount_in_eur="1106.19",
        currency="$",
        our_company="Our Co",
        bank_details_1="Bank One",
        items=[
            ["1", "Development", "01/2024", "10", "50", "500"],
            ["2", "Support", "02/2024", "10", "50", "500"],
        ],
    )
    values.update(overrides)
    return Invoice(**values)


def make_credit_note(**overrides):
    values = dict(
        id="cn-1",
        credit_note_number="CN-7",
        client_name="Acme Ltd",
        credit_note_date=datetime.date(2024, 4, 15),
        total="250.50",
        currency="€",
        comment="Refund",
        our_company="Our Co",
        items=[["1", "Refund", "03/2024", "250.5"]],
    )
    values.update(overrides)
    return CreditNote(**values)


def test_strict_anchor_needs_exact_header():
    signature = INVOICE_SCHEMA.anchor_signature
    assert matches_strict(list(signature), signature)
    assert not matches_strict(["#", "services", "Period", "Quantity", "Rate/hour", "Amount"], signature)
    assert not matches_strict(list(signature) + ["Notes"], signature)


def test_lenient_anchor_accepts_localized_headers():
    assert matches_lenient(["№", "Описание услуг", "Период", "Сумма, €"], CREDIT_NOTE_ANCHOR_ALTERNATIVES)
    assert matches_lenient(["#", "Services", "Period", "Amount", "Extra"], CREDIT_NOTE_ANCHOR_ALTERNATIVES)
    assert not matches_lenient(["#", "Services", "Period"], CREDIT_NOTE_ANCHOR_ALTERNATIVES)
    assert not matches_lenient(["#", "Item", "Period", "Amount"], CREDIT_NOTE_ANCHOR_ALTERNATIVES)


def test_file_names():
    assert record_file_prefix(make_invoice(client_name="Acme: Ltd")) == "2024-03-01_InvoiceINV-001_Our Co-Acme Ltd"
    assert record_file_prefix(make_credit_note()) == "2024-04-15_CreditNoteCN-7_Our Co-Acme Ltd"

    contract = Contract(field_values={"contractNumber": "C-1", "contractDate": "01.02.2024",
                                      "contractorName": "Ivan/P"})
    assert contract_document_name(contract) == "Contract_C-1_01.02.2024_Company-IvanP"
    addendum = Contract(field_values={"documentType": "Attachment", "sowStartDate": "2024-05-01",
                                      "ourCompany": "Our Co", "contractorName": "Ivan"})
    assert contract_document_name(addendum) == "Addendum_1_2024-05-01_Our Co-Ivan"


def test_usd_invoice_render(renderer, drive):
    document = renderer.render("invoice-template", FOLDER, make_invoice())

    assert document.name == "2024-03-01_InvoiceINV-001_Our Co-Acme Ltd.xlsx"
    assert document.url == f"{LINK_BASE}/{document.file_id}"
    assert document.table_filled
    assert drive.get_file(document.file_id).path == document.path

    workbook = openpyxl.load_workbook(document.path)
    ws = workbook.active
    assert ws["A1"].value == "INVOICE INV-001"
    assert ws["A3"].value == "Date: 01/03/2024, due 31/03/2024"
    assert [c.value for c in ws[6]][:6] == ["1", "Development", "01/2024", "10", "$50.00", "$500.00"]
    assert [c.value for c in ws[7]][:6] == ["2", "Support", "02/2024", "10", "$50.00", "$500.00"]
    assert ws["F7"].alignment.horizontal == "right"
    # One row was inserted above the footer
    assert ws["A9"].value == "Total: $1,200.00 (VAT 20%: $200.00)"
    assert ws["A10"].value == "Exchange Rate Notice: 1 USD = 1.0845 EUR"
    assert ws["A11"].value == "Amount in EUR: €1106.19"
    assert ws["A12"].value == "Bank: Bank One"
    assert "A12:D12" in [str(r) for r in ws.merged_cells.ranges]
    workbook.close()


def test_non_usd_invoice_drops_exchange_section(renderer):
    document = renderer.render("invoice-template", FOLDER, make_invoice(currency="€", items=[["1", "Dev", "", "1", "5", "5"]]))
    text = document_text(document.path)

    assert not any("Exchange Rate" in value for value in text)
    assert not any("Amount in EUR" in value for value in text)
    assert "Bank: Bank One" in text
    assert "€5.00" in text


def test_invoice_without_item_table_fails(renderer):
    with pytest.raises(TableNotFound):
        renderer.render("plain-template", FOLDER, make_invoice())


def test_invoice_with_reworded_header_fails(renderer, app_config):
    write_invoice_template(app_config.templates_dir / "reworded.xlsx",
                           header=["#", "Service", "Period", "Quantity", "Rate/hour", "Amount"])
    with pytest.raises(TableNotFound):
        renderer.render("reworded", FOLDER, make_invoice())


def test_credit_note_without_item_table_continues(renderer):
    document = renderer.render("plain-template", FOLDER, make_credit_note())
    assert not document.table_filled
    assert "Document for Acme Ltd" in document_text(document.path)


def test_credit_note_render_blanks_exchange_section(renderer):
    document = renderer.render("credit-note-template", FOLDER, make_credit_note())

    workbook = openpyxl.load_workbook(document.path)
    ws = workbook.active
    assert ws["A1"].value == "CREDIT NOTE CN-7 of 15/04/2024"
    assert [c.value for c in ws[5]][:4] == ["1", "Refund", "03/2024", "€250.50"]
    # The second template body row was removed
    assert ws["A7"].value == "Total: €250.50"
    assert ws["A8"].value is None
    assert ws["A9"].value is None
    assert ws["A10"].value == "Comment: Refund"
    workbook.close()


def test_lone_notice_paragraph_is_blanked(tmp_path):
    path = tmp_path / "notice.xlsx"
    workbook = openpyxl.Workbook()
    workbook.active["A1"] = "Exchange Rate Notice"
    workbook.save(path)

    document = TemplateDocument.open(path)
    apply_exchange_rate_section(document, make_invoice(currency="€"), remove_notice=True)
    assert document.workbook.active["A1"].value is None
    assert document.workbook.active.max_row == 1
    document.close()


def test_missing_template(renderer):
    with pytest.raises(TemplateError):
        renderer.render("no-such-template", FOLDER, make_invoice())
    with pytest.raises(TemplateError):
        renderer.render("", FOLDER, make_invoice())


def test_contract_render(renderer, drive):
    contract = Contract(field_values={
        "contractNumber": "C-42",
        "contractDate": "01.02.2024",
        "ourCompany": "Our Co",
        "contractorName": "Ivan",
        "contractorEmail": "ivan@example.com",
    })
    document = renderer.render_contract(f"{LINK_BASE}/contract-template/edit",
                                        "https://drive.local/drive/folders/contracts", contract)

    assert document.path.parent == drive.folder_path("contracts")
    assert document_text(document.path) == [
        "Договор № C-42 от 01.02.2024",
        "Our Co и Ivan",
        "Эл.почта: ivan@example.com",
    ]

    with pytest.raises(TemplateError):
        renderer.render_contract("not a link", "https://drive.local/drive/folders/contracts", contract)


def test_totals_row_right_under_items_is_kept(renderer, app_config):
    path = app_config.templates_dir / "tight-template.xlsx"
    write_invoice_template(path)
    workbook = openpyxl.load_workbook(path)
    ws = workbook.active
    ws["A7"] = "Total"
    ws["F7"] = "{Сумма общая}"
    workbook.save(path)

    document = renderer.render("tight-template", FOLDER, make_invoice())

    ws = openpyxl.load_workbook(document.path).active
    assert [c.value for c in ws[7]][:6] == ["2", "Support", "02/2024", "10", "$50.00", "$500.00"]
    assert ws["A8"].value == "Total"
    assert ws["F8"].value == "$1,200.00"


def test_item_table_found_beside_a_label(renderer, app_config):
    path = app_config.templates_dir / "labelled-template.xlsx"
    workbook = openpyxl.Workbook()
    ws = workbook.active
    ws["A5"] = "Items:"
    for col, label in enumerate(INVOICE_SCHEMA.anchor_signature, start=3):
        ws.cell(row=5, column=col, value=label)
    ws["C6"] = "1"
    ws["A8"] = "Total {Сумма общая}"
    workbook.save(path)

    document = renderer.render("labelled-template", FOLDER, make_invoice())

    ws = openpyxl.load_workbook(document.path).active
    assert ws["A5"].value == "Items:"
    assert [c.value for c in ws[6]][2:8] == ["1", "Development", "01/2024", "10", "$50.00", "$500.00"]
    assert [c.value for c in ws[7]][2:8] == ["2", "Support", "02/2024", "10", "$50.00", "$500.00"]
    assert ws["A9"].value == "Total $1,200.00"


def write_two_sheet_notice(path):
    workbook = openpyxl.Workbook()
    first = workbook.active
    first.title = "Invoice"
    first["A1"] = "Invoice body"
    first["A2"] = "Exchange Rate Notice"
    workbook.create_sheet("Terms")["A1"] = "Payment terms"
    workbook.save(path)


@pytest.mark.parametrize("record, remove_notice", [
    (make_invoice(currency="€"), True),
    (make_credit_note(currency="€"), False),
])
def test_notice_at_sheet_end_leaves_next_sheet_alone(tmp_path, record, remove_notice):
    path = tmp_path / "two-sheets.xlsx"
    write_two_sheet_notice(path)

    document = TemplateDocument.open(path)
    apply_exchange_rate_section(document, record, remove_notice=remove_notice)
    assert document.workbook["Invoice"]["A1"].value == "Invoice body"
    assert document.workbook["Invoice"]["A2"].value is None
    assert document.workbook["Terms"]["A1"].value == "Payment terms"
    document.close()
