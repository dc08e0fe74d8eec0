import datetime

import pytest

from docfill.errors import ValidationError
from docfill.schema.registry import CreditNoteColumn

from conftest import document_text, sheet_rows


def test_create_credit_note(orchestrator, app_config, credit_note_form):
    result = orchestrator.credit_notes.create(credit_note_form)
    assert result.success

    rows = sheet_rows(app_config, "Credit Notes")
    assert rows[0][:3] == ["ID", "Project Name", "CN Number"]
    assert rows[0][18:22] == ["Row 1 #", "Row 1 Description", "Row 1 Period", "Row 1 Amount"]
    row = rows[1]
    assert row[rows[0].index(CreditNoteColumn.SUBTOTAL.value)] == "250.50"
    assert row[rows[0].index(CreditNoteColumn.TAX_AMOUNT.value)] == "0.00"
    assert row[18:22] == ["1", "Refund for March", "03/2024", "250.5"]

    credit_note = orchestrator.credit_notes.get_by_id(result.id)
    assert credit_note.credit_note_date == datetime.date(2024, 4, 15)
    # Form values are kept on create
    assert credit_note.client_name == "Old Client Name"

    document = orchestrator.drive.get_file(result.doc_url.rsplit("/", 1)[1])
    assert document.name == "2024-04-15_CreditNoteCN-7_Our Co-Old Client Name.xlsx"
    text = document_text(document.path)
    assert "CREDIT NOTE CN-7 of 15/04/2024" in text
    assert "€250.50" in text
    assert "Exchange Rate Notice" not in text


def test_create_validation(orchestrator, credit_note_form):
    form = dict(credit_note_form)
    del form["clientAddress"]
    with pytest.raises(ValidationError) as exc_info:
        orchestrator.credit_notes.create(form)
    assert exc_info.value.errors == ["clientAddress is required"]


def test_update_takes_client_details_from_project(orchestrator, credit_note_form):
    created = orchestrator.credit_notes.create(credit_note_form)

    result = orchestrator.credit_notes.update(created.id, dict(credit_note_form, comment="Second try"))
    assert result.success

    credit_note = orchestrator.credit_notes.get_by_id(created.id)
    assert credit_note.client_name == "Acme Ltd"
    assert credit_note.client_address == "1 Main St"
    assert credit_note.client_number == "AC 123"
    assert credit_note.tax_rate == "20"
    assert credit_note.currency == "$"
    assert credit_note.total == "300.60"
    assert credit_note.comment == "Second try"


def test_update_keeps_form_values_for_unresolvable_project(orchestrator, credit_note_form):
    form = dict(credit_note_form, projectName="Unassigned Project")
    created = orchestrator.credit_notes.create(dict(credit_note_form))
    result = orchestrator.credit_notes.update(created.id, form)

    assert result.success
    credit_note = orchestrator.credit_notes.get_by_id(created.id)
    assert credit_note.project_name == "Unassigned Project"
    assert credit_note.client_name == "Old Client Name"


def test_list_and_delete(orchestrator, credit_note_form):
    created = orchestrator.credit_notes.create(credit_note_form)
    assert orchestrator.credit_notes.get_list() == [{
        "id": created.id,
        "projectName": "Acme Project",
        "creditNoteNumber": "CN-7",
        "creditNoteDate": "15/04/2024",
        "total": "250.50",
        "currency": "€",
    }]

    result = orchestrator.credit_notes.delete(created.id)
    assert result.success
    assert orchestrator.credit_notes.get_list() == []
    assert orchestrator.credit_notes.delete(created.id).message == "Credit note not found."


def test_delete_with_artifacts_already_gone(orchestrator, app_config, credit_note_form):
    created = orchestrator.credit_notes.create(credit_note_form)
    orchestrator.drive.trash_file(created.doc_url.rsplit("/", 1)[1])
    orchestrator.drive.trash_file(created.pdf_url.rsplit("/", 1)[1])

    result = orchestrator.credit_notes.delete(created.id)

    assert result.success
    assert result.warnings == ["Google Doc already deleted or not found.", "PDF already deleted or not found."]
    assert result.note == "Google Doc already deleted or not found. PDF already deleted or not found."
    assert len(sheet_rows(app_config, "Credit Notes")) == 1
    assert orchestrator.credit_notes.get_by_id(created.id) is None
