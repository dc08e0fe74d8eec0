from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from api.schemas import CreditNoteForm, result_payload

router = APIRouter(prefix="/api/credit-notes", tags=["credit-notes"])


def _service(request: Request):
    return request.app.state.orchestrator.credit_notes


@router.get("")
def list_credit_notes(request: Request):
    return _service(request).get_list()


@router.post("")
def create_credit_note(form: CreditNoteForm, request: Request):
    return result_payload(_service(request).create(form.payload()))


@router.get("/{credit_note_id}")
def get_credit_note(credit_note_id: str, request: Request):
    credit_note = _service(request).get_by_id(credit_note_id)
    if credit_note is None:
        raise HTTPException(status_code=404, detail="Credit note not found.")
    return credit_note.to_form()


@router.put("/{credit_note_id}")
def update_credit_note(credit_note_id: str, form: CreditNoteForm, request: Request):
    result = _service(request).update(credit_note_id, form.payload())
    return JSONResponse(status_code=200 if result.success else 400, content=result_payload(result))


@router.delete("/{credit_note_id}")
def delete_credit_note(credit_note_id: str, request: Request):
    result = _service(request).delete(credit_note_id)
    return JSONResponse(status_code=200 if result.success else 400, content=result_payload(result))
