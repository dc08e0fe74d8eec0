from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from api.schemas import InvoiceForm, result_payload

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


def _service(request: Request):
    return request.app.state.orchestrator.invoices


@router.get("")
def list_invoices(request: Request):
    return _service(request).get_list()


@router.post("")
def create_invoice(form: InvoiceForm, request: Request):
    """Errors propagate to the app's exception handlers."""
    return result_payload(_service(request).create(form.payload()))


@router.get("/{invoice_id}")
def get_invoice(invoice_id: str, request: Request):
    invoice = _service(request).get_by_id(invoice_id)
    if invoice is None:
        raise HTTPException(status_code=404, detail="Invoice not found.")
    return invoice.to_form()


@router.put("/{invoice_id}")
def update_invoice(invoice_id: str, form: InvoiceForm, request: Request):
    result = _service(request).update(invoice_id, form.payload())
    return JSONResponse(status_code=200 if result.success else 400, content=result_payload(result))


@router.delete("/{invoice_id}")
def delete_invoice(invoice_id: str, request: Request):
    result = _service(request).delete(invoice_id)
    return JSONResponse(status_code=200 if result.success else 400, content=result_payload(result))
