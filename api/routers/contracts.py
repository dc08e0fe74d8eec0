from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from api.schemas import ContractForm, result_payload

router = APIRouter(prefix="/api/contracts", tags=["contracts"])


def _orchestrator(request: Request):
    return request.app.state.orchestrator


# --- Generator form helpers (declared before /{contract_id}) ---

@router.get("/options")
def dropdown_options(request: Request):
    return _orchestrator(request).catalog.dropdown_options()


@router.get("/templates")
def contract_templates(
    request: Request,
    cooperationType: str = "",
    ourCompany: str = "",
    serviceType: str = "",
    documentType: str = "",
):
    return _orchestrator(request).catalog.templates(cooperationType, ourCompany, serviceType, documentType)


# --- Records ---

@router.get("")
def list_contracts(request: Request):
    return _orchestrator(request).contracts.get_list()


@router.post("")
def create_contract(form: ContractForm, request: Request):
    return result_payload(_orchestrator(request).contracts.create(form.payload()))


@router.get("/{contract_id}")
def get_contract(contract_id: str, request: Request):
    contract = _orchestrator(request).contracts.get_by_id(contract_id)
    if contract is None:
        raise HTTPException(status_code=404, detail="Contract not found.")
    return contract.to_form()


@router.put("/{contract_id}")
def update_contract(contract_id: str, form: ContractForm, request: Request):
    result = _orchestrator(request).contracts.update(contract_id, form.payload())
    return JSONResponse(status_code=200 if result.success else 400, content=result_payload(result))


@router.delete("/{contract_id}")
def delete_contract(contract_id: str, request: Request):
    result = _orchestrator(request).contracts.delete(contract_id)
    return JSONResponse(status_code=200 if result.success else 400, content=result_payload(result))
