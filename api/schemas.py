from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from docfill.models import OperationResult

# --- Request forms ---
# Every field is optional here: presence checks belong to the services so
# that all missing fields are reported together.


class _Form(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None

    def payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class _RecordForm(_Form):
    projectName: Optional[str] = None
    clientName: Optional[str] = None
    clientAddress: Optional[str] = None
    clientNumber: Optional[str] = None
    subtotal: Optional[Any] = None
    tax: Optional[Any] = None
    total: Optional[Any] = None
    currency: Optional[str] = None
    exchangeRate: Optional[Any] = None
    amountInEUR: Optional[Any] = None
    ourCompany: Optional[str] = None
    comment: Optional[str] = None
    items: Optional[List[List[Any]]] = None


class InvoiceForm(_RecordForm):
    invoiceNumber: Optional[str] = None
    invoiceDate: Optional[str] = None
    dueDate: Optional[str] = None
    bankDetails1: Optional[str] = None
    bankDetails2: Optional[str] = None


class CreditNoteForm(_RecordForm):
    creditNoteNumber: Optional[str] = None
    creditNoteDate: Optional[str] = None


class ContractForm(_Form):
    """Contract fields travel under their form keys (contractorName, contractNumber, ...)."""
    contractorName: Optional[str] = None
    contractNumber: Optional[str] = None
    templateLink: Optional[str] = None
    folderLink: Optional[str] = None


# --- Responses ---

def result_payload(result: OperationResult) -> Dict[str, Any]:
    payload = result.model_dump(by_alias=True, exclude_none=True)
    if result.note:
        payload["note"] = result.note
    return payload
