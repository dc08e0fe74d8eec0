"""
Domain models shared by the codec, the renderer and the services.

Field aliases are the camelCase keys the generator forms submit, so a form
payload can be validated straight into a model (populate_by_name keeps the
snake_case names usable from Python).
"""
import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

LineItem = List[str]


class ProjectConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    client_name: str = ""
    client_number: str = ""
    client_address: str = ""
    tax_rate: str = "0"
    currency: str = ""
    payment_delay: int = 0
    day_type: str = ""
    our_company: str = ""
    bank_details_1: str = ""
    bank_details_2: str = ""
    template_id: str


class _RecordModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    project_name: str = Field("", alias="projectName")
    client_name: str = Field("", alias="clientName")
    client_address: str = Field("", alias="clientAddress")
    client_number: str = Field("", alias="clientNumber")
    tax_rate: str = Field("0", alias="tax")
    subtotal: str = "0.00"
    tax_amount: str = Field("0.00", alias="taxAmount")
    total: str = "0.00"
    exchange_rate: str = Field("", alias="exchangeRate")
    currency: str = ""
    amount_in_eur: str = Field("", alias="amountInEUR")
    our_company: str = Field("", alias="ourCompany")
    comment: str = ""
    items: List[LineItem] = Field(default_factory=list)
    doc_url: str = Field("", alias="docUrl")
    pdf_url: str = Field("", alias="pdfUrl")

    def to_form(self) -> Dict[str, object]:
        """Form-shaped dict (camelCase keys, dates as YYYY-MM-DD)."""
        return self.model_dump(by_alias=True, mode="json")


class Invoice(_RecordModel):
    invoice_number: str = Field("", alias="invoiceNumber")
    invoice_date: Optional[datetime.date] = Field(None, alias="invoiceDate")
    due_date: Optional[datetime.date] = Field(None, alias="dueDate")
    bank_details_1: str = Field("", alias="bankDetails1")
    bank_details_2: str = Field("", alias="bankDetails2")

    @property
    def number(self) -> str:
        return self.invoice_number

    @property
    def record_date(self) -> Optional[datetime.date]:
        return self.invoice_date


class CreditNote(_RecordModel):
    credit_note_number: str = Field("", alias="creditNoteNumber")
    credit_note_date: Optional[datetime.date] = Field(None, alias="creditNoteDate")

    @property
    def number(self) -> str:
        return self.credit_note_number

    @property
    def record_date(self) -> Optional[datetime.date]:
        return self.credit_note_date


class Contract(BaseModel):
    """Contract fields keyed by form key; the sheet stores them under localized labels."""
    id: str = ""
    document_url: str = Field("", alias="documentUrl")
    field_values: Dict[str, str] = Field(default_factory=dict, alias="fields")

    model_config = ConfigDict(populate_by_name=True)

    def get(self, form_key: str) -> str:
        return self.field_values.get(form_key, "")

    def to_form(self) -> Dict[str, str]:
        data = dict(self.field_values)
        data["id"] = self.id
        data["documentUrl"] = self.document_url
        return data


class OperationResult(BaseModel):
    """Outcome of a mutation as returned to the caller."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    id: Optional[str] = None
    doc_url: Optional[str] = Field(None, alias="docUrl")
    pdf_url: Optional[str] = Field(None, alias="pdfUrl")
    message: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)

    @property
    def note(self) -> Optional[str]:
        return " ".join(self.warnings) if self.warnings else None

    @classmethod
    def failure(cls, message: str) -> "OperationResult":
        return cls(success=False, message=message)
