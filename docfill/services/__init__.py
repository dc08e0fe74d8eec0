# docfill/services/__init__.py
from .record_service import InvoiceService, CreditNoteService
from .contract_service import ContractService
from .cache import ListCache

__all__ = ['InvoiceService', 'CreditNoteService', 'ContractService', 'ListCache']
