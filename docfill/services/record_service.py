# docfill/services/record_service.py
"""
Record Service

Orchestrates create / read / update / delete of invoices and credit notes:

    Validate -> ResolveConfig -> EncodeRow -> PersistRow -> Render
    -> Export -> BackfillLinks -> InvalidateCache

Stages run strictly in order. A failure after PersistRow leaves the stored
row with blank links; nothing is rolled back. create() lets errors
propagate; update() and delete() turn any error into a failed
OperationResult. Reads never raise.
"""

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..codec.row_codec import (
    NOT_FOUND,
    ColumnIndex,
    build_column_index,
    decode,
    encode,
    find_row,
    normalize_items,
    summarize,
)
from ..config.project_resolver import ProjectConfigResolver
from ..documents.exporter import PdfExporter
from ..documents.renderer import TemplateRenderer, record_file_prefix
from ..errors import CleanupWarning, ConfigResolutionError
from ..models import CreditNote, Invoice, OperationResult, ProjectConfig
from ..schema.registry import (
    CREDIT_NOTE_SCHEMA,
    INVOICE_SCHEMA,
    USD_SYMBOL,
    RecordSchema,
)
from ..storage.drive import LocalDrive
from ..storage.workbook_store import WorkbookStore
from ..system_config import AppConfig
from ..utils.math_utils import calculate_totals, format_fixed
from ..utils.snitch import traced
from ..utils.text import cell_text, extract_file_id, parse_date
from .cache import ListCache
from .monitor import OperationMonitor
from .validation import validate_credit_note, validate_invoice

logger = logging.getLogger(__name__)

Record = Union[Invoice, CreditNote]

ARTIFACT_DOCUMENT = "Google Doc"
ARTIFACT_PDF = "PDF"


def trash_artifacts(drive: LocalDrive, links: List[Tuple[str, str]]) -> List[CleanupWarning]:
    """
    Best-effort removal of generated files. A link that is malformed or
    points at a file that is already gone becomes a warning.
    """
    warnings: List[CleanupWarning] = []
    for artifact, link in links:
        if not link:
            continue
        try:
            drive.trash_file(extract_file_id(link))
        except (ValueError, OSError) as e:
            warning = CleanupWarning(artifact=artifact, link=link, reason=str(e))
            logger.warning(f"{warning.message} {e}")
            warnings.append(warning)
    return warnings


class RecordService:
    """Shared pipeline for the positional record types."""

    schema: RecordSchema
    display_name: str

    def __init__(
        self,
        config: AppConfig,
        store: WorkbookStore,
        drive: LocalDrive,
        resolver: ProjectConfigResolver,
        renderer: TemplateRenderer,
        exporter: PdfExporter,
        cache: ListCache,
    ):
        self.config = config
        self.store = store
        self.drive = drive
        self.resolver = resolver
        self.renderer = renderer
        self.exporter = exporter
        self.cache = cache

    # ========== Per type hooks ==========

    @property
    def sheet_name(self) -> str:
        raise NotImplementedError

    def validate(self, data: Mapping[str, Any]) -> None:
        raise NotImplementedError

    def template_id_for(self, project: Optional[ProjectConfig]) -> str:
        raise NotImplementedError

    def resolve_project(self, project_name: str, is_update: bool) -> Optional[ProjectConfig]:
        return self.resolver.resolve_project_config(project_name)

    def prepare_form(self, data: Mapping[str, Any], project: Optional[ProjectConfig], is_update: bool) -> Dict[str, Any]:
        return dict(data)

    def build_record(self, data: Mapping[str, Any], record_id: str) -> Record:
        raise NotImplementedError

    # ========== Building blocks ==========

    def _common_fields(self, data: Mapping[str, Any], record_id: str) -> Dict[str, Any]:
        """Fields shared by invoices and credit notes, with the money recomputed."""
        totals = calculate_totals(data.get("subtotal"), data.get("tax"))
        currency = cell_text(data.get("currency"))
        is_usd = currency == USD_SYMBOL
        return {
            "id": record_id,
            "project_name": cell_text(data.get("projectName")),
            "client_name": cell_text(data.get("clientName")),
            "client_address": cell_text(data.get("clientAddress")),
            "client_number": cell_text(data.get("clientNumber")),
            "tax_rate": totals.tax_rate,
            "subtotal": totals.subtotal,
            "tax_amount": totals.tax_amount,
            "total": totals.total,
            "exchange_rate": format_fixed(data.get("exchangeRate"), 4) if is_usd else "",
            "currency": currency,
            "amount_in_eur": format_fixed(data.get("amountInEUR"), 2) if is_usd else "",
            "our_company": cell_text(data.get("ourCompany")),
            "comment": cell_text(data.get("comment")),
            "items": normalize_items(data.get("items") or [], self.schema.item_layout),
        }

    def _load_table(self) -> Tuple[List[List[Any]], Optional[ColumnIndex]]:
        rows = self.store.read_table(self.sheet_name)
        if not rows:
            return rows, None
        return rows, build_column_index(rows[0], self.schema, self.sheet_name)

    def _artifact_links(self, row: List[Any], column_index: ColumnIndex) -> List[Tuple[str, str]]:
        doc_col = column_index.index_of(self.schema.columns.DOC_LINK)
        pdf_col = column_index.index_of(self.schema.columns.PDF_LINK)
        return [
            (ARTIFACT_DOCUMENT, cell_text(row[doc_col]) if doc_col < len(row) else ""),
            (ARTIFACT_PDF, cell_text(row[pdf_col]) if pdf_col < len(row) else ""),
        ]

    def _backfill_links(self, record_id: str, doc_url: str, pdf_url: str) -> None:
        """Writes the generated links into the row currently holding record_id."""
        rows, column_index = self._load_table()
        match = find_row(rows, column_index, record_id) if column_index else NOT_FOUND
        if match is NOT_FOUND:
            raise LookupError(f"{self.display_name} {record_id} disappeared before its links were written")
        self.store.set_cell(self.sheet_name, match.row_number, column_index.index_of(self.schema.columns.DOC_LINK), doc_url)
        self.store.set_cell(self.sheet_name, match.row_number, column_index.index_of(self.schema.columns.PDF_LINK), pdf_url)

    # ========== Public operations ==========

    @traced
    def create(self, data: Mapping[str, Any]) -> OperationResult:
        with OperationMonitor("create", self.display_name) as monitor:
            monitor.stage("Validate")
            self.validate(data)

            monitor.stage("ResolveConfig")
            project = self.resolve_project(data["projectName"], is_update=False)
            template_id = self.template_id_for(project)
            folder_id = self.resolver.resolve_storage_folder(data["projectName"])

            monitor.stage("EncodeRow")
            record = self.build_record(self.prepare_form(data, project, is_update=False), str(uuid.uuid4()))
            monitor.record_id = record.id
            self.store.ensure_header(self.sheet_name, self.schema.full_header())
            rows, column_index = self._load_table()
            row = encode(record, column_index, self.schema)

            monitor.stage("PersistRow")
            row_number = self.store.append_row(self.sheet_name, row)
            logger.info(f"{self.display_name} {record.id} written to '{self.sheet_name}' row {row_number}")

            try:
                monitor.stage("Render")
                document = self.renderer.render(template_id, folder_id, record)

                monitor.stage("Export")
                pdf_file = self.exporter.export(document, record_file_prefix(record))

                monitor.stage("BackfillLinks")
                self._backfill_links(record.id, document.url, pdf_file.url)

                monitor.stage("InvalidateCache")
            finally:
                # The row is persisted, so a failed render still changes the list
                self.cache.remove(self.schema.list_cache_key)

        return OperationResult(success=True, id=record.id, doc_url=document.url, pdf_url=pdf_file.url)

    @traced
    def get_list(self) -> List[Dict[str, str]]:
        key = self.schema.list_cache_key
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        try:
            rows = self.store.read_table(self.sheet_name)
            if len(rows) < 2:
                return []
            column_index = ColumnIndex.from_header(rows[0], self.sheet_name)
            column_index.require(self.schema.list_columns)
            result = [summarize(row, column_index, self.schema) for row in rows[1:]]
        except Exception as e:
            logger.error(f"Error getting {self.display_name.lower()} list: {e}", exc_info=True)
            return []
        self.cache.put(key, result)
        return result

    @traced
    def get_by_id(self, record_id: Any) -> Optional[Record]:
        if not cell_text(record_id):
            logger.info(f"Invalid ID provided to {self.display_name.lower()} lookup")
            return None
        try:
            rows, column_index = self._load_table()
            if column_index is None:
                return None
            match = find_row(rows, column_index, record_id)
            if match is NOT_FOUND:
                logger.info(f"{self.display_name} with ID {record_id} not found.")
                return None
            return decode(match.values, column_index, self.schema)
        except Exception as e:
            logger.error(f"Error getting {self.display_name.lower()} {record_id}: {e}", exc_info=True)
            return None

    @traced
    def update(self, record_id: Optional[str], data: Mapping[str, Any]) -> OperationResult:
        record_id = cell_text(record_id) or cell_text(data.get("id"))
        if not record_id:
            return OperationResult.failure(f"{self.display_name} ID is required")
        try:
            with OperationMonitor("update", self.display_name, record_id) as monitor:
                monitor.stage("Validate")
                self.validate(data)

                monitor.stage("LocateRow")
                rows, column_index = self._load_table()
                match = find_row(rows, column_index, record_id) if column_index else NOT_FOUND
                if match is NOT_FOUND:
                    return OperationResult.failure(f"{self.display_name} not found.")

                monitor.stage("ResolveConfig")
                project = self.resolve_project(data["projectName"], is_update=True)
                template_id = self.template_id_for(project)
                folder_id = self.resolver.resolve_storage_folder(data["projectName"])

                monitor.stage("CleanupArtifacts")
                warnings = trash_artifacts(self.drive, self._artifact_links(match.values, column_index))

                monitor.stage("Render")
                record = self.build_record(self.prepare_form(data, project, is_update=True), record_id)
                document = self.renderer.render(template_id, folder_id, record)

                monitor.stage("Export")
                pdf_file = self.exporter.export(document, record_file_prefix(record))

                monitor.stage("EncodeRow")
                record = record.model_copy(update={"doc_url": document.url, "pdf_url": pdf_file.url})
                rows, column_index = self._load_table()
                match = find_row(rows, column_index, record_id)
                if match is NOT_FOUND:
                    raise LookupError(f"{self.display_name} {record_id} disappeared during update")
                row = encode(record, column_index, self.schema)

                monitor.stage("PersistRow")
                self.store.write_row(self.sheet_name, match.row_number, row)

                monitor.stage("InvalidateCache")
                self.cache.remove(self.schema.list_cache_key)
        except Exception as e:
            logger.error(f"Error updating {self.display_name.lower()} {record_id}: {e}", exc_info=True)
            return OperationResult.failure(str(e))

        return OperationResult(
            success=True,
            id=record_id,
            doc_url=document.url,
            pdf_url=pdf_file.url,
            warnings=[w.message for w in warnings],
        )

    @traced
    def delete(self, record_id: Any) -> OperationResult:
        record_id = cell_text(record_id)
        if not record_id:
            return OperationResult.failure(f"Invalid {self.display_name.lower()} ID provided")
        try:
            with OperationMonitor("delete", self.display_name, record_id) as monitor:
                monitor.stage("LocateRow")
                rows, column_index = self._load_table()
                match = find_row(rows, column_index, record_id) if column_index else NOT_FOUND
                if match is NOT_FOUND:
                    return OperationResult.failure(f"{self.display_name} not found.")

                monitor.stage("CleanupArtifacts")
                warnings = trash_artifacts(self.drive, self._artifact_links(match.values, column_index))

                monitor.stage("DeleteRow")
                self.store.delete_row(self.sheet_name, match.row_number)

                monitor.stage("InvalidateCache")
                self.cache.remove(self.schema.list_cache_key)
        except Exception as e:
            logger.error(f"Error deleting {self.display_name.lower()} {record_id}: {e}", exc_info=True)
            return OperationResult.failure(str(e))

        return OperationResult(success=True, id=record_id, warnings=[w.message for w in warnings])


class InvoiceService(RecordService):
    schema = INVOICE_SCHEMA
    display_name = "Invoice"

    @property
    def sheet_name(self) -> str:
        return self.config.sheets.invoices

    def validate(self, data: Mapping[str, Any]) -> None:
        validate_invoice(data)

    def template_id_for(self, project: Optional[ProjectConfig]) -> str:
        return project.template_id

    def build_record(self, data: Mapping[str, Any], record_id: str) -> Invoice:
        return Invoice(
            invoice_number=cell_text(data.get("invoiceNumber")),
            invoice_date=parse_date(data.get("invoiceDate")),
            # The form sends the due date as DD/MM/YYYY
            due_date=parse_date(data.get("dueDate"), dayfirst=True),
            bank_details_1=cell_text(data.get("bankDetails1")),
            bank_details_2=cell_text(data.get("bankDetails2")),
            **self._common_fields(data, record_id),
        )


class CreditNoteService(RecordService):
    schema = CREDIT_NOTE_SCHEMA
    display_name = "Credit note"

    @property
    def sheet_name(self) -> str:
        return self.config.sheets.credit_notes

    def validate(self, data: Mapping[str, Any]) -> None:
        validate_credit_note(data)

    def template_id_for(self, project: Optional[ProjectConfig]) -> str:
        return self.config.credit_note_template_id

    def prepare_form(self, data: Mapping[str, Any], project: Optional[ProjectConfig], is_update: bool) -> Dict[str, Any]:
        """On update the project's current client identity, company, tax and currency win over the form."""
        merged = dict(data)
        if not is_update or project is None:
            return merged
        overrides = {
            "clientName": project.client_name,
            "clientAddress": project.client_address,
            "clientNumber": project.client_number,
            "ourCompany": project.our_company,
            "tax": project.tax_rate,
            "currency": project.currency,
        }
        for key, value in overrides.items():
            if value:
                merged[key] = value
        return merged

    def build_record(self, data: Mapping[str, Any], record_id: str) -> CreditNote:
        return CreditNote(
            credit_note_number=cell_text(data.get("creditNoteNumber")),
            credit_note_date=parse_date(data.get("creditNoteDate")),
            **self._common_fields(data, record_id),
        )

    def resolve_project(self, project_name: str, is_update: bool) -> Optional[ProjectConfig]:
        if not is_update:
            return self.resolver.resolve_project_config(project_name)
        try:
            return self.resolver.resolve_project_config(project_name)
        except ConfigResolutionError as e:
            logger.warning(f"Project details unavailable for '{project_name}', keeping form values: {e}")
            return None
