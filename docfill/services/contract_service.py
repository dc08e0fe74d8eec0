"""
Contract records.

Contracts are header-driven: the sheet stores each field under its
localized label, with the id in column A and the document link in column B.
Document generation is optional; a contract is saved even when its
document could not be created.
"""

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..codec.row_codec import NOT_FOUND, ColumnIndex, decode_contract, encode_contract, find_row
from ..documents.renderer import TemplateRenderer
from ..errors import CleanupWarning, DocfillError
from ..models import Contract, OperationResult
from ..schema.registry import (
    CONTRACT_DOC_LINK_COLUMN,
    CONTRACT_ID_COLUMN,
    CONTRACT_LIST_CACHE_KEY,
    ContractField,
    contract_header,
)
from ..storage.drive import LocalDrive
from ..storage.workbook_store import WorkbookStore
from ..system_config import AppConfig
from ..utils.snitch import traced
from ..utils.text import cell_text
from .cache import ListCache
from .monitor import OperationMonitor
from .record_service import ARTIFACT_DOCUMENT, trash_artifacts
from .validation import validate_contract

logger = logging.getLogger(__name__)

LIST_FIELDS = (
    ContractField.FOLDER_LINK,
    ContractField.CONTRACTOR_NAME,
    ContractField.OUR_COMPANY,
    ContractField.SERVICE_TYPE,
    ContractField.COOPERATION_TYPE,
    ContractField.CONTRACT_NUMBER,
    ContractField.CONTRACT_DATE,
    ContractField.TEMPLATE_LINK,
)
REQUIRED_LIST_FIELDS = (ContractField.CONTRACTOR_NAME, ContractField.CONTRACT_NUMBER)


def contract_from_form(data: Mapping[str, Any], contract_id: str, document_url: str = "") -> Contract:
    values = {
        field.form_key: cell_text(data.get(field.form_key))
        for field in ContractField
        if field.form_key in data
    }
    return Contract(id=contract_id, document_url=document_url, field_values=values)


class ContractService:
    def __init__(
        self,
        config: AppConfig,
        store: WorkbookStore,
        drive: LocalDrive,
        renderer: TemplateRenderer,
        cache: ListCache,
    ):
        self.config = config
        self.store = store
        self.drive = drive
        self.renderer = renderer
        self.cache = cache

    @property
    def sheet_name(self) -> str:
        return self.config.sheets.contracts

    def _load_table(self) -> Tuple[List[List[Any]], Optional[ColumnIndex]]:
        rows = self.store.read_table(self.sheet_name)
        if not rows:
            return rows, None
        return rows, ColumnIndex.from_header(rows[0], self.sheet_name)

    def _create_document(self, contract: Contract) -> Tuple[str, Optional[str]]:
        """(document link, failure reason). Skipped when template or folder link is missing."""
        template_link = contract.get(ContractField.TEMPLATE_LINK.form_key)
        folder_link = contract.get(ContractField.FOLDER_LINK.form_key)
        if not template_link or not folder_link:
            return "", None
        try:
            document = self.renderer.render_contract(template_link, folder_link, contract)
        except (DocfillError, OSError) as e:
            logger.warning(f"Could not create contract document: {e}")
            return "", str(e)
        return document.url, None

    @traced
    def create(self, data: Mapping[str, Any]) -> OperationResult:
        with OperationMonitor("create", "Contract") as monitor:
            monitor.stage("Validate")
            validate_contract(data)

            monitor.stage("Render")
            contract = contract_from_form(data, str(uuid.uuid4()))
            monitor.record_id = contract.id
            document_url, failure = self._create_document(contract)
            contract = contract.model_copy(update={"document_url": document_url})

            monitor.stage("EncodeRow")
            self.store.ensure_header(self.sheet_name, contract_header())
            rows, column_index = self._load_table()
            row = encode_contract(contract, column_index)

            monitor.stage("PersistRow")
            self.store.append_row(self.sheet_name, row)

            monitor.stage("InvalidateCache")
            self.cache.remove(CONTRACT_LIST_CACHE_KEY)

        if document_url:
            message = "Contract saved and document created successfully"
        elif failure:
            message = f"Contract saved, document creation failed: {failure}"
        else:
            message = "Contract saved (document creation skipped)"
        return OperationResult(success=True, id=contract.id, doc_url=document_url or None, message=message)

    @traced
    def get_list(self) -> List[Dict[str, str]]:
        cached = self.cache.get(CONTRACT_LIST_CACHE_KEY)
        if cached is not None:
            return cached
        try:
            rows, column_index = self._load_table()
            if len(rows) < 2:
                return []
            column_index.require([field.label for field in REQUIRED_LIST_FIELDS])
            result = []
            for row in rows[1:]:
                contract = decode_contract(row, column_index)
                entry = {"id": contract.id}
                entry.update({field.form_key: contract.get(field.form_key) for field in LIST_FIELDS})
                result.append(entry)
        except Exception as e:
            logger.error(f"Error getting contract list: {e}", exc_info=True)
            return []
        self.cache.put(CONTRACT_LIST_CACHE_KEY, result)
        return result

    @traced
    def get_by_id(self, contract_id: Any) -> Optional[Contract]:
        if not cell_text(contract_id):
            logger.info("Invalid ID provided to contract lookup")
            return None
        try:
            rows, column_index = self._load_table()
            if column_index is None:
                return None
            match = find_row(rows, column_index, contract_id, id_column=CONTRACT_ID_COLUMN)
            if match is NOT_FOUND:
                logger.info(f"Contract with ID {contract_id} not found.")
                return None
            return decode_contract(match.values, column_index)
        except Exception as e:
            logger.error(f"Error getting contract {contract_id}: {e}", exc_info=True)
            return None

    @traced
    def update(self, contract_id: Optional[str], data: Mapping[str, Any]) -> OperationResult:
        contract_id = cell_text(contract_id) or cell_text(data.get("id"))
        if not contract_id:
            return OperationResult.failure("Contract ID is required")
        try:
            with OperationMonitor("update", "Contract", contract_id) as monitor:
                monitor.stage("Validate")
                validate_contract(data)

                monitor.stage("LocateRow")
                rows, column_index = self._load_table()
                match = find_row(rows, column_index, contract_id, id_column=CONTRACT_ID_COLUMN) if column_index else NOT_FOUND
                if match is NOT_FOUND:
                    return OperationResult.failure("Contract not found.")

                monitor.stage("CleanupArtifacts")
                old_link = cell_text(match.values[CONTRACT_DOC_LINK_COLUMN]) if len(match.values) > CONTRACT_DOC_LINK_COLUMN else ""
                warnings: List[CleanupWarning] = trash_artifacts(self.drive, [(ARTIFACT_DOCUMENT, old_link)])

                monitor.stage("Render")
                contract = contract_from_form(data, contract_id)
                document_url, failure = self._create_document(contract)
                contract = contract.model_copy(update={"document_url": document_url})

                monitor.stage("PersistRow")
                self.store.write_row(self.sheet_name, match.row_number, encode_contract(contract, column_index))

                monitor.stage("InvalidateCache")
                self.cache.remove(CONTRACT_LIST_CACHE_KEY)
        except Exception as e:
            logger.error(f"Error updating contract {contract_id}: {e}", exc_info=True)
            return OperationResult.failure(str(e))

        messages = [w.message for w in warnings]
        return OperationResult(
            success=True,
            id=contract_id,
            doc_url=document_url or None,
            message=f"Document creation failed: {failure}" if failure else None,
            warnings=messages,
        )

    @traced
    def delete(self, contract_id: Any) -> OperationResult:
        contract_id = cell_text(contract_id)
        if not contract_id:
            return OperationResult.failure("Invalid contract ID provided")
        try:
            with OperationMonitor("delete", "Contract", contract_id) as monitor:
                monitor.stage("LocateRow")
                rows, column_index = self._load_table()
                match = find_row(rows, column_index, contract_id, id_column=CONTRACT_ID_COLUMN) if column_index else NOT_FOUND
                if match is NOT_FOUND:
                    return OperationResult.failure("Contract not found.")

                monitor.stage("CleanupArtifacts")
                link = cell_text(match.values[CONTRACT_DOC_LINK_COLUMN]) if len(match.values) > CONTRACT_DOC_LINK_COLUMN else ""
                warnings = trash_artifacts(self.drive, [(ARTIFACT_DOCUMENT, link)])

                monitor.stage("DeleteRow")
                self.store.delete_row(self.sheet_name, match.row_number)

                monitor.stage("InvalidateCache")
                self.cache.remove(CONTRACT_LIST_CACHE_KEY)
        except Exception as e:
            logger.error(f"Error deleting contract {contract_id}: {e}", exc_info=True)
            return OperationResult.failure(str(e))

        return OperationResult(success=True, id=contract_id, warnings=[w.message for w in warnings])
