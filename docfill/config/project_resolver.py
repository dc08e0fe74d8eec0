"""
Project configuration lookup against the reference (Lists) sheet, plus the
contract catalog (dropdown options and template links) used by the contract
generator form.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..errors import NoTemplateFound, NoTemplateName, ProjectNotFound
from ..models import ProjectConfig
from ..schema.registry import (
    CONTRACT_OPTION_COLUMNS,
    CURRENCY_SYMBOLS,
    REFERENCE_COLUMNS,
    ReferenceColumns,
)
from ..storage.workbook_store import WorkbookStore
from ..system_config import AppConfig
from ..utils.math_utils import format_percent, safe_decimal_convert
from ..utils.text import cell_text, find_file_id

logger = logging.getLogger(__name__)


def _cell(row: List[Any], index: int) -> Any:
    return row[index] if index < len(row) else None


def _normalize_name(value: Any) -> str:
    return cell_text(value).lower()


def _tax_rate(value: Any) -> str:
    """Numeric cells hold a fraction (0.15), text cells a percentage ("15")."""
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return format_percent(Decimal(str(value)) * 100)
    number = safe_decimal_convert(cell_text(value).rstrip("%"), default=None)
    return format_percent(number) if number is not None else "0"


def _payment_delay(value: Any) -> int:
    number = safe_decimal_convert(value, default=None)
    return int(number) if number is not None else 0


class ProjectConfigResolver:
    """
    Resolves a project name to its ProjectConfig.

    The template map (template name -> id) and the bank map (short code ->
    full details) live in side columns of the same sheet, so they are built
    during the same pass that looks for the project row.
    """

    def __init__(self, store: WorkbookStore, config: AppConfig, columns: ReferenceColumns = REFERENCE_COLUMNS):
        self.store = store
        self.config = config
        self.columns = columns

    def _data_rows(self) -> List[List[Any]]:
        return self.store.read_table(self.config.sheets.lists)[1:]

    def resolve_project_config(self, project_name: str) -> ProjectConfig:
        cols = self.columns
        wanted = _normalize_name(project_name)
        template_map: Dict[str, str] = {}
        bank_map: Dict[str, str] = {}
        project_row: Optional[List[Any]] = None

        for row in self._data_rows():
            if project_row is None and _normalize_name(_cell(row, cols.project_name)) == wanted:
                project_row = row

            template_name = cell_text(_cell(row, cols.template_name_col))
            template_id = cell_text(_cell(row, cols.template_id_col))
            if template_name and template_id:
                template_map[template_name.lower()] = template_id

            short = cell_text(_cell(row, cols.bank_short_col))
            full = cell_text(_cell(row, cols.bank_full_col))
            if short and full:
                bank_map[short] = full

        if project_row is None:
            raise ProjectNotFound(project_name)

        selected_template = cell_text(_cell(project_row, cols.template_name))
        if not selected_template:
            raise NoTemplateName(project_name)
        template_id = template_map.get(selected_template.lower())
        if not template_id:
            raise NoTemplateFound(selected_template)

        short_bank_1 = cell_text(_cell(project_row, cols.bank_short_1))
        short_bank_2 = cell_text(_cell(project_row, cols.bank_short_2))
        logger.debug(
            f"Project '{project_name}': template={template_id}, banks=('{short_bank_1}', '{short_bank_2}'), "
            f"bank map size={len(bank_map)}"
        )

        currency_code = cell_text(_cell(project_row, cols.currency))
        client_number = (
            f"{cell_text(_cell(project_row, cols.client_number_part1))} "
            f"{cell_text(_cell(project_row, cols.client_number_part2))}"
        ).strip()

        return ProjectConfig(
            name=cell_text(_cell(project_row, cols.project_name)),
            client_name=cell_text(_cell(project_row, cols.client_name)),
            client_number=client_number,
            client_address=cell_text(_cell(project_row, cols.client_address)),
            tax_rate=_tax_rate(_cell(project_row, cols.tax_rate)),
            currency=CURRENCY_SYMBOLS.get(currency_code, currency_code),
            payment_delay=_payment_delay(_cell(project_row, cols.payment_delay)),
            day_type=cell_text(_cell(project_row, cols.day_type)).upper(),
            our_company=cell_text(_cell(project_row, cols.our_company)),
            bank_details_1=bank_map.get(short_bank_1, ""),
            bank_details_2=bank_map.get(short_bank_2, ""),
            template_id=template_id,
        )

    def resolve_storage_folder(self, project_name: str) -> str:
        """Folder id from the project's folder link, or the default folder."""
        wanted = _normalize_name(project_name)
        if wanted:
            for row in self._data_rows():
                if _normalize_name(_cell(row, self.columns.project_name)) != wanted:
                    continue
                folder_id = find_file_id(_cell(row, self.columns.folder_link))
                if folder_id:
                    logger.debug(f"Storage folder for '{project_name}': {folder_id}")
                    return folder_id
                logger.warning(f"No valid folder id for project '{project_name}', using default folder")
                return self.config.default_folder_id
        logger.warning(f"Project '{project_name}' not found in reference sheet, using default folder")
        return self.config.default_folder_id

    def list_project_names(self) -> List[str]:
        try:
            names = {cell_text(_cell(row, self.columns.project_name)) for row in self._data_rows()}
        except Exception as e:
            logger.error(f"Error reading project names: {e}", exc_info=True)
            return []
        return sorted(name for name in names if name)


class ContractCatalog:
    """Option lists and template links for the contract generator."""

    def __init__(self, store: WorkbookStore, config: AppConfig):
        self.store = store
        self.config = config

    def dropdown_options(self) -> Dict[str, List[str]]:
        options: Dict[str, List[str]] = {key: [] for key, _ in CONTRACT_OPTION_COLUMNS}
        try:
            rows = self.store.read_table(self.config.sheets.contract_lists)
        except Exception as e:
            logger.error(f"Error reading contract dropdown options: {e}", exc_info=True)
            return options
        if not rows:
            logger.info(f"Sheet '{self.config.sheets.contract_lists}' is missing or empty")
            return options

        for key, column in CONTRACT_OPTION_COLUMNS:
            values = {cell_text(_cell(row, column)) for row in rows[1:]}
            options[key] = sorted(value for value in values if value)
        return options

    def templates(
        self,
        cooperation_type: str = "",
        our_company: str = "",
        service_type: str = "",
        document_type: str = "",
    ) -> List[Dict[str, str]]:
        """
        Templates sheet columns: A cooperation type, B our company,
        C service type, D document type, E template link.
        Empty filters match everything; rows without a link are skipped.
        """
        try:
            rows = self.store.read_table(self.config.sheets.templates)
        except Exception as e:
            logger.error(f"Error reading contract templates: {e}", exc_info=True)
            return []

        filters = (cooperation_type, our_company, service_type, document_type)
        found = []
        for row in rows[1:]:
            values = [cell_text(_cell(row, index)) for index in range(5)]
            link = values[4]
            if not link:
                continue
            if all(not wanted or value == wanted for wanted, value in zip(filters, values)):
                found.append({
                    "cooperationType": values[0],
                    "ourCompany": values[1],
                    "serviceType": values[2],
                    "documentType": values[3],
                    "link": link,
                    "name": " - ".join(values[:4]),
                })
        return found
