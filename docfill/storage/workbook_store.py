# docfill/storage/workbook_store.py
import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence

import openpyxl
from openpyxl import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from ..schema.registry import TEXT_MARKER

logger = logging.getLogger(__name__)

FORMAT_TEXT = '@'


class WorkbookStore:
    """
    Tabular storage backed by a single .xlsx workbook, one worksheet per table.

    Rows are addressed by 1-based sheet row numbers (row 1 is the header).
    Every call opens the workbook, applies the change and saves it, so callers
    never hold a stale workbook between stages of an operation.

    A string written with a leading TEXT_MARKER is stored without the marker
    and with the text number format, which keeps spreadsheet apps from
    reinterpreting values such as "01/2024" as dates.
    """

    def __init__(self, workbook_path: Path):
        self.workbook_path = Path(workbook_path)

    # ========== Workbook access ==========

    def _load(self) -> Workbook:
        if self.workbook_path.exists():
            return openpyxl.load_workbook(self.workbook_path)
        logger.info(f"Workbook {self.workbook_path} does not exist yet, starting a new one")
        workbook = Workbook()
        # Remove the default 'Sheet' created by openpyxl
        if 'Sheet' in workbook.sheetnames:
            del workbook['Sheet']
        return workbook

    def _save(self, workbook: Workbook) -> None:
        self.workbook_path.parent.mkdir(parents=True, exist_ok=True)
        workbook.save(self.workbook_path)
        workbook.close()

    def _sheet(self, workbook: Workbook, sheet_name: str, create: bool = False) -> Optional[Worksheet]:
        if sheet_name in workbook.sheetnames:
            return workbook[sheet_name]
        if create:
            logger.debug(f"Created sheet: '{sheet_name}'")
            return workbook.create_sheet(title=sheet_name)
        return None

    @staticmethod
    def _last_row(worksheet: Worksheet) -> int:
        """Last row holding any value (0 for an empty sheet)."""
        for row_idx in range(worksheet.max_row, 0, -1):
            for cell in worksheet[row_idx]:
                if cell.value is not None and str(cell.value) != "":
                    return row_idx
        return 0

    @staticmethod
    def _write_value(worksheet: Worksheet, row_idx: int, col_idx: int, value: Any) -> None:
        cell = worksheet.cell(row=row_idx, column=col_idx)
        if isinstance(value, str) and value.startswith(TEXT_MARKER):
            cell.value = value[len(TEXT_MARKER):]
            cell.number_format = FORMAT_TEXT
        else:
            cell.value = None if value == "" else value

    def _write_values(self, worksheet: Worksheet, row_idx: int, values: Sequence[Any]) -> None:
        for col_offset, value in enumerate(values):
            self._write_value(worksheet, row_idx, col_offset + 1, value)
        # Clear leftovers from a previously wider row
        for col_idx in range(len(values) + 1, worksheet.max_column + 1):
            worksheet.cell(row=row_idx, column=col_idx).value = None

    # ========== Reads ==========

    def has_sheet(self, sheet_name: str) -> bool:
        if not self.workbook_path.exists():
            return False
        workbook = openpyxl.load_workbook(self.workbook_path, read_only=True)
        try:
            return sheet_name in workbook.sheetnames
        finally:
            workbook.close()

    def read_table(self, sheet_name: str) -> List[List[Any]]:
        """
        All rows of a sheet (header included) as lists of raw cell values.

        Trailing empty rows are dropped; a missing sheet reads as an empty table.
        """
        if not self.workbook_path.exists():
            return []
        workbook = openpyxl.load_workbook(self.workbook_path)
        try:
            worksheet = self._sheet(workbook, sheet_name)
            if worksheet is None:
                logger.warning(f"Sheet '{sheet_name}' not found in {self.workbook_path.name}")
                return []
            last_row = self._last_row(worksheet)
            if last_row == 0:
                return []
            return [
                list(row)
                for row in worksheet.iter_rows(min_row=1, max_row=last_row, values_only=True)
            ]
        finally:
            workbook.close()

    # ========== Writes ==========

    def ensure_header(self, sheet_name: str, header: Sequence[str]) -> bool:
        """Writes the header row when the sheet is empty. Returns True if it was written."""
        workbook = self._load()
        worksheet = self._sheet(workbook, sheet_name, create=True)
        if self._last_row(worksheet) > 0:
            workbook.close()
            return False
        self._write_values(worksheet, 1, header)
        self._save(workbook)
        logger.info(f"Sheet '{sheet_name}' was empty, headers created.")
        return True

    def append_row(self, sheet_name: str, values: Sequence[Any]) -> int:
        """Writes values at the next free row and returns its 1-based row number."""
        workbook = self._load()
        worksheet = self._sheet(workbook, sheet_name, create=True)
        row_idx = self._last_row(worksheet) + 1
        self._write_values(worksheet, row_idx, values)
        self._save(workbook)
        logger.debug(f"Appended row {row_idx} to '{sheet_name}' ({len(values)} cells)")
        return row_idx

    def write_row(self, sheet_name: str, row_idx: int, values: Sequence[Any]) -> None:
        workbook = self._load()
        worksheet = self._sheet(workbook, sheet_name)
        if worksheet is None:
            workbook.close()
            raise KeyError(f"Sheet '{sheet_name}' not found")
        self._write_values(worksheet, row_idx, values)
        self._save(workbook)
        logger.debug(f"Overwrote row {row_idx} in '{sheet_name}'")

    def set_cell(self, sheet_name: str, row_idx: int, col_idx: int, value: Any) -> None:
        """Sets a single cell. col_idx is 0-based like the row lists returned by read_table."""
        workbook = self._load()
        worksheet = self._sheet(workbook, sheet_name)
        if worksheet is None:
            workbook.close()
            raise KeyError(f"Sheet '{sheet_name}' not found")
        self._write_value(worksheet, row_idx, col_idx + 1, value)
        self._save(workbook)

    def delete_row(self, sheet_name: str, row_idx: int) -> None:
        workbook = self._load()
        worksheet = self._sheet(workbook, sheet_name)
        if worksheet is None:
            workbook.close()
            raise KeyError(f"Sheet '{sheet_name}' not found")
        worksheet.delete_rows(row_idx, 1)
        self._save(workbook)
        logger.debug(f"Deleted row {row_idx} from '{sheet_name}'")
