# docfill/documents/template_document.py
"""
Document model over an .xlsx template.

A template is read as a flow of rows on its visible worksheets:

- a *table* starts at a header row with at least MIN_TABLE_COLUMNS
  contiguous non-empty cells anywhere in the row; its body is the run of
  rows right below the header whose first table cell holds an item number;
- a *paragraph* is any other row that holds a value.

Row insertion and deletion keep merged ranges and row heights below the
change aligned with their rows.
"""

import logging
from copy import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import openpyxl
from openpyxl import Workbook
from openpyxl.cell.cell import MergedCell
from openpyxl.worksheet.worksheet import Worksheet

from ..errors import TemplateError
from ..utils.text import cell_text

logger = logging.getLogger(__name__)

MIN_TABLE_COLUMNS = 3


@dataclass(frozen=True)
class DocumentTable:
    sheet_title: str
    header_row: int
    first_col: int
    last_col: int
    body_rows: Tuple[int, ...]
    headers: Tuple[str, ...]

    @property
    def width(self) -> int:
        return self.last_col - self.first_col + 1

    def __repr__(self) -> str:
        return f"DocumentTable({self.sheet_title}!row {self.header_row}, headers={list(self.headers)})"


@dataclass(frozen=True)
class Paragraph:
    sheet_title: str
    row: int
    text: str


def _row_values(worksheet: Worksheet, row_idx: int) -> List[Any]:
    return [cell.value for cell in worksheet[row_idx]]


def _runs(values: Sequence[Any]) -> List[Tuple[int, int]]:
    """1-based (first, last) columns of every run of contiguous non-empty cells."""
    runs = []
    start = None
    for index, value in enumerate(values, start=1):
        if cell_text(value):
            if start is None:
                start = index
        elif start is not None:
            runs.append((start, index - 1))
            start = None
    if start is not None:
        runs.append((start, len(values)))
    return runs


def _header_run(values: Sequence[Any]) -> Optional[Tuple[int, int]]:
    """First run wide enough to be a table header."""
    for first_col, last_col in _runs(values):
        if last_col - first_col + 1 >= MIN_TABLE_COLUMNS:
            return first_col, last_col
    return None


def _is_item_row(worksheet: Worksheet, row_idx: int, first_col: int) -> bool:
    """Item rows carry their running number in the table's first column."""
    return cell_text(worksheet.cell(row=row_idx, column=first_col).value).isdigit()


class TemplateDocument:
    """An opened document copy. Mutations stay in memory until save()."""

    def __init__(self, workbook: Workbook, path: Path):
        self.workbook = workbook
        self.path = Path(path)

    @classmethod
    def open(cls, path: Path) -> "TemplateDocument":
        try:
            workbook = openpyxl.load_workbook(path)
        except (OSError, KeyError, ValueError) as e:
            raise TemplateError(f"Cannot open document '{path}': {e}") from e
        logger.debug(f"Opened document {Path(path).name} with sheets {workbook.sheetnames}")
        return cls(workbook, path)

    def save(self) -> None:
        try:
            self.workbook.save(self.path)
        except OSError as e:
            raise TemplateError(f"Cannot save document '{self.path}': {e}") from e
        logger.debug(f"Saved document {self.path.name}")

    def close(self) -> None:
        self.workbook.close()

    def visible_sheets(self) -> List[Worksheet]:
        return [ws for ws in self.workbook.worksheets if ws.sheet_state == 'visible']

    # ========== Structure ==========

    def _scan_sheet(self, worksheet: Worksheet) -> Tuple[List[DocumentTable], List[Paragraph]]:
        tables: List[DocumentTable] = []
        paragraphs: List[Paragraph] = []
        row_idx = 1
        max_row = worksheet.max_row
        while row_idx <= max_row:
            values = _row_values(worksheet, row_idx)
            if not any(cell_text(v) for v in values):
                row_idx += 1
                continue
            run = _header_run(values)
            if run is not None:
                first_col, last_col = run
                body = []
                next_row = row_idx + 1
                while next_row <= max_row and _is_item_row(worksheet, next_row, first_col):
                    body.append(next_row)
                    next_row += 1
                headers = tuple(cell_text(v) for v in values[first_col - 1:last_col])
                tables.append(DocumentTable(worksheet.title, row_idx, first_col, last_col, tuple(body), headers))
                row_idx = next_row
                continue
            text = " ".join(cell_text(v) for v in values if cell_text(v))
            paragraphs.append(Paragraph(worksheet.title, row_idx, text))
            row_idx += 1
        return tables, paragraphs

    def tables(self) -> List[DocumentTable]:
        found: List[DocumentTable] = []
        for worksheet in self.visible_sheets():
            found.extend(self._scan_sheet(worksheet)[0])
        return found

    def paragraphs(self) -> List[Paragraph]:
        found: List[Paragraph] = []
        for worksheet in self.visible_sheets():
            found.extend(self._scan_sheet(worksheet)[1])
        return found

    # ========== Text ==========

    def replace_text(self, token: str, replacement: Any) -> int:
        """Replaces every occurrence of token inside string cells. Returns the number of cells changed."""
        changed = 0
        replacement_text = "" if replacement is None else str(replacement)
        for worksheet in self.visible_sheets():
            for row in worksheet.iter_rows():
                for cell in row:
                    if isinstance(cell, MergedCell):
                        continue
                    if isinstance(cell.value, str) and token in cell.value:
                        cell.value = cell.value.replace(token, replacement_text)
                        changed += 1
        return changed

    def clear_paragraph(self, paragraph: Paragraph) -> None:
        worksheet = self.workbook[paragraph.sheet_title]
        for cell in worksheet[paragraph.row]:
            if not isinstance(cell, MergedCell):
                cell.value = None

    def remove_paragraph(self, paragraph: Paragraph) -> None:
        self.delete_rows(self.workbook[paragraph.sheet_title], paragraph.row, 1)

    # ========== Rows ==========

    @staticmethod
    def _capture_merges(worksheet: Worksheet, from_row: int) -> List[Tuple[int, int, int, int]]:
        """Unmerges and returns (min_row, min_col, max_row, max_col) of merges starting at or below from_row."""
        captured = []
        for merged_range in list(worksheet.merged_cells.ranges):
            min_col, min_row, max_col, max_row = merged_range.bounds
            if max_row >= from_row:
                captured.append((min_row, min_col, max_row, max_col))
                worksheet.unmerge_cells(str(merged_range))
        return captured

    @staticmethod
    def _capture_heights(worksheet: Worksheet, from_row: int) -> Dict[int, float]:
        heights = {}
        for row_idx, dimension in list(worksheet.row_dimensions.items()):
            if row_idx >= from_row and dimension.height is not None:
                heights[row_idx] = dimension.height
                dimension.height = None
        return heights

    def delete_rows(self, worksheet: Worksheet, start_row: int, count: int) -> None:
        if count <= 0:
            return
        end_row = start_row + count - 1
        merges = self._capture_merges(worksheet, start_row)
        heights = self._capture_heights(worksheet, start_row)
        worksheet.delete_rows(start_row, amount=count)

        for min_row, min_col, max_row, max_col in merges:
            if min_row > end_row:
                worksheet.merge_cells(start_row=min_row - count, start_column=min_col,
                                      end_row=max_row - count, end_column=max_col)
            elif max_row < start_row:
                worksheet.merge_cells(start_row=min_row, start_column=min_col, end_row=max_row, end_column=max_col)
            # merges touching the deleted rows are dropped
        for row_idx, height in heights.items():
            if row_idx > end_row:
                worksheet.row_dimensions[row_idx - count].height = height

    def insert_rows(self, worksheet: Worksheet, at_row: int, count: int,
                    style_row: Optional[int] = None) -> None:
        """Inserts count blank rows before at_row, styled like style_row when given."""
        if count <= 0:
            return
        styles = []
        style_height = None
        if style_row is not None:
            styles = [copy(cell._style) for cell in worksheet[style_row]]
            style_height = worksheet.row_dimensions[style_row].height

        merges = self._capture_merges(worksheet, at_row)
        heights = self._capture_heights(worksheet, at_row)
        worksheet.insert_rows(at_row, amount=count)

        for min_row, min_col, max_row, max_col in merges:
            shift = count if min_row >= at_row else 0
            end_shift = count if max_row >= at_row else 0
            worksheet.merge_cells(start_row=min_row + shift, start_column=min_col,
                                  end_row=max_row + end_shift, end_column=max_col)
        for row_idx, height in heights.items():
            worksheet.row_dimensions[row_idx + count].height = height

        for row_idx in range(at_row, at_row + count):
            for col_idx, style in enumerate(styles, start=1):
                worksheet.cell(row=row_idx, column=col_idx)._style = copy(style)
            if style_height is not None:
                worksheet.row_dimensions[row_idx].height = style_height
