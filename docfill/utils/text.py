# This module contains utilities for text manipulation, date parsing and link parsing.

import datetime
import logging
import re
from typing import Any, Optional

# The python-dateutil library is required for date parsing.
# Install it using: pip install python-dateutil
from dateutil.parser import parse, ParserError

logger = logging.getLogger(__name__)

UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|]')
FILE_ID_PATTERN = re.compile(r'[-\w]{25,}')
FOLDER_URL_PATTERN = re.compile(r'folders/([a-zA-Z0-9_-]+)')
DOC_URL_PATTERN = re.compile(r'/d/([a-zA-Z0-9_-]+)')
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{1,2}-\d{1,2}")

DISPLAY_DATE_FORMAT = "%d/%m/%Y"
INPUT_DATE_FORMAT = "%Y-%m-%d"


def cell_text(value: Any) -> str:
    """String form of a cell value, trimmed. None becomes ''."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def excel_number_to_datetime(excel_num: Any) -> Optional[datetime.datetime]:
    """Converts an Excel date number to a Python datetime object."""
    try:
        excel_num = float(excel_num)
        # Excel's 1900 leap year bug needs to be accounted for.
        if excel_num > 59:
            excel_num -= 1
        delta = datetime.timedelta(days=excel_num - 1)
        return datetime.datetime(1900, 1, 1) + delta
    except (ValueError, TypeError):
        return None


def parse_date(value: Any, dayfirst: bool = False) -> Optional[datetime.date]:
    """
    Parses a value (string, Excel serial number, date or datetime) into a date.

    ISO strings ("2024-03-01") are unambiguous; slash dates are read according
    to dayfirst, the form sends due dates as DD/MM/YYYY.
    Returns None for blank or unparseable input.
    """
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, (int, float)):
        parsed = excel_number_to_datetime(value) if value >= 1 else None
        return parsed.date() if parsed else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            # Year-first strings are never day-first
            if ISO_DATE_PATTERN.match(text):
                dayfirst = False
            return parse(text, dayfirst=dayfirst).date()
        except (ParserError, ValueError, OverflowError):
            logger.debug(f"Could not parse date from '{text}'")
            return None
    return None


def format_display_date(value: Any, dayfirst: bool = False) -> str:
    parsed = parse_date(value, dayfirst=dayfirst)
    return parsed.strftime(DISPLAY_DATE_FORMAT) if parsed else ""


def format_input_date(value: Any, dayfirst: bool = False) -> str:
    """Date as the form expects it back (YYYY-MM-DD)."""
    parsed = parse_date(value, dayfirst=dayfirst)
    return parsed.strftime(INPUT_DATE_FORMAT) if parsed else ""


def clean_filename_part(value: Any) -> str:
    return UNSAFE_FILENAME_CHARS.sub("", cell_text(value)).strip()


def build_record_filename(date_text: str, type_label: str, number: Any, our_company: Any, client_name: Any) -> str:
    """{date}_{Type}{number}_{ourCompany}-{clientName} with path-unsafe characters stripped."""
    return (
        f"{cell_text(date_text)}_{type_label}{cell_text(number)}_"
        f"{clean_filename_part(our_company)}-{clean_filename_part(client_name)}"
    )


def extract_file_id(url: Any) -> str:
    """
    Pulls a storage file id (run of 25+ id-safe characters) out of a link.

    Raises:
        ValueError: if the link is empty or holds no id.
    """
    if not url or not isinstance(url, str):
        raise ValueError(f"Invalid URL provided: {url}")
    match = FILE_ID_PATTERN.search(url)
    if not match:
        raise ValueError(f"Invalid file URL: {url}")
    return match.group(0)


def find_file_id(text: Any) -> Optional[str]:
    match = FILE_ID_PATTERN.search(cell_text(text))
    return match.group(0) if match else None


def extract_folder_id_from_url(folder_url: Any) -> Optional[str]:
    match = FOLDER_URL_PATTERN.search(cell_text(folder_url))
    return match.group(1) if match else None


def extract_doc_id_from_url(doc_url: Any) -> Optional[str]:
    match = DOC_URL_PATTERN.search(cell_text(doc_url))
    return match.group(1) if match else None
