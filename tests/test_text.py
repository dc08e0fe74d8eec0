import datetime

import pytest

from docfill.utils.text import (
    build_record_filename,
    cell_text,
    extract_doc_id_from_url,
    extract_file_id,
    extract_folder_id_from_url,
    find_file_id,
    format_display_date,
    format_input_date,
    parse_date,
)


def test_cell_text():
    assert cell_text(None) == ""
    assert cell_text(30.0) == "30"
    assert cell_text("  x ") == "x"


def test_iso_dates_ignore_dayfirst():
    assert parse_date("2024-03-01", dayfirst=True) == datetime.date(2024, 3, 1)


def test_slash_dates_follow_dayfirst():
    assert parse_date("05/03/2024", dayfirst=True) == datetime.date(2024, 3, 5)
    assert parse_date("05/03/2024") == datetime.date(2024, 5, 3)


def test_parse_date_other_inputs():
    assert parse_date(datetime.datetime(2024, 1, 2, 10, 30)) == datetime.date(2024, 1, 2)
    assert parse_date(45352) == datetime.date(2024, 3, 1)
    assert parse_date("") is None
    assert parse_date("not a date") is None


def test_date_formats():
    assert format_display_date("2024-03-01") == "01/03/2024"
    assert format_input_date(datetime.date(2024, 3, 1)) == "2024-03-01"
    assert format_display_date(None) == ""


def test_record_filename_strips_unsafe_characters():
    name = build_record_filename("2024-03-01", "Invoice", "INV/7", 'Our "Co"', "A:B|C")
    assert name == "2024-03-01_InvoiceINV/7_Our Co-ABC"


def test_file_id_extraction():
    link = "https://drive.local/file/d/0123456789abcdef0123456789abcdef"
    assert extract_file_id(link) == "0123456789abcdef0123456789abcdef"
    assert find_file_id("no id here") is None
    with pytest.raises(ValueError):
        extract_file_id("")
    with pytest.raises(ValueError):
        extract_file_id("https://drive.local/file/d/short")


def test_folder_and_doc_ids():
    assert extract_folder_id_from_url("https://drive.local/drive/folders/abc_DEF-1?x=1") == "abc_DEF-1"
    assert extract_doc_id_from_url("https://drive.local/file/d/tmpl-1/edit") == "tmpl-1"
    assert extract_doc_id_from_url("nothing") is None
