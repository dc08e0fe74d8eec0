from pathlib import Path

from docfill.system_config import load_app_config


def test_config_from_mapping(tmp_path):
    config = load_app_config({
        "DOCFILL_DATA_ROOT": str(tmp_path / "data"),
        "DOCFILL_EXPORT_DELAY": "0.5",
        "DOCFILL_CACHE_TTL": "60",
        "DOCFILL_LINK_BASE": "https://files.example/file/d/",
        "DOCFILL_CREDIT_NOTE_TEMPLATE_ID": "cn-template",
    })

    assert config.data_root == (tmp_path / "data").resolve()
    assert config.workbook_path == (tmp_path / "data" / "records.xlsx").resolve()
    assert config.templates_dir == config.data_root / "templates"
    assert config.export_delay_seconds == 0.5
    assert config.cache_ttl_seconds == 60
    assert config.link_base == "https://files.example/file/d"
    assert config.credit_note_template_id == "cn-template"
    assert config.sheets.credit_notes == "Credit Notes"


def test_bad_numbers_fall_back_to_defaults(tmp_path):
    config = load_app_config({"DOCFILL_EXPORT_DELAY": "soon", "DOCFILL_CACHE_TTL": "forever"})
    assert config.export_delay_seconds == 1.0
    assert config.cache_ttl_seconds == 300
    assert isinstance(config.workbook_path, Path)
