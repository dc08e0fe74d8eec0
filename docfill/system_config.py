import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

# Define Project Root (Assuming this file is in docfill/system_config.py)
PROJECT_ROOT = Path(__file__).resolve().parent.parent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SheetNames:
    """Names of the worksheets inside the storage workbook."""
    lists: str = "Lists"
    invoices: str = "Invoices"
    credit_notes: str = "Credit Notes"
    contracts: str = "Contracts"
    contract_lists: str = "Contract Lists"
    templates: str = "Templates"


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Built once at process start by load_app_config() and handed to every
    component explicitly. Nothing in the package reads the environment on its own.
    """
    data_root: Path
    workbook_path: Path
    run_log_dir: Path
    default_folder_id: str
    output_folder_id: str
    credit_note_template_id: str
    export_delay_seconds: float = 1.0
    cache_ttl_seconds: int = 300
    link_base: str = "https://drive.local/file/d"
    soffice_binary: str = "soffice"
    sheets: SheetNames = field(default_factory=SheetNames)

    @property
    def drive_root(self) -> Path:
        return self.data_root / "drive"

    @property
    def templates_dir(self) -> Path:
        return self.data_root / "templates"


def _load_env_file(env_path: Path) -> None:
    """Manually load .env file into os.environ if not already set."""
    if not env_path.exists():
        return
    try:
        with open(env_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if "=" in line:
                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip().strip("'").strip('"')
                    # Only set if not already in environment (OS env var takes precedence)
                    if key and key not in os.environ:
                        os.environ[key] = value
        logger.info("Loaded .env file for environment configuration.")
    except OSError as e:
        logger.warning(f"Failed to parse .env file: {e}")


def _resolve_path(env: Dict[str, str], env_key: str, default: Path) -> Path:
    env_val = env.get(env_key)
    if env_val:
        path_obj = Path(env_val)
        if path_obj.is_absolute():
            return path_obj.resolve()
        return (PROJECT_ROOT / path_obj).resolve()
    return default.resolve()


def load_app_config(env: Optional[Dict[str, str]] = None, env_file: Optional[Path] = None) -> AppConfig:
    """
    Build the AppConfig from environment variables.

    Args:
        env: Mapping to read from. Defaults to os.environ (after loading .env).
        env_file: Optional .env location; defaults to PROJECT_ROOT/.env.
    """
    if env is None:
        _load_env_file(env_file or PROJECT_ROOT / ".env")
        env = dict(os.environ)

    data_root = _resolve_path(env, "DOCFILL_DATA_ROOT", PROJECT_ROOT / "data")
    workbook_path = _resolve_path(env, "DOCFILL_WORKBOOK", data_root / "records.xlsx")
    run_log_dir = _resolve_path(env, "RUN_LOG_DIR", PROJECT_ROOT / "run_log")

    try:
        export_delay = float(env.get("DOCFILL_EXPORT_DELAY", "1.0"))
    except ValueError:
        logger.warning("DOCFILL_EXPORT_DELAY is not a number, using 1.0")
        export_delay = 1.0
    try:
        cache_ttl = int(env.get("DOCFILL_CACHE_TTL", "300"))
    except ValueError:
        logger.warning("DOCFILL_CACHE_TTL is not an integer, using 300")
        cache_ttl = 300

    config = AppConfig(
        data_root=data_root,
        workbook_path=workbook_path,
        run_log_dir=run_log_dir,
        default_folder_id=env.get("DOCFILL_DEFAULT_FOLDER_ID", "shared-output-folder-000000000"),
        output_folder_id=env.get("DOCFILL_OUTPUT_FOLDER_ID", "shared-output-folder-000000000"),
        credit_note_template_id=env.get("DOCFILL_CREDIT_NOTE_TEMPLATE_ID", "credit-note-template"),
        export_delay_seconds=export_delay,
        cache_ttl_seconds=cache_ttl,
        link_base=env.get("DOCFILL_LINK_BASE", "https://drive.local/file/d").rstrip("/"),
        soffice_binary=env.get("DOCFILL_SOFFICE", "soffice"),
    )
    logger.debug(f"Application config loaded: workbook={config.workbook_path}, data_root={config.data_root}")
    return config
