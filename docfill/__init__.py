# Docfill
# Generates invoices, credit notes and contracts from spreadsheet-stored records

from .orchestrator import Orchestrator
from .system_config import AppConfig, load_app_config

__all__ = ['Orchestrator', 'AppConfig', 'load_app_config']
