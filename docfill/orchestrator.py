# docfill/orchestrator.py
from typing import Callable, Optional

from .config.project_resolver import ContractCatalog, ProjectConfigResolver
from .documents.exporter import PdfConverter, PdfExporter, SofficeConverter
from .documents.renderer import TemplateRenderer
from .services.cache import ListCache
from .services.contract_service import ContractService
from .services.record_service import CreditNoteService, InvoiceService
from .storage.drive import LocalDrive
from .storage.workbook_store import WorkbookStore
from .system_config import AppConfig


class Orchestrator:
    """
    Wires the storage, resolver, renderer and services together from one AppConfig.
    All record services share a single workbook store, drive and list cache.
    """

    def __init__(
        self,
        config: AppConfig,
        converter: Optional[PdfConverter] = None,
        sleep: Optional[Callable[[float], None]] = None,
        cache: Optional[ListCache] = None,
    ):
        self.config = config
        self.store = WorkbookStore(config.workbook_path)
        self.drive = LocalDrive(config.drive_root, config.link_base, templates_dir=config.templates_dir)
        self.cache = cache or ListCache(timeout=config.cache_ttl_seconds)
        self.resolver = ProjectConfigResolver(self.store, config)
        self.catalog = ContractCatalog(self.store, config)
        self.renderer = TemplateRenderer(self.drive)

        exporter_kwargs = {}
        if sleep is not None:
            exporter_kwargs["sleep"] = sleep
        self.exporter = PdfExporter(
            self.drive,
            config.output_folder_id,
            delay_seconds=config.export_delay_seconds,
            converter=converter or SofficeConverter(config.soffice_binary),
            **exporter_kwargs,
        )

        shared = (config, self.store, self.drive, self.resolver, self.renderer, self.exporter, self.cache)
        self.invoices = InvoiceService(*shared)
        self.credit_notes = CreditNoteService(*shared)
        self.contracts = ContractService(config, self.store, self.drive, self.renderer, self.cache)
