"""Fixed-format (PDF) export of rendered documents."""

import logging
import tempfile
import time
from pathlib import Path
from typing import Callable, Optional

from ..errors import ExportError
from ..storage.drive import DriveFile, LocalDrive
from ..utils.executor import Executor
from .renderer import RenderedDocument

logger = logging.getLogger(__name__)

# (source document, output directory) -> path of the produced PDF
PdfConverter = Callable[[Path, Path], Optional[Path]]


class SofficeConverter:
    """Converts a document with a headless LibreOffice."""

    def __init__(self, binary: str = "soffice", executor: Optional[Executor] = None):
        self.binary = binary
        self.executor = executor or Executor()

    def __call__(self, source: Path, out_dir: Path) -> Optional[Path]:
        command = [self.binary, "--headless", "--convert-to", "pdf", "--outdir", str(out_dir), str(source)]
        if not self.executor.run_command(command, verbose=True):
            return None
        return out_dir / f"{source.stem}.pdf"


class PdfExporter:
    """
    Writes the PDF of a finalized document into the flat output folder.

    The export waits a fixed delay first so the document save has settled.
    """

    def __init__(
        self,
        drive: LocalDrive,
        output_folder_id: str,
        delay_seconds: float = 1.0,
        converter: Optional[PdfConverter] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.drive = drive
        self.output_folder_id = output_folder_id
        self.delay_seconds = delay_seconds
        self.converter = converter or SofficeConverter()
        self.sleep = sleep

    def export(self, document: RenderedDocument, file_name_prefix: str) -> DriveFile:
        """
        Raises:
            ExportError: the conversion produced no file.
        """
        if self.delay_seconds > 0:
            self.sleep(self.delay_seconds)

        with tempfile.TemporaryDirectory(prefix="docfill_pdf_") as tmp:
            produced = self.converter(document.path, Path(tmp))
            if produced is None or not Path(produced).exists():
                raise ExportError(f"PDF conversion of '{document.name}' produced no file")
            pdf_file = self.drive.add_file(Path(produced), f"{file_name_prefix}.pdf", self.output_folder_id)

        logger.info(f"Exported {document.name} -> {pdf_file.name} ({pdf_file.file_id})")
        return pdf_file
