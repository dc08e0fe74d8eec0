# docfill/documents/renderer.py
"""
Template rendering pipeline.

    copy template -> anchor + fill item table -> exchange rate section
    -> placeholder substitution -> save

The renderer owns the opened document for the whole pipeline and hands back
a frozen RenderedDocument once the copy has been saved and closed.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple, Union

from ..errors import TemplateError
from ..models import Contract, CreditNote, Invoice
from ..schema.registry import (
    CREDIT_NOTE_ANCHOR_ALTERNATIVES,
    CREDIT_NOTE_SCHEMA,
    EUR_SYMBOL,
    INVOICE_SCHEMA,
    USD_SYMBOL,
    ItemBlockLayout,
)
from ..storage.drive import DriveFile, LocalDrive
from ..utils.math_utils import format_fixed
from ..utils.text import (
    build_record_filename,
    clean_filename_part,
    extract_doc_id_from_url,
    extract_folder_id_from_url,
    format_input_date,
)
from .item_table import AnchorPolicy, MissingTablePolicy, apply_item_table
from .placeholders import (
    AMOUNT_IN_EUR_TOKEN,
    EXCHANGE_RATE_TOKEN,
    apply_placeholders,
    contract_placeholders,
    credit_note_placeholders,
    invoice_placeholders,
)
from .template_document import TemplateDocument

logger = logging.getLogger(__name__)

EXCHANGE_NOTICE_MARKER = "Exchange Rate Notice"
DOCUMENT_SUFFIX = ".xlsx"

Record = Union[Invoice, CreditNote]


@dataclass(frozen=True)
class RenderProfile:
    """Per record type rendering rules."""
    type_label: str
    layout: ItemBlockLayout
    anchor_policy: AnchorPolicy
    missing_table_policy: MissingTablePolicy
    signature: Tuple[str, ...]
    alternatives: Tuple[Tuple[str, ...], ...] = ()
    # Invoices drop the notice paragraphs, credit notes only blank them
    remove_exchange_notice: bool = True


INVOICE_PROFILE = RenderProfile(
    type_label=INVOICE_SCHEMA.type_label,
    layout=INVOICE_SCHEMA.item_layout,
    anchor_policy=AnchorPolicy.STRICT,
    missing_table_policy=MissingTablePolicy.FAIL,
    signature=INVOICE_SCHEMA.anchor_signature,
)

CREDIT_NOTE_PROFILE = RenderProfile(
    type_label=CREDIT_NOTE_SCHEMA.type_label,
    layout=CREDIT_NOTE_SCHEMA.item_layout,
    anchor_policy=AnchorPolicy.LENIENT,
    missing_table_policy=MissingTablePolicy.SKIP,
    signature=CREDIT_NOTE_SCHEMA.anchor_signature,
    alternatives=CREDIT_NOTE_ANCHOR_ALTERNATIVES,
    remove_exchange_notice=False,
)


def profile_for(record: Record) -> RenderProfile:
    return INVOICE_PROFILE if isinstance(record, Invoice) else CREDIT_NOTE_PROFILE


def default_placeholders(record: Record) -> Dict[str, str]:
    if isinstance(record, Invoice):
        return invoice_placeholders(record)
    return credit_note_placeholders(record)


@dataclass(frozen=True)
class RenderedDocument:
    file_id: str
    name: str
    path: Path
    url: str
    table_filled: bool = field(default=True)

    @classmethod
    def from_drive_file(cls, drive_file: DriveFile, table_filled: bool = True) -> "RenderedDocument":
        return cls(drive_file.file_id, drive_file.name, drive_file.path, drive_file.url, table_filled)


def record_file_prefix(record: Record) -> str:
    """{date}_{Type}{number}_{ourCompany}-{clientName}"""
    return build_record_filename(
        format_input_date(record.record_date),
        profile_for(record).type_label,
        record.number,
        record.our_company,
        record.client_name,
    )


def contract_document_name(contract: Contract) -> str:
    document_type = contract.get("documentType").lower()
    company = clean_filename_part(contract.get("ourCompany")) or "Company"
    contractor = clean_filename_part(contract.get("contractorName")) or "Contractor"
    if "attachment" in document_type or "addendum" in document_type:
        attachment = contract.get("attachmentNumber") or "1"
        return f"Addendum_{attachment}_{contract.get('sowStartDate')}_{company}-{contractor}"
    return f"Contract_{contract.get('contractNumber')}_{contract.get('contractDate')}_{company}-{contractor}"


def apply_exchange_rate_section(document: TemplateDocument, record: Record, remove_notice: bool) -> None:
    """
    USD records get the rate (4 dp) and EUR amount filled in. Other currencies
    lose the notice paragraph and the one after it; when removal is not
    allowed, or the notice is the only paragraph, they are blanked instead.
    """
    if record.currency == USD_SYMBOL:
        document.replace_text(EXCHANGE_RATE_TOKEN, format_fixed(record.exchange_rate, 4))
        document.replace_text(AMOUNT_IN_EUR_TOKEN, f"{EUR_SYMBOL}{format_fixed(record.amount_in_eur, 2)}")
        return

    paragraphs = document.paragraphs()
    for index, paragraph in enumerate(paragraphs):
        if EXCHANGE_NOTICE_MARKER not in paragraph.text:
            continue
        following = paragraphs[index + 1] if index + 1 < len(paragraphs) else None
        if following is not None and following.sheet_title != paragraph.sheet_title:
            following = None
        on_sheet = [p for p in paragraphs if p.sheet_title == paragraph.sheet_title]
        if remove_notice and len(on_sheet) > 1:
            # Later row first so the notice row keeps its position
            if following is not None:
                document.remove_paragraph(following)
            document.remove_paragraph(paragraph)
            logger.info("Removed exchange rate notice section")
        else:
            document.clear_paragraph(paragraph)
            if following is not None and not remove_notice:
                document.clear_paragraph(following)
            logger.info("Cleared exchange rate notice section")
        return
    logger.debug("No exchange rate notice in document")


class TemplateRenderer:
    """Copies templates into storage folders and fills them."""

    def __init__(self, drive: LocalDrive):
        self.drive = drive

    def _copy(self, template_id: str, name: str, folder_id: str) -> DriveFile:
        try:
            return self.drive.copy_file(template_id, f"{name}{DOCUMENT_SUFFIX}", folder_id)
        except OSError as e:
            raise TemplateError(f"Cannot copy template '{template_id}': {e}") from e

    def render(
        self,
        template_id: str,
        folder_id: str,
        record: Record,
        placeholder_values: Optional[Mapping[str, str]] = None,
    ) -> RenderedDocument:
        """
        Raises:
            TableNotFound: invoice template without the item table.
            TemplateError: template missing or the copy cannot be opened or saved.
        """
        if not template_id:
            raise TemplateError("No template id provided")
        profile = profile_for(record)
        name = record_file_prefix(record)
        copy = self._copy(template_id, name, folder_id)
        logger.info(f"Created document '{copy.name}' ({copy.file_id}) from template {template_id}")

        document = TemplateDocument.open(copy.path)
        try:
            table_filled = apply_item_table(
                document,
                record.items,
                profile.layout,
                record.currency,
                profile.anchor_policy,
                profile.missing_table_policy,
                profile.signature,
                profile.alternatives,
            )
            apply_exchange_rate_section(document, record, profile.remove_exchange_notice)
            values = placeholder_values if placeholder_values is not None else default_placeholders(record)
            apply_placeholders(document, values)
            document.save()
        finally:
            document.close()
        return RenderedDocument.from_drive_file(copy, table_filled)

    def render_contract(self, template_link: str, folder_link: str, contract: Contract) -> RenderedDocument:
        """
        Raises:
            TemplateError: a link holds no id, or the template cannot be copied.
        """
        template_id = extract_doc_id_from_url(template_link)
        if not template_id:
            raise TemplateError(f"Invalid template URL: {template_link}")
        folder_id = extract_folder_id_from_url(folder_link)
        if not folder_id:
            raise TemplateError(f"Invalid folder URL: {folder_link}")

        copy = self._copy(template_id, contract_document_name(contract), folder_id)
        document = TemplateDocument.open(copy.path)
        try:
            apply_placeholders(document, contract_placeholders(contract))
            document.save()
        finally:
            document.close()
        logger.info(f"Contract document created: {copy.url}")
        return RenderedDocument.from_drive_file(copy)
