# docfill/documents/__init__.py
from .template_document import TemplateDocument, DocumentTable, Paragraph
from .item_table import AnchorPolicy, MissingTablePolicy
from .renderer import TemplateRenderer, RenderedDocument
from .exporter import PdfExporter, SofficeConverter

__all__ = [
    'TemplateDocument',
    'DocumentTable',
    'Paragraph',
    'AnchorPolicy',
    'MissingTablePolicy',
    'TemplateRenderer',
    'RenderedDocument',
    'PdfExporter',
    'SofficeConverter',
]
