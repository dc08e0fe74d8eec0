"""
Error taxonomy for record generation.

Everything raised by the package derives from DocfillError so the service
boundary can convert it into a failure result. CleanupWarning is not an
exception: best-effort artifact cleanup reports it in OperationResult.warnings.
"""
from dataclasses import dataclass
from typing import List, Optional


class DocfillError(Exception):
    """Base class for all errors raised by docfill."""


class ValidationError(DocfillError):
    """Missing or malformed required fields in a form submission."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(f"Validation failed: {', '.join(self.errors)}")


class ConfigResolutionError(DocfillError):
    """Project configuration or table schema could not be resolved."""


class ProjectNotFound(ConfigResolutionError):
    def __init__(self, project_name: str):
        self.project_name = project_name
        super().__init__(f"Project '{project_name}' not found in reference sheet")


class NoTemplateName(ConfigResolutionError):
    def __init__(self, project_name: str):
        self.project_name = project_name
        super().__init__(f"No template selected for project '{project_name}'")


class NoTemplateFound(ConfigResolutionError):
    def __init__(self, template_name: str):
        self.template_name = template_name
        super().__init__(f"Template '{template_name}' does not resolve to a template id")


class MissingColumn(ConfigResolutionError):
    def __init__(self, column: str, sheet: Optional[str] = None):
        self.column = column
        self.sheet = sheet
        where = f" in sheet '{sheet}'" if sheet else ""
        super().__init__(f"Missing column '{column}'{where}")


class RenderError(DocfillError):
    """Document rendering failed."""


class TableNotFound(RenderError):
    def __init__(self, signature: List[str]):
        self.signature = list(signature)
        super().__init__(f"Item table not found in template (expected header: {' | '.join(self.signature)})")


class TemplateError(RenderError):
    """Template or destination could not be opened, copied or saved."""


class ExportError(DocfillError):
    """Fixed-format export produced no result."""


@dataclass(frozen=True)
class CleanupWarning:
    """A generated artifact that could not be removed."""
    artifact: str
    link: str
    reason: str

    @property
    def message(self) -> str:
        return f"{self.artifact} already deleted or not found."
