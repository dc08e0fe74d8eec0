import pytest

from docfill.config.project_resolver import ContractCatalog, ProjectConfigResolver
from docfill.errors import NoTemplateFound, NoTemplateName, ProjectNotFound
from docfill.storage.workbook_store import WorkbookStore

from conftest import ACME_FOLDER_ID, DEFAULT_FOLDER_ID


@pytest.fixture
def resolver(app_config):
    return ProjectConfigResolver(WorkbookStore(app_config.workbook_path), app_config)


@pytest.fixture
def catalog(app_config):
    return ContractCatalog(WorkbookStore(app_config.workbook_path), app_config)


def test_resolves_full_project_config(resolver):
    project = resolver.resolve_project_config("  acme PROJECT ")

    assert project.name == "Acme Project"
    assert project.client_name == "Acme Ltd"
    assert project.client_number == "AC 123"
    assert project.client_address == "1 Main St"
    # Numeric cell holds a fraction
    assert project.tax_rate == "20"
    assert project.currency == "$"
    assert project.payment_delay == 30
    assert project.day_type == "CALENDAR"
    assert project.bank_details_1 == "Bank One, IBAN 111"
    # B2 is defined on a later row; the map is complete before lookup
    assert project.bank_details_2 == "Bank Two, IBAN 222"
    assert project.template_id == "invoice-template"


def test_text_tax_rate_and_case_insensitive_template_name(resolver):
    project = resolver.resolve_project_config("Euro Project")
    assert project.tax_rate == "15"
    assert project.currency == "€"
    assert project.payment_delay == 14
    assert project.template_id == "invoice-template"
    assert project.bank_details_2 == ""


def test_project_with_its_own_template(resolver):
    project = resolver.resolve_project_config("Plain Project")
    assert project.currency == "€"
    assert project.template_id == "plain-template"


@pytest.mark.parametrize("name, error", [
    ("Nope", ProjectNotFound),
    ("Unassigned Project", NoTemplateName),
    ("Broken Project", NoTemplateFound),
])
def test_resolution_errors(resolver, name, error):
    with pytest.raises(error):
        resolver.resolve_project_config(name)


def test_storage_folder_falls_back_to_default(resolver, caplog):
    assert resolver.resolve_storage_folder("Acme Project") == ACME_FOLDER_ID
    assert resolver.resolve_storage_folder("Euro Project") == DEFAULT_FOLDER_ID
    assert resolver.resolve_storage_folder("Nope") == DEFAULT_FOLDER_ID
    assert "using default folder" in caplog.text


def test_project_names_are_unique_and_sorted(resolver):
    assert resolver.list_project_names() == [
        "Acme Project", "Broken Project", "Euro Project", "Plain Project", "Unassigned Project",
    ]


def test_dropdown_options(catalog):
    options = catalog.dropdown_options()
    assert options["cooperationTypes"] == ["Full-time", "Part-time"]
    assert options["ourCompanies"] == ["Other Co", "Our Co"]
    assert options["currencies"] == ["EUR", "UAH", "USD"]
    assert options["documentTypes"] == ["Attachment", "Contract"]


def test_dropdown_options_without_sheet(tmp_path, app_config):
    catalog = ContractCatalog(WorkbookStore(tmp_path / "empty.xlsx"), app_config)
    options = catalog.dropdown_options()
    assert set(options) == {"cooperationTypes", "ourCompanies", "serviceTypes", "peOptions",
                            "accountTypes", "currencies", "documentTypes"}
    assert all(values == [] for values in options.values())


def test_template_filtering(catalog):
    everything = catalog.templates()
    assert len(everything) == 2

    found = catalog.templates(cooperation_type="Part-time", our_company="Our Co")
    assert len(found) == 1
    assert found[0]["documentType"] == "Attachment"
    assert found[0]["link"].endswith("/addendum-template/edit")

    assert catalog.templates(service_type="Nothing") == []
