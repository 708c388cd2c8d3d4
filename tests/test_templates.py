"""
Tests for template validation, persistence and interchange.
"""

import json

import pytest
import yaml

from modules.form_fill import (
    Template,
    TemplateNotFoundException,
    TemplateStore,
    TemplateValidationException,
    load_mappings,
    validate_template,
)
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


def _template_data(**overrides):
    data = {
        "name": "Medicaid Enrollment",
        "description": "State enrollment packet",
        "documentType": "pdf",
        "mappings": [
            {
                "documentFieldId": "FirstName",
                "documentFieldName": "First Name",
                "documentFieldType": "text",
                "sourceType": "provider",
                "sourcePath": "provider.firstName",
            },
            {
                "documentFieldId": "MI",
                "documentFieldName": "Middle Initial",
                "documentFieldType": "text",
                "sourceType": "provider",
                "sourcePath": "provider.middleName",
                "transformation": {
                    "type": "extract",
                    "config": {"part": "middleInitial", "from": "provider", "fallback": "N/A"},
                },
            },
            {
                "documentFieldId": "NPI2",
                "documentFieldName": "Second NPI",
                "documentFieldType": "text",
                "sourceType": "provider-slot",
                "providerSlot": 2,
                "slotField": "npi",
            },
        ],
    }
    data.update(overrides)
    return data


@pytest.fixture
def store(tmp_path):
    return TemplateStore(tmp_path / "templates")


# ==============================================================================
# VALIDATION
# ==============================================================================

def test_valid_template():
    report = validate_template(_template_data())
    assert report.is_valid
    assert report.to_dict() == {"isValid": True, "errors": []}


def test_validation_accepts_models():
    assert validate_template(Template.model_validate(_template_data())).is_valid


def test_validation_collects_every_error():
    report = validate_template({
        "name": "  ",
        "documentType": "pptx",
        "mappings": [
            {"documentFieldId": "", "documentFieldName": "A", "documentFieldType": "text",
             "sourceType": "provider", "sourcePath": "provider.a"},
            {"documentFieldId": "B", "documentFieldName": "B", "documentFieldType": "signature",
             "sourceType": "provider-slot", "providerSlot": 0},
            {"documentFieldId": "C", "documentFieldName": "C", "documentFieldType": "text",
             "sourceType": "static"},
        ],
    })

    assert not report.is_valid
    assert report.errors == [
        "Template name is required",
        "Valid document type is required (pdf, docx, xlsx)",
        "Mapping 1: Document field ID is required",
        "Mapping 2: Valid field type is required",
        "Mapping 2: Provider slot number is required (must be >= 1)",
        "Mapping 2: Slot field is required for provider-slot mappings",
        "Mapping 3: Static value is required for static mappings",
    ]


def test_validation_requires_mappings():
    report = validate_template(_template_data(mappings=[]))
    assert report.errors == ["Template must have at least one field mapping"]


def test_validation_flags_duplicate_field_ids():
    data = _template_data()
    data["mappings"].append(dict(data["mappings"][0], documentFieldName="First Name Again"))

    report = validate_template(data)

    assert report.errors == ['Mapping 4: Document field "FirstName" is already mapped by mapping 1']


def test_load_mappings_from_yaml_and_json(tmp_path):
    yaml_path = tmp_path / "mappings.yaml"
    yaml_path.write_text(yaml.safe_dump(_template_data()["mappings"]))
    json_path = tmp_path / "template.json"
    json_path.write_text(json.dumps(_template_data()))

    from_yaml = load_mappings(yaml_path)
    from_json = load_mappings(json_path)

    assert [m.document_field_id for m in from_yaml] == ["FirstName", "MI", "NPI2"]
    assert [m.to_dict() for m in from_yaml] == [m.to_dict() for m in from_json]

    bad_path = tmp_path / "bad.json"
    bad_path.write_text(json.dumps({"name": "no mappings"}))
    with pytest.raises(ValueError):
        load_mappings(bad_path)


# ==============================================================================
# STORE
# ==============================================================================

@pytest.mark.asyncio
async def test_create_and_reload(store, tmp_path):
    created = await store.create_template(_template_data())

    assert created.id
    assert created.version == 1
    assert created.created_at == created.updated_at
    assert (tmp_path / "templates" / f"{created.id}.yaml").exists()

    reopened = TemplateStore(tmp_path / "templates")
    loaded = await reopened.get_template(created.id)
    assert loaded == created


@pytest.mark.asyncio
async def test_create_rejects_invalid_template(store):
    with pytest.raises(TemplateValidationException) as exc_info:
        await store.create_template(_template_data(name=""))

    assert exc_info.value.errors == ["Template name is required"]
    assert await store.get_all_templates() == []


@pytest.mark.asyncio
async def test_update_bumps_version(store):
    created = await store.create_template(_template_data())

    updated = await store.update_template(created.id, {"name": "Renamed", "id": "ignored", "version": 99})

    assert updated.id == created.id
    assert updated.name == "Renamed"
    assert updated.version == 2
    assert updated.created_at == created.created_at
    assert (await store.get_template(created.id)).name == "Renamed"


@pytest.mark.asyncio
async def test_update_unknown_template(store):
    with pytest.raises(TemplateNotFoundException):
        await store.update_template("missing", {"name": "x"})


@pytest.mark.asyncio
async def test_delete_and_duplicate(store):
    created = await store.create_template(_template_data())

    copy = await store.duplicate_template(created.id)
    assert copy.id != created.id
    assert copy.name == "Medicaid Enrollment (Copy)"
    assert copy.version == 1

    assert await store.delete_template(created.id) is True
    assert await store.delete_template(created.id) is False
    assert [t.id for t in await store.get_all_templates()] == [copy.id]


@pytest.mark.asyncio
async def test_queries_and_statistics(store):
    await store.create_template(_template_data())
    await store.create_template(_template_data(name="Group Roster", description="", documentType="xlsx"))

    assert len(await store.get_templates_by_document_type("xlsx")) == 1
    assert [t.name for t in await store.search_templates("ENROLL")] == ["Medicaid Enrollment"]
    assert [t.name for t in await store.search_templates("packet")] == ["Medicaid Enrollment"]

    stats = await store.get_template_statistics()
    assert stats["totalTemplates"] == 2
    assert stats["byDocumentType"] == {"pdf": 1, "docx": 0, "xlsx": 1}
    assert len(stats["recentTemplates"]) == 2


@pytest.mark.asyncio
async def test_export_then_import_keeps_mappings(store, tmp_path):
    created = await store.create_template(_template_data(name="W-9 / Tax Form"))

    export_path = await store.export_template(created.id, tmp_path / "exports")

    assert export_path.name == "W_9___Tax_Form_template.json"
    exported = json.loads(export_path.read_text())
    assert exported["exportVersion"] == "1.0"
    assert "exportedAt" in exported

    imported = await store.import_template(export_path)

    assert imported.id != created.id
    assert imported.version == 1
    assert imported.name == created.name
    assert [m.to_dict() for m in imported.mappings] == [m.to_dict() for m in created.mappings]


@pytest.mark.asyncio
async def test_import_rejects_non_templates(store, tmp_path):
    path = tmp_path / "not_a_template.json"
    path.write_text(json.dumps({"name": "Only a name"}))

    with pytest.raises(ValueError):
        await store.import_template(path)
