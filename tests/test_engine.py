"""
End-to-end tests for the form fill engine.
"""

from pathlib import Path

import pytest
from openpyxl import load_workbook
from pypdf import PdfReader

from modules.form_fill import BatchJob, FormFillEngine, Template
from modules.form_fill.engine import render_file_name
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


FIRST_NAME = {
    "documentFieldId": "FirstName",
    "documentFieldName": "First Name",
    "documentFieldType": "text",
    "sourceType": "provider",
    "sourcePath": "provider.firstName",
}

LAST_NAME = {
    "documentFieldId": "LastName",
    "documentFieldName": "Last Name",
    "documentFieldType": "text",
    "sourceType": "provider",
    "sourcePath": "provider.lastName",
}


@pytest.fixture
def engine(config):
    return FormFillEngine(config)


@pytest.mark.asyncio
async def test_analyze_by_path(engine, form_pdf_path):
    result = await engine.analyze_document(file_path=form_pdf_path)

    assert result.success
    assert len(result.fields) == 6
    assert result.to_dict()["fields"][0]["id"] == "FirstName"


@pytest.mark.asyncio
async def test_analyze_bytes_without_path(engine, roster_xlsx_bytes):
    result = await engine.analyze_document(file_bytes=roster_xlsx_bytes)

    assert result.success
    assert result.fields[0].id == "Roster!A"


@pytest.mark.asyncio
async def test_analyze_missing_file(engine, tmp_path):
    result = await engine.analyze_document(file_path=tmp_path / "missing.pdf")

    assert not result.success
    assert "File does not exist" in result.error


@pytest.mark.asyncio
async def test_analyze_corrupt_file(engine, tmp_path):
    path = tmp_path / "corrupt.pdf"
    path.write_bytes(b"definitely not a pdf")

    result = await engine.analyze_document(file_path=path)

    assert not result.success
    assert result.error == "File appears to be corrupted or invalid"


@pytest.mark.asyncio
async def test_analyze_unsupported_file(engine, tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello")

    result = await engine.analyze_document(file_path=path)

    assert not result.success
    assert "Unsupported file type" in result.error


@pytest.mark.asyncio
async def test_fill_pdf_end_to_end(engine, form_pdf_path, tmp_path):
    output = tmp_path / "filled" / "ann.pdf"

    result = await engine.fill_document(
        file_path=form_pdf_path,
        mappings=[FIRST_NAME],
        data={"provider": {"firstName": "Ann"}},
        output_path=output,
    )

    assert result.success
    assert result.warnings == []
    assert PdfReader(str(output)).get_fields()["FirstName"]["/V"] == "Ann"


@pytest.mark.asyncio
async def test_fill_roster_end_to_end(engine, roster_xlsx_path, tmp_path):
    output = tmp_path / "roster_filled.xlsx"

    result = await engine.fill_document(
        file_path=roster_xlsx_path,
        mappings=[dict(LAST_NAME, documentFieldId="Roster!B")],
        data={"providers": [{"lastName": "Public"}, {"lastName": "Doe"}]},
        output_path=output,
        format_options={"dataStartRow": 3},
    )

    assert result.success
    sheet = load_workbook(output).worksheets[0]
    assert sheet["B3"].value == "Public"
    assert sheet["B4"].value == "Doe"
    assert sheet["B1"].value == "Last Name"
    assert sheet["B2"].value == "(last)"


@pytest.mark.asyncio
async def test_fill_from_template(engine, form_pdf_bytes, tmp_path):
    template = Template.model_validate({
        "name": "Enrollment",
        "documentType": "pdf",
        "mappings": [FIRST_NAME, LAST_NAME],
    })
    output = tmp_path / "from_template.pdf"

    result = await engine.fill_from_template(
        template,
        file_bytes=form_pdf_bytes,
        data={"provider": {"firstName": "Ann", "lastName": "Lee"}},
        output_path=output,
    )

    assert result.success
    fields = PdfReader(str(output)).get_fields()
    assert fields["LastName"]["/V"] == "Lee"


@pytest.mark.asyncio
async def test_fill_from_invalid_template(engine, form_pdf_bytes, tmp_path):
    result = await engine.fill_from_template(
        {"name": "No type"},
        file_bytes=form_pdf_bytes,
        data={},
        output_path=tmp_path / "out.pdf",
    )

    assert not result.success
    assert result.error.startswith("Invalid template")


@pytest.mark.asyncio
async def test_batch_isolates_failures(engine, form_pdf_path, tmp_path):
    jobs = [
        BatchJob(
            file_path=str(form_pdf_path),
            mappings=[FIRST_NAME],
            data={"provider": {"firstName": "Ann"}},
            output_path=str(tmp_path / "ann.pdf"),
        ),
        {
            "filePath": str(tmp_path / "missing.pdf"),
            "mappings": [FIRST_NAME],
            "data": {"provider": {"firstName": "Bob"}},
            "outputPath": str(tmp_path / "bob.pdf"),
        },
        {"filePath": str(form_pdf_path), "outputPath": str(tmp_path / "bad.pdf"), "mappings": "not a list"},
        {
            "filePath": str(form_pdf_path),
            "mappings": [FIRST_NAME],
            "data": {"provider": {"firstName": "Cy"}},
            "outputPath": str(tmp_path / "cy.pdf"),
        },
    ]

    batch = await engine.batch_process(jobs)

    assert batch.total_count == 4
    assert batch.success_count == 2
    assert [r.success for r in batch.results] == [True, False, False, True]
    assert batch.results[2].output_path == str(tmp_path / "bad.pdf")
    assert PdfReader(str(tmp_path / "cy.pdf")).get_fields()["FirstName"]["/V"] == "Cy"
    assert not (tmp_path / "bob.pdf").exists()


@pytest.mark.asyncio
async def test_batch_job_with_malformed_transformation(engine, form_pdf_path, tmp_path):
    bad_last_name = dict(LAST_NAME, transformation={"type": "format", "config": {"ssnFormat": "xxx xx xxxx"}})
    jobs = [{
        "filePath": str(form_pdf_path),
        "mappings": [FIRST_NAME, bad_last_name],
        "data": {"provider": {"firstName": "Ann", "lastName": "Lee"}},
        "outputPath": str(tmp_path / "ann.pdf"),
    }]

    batch = await engine.batch_process(jobs)

    assert batch.success_count == 1
    assert len(batch.results[0].warnings) == 1
    assert batch.results[0].warnings[0].startswith('Failed to fill field "Last Name"')
    assert PdfReader(str(tmp_path / "ann.pdf")).get_fields()["FirstName"]["/V"] == "Ann"


def test_build_batch_jobs(engine, form_pdf_path, tmp_path):
    providers = [
        {"firstName": "Jane", "lastName": "Public"},
        {"firstName": "Jane", "lastName": "Public"},
    ]
    offices = [{"locationName": "North"}, {"locationName": "South"}]

    jobs = engine.build_batch_jobs(
        form_pdf_path,
        [FIRST_NAME],
        providers,
        offices=offices,
        output_dir=tmp_path / "batch",
        file_name_pattern="{provider.lastName}_{office.locationName}",
    )

    assert len(jobs) == 4
    assert [Path(j.output_path).name for j in jobs] == [
        "Public_North.pdf",
        "Public_South.pdf",
        "Public_North_2.pdf",
        "Public_South_2.pdf",
    ]
    assert jobs[1].data.office == {"locationName": "South"}
    assert jobs[0].data.provider == providers[0]


def test_build_batch_jobs_default_pattern(engine, roster_xlsx_path, tmp_path):
    jobs = engine.build_batch_jobs(
        roster_xlsx_path,
        [],
        [{"firstName": "Mary Ann", "lastName": "O'Neil"}],
        output_dir=tmp_path,
    )

    assert [Path(j.output_path).name for j in jobs] == ["ONeil_Mary_Ann_roster.xlsx"]


def test_render_file_name():
    assert render_file_name("{documentName}-{unknown}", {"documentName": "W9"}) == "W9-unknown"
    assert render_file_name("{provider.lastName} {provider.firstName}", {
        "provider.lastName": "de la Cruz",
        "provider.firstName": "José",
    }) == "de_la_Cruz_Jos"
