"""
Shared fixtures: small fillable documents built in memory.
"""

from io import BytesIO

import pytest
from docx import Document
from openpyxl import Workbook
from pypdf import PdfWriter
from pypdf.generic import (
    ArrayObject,
    DecodedStreamObject,
    DictionaryObject,
    FloatObject,
    NameObject,
    NumberObject,
    TextStringObject,
)

from modules.form_fill.config import FormFillConfig


def _rect(x1, y1, x2, y2) -> ArrayObject:
    return ArrayObject([FloatObject(x1), FloatObject(y1), FloatObject(x2), FloatObject(y2)])


def _appearance(writer: PdfWriter, *states: str) -> DictionaryObject:
    normal = DictionaryObject()
    for state in states:
        stream = DecodedStreamObject()
        stream.set_data(b"")
        normal[NameObject(state)] = writer._add_object(stream)
    return DictionaryObject({NameObject("/N"): normal})


def _widget(**entries) -> DictionaryObject:
    widget = DictionaryObject({
        NameObject("/Type"): NameObject("/Annot"),
        NameObject("/Subtype"): NameObject("/Widget"),
        NameObject("/F"): NumberObject(4),
    })
    for key, value in entries.items():
        widget[NameObject("/" + key)] = value
    return widget


def build_form_pdf() -> bytes:
    """
    One-page AcroForm with:
        FirstName (text), LastName (text), License_required (text),
        AcceptTerms (checkbox), Gender (radio: Male/Female), State (dropdown)
    """
    writer = PdfWriter()
    page = writer.add_blank_page(width=612, height=792)

    fields = ArrayObject()
    annots = ArrayObject()

    def add_field(field: DictionaryObject, is_widget: bool = True):
        ref = writer._add_object(field)
        fields.append(ref)
        if is_widget:
            annots.append(ref)
        return ref

    for index, name in enumerate(["FirstName", "LastName", "License_required"]):
        add_field(_widget(
            FT=NameObject("/Tx"),
            T=TextStringObject(name),
            V=TextStringObject(""),
            Rect=_rect(50, 700 - index * 30, 250, 720 - index * 30),
            DA=TextStringObject("/Helv 0 Tf 0 g"),
        ))

    add_field(_widget(
        FT=NameObject("/Btn"),
        T=TextStringObject("AcceptTerms"),
        V=NameObject("/Off"),
        AS=NameObject("/Off"),
        Rect=_rect(50, 600, 65, 615),
        AP=_appearance(writer, "/Yes", "/Off"),
    ))

    radio = DictionaryObject({
        NameObject("/FT"): NameObject("/Btn"),
        NameObject("/T"): TextStringObject("Gender"),
        NameObject("/Ff"): NumberObject(1 << 15),
        NameObject("/V"): NameObject("/Off"),
    })
    radio_ref = add_field(radio, is_widget=False)
    kids = ArrayObject()
    for index, option in enumerate(["/Male", "/Female"]):
        kid_ref = writer._add_object(_widget(
            Parent=radio_ref,
            AS=NameObject("/Off"),
            Rect=_rect(50 + index * 40, 560, 65 + index * 40, 575),
            AP=_appearance(writer, option, "/Off"),
        ))
        kids.append(kid_ref)
        annots.append(kid_ref)
    radio[NameObject("/Kids")] = kids

    add_field(_widget(
        FT=NameObject("/Ch"),
        T=TextStringObject("State"),
        Ff=NumberObject(1 << 17),
        Opt=ArrayObject([TextStringObject("CA"), TextStringObject("NY"), TextStringObject("TX")]),
        V=TextStringObject(""),
        Rect=_rect(50, 520, 150, 540),
        DA=TextStringObject("/Helv 0 Tf 0 g"),
    ))

    page[NameObject("/Annots")] = annots
    writer._root_object[NameObject("/AcroForm")] = DictionaryObject({
        NameObject("/Fields"): fields,
        NameObject("/DA"): TextStringObject("/Helv 0 Tf 0 g"),
    })

    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def build_roster_xlsx() -> bytes:
    """
    Roster sheet with a header row, a guidance row and a formula in D3.
    """
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Roster"
    sheet.append(["First Name", "Last Name", "NPI", "Name Length"])
    sheet.append(["(first)", "(last)", "(10 digits)", ""])
    sheet["D3"] = "=LEN(B3)"

    extra = workbook.create_sheet("Notes")
    extra["A1"] = "Internal notes"

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def build_placeholder_docx() -> bytes:
    document = Document()
    document.add_paragraph("Provider: {{provider_name}}")
    document.add_paragraph("Plain paragraph")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "NPI"
    table.rows[0].cells[1].text = "{{npi}}"

    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def form_pdf_bytes() -> bytes:
    return build_form_pdf()


@pytest.fixture
def roster_xlsx_bytes() -> bytes:
    return build_roster_xlsx()


@pytest.fixture
def placeholder_docx_bytes() -> bytes:
    return build_placeholder_docx()


@pytest.fixture
def form_pdf_path(tmp_path, form_pdf_bytes):
    path = tmp_path / "enrollment.pdf"
    path.write_bytes(form_pdf_bytes)
    return path


@pytest.fixture
def roster_xlsx_path(tmp_path, roster_xlsx_bytes):
    path = tmp_path / "roster.xlsx"
    path.write_bytes(roster_xlsx_bytes)
    return path


@pytest.fixture
def config(tmp_path) -> FormFillConfig:
    return FormFillConfig(output_dir=tmp_path / "output", templates_dir=tmp_path / "templates")


@pytest.fixture
def provider() -> dict:
    return {
        "firstName": "Jane",
        "middleName": "Quincy",
        "lastName": "Public",
        "suffix": "MD",
        "npi": "1234567890",
        "phone": "5551234567",
        "ssn": "123456789",
        "state": "California",
        "isActive": "yes",
    }
