"""
Tests for the transformation library.
"""

import pytest

from modules.form_fill.core.types import FieldMapping, FormatConfig, LookupConfig
from modules.form_fill.transformations import (
    apply_boolean,
    apply_extract,
    apply_format,
    apply_lookup,
    apply_name_format,
    apply_transformation,
    create_transformation,
    is_truthy,
    split_full_name,
    stringify,
)
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


def test_phone_format_ten_digits():
    transformation = create_transformation.format_phone("(xxx) xxx-xxxx")
    assert apply_transformation("555.123.4567", transformation) == "(555) 123-4567"

    dashed = create_transformation.format_phone("xxx-xxx-xxxx")
    assert apply_transformation("(555) 123-4567", dashed) == "555-123-4567"


def test_phone_format_passes_through_wrong_digit_count():
    transformation = create_transformation.format_phone("(xxx) xxx-xxxx")
    assert apply_transformation("555-1234", transformation) == "555-1234"


def test_ssn_format():
    assert apply_transformation("123456789", create_transformation.format_ssn()) == "123-45-6789"
    assert apply_transformation("123-45-6789", create_transformation.format_ssn("xxxxxxxxx")) == "123456789"
    assert apply_transformation("12345", create_transformation.format_ssn()) == "12345"


def test_date_format_patterns():
    assert apply_transformation("2024-06-05", create_transformation.format_date("MM/dd/yyyy")) == "06/05/2024"
    assert apply_transformation("2024-06-05", create_transformation.format_date("MMMM d, yyyy")) == "June 5, 2024"
    assert apply_transformation("2024-06-05", create_transformation.format_date("%Y/%m/%d")) == "2024/06/05"


def test_date_format_leaves_non_dates():
    assert apply_transformation("not a date", create_transformation.format_date("MM/dd/yyyy")) == "not a date"


def test_case_and_affixes():
    assert apply_format("jANE o'neil", FormatConfig(case_transform="title")) == "Jane O'neil"
    assert apply_format("hello WORLD", FormatConfig(case_transform="sentence")) == "Hello world"
    assert apply_format("md", FormatConfig(case_transform="upper", prefix="(", suffix=")")) == "(MD)"
    assert apply_format(None, FormatConfig(case_transform="upper")) == ""


def test_concatenate_skips_empty_sources():
    data = {"office": {"street": "1 Main St", "suite": "", "city": "Austin"}}
    transformation = create_transformation.concatenate(
        ["office.street", "office.suite", "office.city"], separator=", "
    )
    assert apply_transformation(None, transformation, data) == "1 Main St, Austin"

    keep_empty = create_transformation.concatenate(
        ["office.street", "office.suite", "office.city"], separator="|", skip_empty=False
    )
    assert apply_transformation(None, keep_empty, data) == "1 Main St||Austin"


def test_conditional_operators():
    data = {"provider": {"status": "active", "years": "12", "npi": "1234567890"}}

    equals = create_transformation.conditional("provider.status", "equals", "active", "Yes", "No")
    assert apply_transformation(None, equals, data) == "Yes"

    greater = create_transformation.conditional("provider.years", "greaterThan", 10, "Senior")
    assert apply_transformation(None, greater, data) == "Senior"

    starts = create_transformation.conditional("provider.npi", "startsWith", "99", "X")
    assert apply_transformation(None, starts, data) == ""


def test_lookup_tables():
    inline = create_transformation.lookup({"M": "Male", "F": "Female"}, default_value="Unknown")
    assert apply_transformation("M", inline) == "Male"
    assert apply_transformation("Z", inline) == "Unknown"

    states = create_transformation.lookup(common_table="stateAbbreviations")
    assert apply_transformation("California", states) == "CA"
    assert apply_transformation("Atlantis", states) == "Atlantis"


def test_lookup_inline_entries_override_common_table():
    config = LookupConfig(lookup_table={"Texas": "Tex."}, common_table="stateAbbreviations")
    assert apply_lookup("Texas", config) == "Tex."
    assert apply_lookup("Ohio", config) == "OH"


def test_failing_transformation_returns_original_value():
    transformation = create_transformation.lookup(common_table="noSuchTable")
    assert apply_transformation("value", transformation) == "value"


def test_boolean_vocabularies():
    transformation = create_transformation.boolean()
    assert apply_transformation("Yes", transformation) is True
    assert apply_transformation("inactive", transformation) is False

    custom = create_transformation.boolean(true_values=["enrolled"], false_values=["pending"], default_value=False)
    assert apply_boolean("enrolled", custom.config) is True
    assert apply_boolean("unknown", custom.config) is False


def test_empty_boolean_vocabulary_is_honoured():
    no_true = create_transformation.boolean(true_values=[], default_value=False)
    assert apply_boolean("yes", no_true.config) is False
    assert apply_boolean("no", no_true.config) is False

    no_false = create_transformation.boolean(false_values=[], default_value=True)
    assert apply_boolean("no", no_false.config) is True
    assert apply_boolean("yes", no_false.config) is True


def test_name_formats(provider):
    data = {"provider": provider}

    def render(fmt, **kwargs):
        return apply_name_format(data, create_transformation.name_format(fmt, **kwargs).config)

    assert render("lastFirstMI") == "Public, Jane Q."
    assert render("full") == "Jane Quincy Public MD"
    assert render("firstLast") == "Jane Public"
    assert render("lastFirst") == "Public, Jane"
    assert render("firstMI") == "Jane Q."
    assert render("initial") == "J"
    assert render("custom", custom_template="{last}/{first}/{last}") == "Public/Jane/Public"


def test_name_format_without_middle_name():
    data = {"provider": {"firstName": "Ann", "lastName": "Lee"}}
    config = create_transformation.name_format("lastFirstMI").config
    assert apply_name_format(data, config) == "Lee, Ann"


def test_extract_middle_initial(provider):
    data = {"provider": provider}
    transformation = create_transformation.extract("middleInitial", fallback="N/A")
    assert apply_transformation(None, transformation, data) == "Q."

    no_middle = {"provider": {"firstName": "Ann", "lastName": "Lee"}}
    assert apply_transformation(None, transformation, no_middle) == "N/A"


def test_extract_from_full_name_string():
    data = {"custom": {"signer": "Mary Ann Beth Smith"}}
    config = create_transformation.extract("middleName", from_path="custom.signer").config
    assert apply_extract(data, config) == "Ann Beth"

    assert split_full_name("Cher") == {"firstName": "Cher", "middleName": "", "lastName": "", "suffix": ""}


def test_transformation_parses_from_interchange_dict():
    mapping = FieldMapping.model_validate({
        "documentFieldId": "MI",
        "documentFieldName": "Middle Initial",
        "sourceType": "provider",
        "sourcePath": "provider.middleName",
        "transformation": {"type": "extract", "config": {"part": "middleInitial", "from": "provider"}},
    })

    assert mapping.transformation.config.from_path == "provider"
    assert mapping.to_dict()["transformation"]["config"]["from"] == "provider"


def test_truthiness_and_stringify():
    assert is_truthy("X")
    assert is_truthy(1)
    assert not is_truthy("no")
    assert not is_truthy(None)
    assert stringify(3.0) == "3"
    assert stringify(True) == "true"
    assert stringify(None) == ""
