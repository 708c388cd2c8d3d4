"""
Tests for mapping value resolution.
"""

from modules.form_fill import DataContext, FieldMapping, ValueResolver, create_transformation, resolve_value
from modules.form_fill.mappers.value_resolver import strip_source_prefix
from shared.utils.helpers import locale_date_string
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


def _mapping(**kwargs) -> FieldMapping:
    kwargs.setdefault("document_field_id", "Field1")
    kwargs.setdefault("document_field_name", "Field 1")
    return FieldMapping(**kwargs)


def test_provider_path(provider):
    mapping = _mapping(source_type="provider", source_path="provider.firstName")
    assert resolve_value(mapping, {"provider": provider}) == "Jane"


def test_path_without_record_prefix(provider):
    mapping = _mapping(source_type="provider", source_path="npi")
    assert resolve_value(mapping, {"provider": provider}) == "1234567890"


def test_static_value_wins(provider):
    mapping = _mapping(source_type="provider", source_path="provider.firstName", static_value="Fixed")
    assert resolve_value(mapping, {"provider": provider}) == "Fixed"


def test_office_and_mailing_records():
    data = DataContext(
        office={"locationName": "Downtown Clinic"},
        mailing_address={"city": "Austin"},
    )

    office = _mapping(source_type="office", source_path="office.locationName")
    mailing = _mapping(source_type="mailing", source_path="mailing.city")

    resolver = ValueResolver()
    assert resolver.resolve(office, data) == "Downtown Clinic"
    assert resolver.resolve(mailing, data) == "Austin"


def test_custom_record():
    mapping = _mapping(source_type="custom", source_path="custom.groupName")
    assert resolve_value(mapping, {"custom": {"groupName": "North Group"}}) == "North Group"


def test_provider_slot_in_range():
    data = {"providers": [{"npi": "111"}, {"npi": "222"}]}
    mapping = _mapping(source_type="provider-slot", provider_slot=2, slot_field="npi")
    assert resolve_value(mapping, data) == "222"


def test_provider_slot_out_of_range_is_none():
    data = {"providers": [{"npi": "111"}]}
    mapping = _mapping(source_type="provider-slot", provider_slot=2, slot_field="npi")
    assert resolve_value(mapping, data) is None


def test_provider_slot_out_of_range_uses_default():
    data = {"providers": [{"npi": "111"}]}
    mapping = _mapping(source_type="provider-slot", provider_slot=3, slot_field="npi", default_value="N/A")
    assert resolve_value(mapping, data) == "N/A"


def test_static_current_date():
    mapping = _mapping(source_type="static", source_path="static.currentDate")
    assert resolve_value(mapping, {}) == locale_date_string()


def test_static_path_falls_back_to_default():
    mapping = _mapping(source_type="static", source_path="static.anything", default_value="n/a")
    assert resolve_value(mapping, {}) == "n/a"


def test_missing_value_uses_default():
    mapping = _mapping(source_type="provider", source_path="provider.dea", default_value="None on file")
    assert resolve_value(mapping, {"provider": {"firstName": "Ann"}}) == "None on file"


def test_missing_record_is_none():
    mapping = _mapping(source_type="office", source_path="office.phone")
    assert resolve_value(mapping, {"provider": {"firstName": "Ann"}}) is None


def test_transformation_runs_on_resolved_value(provider):
    mapping = _mapping(
        source_type="provider",
        source_path="provider.phone",
        transformation=create_transformation.format_phone("xxx-xxx-xxxx"),
    )
    assert resolve_value(mapping, DataContext(provider=provider)) == "555-123-4567"


def test_multi_field_transformation_sees_whole_context(provider):
    mapping = _mapping(
        source_type="provider",
        source_path="provider.lastName",
        transformation=create_transformation.name_format("lastFirstMI"),
    )
    assert resolve_value(mapping, {"provider": provider}) == "Public, Jane Q."


def test_default_applies_after_empty_transformation_result():
    mapping = _mapping(
        source_type="provider",
        source_path="provider.status",
        default_value="Unknown",
        transformation=create_transformation.conditional("provider.status", "equals", "active", "Active"),
    )
    assert resolve_value(mapping, {"provider": {"status": "retired"}}) == "Unknown"


def test_strip_source_prefix():
    assert strip_source_prefix("provider.address.city") == "address.city"
    assert strip_source_prefix("mailing.zip") == "zip"
    assert strip_source_prefix("npi") == "npi"
