"""
Unit tests for claim assembly.
"""

import uuid

import pytest

from eq_launcher.claims import (
    apply_metadata,
    build_claims,
    coerce_boolean_presence,
    lifecycle_claims,
    merge_claims,
    parse_bool,
    schema_claims,
)
from eq_launcher.schema import MetadataField
from eq_launcher.surveys import LauncherSchema


NO_SCHEMA = LauncherSchema()


class TestBuildClaims:
    """Tests for build_claims()."""

    def test_roles_default_to_dumper(self):
        """Without roles the claim set carries ['dumper']."""
        claims = build_claims({"ru_ref": ["123"]}, NO_SCHEMA)
        assert claims["roles"] == ["dumper"]

    def test_roles_copied_as_list(self):
        """Supplied roles are copied in full."""
        claims = build_claims({"roles": ["dumper", "flusher"]}, NO_SCHEMA)
        assert claims["roles"] == ["dumper", "flusher"]

    def test_first_value_copied(self):
        """Other attributes contribute their first value."""
        claims = build_claims({"ru_ref": ["first", "second"]}, NO_SCHEMA)
        assert claims["ru_ref"] == "first"

    def test_empty_values_skipped(self):
        """Attributes whose first value is empty are left out."""
        claims = build_claims({"trad_as": [""], "ru_name": ["Acme"]}, NO_SCHEMA)
        assert "trad_as" not in claims
        assert claims["ru_name"] == "Acme"

    def test_tx_id_is_uuid(self):
        """tx_id is a well formed UUID."""
        claims = build_claims({}, NO_SCHEMA)
        uuid.UUID(claims["tx_id"])

    def test_tx_id_unique_per_call(self):
        """Identical input still yields a new tx_id."""
        values = {"ru_ref": ["123"]}
        assert build_claims(values, NO_SCHEMA)["tx_id"] != build_claims(values, NO_SCHEMA)["tx_id"]

    @pytest.mark.parametrize("param", ["survey", "form_type", "region_code"])
    def test_census_params_remove_schema_name(self, param):
        """Any census parameter drops an explicit schema_name."""
        values = {"schema_name": ["census_household_gb_eng"], param: ["x"]}
        claims = build_claims(values, LauncherSchema(name="census_household_gb_eng"))
        assert "schema_name" not in claims
        assert claims[param] == "x"

    def test_census_params_without_schema_name(self):
        """The derived census scenario carries no schema_name claim."""
        values = {"region_code": ["GB-ENG"], "survey": ["lms"], "form_type": ["H"]}
        claims = build_claims(values, LauncherSchema(name="lms_household_gb_eng"))
        assert "schema_name" not in claims

    def test_legacy_individual_response_keeps_schema_name(self):
        """The test individual response schema keeps schema_name with census params."""
        values = {"schema_name": ["test_individual_response"], "survey": ["census"]}
        claims = build_claims(values, NO_SCHEMA)
        assert claims["schema_name"] == "test_individual_response"

    def test_schema_name_filled_from_schema(self):
        """Quick launches take schema_name from the resolved schema."""
        claims = build_claims({}, LauncherSchema(name="test_checkbox"))
        assert claims["schema_name"] == "test_checkbox"

    def test_explicit_schema_name_wins(self):
        """A supplied schema_name is not replaced by the schema's name."""
        claims = build_claims({"schema_name": ["mine"]}, LauncherSchema(name="theirs"))
        assert claims["schema_name"] == "mine"

    def test_no_schema_name_without_name(self):
        """No schema_name claim when neither caller nor schema has one."""
        assert "schema_name" not in build_claims({}, NO_SCHEMA)


class TestLifecycleClaims:
    """Tests for lifecycle_claims()."""

    def test_expires_ten_minutes_after_issue(self):
        """exp - iat is exactly ten minutes."""
        claims = lifecycle_claims(now=1_700_000_000)
        assert claims["iat"] == 1_700_000_000
        assert claims["exp"] - claims["iat"] == 600

    def test_iat_before_exp(self):
        """iat < exp with the current time."""
        claims = lifecycle_claims()
        assert claims["iat"] < claims["exp"]

    def test_custom_lifetime(self):
        """The lifetime can be configured."""
        claims = lifecycle_claims(now=100, lifetime_seconds=30)
        assert claims["exp"] == 130

    def test_jti_unique(self):
        """Every call produces a new jti."""
        first = lifecycle_claims()["jti"]
        second = lifecycle_claims()["jti"]
        uuid.UUID(first)
        assert first != second


class TestSchemaClaims:
    """Tests for schema_claims()."""

    def test_survey_url_from_schema(self):
        """A schema URL becomes the survey_url claim."""
        url = "http://schemas.test/test.json?bust=20240101000000"
        assert schema_claims(LauncherSchema(name="test", url=url)) == {"survey_url": url}

    def test_no_url_no_claim(self):
        """Name-only schemas add nothing."""
        assert schema_claims(LauncherSchema(name="test")) == {}


class TestParseBool:
    """Tests for parse_bool()."""

    @pytest.mark.parametrize("value", ["1", "t", "T", "TRUE", "true", "True"])
    def test_true_values(self, value):
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", ["0", "f", "false", "", "yes", "on"])
    def test_other_values_false(self, value):
        assert parse_bool(value) is False


class TestApplyMetadata:
    """Tests for apply_metadata(), used by quick launches."""

    def test_string_field_from_values(self):
        """A supplied value wins over the default."""
        fields = [MetadataField(name="ru_ref", default="12346789012A")]
        claims = apply_metadata({}, {"ru_ref": ["999"]}, fields)
        assert claims["ru_ref"] == "999"

    def test_string_field_default(self):
        """An absent value takes the field default."""
        fields = [MetadataField(name="ru_ref", default="12346789012A")]
        claims = apply_metadata({}, {}, fields)
        assert claims["ru_ref"] == "12346789012A"

    def test_empty_supplied_value_kept(self):
        """An empty supplied value replaces the default."""
        fields = [MetadataField(name="trad_as", default="ESSENTIAL ENTERPRISE LTD.")]
        claims = apply_metadata({}, {"trad_as": [""]}, fields)
        assert claims["trad_as"] == ""

    def test_boolean_parsed_from_value(self):
        """Boolean fields are parsed from the supplied string."""
        fields = [MetadataField(name="flag_1", kind="boolean", default="false")]
        assert apply_metadata({}, {"flag_1": ["true"]}, fields)["flag_1"] is True
        assert apply_metadata({}, {"flag_1": ["false"]}, fields)["flag_1"] is False

    def test_boolean_defaults_false(self):
        """Absent boolean fields are false."""
        fields = [MetadataField(name="flag_1", kind="boolean", default="false")]
        assert apply_metadata({}, {}, fields)["flag_1"] is False


class TestCoerceBooleanPresence:
    """Tests for coerce_boolean_presence(), used by POST launches."""

    def test_present_false_string_becomes_true(self):
        """Presence, not the value, decides the boolean."""
        fields = [MetadataField(name="flag_1", kind="boolean")]
        claims = coerce_boolean_presence({"flag_1": "false"}, fields)
        assert claims["flag_1"] is True

    def test_absent_becomes_false(self):
        """A boolean field that was not submitted is false."""
        fields = [MetadataField(name="flag_1", kind="boolean")]
        assert coerce_boolean_presence({}, fields)["flag_1"] is False

    def test_string_fields_untouched(self):
        """Non boolean fields are left alone."""
        fields = [MetadataField(name="ru_ref")]
        assert coerce_boolean_presence({}, fields) == {}


def test_merge_claims_later_sources_win():
    """merge_claims() overlays sources left to right."""
    assert merge_claims({"a": 1, "b": 1}, {"b": 2}, {"c": 3}) == {"a": 1, "b": 2, "c": 3}
