"""
Claim assembly for launch tokens.

Merges caller supplied launch attributes, schema metadata and token lifecycle
claims into the flat claim set that gets signed.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import TYPE_CHECKING, Any, Dict, Iterable, Mapping, Optional, Sequence

from eq_launcher.config import TOKEN_LIFETIME_SECONDS
from eq_launcher.surveys import LauncherSchema

if TYPE_CHECKING:
    from eq_launcher.schema import MetadataField


logger = logging.getLogger(__name__)

DEFAULT_ROLES = ["dumper"]

# Census test responses keep their schema_name even when launched with census params
LEGACY_INDIVIDUAL_SCHEMA = "test_individual_response"

SCHEMA_PARAMS = ("survey", "form_type", "region_code")

TRUE_VALUES = frozenset({"1", "t", "T", "TRUE", "true", "True"})

AttributeValues = Mapping[str, Sequence[str]]


def first_value(values: AttributeValues, key: str) -> str:
    """First value supplied for ``key``, or an empty string."""
    supplied = values.get(key)
    return supplied[0] if supplied else ""


def parse_bool(value: str) -> bool:
    """
    Parse a form value as a boolean.

    Accepts 1, t, T, TRUE, true and True as true. Anything else, including
    malformed input, is false.
    """
    return value in TRUE_VALUES


def _has_values(values: AttributeValues, key: str) -> bool:
    return len(values.get(key) or []) > 0


def build_claims(values: AttributeValues, schema: LauncherSchema) -> Dict[str, Any]:
    """
    Build the respondent claims from launch attributes.

    ``roles`` defaults to ``["dumper"]`` and is copied as a list; every other
    attribute contributes its first value unless that value is empty. A fresh
    ``tx_id`` is generated on every call.

    When census parameters (survey, form_type, region_code) are present the
    ``schema_name`` claim is dropped, except for the legacy test individual
    response schema. Otherwise a missing ``schema_name`` is filled from
    ``schema``.
    """
    roles = values["roles"] if "roles" in values else DEFAULT_ROLES
    claims: Dict[str, Any] = {
        "roles": list(roles),
        "tx_id": str(uuid.uuid4()),
    }

    for key, supplied in values.items():
        if key == "roles":
            continue
        if supplied and supplied[0] != "":
            claims[key] = supplied[0]

    is_legacy_individual = first_value(values, "schema_name") == LEGACY_INDIVIDUAL_SCHEMA
    has_schema_params = any(_has_values(values, key) for key in SCHEMA_PARAMS)

    if not is_legacy_individual and has_schema_params:
        logger.debug("Deleting schema name from claims")
        claims.pop("schema_name", None)
    elif not _has_values(values, "schema_name") and schema.name:
        # Quick launches have no schema_name attribute but the schema does
        claims["schema_name"] = schema.name

    logger.debug(f"Using claims: {claims}")
    return claims


def lifecycle_claims(
    now: Optional[float] = None, lifetime_seconds: int = TOKEN_LIFETIME_SECONDS
) -> Dict[str, Any]:
    """``iat``, ``exp`` and a fresh ``jti`` for a token issued at ``now``."""
    issued = int(now if now is not None else time.time())
    return {
        "iat": issued,
        "exp": issued + lifetime_seconds,
        "jti": str(uuid.uuid4()),
    }


def schema_claims(schema: LauncherSchema) -> Dict[str, Any]:
    """``survey_url`` when the schema was launched from a URL."""
    if schema.url:
        return {"survey_url": schema.url}
    return {}


def apply_metadata(
    claims: Dict[str, Any], values: AttributeValues, fields: Iterable["MetadataField"]
) -> Dict[str, Any]:
    """
    Set every declared metadata claim from the launch attributes.

    Boolean fields are parsed from the supplied string and default to false.
    Other fields take the supplied first value, even an empty one, or the
    field's default.
    """
    for metadata in fields:
        supplied = values.get(metadata.name)
        if metadata.is_boolean:
            claims[metadata.name] = parse_bool(supplied[0]) if supplied else False
        elif supplied:
            claims[metadata.name] = supplied[0]
        else:
            claims[metadata.name] = metadata.default
    return claims


def coerce_boolean_presence(
    claims: Dict[str, Any], fields: Iterable["MetadataField"]
) -> Dict[str, Any]:
    """
    Replace each boolean metadata claim with whether it is present.

    Used by POST launches, where the form only submits checked boxes: a claim
    of "false" still becomes True because the key was sent.
    """
    for metadata in fields:
        if metadata.is_boolean:
            claims[metadata.name] = metadata.name in claims
    return claims


def merge_claims(*sources: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge claim mappings left to right; later sources win."""
    merged: Dict[str, Any] = {}
    for source in sources:
        merged.update(source)
    return merged
