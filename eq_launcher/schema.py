"""
Questionnaire schema resolution.

Fetches questionnaire schemas over HTTP, optionally submits them to the schema
validator, and extracts the schema name and the metadata fields a launch token
has to carry.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, List, Mapping, Optional, Sequence
from urllib.parse import urlsplit, urlunsplit

import httpx

from eq_launcher.claims import first_value
from eq_launcher.config import LauncherConfig
from eq_launcher.errors import SchemaResolutionError
from eq_launcher.surveys import TRANSPORT_ERRORS, LauncherSchema, SurveyRegistry


logger = logging.getLogger(__name__)

FORM_TYPE_NAMES = {
    "H": "household",
    "I": "individual",
    "C": "communal_establishment",
}


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class MetadataField:
    """
    A metadata entry declared by a questionnaire schema.

    ``kind`` is the schema's ``type`` for the field, e.g. ``string`` or
    ``boolean``.
    """

    name: str
    kind: str = "string"
    default: str = ""

    @property
    def is_boolean(self) -> bool:
        return self.kind == "boolean"

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "MetadataField":
        """
        Raises:
            ValueError: If name, type or default is not a string.
        """
        name = data["name"]
        kind = data.get("type") or ""
        default = data.get("default") or ""
        for key, value in (("name", name), ("type", kind), ("default", default)):
            if not isinstance(value, str):
                raise ValueError(f"metadata {key} must be a string")
        return cls(name=name, kind=kind, default=default)


@dataclass(frozen=True)
class QuestionnaireSchema:
    """The parts of a questionnaire schema the launcher reads."""

    schema_name: str = ""
    metadata: List[MetadataField] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Any) -> "QuestionnaireSchema":
        """
        Parse the launcher's view of a schema document.

        Raises:
            ValueError: If the document does not have the expected shape.
        """
        if not isinstance(data, dict):
            raise ValueError("schema document must be a JSON object")

        metadata = data.get("metadata") or []
        if not isinstance(metadata, list):
            raise ValueError("schema metadata must be a list")

        try:
            fields = [MetadataField.from_json(entry) for entry in metadata]
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"invalid metadata entry: {e}")

        schema_name = data.get("schema_name") or ""
        if not isinstance(schema_name, str):
            raise ValueError("schema_name must be a string")

        return cls(schema_name=schema_name, metadata=fields)


# =============================================================================
# Name Helpers
# =============================================================================


def transform_schema_params_to_name(values: Mapping[str, Sequence[str]]) -> str:
    """
    Build a schema name from census launch parameters.

    An explicit ``schema_name`` wins. Otherwise the name is
    ``<survey>_<form type>_<region code>`` with the region code lowercased and
    dashes replaced by underscores, e.g. ``lms_household_gb_eng``.
    """
    schema_name = first_value(values, "schema_name")
    if schema_name:
        return schema_name

    survey = first_value(values, "survey")
    form_type = FORM_TYPE_NAMES.get(first_value(values, "form_type"), "")
    region_code = first_value(values, "region_code").replace("-", "_").lower()

    return f"{survey}_{form_type}_{region_code}"


def schema_name_from_url(url: str) -> str:
    """Last path segment of ``url`` with its extension removed."""
    segment = urlsplit(url).path.rsplit("/", 1)[-1]
    if "." in segment:
        segment = segment.rsplit(".", 1)[0]
    return segment


def add_cache_bust(url: str, now: Optional[datetime] = None) -> str:
    """Append ``?bust=<YYYYMMDDHHMMSS>`` unless ``url`` already has a query."""
    if "?" in url:
        return url
    now = now or datetime.now()
    return f"{url}?bust={now.strftime('%Y%m%d%H%M%S')}"


# =============================================================================
# Resolver
# =============================================================================


class SchemaResolver:
    """
    Resolves launcher schemas and their required metadata.

    Every lookup goes to the network; nothing is cached. Failures raise
    ``SchemaResolutionError`` and are never retried.

    Example:
        >>> resolver = SchemaResolver(LauncherConfig.from_env())
        >>> schema = resolver.resolve_by_url('https://example.com/schemas/lms.json')
        >>> fields = resolver.get_required_metadata(schema)
    """

    def __init__(
        self,
        config: LauncherConfig,
        registry: Optional[SurveyRegistry] = None,
        client: Optional[httpx.Client] = None,
    ):
        """
        Args:
            config: Launcher settings (schema host, validator, metadata defaults).
            registry: Known schemas for name lookups. Defaults to an empty registry.
            client: HTTP client to use. When omitted a client is created per
                request with httpx's default timeout.
        """
        self._config = config
        self._registry = registry if registry is not None else SurveyRegistry()
        self._client = client

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if self._client is not None:
            return self._client.request(method, url, **kwargs)
        with httpx.Client() as client:
            return client.request(method, url, **kwargs)

    def validate_schema(self, payload: bytes) -> None:
        """
        Submit a schema document to the validator, if one is configured.

        Raises:
            SchemaResolutionError: With the transport error, or the validator's
                response body verbatim when it rejects the schema.
        """
        if not self._config.schema_validator_url:
            return

        parts = urlsplit(self._config.schema_validator_url)
        path = posixpath.join(parts.path or "/", "validate")
        validate_url = urlunsplit(parts._replace(path=path))

        logger.info(f"Validating schema: {validate_url}")

        try:
            response = self._request(
                "POST",
                validate_url,
                content=payload,
                headers={"Content-Type": "application/json"},
            )
        except TRANSPORT_ERRORS as e:
            raise SchemaResolutionError(str(e), url=validate_url) from e

        if response.status_code != 200:
            raise SchemaResolutionError(response.text, url=validate_url)

    def resolve_by_url(self, url: str) -> LauncherSchema:
        """
        Fetch the schema at ``url`` and describe it.

        The returned schema's URL carries a cache-busting query parameter. Its
        name is the document's ``schema_name``, or the URL's file name when the
        document does not declare one.

        Raises:
            SchemaResolutionError: If the fetch, validation or decode fails.
        """
        try:
            response = self._request("GET", url)
        except TRANSPORT_ERRORS as e:
            raise SchemaResolutionError(f"Failed to load Schema from {url}", url=url) from e

        if response.status_code != 200:
            raise SchemaResolutionError(f"Failed to load Schema from {url}", url=url)

        body = response.content
        self.validate_schema(body)

        try:
            schema = QuestionnaireSchema.from_json(response.json())
        except ValueError as e:
            raise SchemaResolutionError(f"Failed to decode Schema from {url}", url=url) from e

        schema_name = schema.schema_name or schema_name_from_url(url)
        logger.info(f"Quicklaunch schema_name set to: {schema_name}")

        return LauncherSchema(name=schema_name, url=add_cache_bust(url))

    def resolve_by_name(self, name: str) -> LauncherSchema:
        """Look ``name`` up in the registry. A miss yields a name-only schema."""
        return self._registry.find_by_name(name)

    def metadata_url(self, schema: LauncherSchema) -> str:
        """URL the required metadata of ``schema`` is read from."""
        if schema.url:
            return schema.url
        host = self._config.schema_host_url.rstrip("/")
        return f"{host}/schemas/{schema.name}"

    def get_required_metadata(self, schema: LauncherSchema) -> List[MetadataField]:
        """
        Fetch the metadata fields ``schema`` declares.

        Each field's default is replaced from the configured default table;
        boolean fields always default to ``"false"``.

        Raises:
            SchemaResolutionError: If the schema cannot be fetched or decoded.
        """
        url = self.metadata_url(schema)
        logger.info(f"Loading metadata from schema: {url}")

        try:
            response = self._request("GET", url)
        except TRANSPORT_ERRORS as e:
            logger.warning(f"Failed to load schema from: {url}")
            raise SchemaResolutionError(f"Failed to load Schema from {url}", url=url) from e

        if response.status_code != 200:
            logger.warning(f"Invalid response code {response.status_code} for schema from: {url}")
            raise SchemaResolutionError(f"Failed to load Schema from {url}", url=url)

        try:
            document = QuestionnaireSchema.from_json(response.json())
        except ValueError as e:
            logger.warning(f"Failed to decode schema from {url}: {e}")
            raise SchemaResolutionError(f"Failed to unmarshal Schema from {url}", url=url) from e

        defaults = self._config.metadata_defaults()

        fields = []
        for metadata in document.metadata:
            default = "false" if metadata.is_boolean else defaults.get(metadata.name, "")
            fields.append(replace(metadata, default=default))

        return fields
