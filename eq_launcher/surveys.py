"""
Registry of known questionnaire schemas.

Provides name based lookup of launcher schemas so a POST launch can find the
schema URL for a survey without the caller supplying one.
"""

import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import httpx

from eq_launcher.errors import SchemaResolutionError

logger = logging.getLogger(__name__)

# InvalidURL is raised while building the request and is not an HTTPError
TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


@dataclass(frozen=True)
class LauncherSchema:
    """
    Identifies the questionnaire a token launches.

    Attributes:
        name: Schema name, e.g. ``lms_household_gb_eng``.
        survey_type: Optional grouping used by the launch page.
        url: Schema URL. Empty when the schema is served by the runner by name.
    """

    name: str = ""
    survey_type: str = ""
    url: str = ""


class SurveyRegistry:
    """
    Known launcher schemas keyed by name.

    Example:
        >>> registry = SurveyRegistry()
        >>> registry.load_from_file('surveys.json')
        >>> schema = registry.find_by_name('lms_household_gb_eng')
    """

    def __init__(self, schemas: Optional[List[LauncherSchema]] = None):
        self._schemas: Dict[str, LauncherSchema] = {}
        self._lock = threading.RLock()
        for schema in schemas or []:
            self.register(schema)

    def register(self, schema: LauncherSchema) -> None:
        """Register a schema, replacing any existing entry with the same name."""
        with self._lock:
            self._schemas[schema.name] = schema
            logger.debug(f"Registered schema: {schema.name}")

    def find_by_name(self, name: str) -> LauncherSchema:
        """
        Find a schema by exact name.

        A miss is not an error: the result is a schema carrying only the name,
        which makes the runner resolve it from ``/schemas/<name>``.
        """
        with self._lock:
            schema = self._schemas.get(name)

        if schema is None:
            if name:
                logger.info(f"Schema not in registry, launching by name: {name}")
            return LauncherSchema(name=name)

        return schema

    def names(self) -> List[str]:
        """Names of all registered schemas, sorted."""
        with self._lock:
            return sorted(self._schemas)

    def __len__(self) -> int:
        with self._lock:
            return len(self._schemas)

    def load_from_file(self, path: str) -> int:
        """
        Load schemas from a JSON file.

        Expected format:
        {
            "schemas": [
                {
                    "name": "lms_household_gb_eng",
                    "survey_type": "social",
                    "url": "https://example.com/schemas/lms.json"
                }
            ]
        }

        Returns:
            Number of schemas loaded.
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))

        count = 0
        for entry in data.get("schemas", []):
            self.register(
                LauncherSchema(
                    name=entry["name"],
                    survey_type=entry.get("survey_type", ""),
                    url=entry.get("url", ""),
                )
            )
            count += 1

        logger.info(f"Loaded {count} schemas from {path}")
        return count

    def load_from_runner(
        self, schema_host_url: str, client: Optional[httpx.Client] = None
    ) -> int:
        """
        Register every schema name the runner reports at ``<host>/schemas``.

        The runner responds with a JSON list of schema names. Schemas loaded
        this way carry no URL.

        Raises:
            SchemaResolutionError: If the list cannot be fetched or decoded.
        """
        url = f"{schema_host_url.rstrip('/')}/schemas"
        owns_client = client is None
        client = client or httpx.Client()

        try:
            response = client.get(url)
        except TRANSPORT_ERRORS as e:
            raise SchemaResolutionError(f"Failed to load schema list from {url}", url=url) from e
        finally:
            if owns_client:
                client.close()

        if response.status_code != 200:
            raise SchemaResolutionError(f"Failed to load schema list from {url}", url=url)

        try:
            names = response.json()
        except ValueError as e:
            raise SchemaResolutionError(f"Failed to decode schema list from {url}", url=url) from e

        if not isinstance(names, list):
            raise SchemaResolutionError(f"Failed to decode schema list from {url}", url=url)

        for name in names:
            self.register(LauncherSchema(name=str(name)))

        logger.info(f"Loaded {len(names)} schemas from {url}")
        return len(names)
