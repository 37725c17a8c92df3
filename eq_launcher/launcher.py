"""
Launcher - turns launch requests into tokens for the questionnaire runner.

Two entry points mirror the two ways a questionnaire is launched:

- ``token_from_defaults``: a quick launch from a schema URL, with every
  declared metadata field filled from the request or from default values.
- ``token_from_post``: a launch form submission, where the schema is found by
  name and boolean metadata reflects which checkboxes were submitted.

Each call resolves the schema, builds the claims and issues the token; the
first failure aborts the call with a ``LauncherError``.
"""

import logging
from typing import Dict, List, Optional

import httpx

from eq_launcher.claims import (
    AttributeValues,
    apply_metadata,
    build_claims,
    coerce_boolean_presence,
    lifecycle_claims,
    merge_claims,
    schema_claims,
)
from eq_launcher.config import LauncherConfig
from eq_launcher.issuer import TokenIssuer
from eq_launcher.schema import SchemaResolver, transform_schema_params_to_name
from eq_launcher.surveys import SurveyRegistry


logger = logging.getLogger(__name__)


class Launcher:
    """
    Issues launch tokens for questionnaire schemas.

    Example:
        >>> launcher = Launcher(LauncherConfig.from_env())
        >>> token = launcher.token_from_post({
        ...     'survey': ['lms'], 'form_type': ['H'], 'region_code': ['GB-ENG'],
        ... })
    """

    def __init__(
        self,
        config: LauncherConfig,
        registry: Optional[SurveyRegistry] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.config = config
        self.resolver = SchemaResolver(config, registry=registry, client=http_client)
        self.issuer = TokenIssuer(config)

    def token_from_defaults(
        self,
        survey_url: str,
        account_service_url: str,
        account_service_log_out_url: str,
        values: AttributeValues,
    ) -> str:
        """
        Quick launch the schema at ``survey_url``.

        Raises:
            SchemaResolutionError: If the schema or its metadata cannot be loaded.
            TokenError: If the token cannot be issued.
        """
        schema = self.resolver.resolve_by_url(survey_url)

        launch_values: Dict[str, List[str]] = {key: list(v) for key, v in values.items()}
        launch_values["account_service_url"] = [account_service_url]
        launch_values["account_service_log_out_url"] = [account_service_log_out_url]

        claims = build_claims(launch_values, schema)

        required_metadata = self.resolver.get_required_metadata(schema)
        apply_metadata(claims, launch_values, required_metadata)

        claims = merge_claims(
            claims,
            lifecycle_claims(lifetime_seconds=self.config.token_lifetime_seconds),
            schema_claims(schema),
        )

        return self.issuer.issue(claims)

    def token_from_post(self, values: AttributeValues) -> str:
        """
        Launch from a submitted launch form.

        Raises:
            SchemaResolutionError: If the schema metadata cannot be loaded.
            TokenError: If the token cannot be issued.
        """
        logger.info(f"POST received: {dict(values)}")

        schema_name = transform_schema_params_to_name(values)
        schema = self.resolver.resolve_by_name(schema_name)

        claims = merge_claims(
            build_claims(values, schema),
            lifecycle_claims(lifetime_seconds=self.config.token_lifetime_seconds),
            schema_claims(schema),
        )

        required_metadata = self.resolver.get_required_metadata(schema)
        coerce_boolean_presence(claims, required_metadata)

        return self.issuer.issue(claims)
