# eq_launcher/config.py
"""
Centralized configuration for the questionnaire launcher.

All configurable values are read from environment variables with sensible defaults.
The module-level values are only read once; components receive an explicit
``LauncherConfig`` at construction so tests and embedders never touch the
environment.

Usage:
    from eq_launcher.config import LauncherConfig

    config = LauncherConfig.from_env()

Environment Variables:
    JWT_SIGNING_KEY_PATH: PEM PKCS#1 RSA private key used to sign tokens
    JWT_ENCRYPTION_KEY_PATH: PEM X.509 RSA public key used to encrypt tokens
    SURVEY_RUNNER_URL: Base URL of the questionnaire runner (default: http://localhost:5000)
    SURVEY_RUNNER_SCHEMA_URL: Host serving /schemas/<name> (default: SURVEY_RUNNER_URL)
    SCHEMA_VALIDATOR_URL: Schema validator base URL (default: empty, validation disabled)
    SURVEY_REGISTRY_PATH: Optional JSON file of known surveys
"""

import os
import uuid
from dataclasses import dataclass, field
from typing import Dict, Final, Optional

# =============================================================================
# Key Configuration
# =============================================================================

JWT_SIGNING_KEY_PATH: Final[str] = os.getenv(
    "JWT_SIGNING_KEY_PATH",
    "jwt-test-keys/sdc-user-authentication-signing-launcher-private-key.pem",
)

JWT_ENCRYPTION_KEY_PATH: Final[str] = os.getenv(
    "JWT_ENCRYPTION_KEY_PATH",
    "jwt-test-keys/sdc-user-authentication-encryption-sr-public-key.pem",
)

# =============================================================================
# Runner Configuration
# =============================================================================

SURVEY_RUNNER_URL: Final[str] = os.getenv("SURVEY_RUNNER_URL", "http://localhost:5000")

# Host serving /schemas/<name> when no explicit schema URL is given
SURVEY_RUNNER_SCHEMA_URL: Final[str] = os.getenv("SURVEY_RUNNER_SCHEMA_URL", SURVEY_RUNNER_URL)

# Empty disables validation
SCHEMA_VALIDATOR_URL: Final[str] = os.getenv("SCHEMA_VALIDATOR_URL", "")

SURVEY_REGISTRY_PATH: Final[str] = os.getenv("SURVEY_REGISTRY_PATH", "")

# =============================================================================
# Token Configuration
# =============================================================================

TOKEN_LIFETIME_SECONDS: Final[int] = 10 * 60

DEFAULT_METADATA_VALUES: Final[Dict[str, str]] = {
    "user_id": "UNKNOWN",
    "period_id": "201605",
    "period_str": "May 2017",
    "ru_ref": "12346789012A",
    "ru_name": "ESSENTIAL ENTERPRISE LTD.",
    "ref_p_start_date": "2016-05-01",
    "ref_p_end_date": "2016-05-31",
    "return_by": "2016-06-12",
    "trad_as": "ESSENTIAL ENTERPRISE LTD.",
    "employment_date": "2016-06-10",
    "region_code": "GB-ENG",
    "language_code": "en",
    "case_ref": "1000000000000001",
    "address_line1": "68 Abingdon Road",
    "address_line2": "",
    "locality": "",
    "town_name": "Goathill",
    "postcode": "PE12 4GH",
    "display_address": "68 Abingdon Road, Goathill",
    "country": "E",
}


@dataclass
class LauncherConfig:
    """
    Settings consumed by the key store, schema resolver and token issuer.

    Attributes:
        signing_key_path: Path to the PEM PKCS#1 RSA private key.
        encryption_key_path: Path to the PEM X.509 RSA public key.
        schema_host_url: Base URL used to build ``<host>/schemas/<name>``.
        schema_validator_url: Validator base URL, or None to skip validation.
        default_metadata: Default values for schema metadata, keyed by field name.
        token_lifetime_seconds: Seconds between ``iat`` and ``exp``.
    """

    signing_key_path: str = JWT_SIGNING_KEY_PATH
    encryption_key_path: str = JWT_ENCRYPTION_KEY_PATH
    schema_host_url: str = SURVEY_RUNNER_SCHEMA_URL
    schema_validator_url: Optional[str] = None
    default_metadata: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_METADATA_VALUES)
    )
    token_lifetime_seconds: int = TOKEN_LIFETIME_SECONDS

    @classmethod
    def from_env(cls) -> "LauncherConfig":
        """Build a config from the module-level environment settings."""
        return cls(
            signing_key_path=JWT_SIGNING_KEY_PATH,
            encryption_key_path=JWT_ENCRYPTION_KEY_PATH,
            schema_host_url=SURVEY_RUNNER_SCHEMA_URL,
            schema_validator_url=SCHEMA_VALIDATOR_URL or None,
        )

    def metadata_defaults(self) -> Dict[str, str]:
        """
        Return a copy of the default metadata table.

        ``collection_exercise_sid`` is regenerated on every call unless the
        table pins it.
        """
        defaults = dict(self.default_metadata)
        defaults.setdefault("collection_exercise_sid", str(uuid.uuid4()))
        return defaults


# =============================================================================
# Configuration Summary (for debugging)
# =============================================================================

def print_config() -> None:
    """Print current configuration (useful for debugging)."""
    print("Questionnaire Launcher Configuration:")
    print(f"  JWT_SIGNING_KEY_PATH:     {JWT_SIGNING_KEY_PATH}")
    print(f"  JWT_ENCRYPTION_KEY_PATH:  {JWT_ENCRYPTION_KEY_PATH}")
    print(f"  SURVEY_RUNNER_URL:        {SURVEY_RUNNER_URL}")
    print(f"  SURVEY_RUNNER_SCHEMA_URL: {SURVEY_RUNNER_SCHEMA_URL}")
    print(f"  SCHEMA_VALIDATOR_URL:     {SCHEMA_VALIDATOR_URL or '(disabled)'}")
    print(f"  SURVEY_REGISTRY_PATH:     {SURVEY_REGISTRY_PATH or '(none)'}")


if __name__ == "__main__":
    print_config()
