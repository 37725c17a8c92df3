"""
Questionnaire Launcher - launch tokens for the questionnaire runner.

This package resolves questionnaire schemas, assembles the respondent claims a
schema requires, and issues them as signed-then-encrypted JWTs.
"""

__version__ = "1.0.0"

# Token issuance
from .launcher import Launcher
from .issuer import TokenIssuer

# Claims and schemas
from .claims import build_claims, lifecycle_claims, schema_claims
from .schema import MetadataField, QuestionnaireSchema, SchemaResolver, transform_schema_params_to_name
from .surveys import LauncherSchema, SurveyRegistry

# Configuration and keys
from .config import LauncherConfig
from .keys import (
    EncryptionKeyMaterial,
    KeyPair,
    SigningKeyMaterial,
    generate_key_pair,
    load_encryption_key,
    load_signing_key,
)

# Errors
from .errors import KeyLoadError, LauncherError, SchemaResolutionError, TokenError


__all__ = [
    "__version__",
    # Issuance
    "Launcher",
    "TokenIssuer",
    # Claims and schemas
    "build_claims",
    "lifecycle_claims",
    "schema_claims",
    "MetadataField",
    "QuestionnaireSchema",
    "SchemaResolver",
    "transform_schema_params_to_name",
    "LauncherSchema",
    "SurveyRegistry",
    # Configuration and keys
    "LauncherConfig",
    "EncryptionKeyMaterial",
    "KeyPair",
    "SigningKeyMaterial",
    "generate_key_pair",
    "load_encryption_key",
    "load_signing_key",
    # Errors
    "KeyLoadError",
    "LauncherError",
    "SchemaResolutionError",
    "TokenError",
]
