"""
Launch token issuer - signs claims with RS256 and encrypts them with RSA-OAEP/A256GCM.

Tokens are nested JWTs: the claim set is signed as a JWS, and the compact JWS
becomes the payload of a JWE addressed to the questionnaire runner.
"""

import logging
from typing import Any, Dict, Mapping, Tuple

from jwcrypto import jwk, jwt
from jwcrypto.common import JWException, base64url_decode, json_decode

from eq_launcher.config import LauncherConfig
from eq_launcher.errors import KeyLoadError, TokenError
from eq_launcher.keys import load_encryption_key, load_signing_key


logger = logging.getLogger(__name__)

SIGNING_ALGORITHM = "RS256"
KEY_WRAP_ALGORITHM = "RSA-OAEP"
CONTENT_ENCRYPTION = "A256GCM"


class TokenIssuer:
    """
    Issues signed and encrypted launch tokens.

    Key files are loaded on every call to ``issue()``, so replacing them on
    disk takes effect for the next token without a restart.

    Example:
        >>> issuer = TokenIssuer(LauncherConfig.from_env())
        >>> token = issuer.issue({'ru_ref': '12346789012A', 'roles': ['dumper']})
    """

    def __init__(self, config: LauncherConfig):
        self._config = config

    def _signing_jwk(self) -> Tuple[jwk.JWK, str]:
        try:
            material = load_signing_key(self._config.signing_key_path)
        except KeyLoadError as e:
            raise TokenError("Error loading signing key", e) from e
        try:
            return jwk.JWK.from_pyca(material.key), material.kid
        except (JWException, TypeError, ValueError) as e:
            raise TokenError("Error creating JWT signer", e) from e

    def _encryption_jwk(self) -> Tuple[jwk.JWK, str]:
        try:
            material = load_encryption_key(self._config.encryption_key_path)
        except KeyLoadError as e:
            raise TokenError("Error loading encryption key", e) from e
        try:
            return jwk.JWK.from_pyca(material.key), material.kid
        except (JWException, TypeError, ValueError) as e:
            raise TokenError("Error creating JWT encrypter", e) from e

    def issue(self, claims: Mapping[str, Any]) -> str:
        """
        Sign and encrypt ``claims`` into a compact token.

        Args:
            claims: The complete claim set. It is serialized as JSON unchanged.

        Returns:
            The compact JWE serialization of the signed token.

        Raises:
            TokenError: If a key cannot be loaded or signing/encryption fails.
                A key failure carries the ``KeyLoadError`` as its cause.
        """
        signing_key, signing_kid = self._signing_jwk()
        encryption_key, encryption_kid = self._encryption_jwk()

        signed_header = {
            "alg": SIGNING_ALGORITHM,
            "typ": "JWT",
            "kid": signing_kid,
        }
        encrypted_header = {
            "alg": KEY_WRAP_ALGORITHM,
            "enc": CONTENT_ENCRYPTION,
            "typ": "JWT",
            "cty": "JWT",
            "kid": encryption_kid,
        }

        try:
            signed = jwt.JWT(header=signed_header, claims=dict(claims))
            signed.make_signed_token(signing_key)

            encrypted = jwt.JWT(header=encrypted_header, claims=signed.serialize())
            encrypted.make_encrypted_token(encryption_key)
            token = encrypted.serialize()
        except (JWException, TypeError, ValueError) as e:
            raise TokenError("Error signing and encrypting JWT", e) from e

        logger.info(f"Created signed/encrypted JWT: {token}")
        return token


def token_headers(token: str) -> Dict[str, Any]:
    """Unverified protected header of a compact token, for diagnostics."""
    return json_decode(base64url_decode(token.split(".")[0]))
