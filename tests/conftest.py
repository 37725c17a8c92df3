"""
Shared pytest fixtures for launcher tests.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
from jwcrypto import jwe, jwk, jws

from eq_launcher import LauncherConfig, generate_key_pair, KeyPair


SCHEMA_HOST = "http://runner.test"
SCHEMA_URL = "http://schemas.test/schemas/test_checkbox.json"


@dataclass
class LauncherKeys:
    """Key files written for a test run."""

    signing: KeyPair
    encryption: KeyPair
    signing_key_path: str
    encryption_key_path: str


@dataclass
class FakeSchemaServer:
    """Routes canned responses through an httpx.MockTransport."""

    routes: Dict[Tuple[str, str], Tuple[int, Dict[str, Any]]] = field(default_factory=dict)
    requests: List[httpx.Request] = field(default_factory=list)

    def add(self, method: str, url: str, status_code: int = 200, json_body: Any = None, text: Optional[str] = None) -> None:
        if json_body is not None:
            body = {"json": json_body}
        else:
            body = {"text": text or ""}
        self.routes[(method, url)] = (status_code, body)

    def add_schema(self, url: str, metadata: List[Dict[str, str]], schema_name: str = "") -> None:
        body = {"metadata": metadata}
        if schema_name:
            body["schema_name"] = schema_name
        self.add("GET", url, json_body=body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url).split("?")[0]
        route = self.routes.get((request.method, url))
        if route is None:
            return httpx.Response(404, text="not found")
        status_code, body = route
        return httpx.Response(status_code, **body)

    @property
    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


@pytest.fixture(scope="session")
def key_pairs() -> Tuple[KeyPair, KeyPair]:
    """Signing and encryption key pairs, generated once per session."""
    return generate_key_pair(), generate_key_pair()


@pytest.fixture
def launcher_keys(tmp_path, key_pairs) -> LauncherKeys:
    """Key files the launcher reads, written to a temp directory."""
    signing, encryption = key_pairs

    signing_path = tmp_path / "signing-private-key.pem"
    signing_path.write_bytes(signing.private_key_pem)
    encryption_path = tmp_path / "encryption-public-key.pem"
    encryption_path.write_bytes(encryption.public_key_pem)

    return LauncherKeys(
        signing=signing,
        encryption=encryption,
        signing_key_path=str(signing_path),
        encryption_key_path=str(encryption_path),
    )


@pytest.fixture
def config(launcher_keys) -> LauncherConfig:
    """Config pointing at the test keys and the fake runner."""
    return LauncherConfig(
        signing_key_path=launcher_keys.signing_key_path,
        encryption_key_path=launcher_keys.encryption_key_path,
        schema_host_url=SCHEMA_HOST,
    )


@pytest.fixture
def schema_server() -> FakeSchemaServer:
    """Fake schema host and validator."""
    return FakeSchemaServer()


@pytest.fixture
def sample_metadata() -> List[Dict[str, str]]:
    """Metadata as declared by a typical business survey schema."""
    return [
        {"name": "user_id", "type": "string"},
        {"name": "period_id", "type": "string"},
        {"name": "ru_name", "type": "string"},
        {"name": "flag_1", "type": "boolean"},
    ]


def decrypt_token(token: str, keys: LauncherKeys) -> Dict[str, Any]:
    """Decrypt and verify a launch token the way the runner does."""
    encrypted = jwe.JWE()
    encrypted.deserialize(token, key=jwk.JWK.from_pem(keys.encryption.private_key_pem))
    inner = encrypted.payload.decode("utf-8")

    signed = jws.JWS()
    signed.deserialize(inner, key=jwk.JWK.from_pem(keys.signing.public_key_pem))
    return json.loads(signed.payload)
