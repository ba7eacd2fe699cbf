"""
Verification Server Test Suite

Exercises the HTTP surface with FastAPI's ``TestClient``.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from test_mocks import (
    MOCK_EVM_ADDRESS,
    MOCK_MESSAGE,
    MOCK_SOLANA_ADDRESS,
    sign_evm_message,
    sign_solana_raw,
)

from mpc_verify.clients.organization import OrganizationKeyProvider
from mpc_verify.config import Settings
from mpc_verify.engine.exceptions import CustodyAPIError
from mpc_verify.schemas.bases import ChainFamily, EncodingHint
from mpc_verify.servers import VerificationServer, parse_verify_body


def _client(**kwargs) -> TestClient:
    kwargs.setdefault("settings", Settings(organization_public_key="org-pk"))
    return TestClient(VerificationServer(**kwargs))


@pytest.fixture
def client():
    return _client()


class TestParseVerifyBody:

    def test_chain_id_resolves_family(self):
        request = parse_verify_body({"chainId": "SOL", "operationType": "message"})
        assert request.chain_family == ChainFamily.SOLANA

    def test_explicit_family_wins_over_chain_id(self):
        request = parse_verify_body({"chainId": "SOL", "chainFamily": "near", "operationType": "message"})
        assert request.chain_family == ChainFamily.NEAR

    def test_sign_result_body(self):
        r, s, v = sign_evm_message()
        request = parse_verify_body({
            "chainId": "ETH-SEPOLIA",
            "operationType": "message",
            "rawMessage": MOCK_MESSAGE,
            "expectedIdentity": MOCK_EVM_ADDRESS,
            "signResult": {"signature": {"r": r, "s": s, "v": v - 27}},
        })
        assert request.signature_material.v == v - 27

    def test_sign_result_keeps_declared_encoding(self):
        request = parse_verify_body({
            "chainId": "SOL",
            "operationType": "message",
            "signatureEncoding": "base58",
            "signResult": {"signature": "5Kd3"},
        })
        assert request.signature_material == "5Kd3"
        assert request.signature_encoding == EncodingHint.BASE58

    def test_sign_result_rejects_unknown_encoding(self):
        with pytest.raises(ValueError):
            parse_verify_body({
                "chainId": "SOL",
                "operationType": "message",
                "signatureEncoding": "base32",
                "signResult": {"signature": "5Kd3"},
            })


class TestVerifyEndpoint:
    """POST /verify"""

    def test_evm_verified(self, client):
        r, s, v = sign_evm_message()
        response = client.post("/verify", json={
            "chainFamily": "evm",
            "operationType": "message",
            "rawMessage": MOCK_MESSAGE,
            "signatureMaterial": {"r": r, "s": s, "v": v - 27},
            "expectedIdentity": MOCK_EVM_ADDRESS,
        })
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "verified"
        assert body["chainFamily"] == "evm"
        assert body["candidate"] == f"v={v}"

    def test_solana_via_sign_result(self, client):
        response = client.post("/verify", json={
            "chainId": "SOL-TESTNET",
            "operationType": "message",
            "rawMessage": MOCK_MESSAGE,
            "expectedIdentity": MOCK_SOLANA_ADDRESS,
            "signResult": {"signature": "0x" + sign_solana_raw().hex()},
        })
        assert response.status_code == 200
        assert response.json()["explanation"] == "Verified (Schema: Raw Message)"

    def test_unsupported_combination_is_a_failed_outcome(self, client):
        response = client.post("/verify", json={
            "chainFamily": "bitcoin",
            "operationType": "typedData",
            "signatureMaterial": "abc",
        })
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "failed"
        assert body["errorDetails"] == {"error_type": "UnsupportedCombinationError"}

    def test_non_json_body(self, client):
        response = client.post("/verify", content=b"not json", headers={"Content-Type": "application/json"})
        assert response.status_code == 400

    def test_non_object_body(self, client):
        response = client.post("/verify", json=["evm", "message"])
        assert response.status_code == 400

    def test_unknown_chain_id(self, client):
        response = client.post("/verify", json={"chainId": "DOGE", "operationType": "message"})
        assert response.status_code == 400
        assert "Unknown chain id" in response.json()["error"]

    def test_invalid_fields(self, client):
        response = client.post("/verify", json={"chainFamily": "tron", "operationType": "message"})
        assert response.status_code == 422
        assert response.json()["error"] == "Invalid verification request"


class TestConfigEndpoints:
    """GET /supported-types and GET /organization/public-key"""

    def test_supported_types(self, client):
        response = client.get("/supported-types")
        assert response.status_code == 200
        assert response.json()["delegateAction"] == ["NEAR-TESTNET", "NEAR"]

    def test_configured_public_key(self, client):
        response = client.get("/organization/public-key")
        assert response.status_code == 200
        assert response.json() == {"publicKey": "org-pk"}

    def test_public_key_without_configuration(self):
        response = _client(settings=Settings()).get("/organization/public-key")
        assert response.status_code == 503
        assert "PLANBOK_API_KEY" in response.json()["error"]

    def test_public_key_upstream_failure(self):
        provider = MagicMock(spec=OrganizationKeyProvider)
        provider.get = AsyncMock(side_effect=CustodyAPIError("Custody API returned 500", status_code=500))
        response = _client(key_provider=provider).get("/organization/public-key")
        assert response.status_code == 502
        provider.get.assert_awaited_once()
