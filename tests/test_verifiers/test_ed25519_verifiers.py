"""
Solana and NEAR Verifier Test Suite

Both chains use ed25519; they differ in identity formats, signature
encodings and the message transforms that are tried.
"""

import base64

import base58
import pytest
from nacl.signing import VerifyKey

from test_mocks import (
    MOCK_ED25519_OTHER_SEED,
    MOCK_ED25519_PUBLIC_KEY,
    MOCK_MESSAGE,
    MOCK_NEAR_IMPLICIT_ACCOUNT,
    MOCK_NEAR_PUBLIC_KEY,
    MOCK_OTHER_MESSAGE,
    MOCK_SOLANA_ADDRESS,
    MOCK_SOLANA_OTHER_ADDRESS,
    create_request,
    ed25519_sign,
    sign_near,
    sign_solana_hashed,
    sign_solana_raw,
)

from mpc_verify.engine.exceptions import DecodeError, MalformedIdentityError
from mpc_verify.schemas.bases import ChainFamily, EncodingHint
from mpc_verify.verifiers.ed25519 import ed25519_matches
from mpc_verify.verifiers.near import NearVerifier
from mpc_verify.verifiers.solana import SolanaVerifier


def _hex(signature: bytes) -> str:
    return "0x" + signature.hex()


# ========================================================================
# Solana
# ========================================================================

class TestSolanaVerifier:
    """Raw and prefixed-hash message transforms."""

    @pytest.fixture
    def verifier(self):
        return SolanaVerifier()

    def _request(self, signature, identity=MOCK_SOLANA_ADDRESS, **fields):
        return create_request(
            ChainFamily.SOLANA,
            signature_material=signature,
            expected_identity=identity,
            **fields,
        )

    def test_raw_message_signature(self, verifier):
        result = verifier.evaluate(self._request(_hex(sign_solana_raw())))
        assert result.is_valid
        assert result.message == "Verified (Schema: Raw Message)"
        assert result.candidate == "Raw Message"

    def test_hashed_with_prefix_signature(self, verifier):
        result = verifier.evaluate(self._request(_hex(sign_solana_hashed())))
        assert result.is_valid
        assert result.message == "Verified (Schema: Hashed with Prefix)"

    def test_base58_signature(self, verifier):
        signature = base58.b58encode(sign_solana_raw()).decode()
        assert verifier.evaluate(self._request(signature)).is_valid

    def test_declared_encoding_is_strict(self, verifier):
        signature = base58.b58encode(sign_solana_raw()).decode()
        with pytest.raises(DecodeError):
            verifier.evaluate(self._request(signature, signature_encoding=EncodingHint.HEX))

    def test_hex_public_key_identity(self, verifier):
        result = verifier.evaluate(self._request(
            _hex(sign_solana_raw()),
            identity="0x" + MOCK_ED25519_PUBLIC_KEY.hex(),
        ))
        assert result.is_valid

    def test_wrong_key_fails_after_both_transforms(self, verifier):
        result = verifier.evaluate(self._request(_hex(sign_solana_raw()), identity=MOCK_SOLANA_OTHER_ADDRESS))
        assert not result.is_valid
        assert result.message.startswith("Solana signature verification failed for key")
        assert "(tried: Raw Message, Hashed with Prefix)" in result.message

    def test_wrong_message_fails(self, verifier):
        request = self._request(_hex(sign_solana_raw()), raw_message=MOCK_OTHER_MESSAGE)
        assert not verifier.evaluate(request).is_valid

    def test_short_signature_is_length_mismatch(self, verifier):
        result = verifier.evaluate(self._request(_hex(sign_solana_raw()[:63])))
        assert not result.is_valid
        assert result.message == "Signature length mismatch: expected 64 bytes, got 63"

    def test_invalid_address(self, verifier):
        with pytest.raises(MalformedIdentityError):
            verifier.evaluate(self._request(_hex(sign_solana_raw()), identity="not-a-solana-address"))

    def test_address_of_wrong_size(self, verifier):
        short_key = base58.b58encode(b"\x01" * 31).decode()
        with pytest.raises(MalformedIdentityError, match="32 bytes"):
            verifier.evaluate(self._request(_hex(sign_solana_raw()), identity=short_key))


# ========================================================================
# NEAR
# ========================================================================

class TestNearVerifier:
    """SHA-256 digest signing with NEAR key formats."""

    @pytest.fixture
    def verifier(self):
        return NearVerifier()

    def _request(self, signature, identity=MOCK_NEAR_PUBLIC_KEY, **fields):
        return create_request(
            ChainFamily.NEAR,
            signature_material=signature,
            expected_identity=identity,
            **fields,
        )

    def test_hex_signature(self, verifier):
        result = verifier.evaluate(self._request(_hex(sign_near())))
        assert result.is_valid
        assert result.message == "NEAR signature verified"
        assert result.candidate == "SHA-256"

    def test_base64_signature(self, verifier):
        signature = base64.b64encode(sign_near()).decode()
        assert verifier.evaluate(self._request(signature)).is_valid

    def test_prefixed_base58_signature(self, verifier):
        signature = "ed25519:" + base58.b58encode(sign_near()).decode()
        assert verifier.evaluate(self._request(signature)).is_valid

    def test_implicit_account_identity(self, verifier):
        result = verifier.evaluate(self._request(_hex(sign_near()), identity=MOCK_NEAR_IMPLICIT_ACCOUNT))
        assert result.is_valid

    def test_raw_message_signature_is_rejected(self, verifier):
        raw_signature = ed25519_sign(MOCK_MESSAGE.encode("utf-8"))
        result = verifier.evaluate(self._request(_hex(raw_signature)))
        assert not result.is_valid
        assert "(tried: SHA-256)" in result.message

    def test_near_signature_only_verifies_hashed(self, verifier):
        raw_message = MOCK_MESSAGE.encode("utf-8")
        verify_key = VerifyKey(MOCK_ED25519_PUBLIC_KEY)
        assert not ed25519_matches(verify_key, raw_message, sign_near())
        assert verifier.evaluate(self._request(_hex(sign_near()))).is_valid

    def test_other_key_fails(self, verifier):
        other = ed25519_sign(b"\x00" * 32, seed=MOCK_ED25519_OTHER_SEED)
        result = verifier.evaluate(self._request(_hex(other)))
        assert not result.is_valid
        assert result.message.startswith("NEAR signature verification failed")

    def test_named_account_is_not_a_key(self, verifier):
        with pytest.raises(MalformedIdentityError, match="ed25519:<base58>"):
            verifier.evaluate(self._request(_hex(sign_near()), identity="alice.near"))
