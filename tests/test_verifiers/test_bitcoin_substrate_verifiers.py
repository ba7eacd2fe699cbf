"""
Bitcoin and Substrate Verifier Test Suite

Bitcoin: BIP-137 header handling across P2PKH, P2SH-P2WPKH and P2WPKH
addresses. Substrate: sr25519 / ed25519 key-type fallback over BLAKE2b.
"""

import base64

import pytest

from test_mocks import (
    HEADER_P2PKH_COMPRESSED,
    HEADER_P2PKH_UNCOMPRESSED,
    HEADER_P2SH_P2WPKH,
    HEADER_P2WPKH,
    MOCK_BTC_OTHER_P2PKH_ADDRESS,
    MOCK_BTC_P2PKH_ADDRESS,
    MOCK_BTC_P2SH_P2WPKH_ADDRESS,
    MOCK_BTC_P2WPKH_ADDRESS,
    MOCK_BTC_PUBKEY_HASH,
    MOCK_BTC_TESTNET_P2WPKH_ADDRESS,
    MOCK_ED25519_SUBSTRATE_KEYPAIR,
    MOCK_OTHER_MESSAGE,
    MOCK_SR25519_KEYPAIR,
    create_request,
    sign_bitcoin,
    sign_substrate,
)

from mpc_verify.engine.exceptions import MalformedIdentityError
from mpc_verify.schemas.bases import ChainFamily
from mpc_verify.verifiers.bitcoin import (
    BitcoinMessageVerifier,
    decode_address,
    message_digest,
    varint,
)
from mpc_verify.verifiers.substrate import SubstrateVerifier


# ========================================================================
# Bitcoin
# ========================================================================

class TestBitcoinHelpers:
    """Address decoding and digest construction."""

    def test_varint(self):
        assert varint(15) == b"\x0f"
        assert varint(0xFD) == b"\xfd\xfd\x00"
        assert varint(0x10000) == b"\xfe\x00\x00\x01\x00"

    def test_message_digest_is_32_bytes(self):
        assert len(message_digest(b"Hello")) == 32
        assert message_digest(b"Hello") != message_digest(b"hello")

    @pytest.mark.parametrize("address,kind", [
        (MOCK_BTC_P2PKH_ADDRESS, "base58"),
        (MOCK_BTC_P2WPKH_ADDRESS, "bech32"),
        (MOCK_BTC_TESTNET_P2WPKH_ADDRESS, "bech32"),
    ])
    def test_key_hash_addresses_carry_pubkey_hash(self, address, kind):
        decoded = decode_address(address)
        assert decoded.kind == kind
        assert decoded.hash160 == MOCK_BTC_PUBKEY_HASH

    def test_bad_checksum(self):
        tampered = MOCK_BTC_P2PKH_ADDRESS[:-1] + ("2" if MOCK_BTC_P2PKH_ADDRESS[-1] != "2" else "3")
        with pytest.raises(MalformedIdentityError):
            decode_address(tampered)

    def test_garbage_address(self):
        with pytest.raises(MalformedIdentityError):
            decode_address("not-an-address")


class TestBitcoinVerifier:
    """BIP-137 headers against each address type."""

    @pytest.fixture
    def verifier(self):
        return BitcoinMessageVerifier()

    def _request(self, signature, identity=MOCK_BTC_P2PKH_ADDRESS, **fields):
        return create_request(
            ChainFamily.BITCOIN,
            signature_material=signature,
            expected_identity=identity,
            **fields,
        )

    @pytest.mark.parametrize("header,address,label", [
        (HEADER_P2PKH_COMPRESSED, MOCK_BTC_P2PKH_ADDRESS, "P2PKH"),
        (HEADER_P2PKH_COMPRESSED, MOCK_BTC_P2SH_P2WPKH_ADDRESS, "P2SH-P2WPKH"),
        (HEADER_P2PKH_COMPRESSED, MOCK_BTC_P2WPKH_ADDRESS, "P2WPKH"),
        (HEADER_P2SH_P2WPKH, MOCK_BTC_P2SH_P2WPKH_ADDRESS, "P2SH-P2WPKH"),
        (HEADER_P2WPKH, MOCK_BTC_P2WPKH_ADDRESS, "P2WPKH"),
        (HEADER_P2WPKH, MOCK_BTC_TESTNET_P2WPKH_ADDRESS, "P2WPKH"),
    ])
    def test_header_and_address_combinations(self, verifier, header, address, label):
        result = verifier.evaluate(self._request(sign_bitcoin(header_base=header), identity=address))
        assert result.is_valid
        assert result.candidate == label
        assert result.message == f"Bitcoin signature verified ({label})"

    def test_hex_signature(self, verifier):
        raw = base64.b64decode(sign_bitcoin())
        assert verifier.evaluate(self._request("0x" + raw.hex())).is_valid

    def test_segwit_header_does_not_match_legacy_address(self, verifier):
        result = verifier.evaluate(self._request(sign_bitcoin(header_base=HEADER_P2SH_P2WPKH)))
        assert not result.is_valid
        assert "(tried: P2SH-P2WPKH)" in result.message

    def test_uncompressed_header_is_rejected(self, verifier):
        result = verifier.evaluate(self._request(sign_bitcoin(header_base=HEADER_P2PKH_UNCOMPRESSED)))
        assert not result.is_valid
        assert "uncompressed key" in result.message

    def test_header_out_of_range(self, verifier):
        raw = bytearray(base64.b64decode(sign_bitcoin()))
        raw[0] = 50
        result = verifier.evaluate(self._request(base64.b64encode(bytes(raw)).decode()))
        assert not result.is_valid
        assert result.message.startswith("Invalid BIP-137 header byte 50")

    def test_other_address_mismatch(self, verifier):
        result = verifier.evaluate(self._request(sign_bitcoin(), identity=MOCK_BTC_OTHER_P2PKH_ADDRESS))
        assert not result.is_valid
        assert result.message.startswith("Address mismatch: recovered key hash")
        assert "(tried: P2PKH, P2SH-P2WPKH)" in result.message

    def test_wrong_message(self, verifier):
        result = verifier.evaluate(self._request(sign_bitcoin(), raw_message=MOCK_OTHER_MESSAGE))
        assert not result.is_valid

    def test_short_signature(self, verifier):
        raw = base64.b64decode(sign_bitcoin())[:64]
        result = verifier.evaluate(self._request(base64.b64encode(raw).decode()))
        assert result.message == "Signature length mismatch: expected 65 bytes, got 64"

    def test_empty_address(self, verifier):
        with pytest.raises(MalformedIdentityError, match="empty"):
            verifier.evaluate(self._request(sign_bitcoin(), identity=""))


# ========================================================================
# Substrate
# ========================================================================

class TestSubstrateVerifier:
    """Key-type fallback and identity formats."""

    @pytest.fixture
    def verifier(self):
        return SubstrateVerifier()

    def _request(self, signature, identity, **fields):
        return create_request(
            ChainFamily.SUBSTRATE,
            signature_material=signature,
            expected_identity=identity,
            **fields,
        )

    def test_sr25519_signature(self, verifier):
        result = verifier.evaluate(self._request(sign_substrate(), MOCK_SR25519_KEYPAIR.ss58_address))
        assert result.is_valid
        assert result.candidate == "sr25519"
        assert result.message == "Substrate signature verified (sr25519)"

    def test_ed25519_signature_falls_back(self, verifier):
        signature = sign_substrate(keypair=MOCK_ED25519_SUBSTRATE_KEYPAIR)
        result = verifier.evaluate(self._request(signature, MOCK_ED25519_SUBSTRATE_KEYPAIR.ss58_address))
        assert result.is_valid
        assert result.candidate == "ed25519"
        assert result.message == "Substrate signature verified (ed25519)"

    def test_hex_public_key_identity(self, verifier):
        identity = "0x" + MOCK_SR25519_KEYPAIR.public_key.hex()
        assert verifier.evaluate(self._request(sign_substrate(), identity)).is_valid

    def test_base64_signature(self, verifier):
        signature = base64.b64encode(bytes.fromhex(sign_substrate()[2:])).decode()
        assert verifier.evaluate(self._request(signature, MOCK_SR25519_KEYPAIR.ss58_address)).is_valid

    def test_wrong_message_tries_both_key_types(self, verifier):
        request = self._request(
            sign_substrate(),
            MOCK_SR25519_KEYPAIR.ss58_address,
            raw_message=MOCK_OTHER_MESSAGE,
        )
        result = verifier.evaluate(request)
        assert not result.is_valid
        assert result.message == "Substrate signature verification failed (tried: sr25519, ed25519)"

    def test_invalid_address(self, verifier):
        with pytest.raises(MalformedIdentityError):
            verifier.evaluate(self._request(sign_substrate(), "not-an-address"))

    def test_short_public_key(self, verifier):
        with pytest.raises(MalformedIdentityError, match="32 bytes"):
            verifier.evaluate(self._request(sign_substrate(), "0x" + "11" * 20))
