"""
Bitcoin BIP-137 message signature verification.

Signatures are 65 bytes: one header byte (27-42) followed by the compact
64-byte ECDSA signature. The header encodes the recovery id and the address
type the signer intended:

    27-30  P2PKH, uncompressed key
    31-34  P2PKH, compressed key
    35-38  P2SH-P2WPKH
    39-42  P2WPKH (bech32)

Verification recovers the compressed public key with ``coincurve``, hashes
it with HASH160 and compares the result with the hash carried by the
expected address. When the header does not name a segwit type, every
address type reachable from a compressed key is accepted.
"""

import hashlib
from typing import List, NamedTuple, Optional

import base58
import bech32
from coincurve import PublicKey

from .bases import Candidate, SchemeVerifier, first_success
from ..engine.exceptions import MalformedIdentityError
from ..schemas.bases import CanonicalSignature, EncodingHint, SchemeResult
from ..utils import logger

BITCOIN_MESSAGE_MAGIC = b"\x18Bitcoin Signed Message:\n"
BECH32_HRPS = ("bc", "tb", "bcrt")

P2PKH = "P2PKH"
P2SH_P2WPKH = "P2SH-P2WPKH"
P2WPKH = "P2WPKH"


class BitcoinAddress(NamedTuple):
    """Decoded address: ``bech32`` or ``base58`` plus its 20-byte hash."""
    address: str
    kind: str
    hash160: bytes


# ---------------------------------------------------------------------------
# Hashing helpers
# ---------------------------------------------------------------------------


def hash160(data: bytes) -> bytes:
    """RIPEMD-160 of SHA-256."""
    return hashlib.new("ripemd160", hashlib.sha256(data).digest()).digest()


def segwit_redeem_hash(pubkey_hash: bytes) -> bytes:
    """HASH160 of the P2WPKH redeem script ``OP_0 <20-byte pubkey hash>``."""
    return hash160(b"\x00\x14" + pubkey_hash)


def varint(n: int) -> bytes:
    """Bitcoin CompactSize encoding of ``n``."""
    if n < 0xFD:
        return bytes([n])
    if n <= 0xFFFF:
        return b"\xfd" + n.to_bytes(2, "little")
    if n <= 0xFFFFFFFF:
        return b"\xfe" + n.to_bytes(4, "little")
    return b"\xff" + n.to_bytes(8, "little")


def message_digest(message: bytes) -> bytes:
    """Double SHA-256 of the magic-prefixed, length-prefixed message."""
    payload = BITCOIN_MESSAGE_MAGIC + varint(len(message)) + message
    return hashlib.sha256(hashlib.sha256(payload).digest()).digest()


def decode_address(address: str) -> BitcoinAddress:
    """
    Decode a P2PKH / P2SH (base58check) or P2WPKH (bech32) address.

    Raises:
        MalformedIdentityError: If the address has a bad checksum, an unknown
            format, or is a segwit program that cannot sign messages.
    """
    lowered = address.lower()
    for hrp in BECH32_HRPS:
        if not lowered.startswith(hrp + "1"):
            continue
        witver, witprog = bech32.decode(hrp, address)
        if witver is None:
            continue
        if witver != 0 or len(witprog) != 20:
            raise MalformedIdentityError(
                f"Bitcoin address {address!r} is not P2WPKH; message signatures need a key-hash address"
            )
        return BitcoinAddress(address, "bech32", bytes(witprog))

    try:
        payload = base58.b58decode_check(address)
    except ValueError as exc:
        raise MalformedIdentityError(f"Invalid Bitcoin address {address!r}: {exc}") from exc
    if len(payload) != 21:
        raise MalformedIdentityError(f"Invalid Bitcoin address {address!r}: unexpected payload length {len(payload)}")
    return BitcoinAddress(address, "base58", payload[1:])


# ---------------------------------------------------------------------------
# Verifier
# ---------------------------------------------------------------------------


class BitcoinMessageVerifier(SchemeVerifier):
    """BIP-137 message verifier for compressed-key Bitcoin wallets."""

    name = "bitcoin-bip137"
    signature_lengths = (65,)
    signature_encodings = (EncodingHint.BASE64, EncodingHint.HEX)

    def parse_identity(self, identity: str) -> BitcoinAddress:
        if not identity:
            raise MalformedIdentityError("Bitcoin address is empty")
        return decode_address(identity)

    def prepare_message(self, request) -> bytes:
        return message_digest(super().prepare_message(request))

    def verify(self, message: bytes, signature: CanonicalSignature, identity: BitcoinAddress) -> SchemeResult:
        header = signature.raw[0]
        flag = header - 27
        if flag < 0 or flag > 15:
            return SchemeResult(is_valid=False, message=f"Invalid BIP-137 header byte {header}: expected 27-42")
        if not flag & 12:
            return SchemeResult(
                is_valid=False,
                message=f"Header byte {header} indicates an uncompressed key; only compressed keys are supported",
            )

        recovery_id = flag & 3
        segwit_type: Optional[str] = None
        if flag & 8:
            segwit_type = P2WPKH if flag & 4 else P2SH_P2WPKH

        try:
            public_key = PublicKey.from_signature_and_message(
                signature.raw[1:] + bytes([recovery_id]), message, hasher=None
            )
        except Exception as exc:
            logger.warning(f"Bitcoin public key recovery failed: {exc}")
            return SchemeResult(is_valid=False, message="Public key recovery failed for the supplied signature")

        pubkey_hash = hash160(public_key.format(compressed=True))

        if segwit_type is not None:
            labels = [segwit_type]
        elif identity.kind == "bech32":
            labels = [P2WPKH]
        else:
            labels = [P2PKH, P2SH_P2WPKH]

        hashes = {
            P2PKH: pubkey_hash,
            P2WPKH: pubkey_hash,
            P2SH_P2WPKH: segwit_redeem_hash(pubkey_hash),
        }
        candidates: List[Candidate] = [
            Candidate(label, lambda label=label: hashes[label] == identity.hash160)
            for label in labels
        ]
        winner = first_success(candidates)
        if winner is not None:
            return SchemeResult(
                is_valid=True,
                message=f"Bitcoin signature verified ({winner.label})",
                candidate=winner.label,
            )
        return SchemeResult(
            is_valid=False,
            message=(
                f"Address mismatch: recovered key hash {pubkey_hash.hex()} does not match "
                f"{identity.address} (tried: {', '.join(labels)})"
            ),
        )
