"""
EVM Signature Verifiers

Off-chain verification of ECDSA secp256k1 signatures produced by the custody
API for EVM wallets. All cryptographic operations are performed in-process
using ``eth_account``; no RPC calls are made.

Current coverage
----------------
EVMMessageVerifier
    EIP-191 ``personal_sign`` messages. Hashes the message with the
    ``"\\x19Ethereum Signed Message:\\n"`` prefix, recovers the signer from
    (v, r, s) and compares it against the wallet address.

EVMTypedDataVerifier
    EIP-712 structured data. Reconstructs the digest from the typed-data
    document (domain separator + struct hash) and recovers as above.

Recovery ids
------------
The custody service returns the raw recovery id (0/1) while Ethereum expects
27/28. Both verifiers try the normalized supplied ``v`` first and then fall
back to 27 and 28, stopping at the first match.
"""

from typing import Dict, Optional

from eth_account import Account
from eth_account.messages import SignableMessage, encode_defunct, encode_typed_data
from web3 import Web3

from .signatures import canonical_from_rsv, canonical_from_string, normalize_v
from .standards import TypedDataPayload
from ..bases import Candidate, SchemeVerifier, first_success
from ...encoding import message_bytes
from ...engine.exceptions import DecodeError, MalformedIdentityError
from ...schemas.bases import (
    CanonicalSignature,
    EncodingHint,
    RSVSignature,
    SchemeResult,
    SignatureMaterial,
    VerificationRequest,
)
from ...utils import logger

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _is_valid_evm_address(addr: str) -> bool:
    """
    Check whether ``addr`` is a syntactically valid EVM address.

    Lower-cases before checking so mixed-case input is not rejected on its
    EIP-55 checksum; comparison is case-insensitive anyway.
    """
    return addr.startswith("0x") and Web3.is_address(addr.lower())


def _success_message(v: int, supplied_v: Optional[int]) -> str:
    """Explanation naming the winning ``v`` and any normalization applied."""
    if supplied_v is None:
        return f"Verified with v={v} (no recovery id returned by MPC)"
    if supplied_v < 27:
        normalized = normalize_v(supplied_v)
        if v == normalized:
            return f"Verified with v={v} (normalized from MPC v={supplied_v})"
        return (
            f"Verified with v={v} (MPC returned v={supplied_v}, "
            f"normalized v={normalized} did not match)"
        )
    if v == supplied_v:
        return f"Signature matches selected wallet address (v={v})"
    return f"Verified with v={v} (MPC returned v={supplied_v})"


def recover_and_compare(
    signable: SignableMessage,
    signature: CanonicalSignature,
    expected_address: str,
) -> SchemeResult:
    """
    Recover the signer of ``signable`` for each recovery candidate.

    Args:
        signable:         ``SignableMessage`` from ``encode_defunct`` or
                          ``encode_typed_data``.
        signature:        Canonical signature; ``raw[:64]`` is ``r || s``.
        expected_address: Wallet address expected to have signed.

    Returns:
        ``SchemeResult`` whose candidate label is ``"v=<n>"`` on success.
    """
    r = int.from_bytes(signature.raw[:32], "big")
    s = int.from_bytes(signature.raw[32:64], "big")
    recovered: Dict[int, str] = {}

    def _attempt(v: int):
        def _run() -> bool:
            try:
                address = Account.recover_message(signable, vrs=(v, r, s))
            except Exception as exc:
                logger.warning(f"EVM recovery with v={v} raised {type(exc).__name__}: {exc}")
                return False
            recovered[v] = address
            return address.lower() == expected_address.lower()
        return _run

    by_label = {f"v={v}": v for v in signature.recovery_candidates}
    winner = first_success(Candidate(label, _attempt(v)) for label, v in by_label.items())

    if winner is not None:
        v = by_label[winner.label]
        return SchemeResult(
            is_valid=True,
            message=_success_message(v, signature.supplied_v),
            candidate=winner.label,
        )

    tried = ", ".join(str(v) for v in signature.recovery_candidates)
    if not recovered:
        return SchemeResult(is_valid=False, message=f"Signature recovery failed for v={tried}")

    primary = signature.recovery_candidates[0]
    address = recovered.get(primary) or next(iter(recovered.values()))
    return SchemeResult(
        is_valid=False,
        message=f"Address mismatch: recovered {address} but wallet is {expected_address} (tried v={tried})",
    )


# ---------------------------------------------------------------------------
# Verifiers
# ---------------------------------------------------------------------------


class EVMMessageVerifier(SchemeVerifier):
    """
    EIP-191 personal-message verifier.

    Accepts split r/s/v components or a combined 65-byte (``r || s || v``) or
    64-byte (``r || s``) string in hex or base64.
    """

    name = "evm-personal-sign"
    signature_lengths = (65, 64)

    def parse_identity(self, identity: str) -> str:
        if not _is_valid_evm_address(identity):
            raise MalformedIdentityError(f"Invalid EVM address: {identity!r}")
        return Web3.to_checksum_address(identity.lower())

    def canonicalize(
        self,
        material: Optional[SignatureMaterial],
        hint: EncodingHint = EncodingHint.AUTO,
    ) -> CanonicalSignature:
        if material is None or material == "":
            raise DecodeError("No signature material returned")
        if isinstance(material, RSVSignature):
            return canonical_from_rsv(material)
        return canonical_from_string(material, hint)

    def prepare_message(self, request: VerificationRequest) -> SignableMessage:
        return encode_defunct(primitive=message_bytes(request.raw_message, request.message_is_hex_encoded))

    def verify(self, message: SignableMessage, signature: CanonicalSignature, identity: str) -> SchemeResult:
        return recover_and_compare(message, signature, identity)


class EVMTypedDataVerifier(EVMMessageVerifier):
    """
    EIP-712 typed-data verifier.

    ``raw_message`` carries the typed-data JSON document; see
    ``TypedDataPayload`` for the accepted layouts.
    """

    name = "evm-eip712"

    def prepare_message(self, request: VerificationRequest) -> SignableMessage:
        payload = TypedDataPayload.from_json(request.raw_message)
        message_types = payload.message_types()
        if payload.primary_type and payload.primary_type not in message_types:
            raise DecodeError(f"Typed data primaryType {payload.primary_type!r} is not defined in types")

        try:
            return encode_typed_data(
                domain_data=payload.domain_data(),
                message_types=message_types,
                message_data=payload.message,
            )
        except Exception as exc:
            raise DecodeError(f"Typed data cannot be encoded: {exc}") from exc
