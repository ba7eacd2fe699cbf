"""
EVM Signature Canonicalization

Turns the custody API's ECDSA signature material into a ``CanonicalSignature``
with an ordered list of recovery ids to try.

Exported helpers
----------------
normalize_v
    Map a raw recovery id (0/1) to the Ethereum convention (27/28).

recovery_candidates
    Ordered, de-duplicated recovery ids: the normalized supplied ``v`` first,
    then 27 and 28.

canonical_from_rsv / canonical_from_string
    Build a ``CanonicalSignature`` from split components or from a combined
    65-byte (``r || s || v``) or 64-byte (``r || s``) string.
"""

from typing import Optional, Tuple

from ...encoding import decode_hex, decode_preferred
from ...engine.exceptions import DecodeError
from ...schemas.bases import CanonicalSignature, EncodingHint, RSVSignature

# Recovery ids tried when the custody API does not return one.
DEFAULT_RECOVERY_IDS: Tuple[int, ...] = (27, 28)

SIGNATURE_ENCODINGS: Tuple[EncodingHint, ...] = (EncodingHint.HEX, EncodingHint.BASE64)


def normalize_v(v: int) -> int:
    """Return ``v + 27`` when ``v`` is a raw recovery id below 27, else ``v``."""
    return v + 27 if v < 27 else v


def recovery_candidates(v: Optional[int]) -> Tuple[int, ...]:
    """
    Ordered recovery ids to attempt for a supplied ``v``.

    Example::

        recovery_candidates(0)     # (27, 28)
        recovery_candidates(1)     # (28, 27)
        recovery_candidates(None)  # (27, 28)
    """
    if v is None:
        return DEFAULT_RECOVERY_IDS
    ordered = (normalize_v(v),) + DEFAULT_RECOVERY_IDS
    return tuple(dict.fromkeys(ordered))


def _component(value: str, name: str) -> bytes:
    """Decode an r/s hex component, left-padded to 32 bytes."""
    try:
        raw = decode_hex(value)
    except DecodeError as exc:
        raise DecodeError(f"Signature {name} component: {exc}") from exc
    if not raw or len(raw) > 32:
        raise DecodeError(f"Signature {name} component must be 1-32 bytes, got {len(raw)}")
    return raw.rjust(32, b"\x00")


def canonical_from_rsv(signature: RSVSignature) -> CanonicalSignature:
    """
    Canonicalize split r/s/v components.

    ``raw`` holds ``r || s`` followed by ``v`` when it fits in one byte.

    Raises:
        DecodeError: If ``r`` or ``s`` is not hex of at most 32 bytes.
    """
    raw = _component(signature.r, "r") + _component(signature.s, "s")
    if signature.v is not None and signature.v < 256:
        raw += bytes([signature.v])
    return CanonicalSignature(
        raw=raw,
        recovery_candidates=recovery_candidates(signature.v),
        encoding="rsv",
        supplied_v=signature.v,
    )


def canonical_from_string(value: str, hint: EncodingHint = EncodingHint.AUTO) -> CanonicalSignature:
    """
    Canonicalize a combined signature string.

    A 65-byte decode is ``r || s || v``; a 64-byte decode is ``r || s`` with
    ``v`` unknown. Any other size is returned without recovery candidates so
    the verifier reports a length mismatch.

    Raises:
        DecodeError: If the string matches none of the accepted encodings.
    """
    order = SIGNATURE_ENCODINGS if hint == EncodingHint.AUTO else (hint,)
    raw, used = decode_preferred(value.strip(), order, 65)
    if len(raw) == 65:
        v: Optional[int] = raw[64]
    elif len(raw) == 64:
        v = None
    else:
        return CanonicalSignature(raw=raw, encoding=used.value)
    return CanonicalSignature(
        raw=raw,
        recovery_candidates=recovery_candidates(v),
        encoding=used.value,
        supplied_v=v,
    )
