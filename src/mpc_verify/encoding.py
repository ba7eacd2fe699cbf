"""
Encoding Normalizer

Turns the opaque strings returned by the custody API (signatures, public
keys, hex-flagged messages) into canonical byte sequences.

Three entry points cover the ways callers know about an encoding:

decode_bytes
    Decode with a declared ``EncodingHint``. Explicit hints decode strictly
    and raise ``DecodeError``; ``EncodingHint.AUTO`` probes hex (``0x``
    prefixed), base58, base64 and finally UTF-8, and never raises.

decode_preferred
    Try an ordered list of explicit encodings and keep the first decode with
    the length the scheme expects. Scheme verifiers use this to express each
    chain's signature conventions (e.g. Solana: hex then base58).

normalize_encoded_payload
    Rewrite an encoded transaction payload (JSON, hex or unpadded base64)
    into the wire format its chain family declares, before decoding.

All functions are pure.
"""

import base64
import binascii
import json
import re
from typing import Iterable, List, Optional, Tuple, Union

import base58

from .chains.constants import encoded_format_for_family
from .engine.exceptions import DecodeError
from .schemas.bases import ChainFamily, EncodingHint

HEX_PREFIXES = ("0x", "0X")
JSON_PREFIXES = ("{", "[")

#: Decoded sizes accepted by the ``auto`` base58 probe (ed25519 keys and signatures).
BASE58_PROBE_LENGTHS: Tuple[int, ...] = (32, 64)

_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")
_BASE58_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]+$")
_BASE64_RE = re.compile(r"^[A-Za-z0-9+/\-_]+={0,2}$")
_UNPADDED_BASE64_RE = re.compile(r"^[A-Za-z0-9+/]+$")


def strip_hex_prefix(value: str) -> str:
    """Remove a leading ``0x``/``0X`` if present."""
    if value.startswith(HEX_PREFIXES):
        return value[2:]
    return value


def is_hex(value: str) -> bool:
    """True when ``value`` (prefix optional) is even-length hexadecimal."""
    body = strip_hex_prefix(value)
    return len(body) % 2 == 0 and bool(_HEX_RE.match(body))


def decode_hex(value: str) -> bytes:
    """
    Strictly decode a hex string, with or without ``0x`` prefix.

    Raises:
        DecodeError: On odd length or non-hex characters.
    """
    body = strip_hex_prefix(value.strip())
    if len(body) % 2:
        raise DecodeError(f"Invalid hex: odd length ({len(body)} characters)")
    if not _HEX_RE.match(body):
        raise DecodeError("Invalid hex: contains non-hex characters")
    return bytes.fromhex(body)


def decode_base58(value: str) -> bytes:
    """
    Strictly decode a base58 (Bitcoin alphabet) string.

    Raises:
        DecodeError: On empty input or characters outside the alphabet.
    """
    body = value.strip()
    if not body or not _BASE58_RE.match(body):
        raise DecodeError("Invalid base58: contains characters outside the base58 alphabet")
    try:
        return base58.b58decode(body)
    except ValueError as exc:
        raise DecodeError(f"Invalid base58: {exc}") from exc


def decode_base64(value: str) -> bytes:
    """
    Strictly decode standard or URL-safe base64, restoring missing padding.

    Raises:
        DecodeError: On characters outside the alphabet or impossible lengths.
    """
    body = value.strip()
    if not body or not _BASE64_RE.match(body):
        raise DecodeError("Invalid base64: contains characters outside the base64 alphabet")

    unpadded = body.rstrip("=")
    if len(unpadded) % 4 == 1:
        raise DecodeError(f"Invalid base64: impossible length ({len(unpadded)} characters)")
    padded = unpadded + "=" * (-len(unpadded) % 4)

    try:
        if "-" in padded or "_" in padded:
            return base64.urlsafe_b64decode(padded)
        return base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"Invalid base64: {exc}") from exc


def detect_and_decode(value: str) -> Tuple[bytes, EncodingHint]:
    """
    Decode ``value`` in ``auto`` mode and report which encoding matched.

    Probe order:
        1. ``0x`` prefix with a valid hex remainder -> hex
        2. base58 alphabet and a decoded length in ``BASE58_PROBE_LENGTHS`` -> base58
        3. base64 alphabet (padding optional) -> base64
        4. UTF-8 bytes of the string

    Never raises.
    """
    if value.startswith(HEX_PREFIXES):
        try:
            return decode_hex(value), EncodingHint.HEX
        except DecodeError:
            pass

    if _BASE58_RE.match(value):
        try:
            decoded = decode_base58(value)
        except DecodeError:
            decoded = b""
        if len(decoded) in BASE58_PROBE_LENGTHS:
            return decoded, EncodingHint.BASE58

    if _BASE64_RE.match(value):
        try:
            return decode_base64(value), EncodingHint.BASE64
        except DecodeError:
            pass

    return value.encode("utf-8"), EncodingHint.UTF8


def decode_bytes(value: str, hint: EncodingHint = EncodingHint.AUTO) -> bytes:
    """
    Decode ``value`` according to ``hint``.

    Args:
        value: String purported to represent bytes.
        hint:  Declared encoding. ``AUTO`` never raises.

    Returns:
        The decoded bytes.

    Raises:
        DecodeError: If an explicit hint was given and decoding fails.

    Example::

        decode_bytes("0xdeadbeef")                       # b"\\xde\\xad\\xbe\\xef"
        decode_bytes("3q2+7w==", EncodingHint.BASE64)    # b"\\xde\\xad\\xbe\\xef"
        decode_bytes("zz", EncodingHint.HEX)             # raises DecodeError
    """
    hint = EncodingHint(hint)
    if hint == EncodingHint.HEX:
        return decode_hex(value)
    if hint == EncodingHint.BASE58:
        return decode_base58(value)
    if hint == EncodingHint.BASE64:
        return decode_base64(value)
    if hint == EncodingHint.UTF8:
        return value.encode("utf-8")
    return detect_and_decode(value)[0]


def decode_preferred(
    value: str,
    order: Iterable[EncodingHint],
    expected_length: Optional[int] = None,
) -> Tuple[bytes, EncodingHint]:
    """
    Try explicit encodings in ``order`` and return the best decode.

    The first decode whose length equals ``expected_length`` wins. When no
    decode has the expected length, the first successful decode is returned
    so the caller can report a length mismatch instead of a decode failure.

    Args:
        value:           Encoded string.
        order:           Encodings to try, in priority order.
        expected_length: Byte length the scheme expects, or ``None`` to accept
                         the first successful decode.

    Returns:
        Tuple of (decoded bytes, encoding used).

    Raises:
        DecodeError: If no encoding in ``order`` can decode ``value``.
    """
    order = [EncodingHint(hint) for hint in order]
    first: Optional[Tuple[bytes, EncodingHint]] = None
    errors: List[str] = []

    for hint in order:
        try:
            data = decode_bytes(value, hint)
        except DecodeError as exc:
            errors.append(f"{hint.value}: {exc}")
            continue
        if expected_length is None or len(data) == expected_length:
            return data, hint
        if first is None:
            first = (data, hint)

    if first is not None:
        return first

    names = " or ".join(hint.value for hint in order)
    raise DecodeError(f"Signature is not valid {names} ({'; '.join(errors)})")


def _json_as_base64(value: str) -> str:
    if not value.startswith(JSON_PREFIXES):
        return value
    try:
        json.loads(value)
    except ValueError:
        return value
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def normalize_encoded_payload(value: str, chain_family: Union[ChainFamily, str]) -> str:
    """
    Bring an encoded transaction or delegate-action payload into the wire
    format its chain family declares in the chain catalogue.

    ``base64`` families (Solana, NEAR, Cosmos):
        1. A valid JSON document becomes base64 of its UTF-8 bytes.
        2. ``0x`` prefixed hex becomes base64 of the decoded bytes.
        3. Unpadded base64 gets its ``=`` padding back. Strings whose
           length can never be base64 are left alone so base58 signatures
           survive untouched.

    ``hex`` families (EVM, Substrate):
        Bare hex gets a ``0x`` prefix.

    Anything else is only trimmed. Never raises; a payload that still does
    not decode is reported by whoever decodes it.

    Example::

        normalize_encoded_payload('{"a":1}', "near")    # "eyJhIjoxfQ=="
        normalize_encoded_payload("0xdeadbeef", "solana")  # "3q2+7w=="
        normalize_encoded_payload("deadbeef", "evm")    # "0xdeadbeef"
    """
    normalized = value.strip()
    encoded_format = encoded_format_for_family(chain_family)

    if encoded_format == EncodingHint.HEX.value:
        if normalized and not normalized.startswith(HEX_PREFIXES) and is_hex(normalized):
            return "0x" + normalized
        return normalized
    if encoded_format != EncodingHint.BASE64.value:
        return normalized

    normalized = _json_as_base64(normalized)
    if normalized.startswith(HEX_PREFIXES) and is_hex(normalized):
        normalized = base64.b64encode(decode_hex(normalized)).decode("ascii")
    if _UNPADDED_BASE64_RE.match(normalized) and len(normalized) % 4 != 1:
        normalized += "=" * (-len(normalized) % 4)
    return normalized


def message_bytes(raw_message: str, is_hex: bool = False) -> bytes:
    """
    Canonical bytes of a message as the custody API signs it.

    Raises:
        DecodeError: If ``is_hex`` is set and ``raw_message`` is not valid hex.
    """
    if is_hex:
        try:
            return decode_hex(raw_message)
        except DecodeError as exc:
            raise DecodeError(f"Message is flagged as hex-encoded but {exc}") from exc
    return raw_message.encode("utf-8")
