import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from eth_utils import to_int

from ...engine.exceptions import DecodeError


# -----------------------------
# EIP-712 typed data document
# -----------------------------

DOMAIN_TYPE_NAME = "EIP712Domain"


@dataclass
class TypedDataPayload:
    """
    EIP-712 document as passed to the custody API's typed-data signing call.

    Accepts the ``eth_signTypedData_v4`` layout (``domain``, ``types``,
    ``primaryType``, ``message``) as well as the ethers layout that names the
    payload ``value``. The ``EIP712Domain`` entry of ``types`` is optional;
    it is dropped before hashing and the domain type is derived from
    ``domain`` instead.

    Attributes:
        domain: EIP-712 domain values (name, version, chainId, verifyingContract, salt).
        types: Struct type definitions.
        message: Struct values of the primary type.
        primary_type: Declared primary type, if any.
    """
    domain: Dict[str, Any]
    types: Dict[str, List[Dict[str, str]]]
    message: Dict[str, Any]
    primary_type: Optional[str] = None

    @classmethod
    def from_json(cls, raw: str) -> "TypedDataPayload":
        """
        Parse a typed-data JSON document.

        Raises:
            DecodeError: If ``raw`` is not JSON or lacks domain/types/message.
        """
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise DecodeError(f"Typed data is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise DecodeError("Typed data must be a JSON object")

        domain = data.get("domain")
        types = data.get("types")
        message = data.get("message", data.get("value"))
        if not isinstance(domain, dict) or not isinstance(types, dict) or not isinstance(message, dict):
            raise DecodeError("Typed data requires 'domain', 'types' and 'message' (or 'value') objects")

        return cls(
            domain=domain,
            types=types,
            message=message,
            primary_type=data.get("primaryType"),
        )

    def domain_data(self) -> Dict[str, Any]:
        """Domain values with a numeric-string ``chainId`` converted to ``int``."""
        domain = dict(self.domain)
        chain_id = domain.get("chainId")
        if isinstance(chain_id, str):
            if chain_id.lower().startswith("0x"):
                domain["chainId"] = to_int(hexstr=chain_id)
            else:
                domain["chainId"] = to_int(text=chain_id)
        return domain

    def message_types(self) -> Dict[str, List[Dict[str, str]]]:
        """Struct definitions without the ``EIP712Domain`` entry."""
        return {name: fields for name, fields in self.types.items() if name != DOMAIN_TYPE_NAME}

    def to_dict(self) -> Dict[str, Any]:
        """Return the ``eth_signTypedData_v4`` layout."""
        result: Dict[str, Any] = {
            "types": self.types,
            "domain": self.domain,
            "message": self.message,
        }
        if self.primary_type:
            result["primaryType"] = self.primary_type
        return result
