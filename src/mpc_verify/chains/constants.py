"""
Chain Catalogue

Custody API chain identifiers (``ETH-SEPOLIA``, ``BTC``, ``DOT-PASEO``, ...)
with the chain family that selects the verification scheme and the signing
operations each chain exposes.
"""

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

from ..schemas.bases import ChainFamily, OperationType


class ChainInfo(BaseModel):
    """Static description of a custody chain."""
    id: str
    name: str
    symbol: str
    family: ChainFamily
    testnet: bool = False
    explorer_url: str = Field(..., description="Block explorer URL")
    encoded_format: Optional[str] = Field(None, description="Wire format of encoded transaction payloads")
    supports_sign_message: bool = True
    supports_sign_transaction: bool = True
    supports_sign_typed_data: bool = False
    supports_sign_delegate_action: bool = False

    def supports(self, operation_type: OperationType) -> bool:
        """Check whether the chain exposes ``operation_type`` for signing."""
        return {
            OperationType.MESSAGE: self.supports_sign_message,
            OperationType.TRANSACTION: self.supports_sign_transaction,
            OperationType.TYPED_DATA: self.supports_sign_typed_data,
            OperationType.DELEGATE_ACTION: self.supports_sign_delegate_action,
        }[OperationType(operation_type)]


# Raw chain data. Chains only listed for typed-data signing expose nothing else.
_CHAINS_DATA: Dict[str, Dict] = {
    "ETH-SEPOLIA": {
        "name": "Ethereum Sepolia", "symbol": "ETH", "family": "evm", "testnet": True,
        "explorer_url": "https://sepolia.etherscan.io", "encoded_format": "hex",
        "supports_sign_typed_data": True,
    },
    "ETH": {
        "name": "Ethereum", "symbol": "ETH", "family": "evm",
        "explorer_url": "https://etherscan.io", "encoded_format": "hex",
        "supports_sign_typed_data": True,
    },
    "POL": {
        "name": "Polygon", "symbol": "POL", "family": "evm",
        "explorer_url": "https://polygonscan.com", "encoded_format": "hex",
        "supports_sign_typed_data": True,
    },
    "BSC": {
        "name": "BNB Smart Chain", "symbol": "BNB", "family": "evm",
        "explorer_url": "https://bscscan.com", "encoded_format": "hex",
        "supports_sign_typed_data": True,
    },
    "BASE": {
        "name": "Base", "symbol": "ETH", "family": "evm",
        "explorer_url": "https://basescan.org", "encoded_format": "hex",
        "supports_sign_typed_data": True,
    },
    "CELO": {
        "name": "Celo", "symbol": "CELO", "family": "evm",
        "explorer_url": "https://celoscan.io", "encoded_format": "hex",
        "supports_sign_message": False, "supports_sign_transaction": False,
        "supports_sign_typed_data": True,
    },
    "SCR": {
        "name": "Scroll", "symbol": "ETH", "family": "evm",
        "explorer_url": "https://scrollscan.com", "encoded_format": "hex",
        "supports_sign_message": False, "supports_sign_transaction": False,
        "supports_sign_typed_data": True,
    },
    "CRO-EVM": {
        "name": "Cronos EVM", "symbol": "CRO", "family": "evm",
        "explorer_url": "https://cronoscan.com", "encoded_format": "hex",
        "supports_sign_message": False, "supports_sign_transaction": False,
        "supports_sign_typed_data": True,
    },
    "BTC-TESTNET": {
        "name": "Bitcoin Testnet", "symbol": "BTC", "family": "bitcoin", "testnet": True,
        "explorer_url": "https://blockstream.info/testnet",
    },
    "BTC": {
        "name": "Bitcoin", "symbol": "BTC", "family": "bitcoin",
        "explorer_url": "https://blockstream.info",
    },
    "SOL-TESTNET": {
        "name": "Solana Testnet", "symbol": "SOL", "family": "solana", "testnet": True,
        "explorer_url": "https://solscan.io?cluster=testnet", "encoded_format": "base64",
    },
    "SOL": {
        "name": "Solana", "symbol": "SOL", "family": "solana",
        "explorer_url": "https://solscan.io", "encoded_format": "base64",
    },
    "ATOM-TESTNET": {
        "name": "Cosmos Testnet", "symbol": "ATOM", "family": "cosmos", "testnet": True,
        "explorer_url": "https://explorer.polypore.xyz", "encoded_format": "base64",
    },
    "ATOM": {
        "name": "Cosmos", "symbol": "ATOM", "family": "cosmos",
        "explorer_url": "https://atomscan.com", "encoded_format": "base64",
    },
    "NEAR-TESTNET": {
        "name": "NEAR Testnet", "symbol": "NEAR", "family": "near", "testnet": True,
        "explorer_url": "https://testnet.nearblocks.io", "encoded_format": "base64",
        "supports_sign_delegate_action": True,
    },
    "NEAR": {
        "name": "NEAR", "symbol": "NEAR", "family": "near",
        "explorer_url": "https://nearblocks.io", "encoded_format": "base64",
        "supports_sign_delegate_action": True,
    },
    "DOT-PASEO": {
        "name": "Polkadot Paseo", "symbol": "PAS", "family": "substrate", "testnet": True,
        "explorer_url": "https://paseo.subscan.io", "encoded_format": "hex",
    },
    "DOT": {
        "name": "Polkadot", "symbol": "DOT", "family": "substrate",
        "explorer_url": "https://polkadot.subscan.io", "encoded_format": "hex",
    },
}

CHAINS: Dict[str, ChainInfo] = {
    chain_id: ChainInfo(id=chain_id, **data) for chain_id, data in _CHAINS_DATA.items()
}


def get_chain_config(chain_id: str) -> Optional[ChainInfo]:
    """
    Get the catalogue entry for a custody chain identifier.

    Returns:
        ChainInfo, or None if the chain is unknown.
    """
    return CHAINS.get(chain_id.upper())


def family_for_chain(chain_id: str) -> ChainFamily:
    """
    Chain family for a custody chain identifier.

    Raises:
        KeyError: If ``chain_id`` is not in the catalogue.
    """
    info = get_chain_config(chain_id)
    if info is None:
        raise KeyError(f"Unknown chain id {chain_id!r}; expected one of {', '.join(CHAINS)}")
    return info.family


def supported_sign_types() -> Dict[str, List[str]]:
    """
    Chain identifiers per signing operation, keyed by operation type value.

    Example:
        supported_sign_types()["delegateAction"]   # ["NEAR-TESTNET", "NEAR"]
    """
    return {
        operation.value: [chain_id for chain_id, info in CHAINS.items() if info.supports(operation)]
        for operation in OperationType
    }


def encoded_format_for_family(chain_family: Union[ChainFamily, str]) -> Optional[str]:
    """
    Wire format of encoded transaction payloads for a chain family.

    Every chain of a family shares the same format, so the first catalogue
    entry decides. Returns None when the family declares no format.
    """
    family = ChainFamily(chain_family)
    for info in CHAINS.values():
        if info.family == family:
            return info.encoded_format
    return None
