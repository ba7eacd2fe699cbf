from .constants import (
    CHAINS,
    ChainInfo,
    encoded_format_for_family,
    family_for_chain,
    get_chain_config,
    supported_sign_types,
)

__all__ = [
    "CHAINS",
    "ChainInfo",
    "encoded_format_for_family",
    "family_for_chain",
    "get_chain_config",
    "supported_sign_types",
]
