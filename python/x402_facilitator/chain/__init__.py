"""Chain collaborator interfaces and their web3 implementations."""

from .interfaces import (
    TRANSFER_WITH_AUTHORIZATION,
    TokenMetadata,
    TransactionReceipt,
    ChainMetadataResolver,
    BalanceOracle,
    ChainSubmitter
)
from .evm import (
    USDC_ABI,
    EvmClients,
    Web3BalanceOracle,
    Web3MetadataResolver,
    Web3ChainSubmitter
)

__all__ = [
    "TRANSFER_WITH_AUTHORIZATION",
    "TokenMetadata",
    "TransactionReceipt",
    "ChainMetadataResolver",
    "BalanceOracle",
    "ChainSubmitter",

    "USDC_ABI",
    "EvmClients",
    "Web3BalanceOracle",
    "Web3MetadataResolver",
    "Web3ChainSubmitter"
]
