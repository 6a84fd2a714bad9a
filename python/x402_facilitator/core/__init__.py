"""Core package exports for x402_facilitator."""

from .signature import (
    AUTHORIZATION_TYPES,
    build_authorization_typed_data,
    recover_authorization_signer,
    is_valid_authorization_signature
)
from .validator import PaymentValidator
from .settler import PaymentSettler
from .facilitator import ExactEvmFacilitator, create_evm_facilitator

__all__ = [
    # EIP-712 helpers
    "AUTHORIZATION_TYPES",
    "build_authorization_typed_data",
    "recover_authorization_signer",
    "is_valid_authorization_signature",

    # Protocol operations
    "PaymentValidator",
    "PaymentSettler",
    "ExactEvmFacilitator",
    "create_evm_facilitator"
]
