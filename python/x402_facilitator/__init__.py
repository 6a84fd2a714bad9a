"""x402_facilitator - verification and settlement for the x402 "exact" EVM scheme."""

from .types import (
    EIP3009Authorization,
    ExactPaymentPayload,
    PaymentPayload,
    PaymentRequirements,
    VerifyResponse,
    SettleResponse,
    SupportedKind,
    SupportedResponse,

    ERROR_REASONS_VERSION,
    ErrorReason,
    FacilitatorError,
    ConfigurationError,
    NetworkResolutionError,
    ChainError,
    ConfirmationTimeoutError,

    EXACT_SCHEME,
    ChainConfig,
    FacilitatorConfig,
    load_facilitator_config
)

from .chain import (
    TokenMetadata,
    TransactionReceipt,
    ChainMetadataResolver,
    BalanceOracle,
    ChainSubmitter
)

from .core import (
    PaymentValidator,
    PaymentSettler,
    ExactEvmFacilitator,
    create_evm_facilitator
)

__version__ = "1.0.0"

__all__ = [
    # Wire types
    "EIP3009Authorization",
    "ExactPaymentPayload",
    "PaymentPayload",
    "PaymentRequirements",
    "VerifyResponse",
    "SettleResponse",
    "SupportedKind",
    "SupportedResponse",

    # Errors
    "ERROR_REASONS_VERSION",
    "ErrorReason",
    "FacilitatorError",
    "ConfigurationError",
    "NetworkResolutionError",
    "ChainError",
    "ConfirmationTimeoutError",

    # Configuration
    "EXACT_SCHEME",
    "ChainConfig",
    "FacilitatorConfig",
    "load_facilitator_config",

    # Chain interfaces
    "TokenMetadata",
    "TransactionReceipt",
    "ChainMetadataResolver",
    "BalanceOracle",
    "ChainSubmitter",

    # Protocol operations
    "PaymentValidator",
    "PaymentSettler",
    "ExactEvmFacilitator",
    "create_evm_facilitator"
]
