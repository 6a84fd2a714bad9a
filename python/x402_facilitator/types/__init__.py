"""Types package for x402_facilitator - wire models, configuration and errors."""

from .payloads import (
    X402Model,
    EIP3009Authorization,
    ExactPaymentPayload,
    PaymentPayload,
    PaymentRequirements,
    VerifyResponse,
    SettleResponse,
    SupportedKind,
    SupportedResponse
)

from .errors import (
    ERROR_REASONS_VERSION,
    FacilitatorError,
    ConfigurationError,
    NetworkResolutionError,
    ChainError,
    ConfirmationTimeoutError,
    ErrorReason,
    to_settlement_reason,
    map_error_to_reason
)

from .config import (
    EXACT_SCHEME,
    MIN_EXPIRY_MARGIN_SECONDS,
    DEFAULT_NETWORKS,
    ChainConfig,
    FacilitatorConfig,
    load_facilitator_config
)

__all__ = [
    "X402Model",
    "EIP3009Authorization",
    "ExactPaymentPayload",
    "PaymentPayload",
    "PaymentRequirements",
    "VerifyResponse",
    "SettleResponse",
    "SupportedKind",
    "SupportedResponse",

    "ERROR_REASONS_VERSION",
    "FacilitatorError",
    "ConfigurationError",
    "NetworkResolutionError",
    "ChainError",
    "ConfirmationTimeoutError",
    "ErrorReason",
    "to_settlement_reason",
    "map_error_to_reason",

    "EXACT_SCHEME",
    "MIN_EXPIRY_MARGIN_SECONDS",
    "DEFAULT_NETWORKS",
    "ChainConfig",
    "FacilitatorConfig",
    "load_facilitator_config"
]
