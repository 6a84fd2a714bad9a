# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Facilitator error types and reason code mapping."""

from enum import Enum
from typing import Optional


ERROR_REASONS_VERSION = 1


class FacilitatorError(Exception):
    """Base error for the facilitator."""
    pass


class ConfigurationError(FacilitatorError):
    """Invalid or incomplete facilitator configuration."""
    pass


class NetworkResolutionError(FacilitatorError):
    """A network, chain id or token contract could not be resolved."""
    pass


class ChainError(FacilitatorError):
    """Transaction submission or confirmation errors."""
    pass


class ConfirmationTimeoutError(ChainError):
    """The transaction was not mined before the confirmation deadline."""

    def __init__(self, message: str, transaction: str = ""):
        super().__init__(message)
        self.transaction = transaction


class ErrorReason(str, Enum):
    """Closed set of reasons carried in invalidReason / errorReason."""
    UNSUPPORTED_SCHEME = "unsupported_scheme"
    INVALID_NETWORK = "invalid_network"
    INVALID_SIGNATURE = "invalid_signature"
    RECIPIENT_MISMATCH = "recipient_mismatch"
    AUTHORIZATION_EXPIRED = "authorization_expired"
    AUTHORIZATION_NOT_YET_VALID = "authorization_not_yet_valid"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    AMOUNT_TOO_LOW = "amount_too_low"
    SETTLEMENT_FAILED = "settlement_failed"
    TIMEOUT = "timeout"
    UNKNOWN_ERROR = "unknown_error"

    @classmethod
    def get_all_codes(cls) -> list[str]:
        """Returns all defined reason codes."""
        return [reason.value for reason in cls]


def to_settlement_reason(reason: Optional[ErrorReason]) -> ErrorReason:
    """Maps a verification failure to the errorReason of a refused settlement.

    Verification codes are part of the settlement vocabulary, so the reason is
    carried through as-is; a missing reason becomes ``unknown_error``.
    """
    if reason is None:
        return ErrorReason.UNKNOWN_ERROR
    return ErrorReason(reason)


def map_error_to_reason(error: Exception) -> ErrorReason:
    """Maps implementation errors to reason codes.

    Subclasses map like their base; the most specific entry is listed first.
    """
    error_mapping = (
        (ConfirmationTimeoutError, ErrorReason.TIMEOUT),
        (NetworkResolutionError, ErrorReason.INVALID_NETWORK),
        (ChainError, ErrorReason.SETTLEMENT_FAILED),
    )
    for error_type, reason in error_mapping:
        if isinstance(error, error_type):
            return reason
    return ErrorReason.UNKNOWN_ERROR
