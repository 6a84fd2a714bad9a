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
"""Verification of "exact" scheme payment payloads."""

import logging
import time
from typing import Callable, Optional, Tuple

from eth_utils import to_checksum_address

from .signature import (
    build_authorization_typed_data,
    is_valid_authorization_signature
)
from ..chain.interfaces import BalanceOracle, ChainMetadataResolver
from ..types import (
    ErrorReason,
    FacilitatorConfig,
    NetworkResolutionError,
    PaymentPayload,
    PaymentRequirements,
    VerifyResponse,
    map_error_to_reason
)


logger = logging.getLogger(__name__)


class PaymentValidator:
    """Runs the ordered verification checks for a signed authorization.

    Checks short-circuit on the first failure:
        1. scheme            -> unsupported_scheme
        2. network / token   -> invalid_network
        3. EIP-712 signature -> invalid_signature
        4. recipient         -> recipient_mismatch
        5. validBefore       -> authorization_expired
           validAfter        -> authorization_not_yet_valid
        6. payer balance     -> insufficient_funds
        7. signed value      -> amount_too_low

    Unexpected collaborator failures become unknown_error (invalid_network
    for unresolvable chains).
    """

    def __init__(
        self,
        config: FacilitatorConfig,
        balance_oracle: BalanceOracle,
        metadata_resolver: ChainMetadataResolver,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self.balance_oracle = balance_oracle
        self.metadata_resolver = metadata_resolver
        self._clock = clock

    async def validate(
        self, requirements: PaymentRequirements, payload: PaymentPayload
    ) -> VerifyResponse:
        """Verifies ``payload`` against ``requirements``.

        Never raises; every failure is returned as a typed invalid_reason.
        """
        try:
            reason = await self._run_checks(requirements, payload)
        except Exception as e:
            logger.error(f"Unexpected error verifying payment from {payload.payer}: {e}", exc_info=True)
            reason = map_error_to_reason(e)

        if reason is not None:
            return self._invalid(payload, reason)
        return VerifyResponse(is_valid=True, invalid_reason=None, payer=payload.payer)

    async def _run_checks(
        self, requirements: PaymentRequirements, payload: PaymentPayload
    ) -> Optional[ErrorReason]:
        authorization = payload.payload.authorization
        scheme = self.config.scheme

        if payload.scheme != scheme or requirements.scheme != scheme:
            logger.warning(
                f"Incompatible scheme. payload: {payload.scheme}, "
                f"requirements: {requirements.scheme}, supported: {scheme}"
            )
            return ErrorReason.UNSUPPORTED_SCHEME

        try:
            chain_id, name, version = await self._resolve_domain(requirements, payload)
        except Exception as e:
            logger.warning(
                f"Failed to resolve network {payload.network} / asset {requirements.asset}: {e}"
            )
            return ErrorReason.INVALID_NETWORK

        try:
            typed_data = build_authorization_typed_data(
                authorization,
                name=name,
                version=version,
                chain_id=chain_id,
                verifying_contract=requirements.asset,
            )
        except ValueError as e:
            logger.warning(f"Malformed authorization from {authorization.from_}: {e}")
            return ErrorReason.INVALID_SIGNATURE
        if not is_valid_authorization_signature(
            typed_data, payload.payload.signature, authorization.from_
        ):
            return ErrorReason.INVALID_SIGNATURE

        if not _same_address(authorization.to, requirements.pay_to):
            logger.warning(
                f"Payment 'to' address mismatch. payload: {authorization.to}, "
                f"requirements: {requirements.pay_to}"
            )
            return ErrorReason.RECIPIENT_MISMATCH

        now = int(self._clock())
        if authorization.valid_before < now + self.config.expiry_margin_seconds:
            logger.warning(
                f"validBefore {authorization.valid_before} is too soon or expired (now: {now})"
            )
            return ErrorReason.AUTHORIZATION_EXPIRED
        if authorization.valid_after > now:
            logger.warning(f"validAfter {authorization.valid_after} is in the future (now: {now})")
            return ErrorReason.AUTHORIZATION_NOT_YET_VALID

        balance = await self.balance_oracle.get_balance(
            chain_id, requirements.asset, authorization.from_
        )
        if balance < requirements.max_amount_required:
            logger.warning(
                f"Payer {authorization.from_} balance {balance} is below "
                f"maxAmountRequired {requirements.max_amount_required}"
            )
            return ErrorReason.INSUFFICIENT_FUNDS

        if authorization.value < requirements.max_amount_required:
            logger.warning(
                f"Payload value {authorization.value} is less than "
                f"maxAmountRequired {requirements.max_amount_required}"
            )
            return ErrorReason.AMOUNT_TOO_LOW

        return None

    async def _resolve_domain(
        self, requirements: PaymentRequirements, payload: PaymentPayload
    ) -> Tuple[int, str, str]:
        """Resolves chain id plus EIP-712 domain name and version."""
        chain_id = self.config.get_chain(payload.network).chain_id
        try:
            asset = to_checksum_address(requirements.asset)
        except ValueError as e:
            raise NetworkResolutionError(f"Invalid asset address: {requirements.asset}") from e

        extra = requirements.extra or {}
        name = extra.get("name")
        if name is None:
            name = (await self.metadata_resolver.resolve(chain_id)).name
        version = extra.get("version")
        if version is None:
            version = await self.metadata_resolver.get_version(chain_id, asset)
        return chain_id, str(name), str(version)

    def _invalid(self, payload: PaymentPayload, reason: ErrorReason) -> VerifyResponse:
        logger.info(f"Payment from {payload.payer} rejected: {reason.value}")
        return VerifyResponse(is_valid=False, invalid_reason=reason, payer=payload.payer)


def _same_address(left: str, right: str) -> bool:
    try:
        return to_checksum_address(left) == to_checksum_address(right)
    except ValueError:
        return False
