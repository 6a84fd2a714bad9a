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
"""On-chain settlement of verified "exact" scheme payments."""

import asyncio
import logging
from typing import Optional

from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address

from .signature import hex_to_bytes
from .validator import PaymentValidator
from ..chain.interfaces import ChainSubmitter, TRANSFER_WITH_AUTHORIZATION
from ..types import (
    ConfirmationTimeoutError,
    ErrorReason,
    PaymentPayload,
    PaymentRequirements,
    SettleResponse,
    to_settlement_reason
)


logger = logging.getLogger(__name__)


class PaymentSettler:
    """Executes transferWithAuthorization for a payload that still verifies.

    The facilitator's key only pays for the submission transaction; the
    transferred funds move from the payer under their own signature.
    Submission and confirmation failures are reported, never retried.
    """

    def __init__(
        self,
        validator: PaymentValidator,
        submitter: ChainSubmitter,
    ):
        self.validator = validator
        self.submitter = submitter

    async def settle(
        self,
        signer: LocalAccount,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
        timeout: Optional[float] = None,
    ) -> SettleResponse:
        """Re-verifies, submits and waits for the receipt.

        Args:
            signer: Facilitator account that signs the submission transaction
            payload: Signed payment authorization
            requirements: Payment requirements the payload must satisfy
            timeout: Seconds to wait for the receipt; defaults to the configured limit

        Returns:
            SettleResponse; the transaction hash is set whenever one was broadcast
        """
        payer = payload.payer
        network = payload.network

        # Balances and deadlines may have moved since the caller's verify.
        verify_response = await self.validator.validate(requirements, payload)
        if not verify_response.is_valid:
            logger.warning(
                f"Pre-settle verification failed for {payer}: {verify_response.invalid_reason}"
            )
            return SettleResponse(
                success=False,
                transaction="",
                network=network,
                payer=payer,
                error_reason=to_settlement_reason(verify_response.invalid_reason),
            )

        if timeout is None:
            timeout = self.validator.config.confirmation_timeout_seconds

        try:
            chain_id = self.validator.config.get_chain(network).chain_id
            authorization = payload.payload.authorization
            args = (
                to_checksum_address(authorization.from_),
                to_checksum_address(authorization.to),
                authorization.value,
                authorization.valid_after,
                authorization.valid_before,
                hex_to_bytes(authorization.nonce),
                hex_to_bytes(payload.payload.signature),
            )
        except Exception as e:
            logger.error(f"Could not prepare settlement for {payer}: {e}", exc_info=True)
            return self._failed(payload, ErrorReason.UNKNOWN_ERROR)

        logger.info(f"Submitting {TRANSFER_WITH_AUTHORIZATION} for {payer} on {network}...")
        try:
            tx_hash = await self.submitter.submit(
                signer,
                chain_id,
                requirements.asset,
                TRANSFER_WITH_AUTHORIZATION,
                args,
            )
        except Exception as e:
            logger.error(f"Transaction submission failed for {payer}: {e}", exc_info=True)
            return self._failed(payload, ErrorReason.SETTLEMENT_FAILED)

        try:
            receipt = await asyncio.wait_for(
                self.submitter.await_confirmation(chain_id, tx_hash, timeout),
                timeout=timeout,
            )
        except ConfirmationTimeoutError as e:
            pending_hash = e.transaction or tx_hash
            logger.error(f"Receipt of {pending_hash} not available: {e}")
            return self._failed(payload, ErrorReason.TIMEOUT, pending_hash)
        except asyncio.TimeoutError:
            logger.error(f"Timed out after {timeout}s waiting for receipt of {tx_hash}")
            return self._failed(payload, ErrorReason.TIMEOUT, tx_hash)
        except Exception as e:
            logger.error(f"Confirmation of {tx_hash} failed: {e}", exc_info=True)
            return self._failed(payload, ErrorReason.SETTLEMENT_FAILED, tx_hash)

        if not receipt.succeeded:
            logger.error(f"Transaction {tx_hash} reverted (status {receipt.status})")
            return self._failed(payload, ErrorReason.SETTLEMENT_FAILED, tx_hash)

        logger.info(f"Settlement successful: {tx_hash}")
        return SettleResponse(
            success=True,
            transaction=tx_hash,
            network=network,
            payer=payer,
        )

    def _failed(
        self, payload: PaymentPayload, reason: ErrorReason, transaction: str = ""
    ) -> SettleResponse:
        return SettleResponse(
            success=False,
            transaction=transaction,
            network=payload.network,
            payer=payload.payer,
            error_reason=reason,
        )
