"""Unit tests for x402_facilitator.core.settler module."""

import asyncio

import pytest
from unittest.mock import AsyncMock
from eth_account import Account
from x402_facilitator.chain import TransactionReceipt
from x402_facilitator.types import (
    ChainError,
    ConfirmationTimeoutError,
    ErrorReason
)


class TestSuccessfulSettlement:
    """Test the happy path."""

    @pytest.mark.asyncio
    async def test_settle_success(self, settler, facilitator_account, sample_payment_requirements, sample_payment_payload, chain_submitter, payer_account, tx_hash):
        response = await settler.settle(facilitator_account, sample_payment_payload, sample_payment_requirements)

        assert response.success
        assert response.transaction == tx_hash
        assert response.network == "base-sepolia"
        assert response.payer == payer_account.address
        assert response.error_reason is None

    @pytest.mark.asyncio
    async def test_authorization_passed_through(self, settler, facilitator_account, sample_payment_requirements, sample_payment_payload, chain_submitter, tx_hash):
        await settler.settle(facilitator_account, sample_payment_payload, sample_payment_requirements)

        authorization = sample_payment_payload.payload.authorization
        chain_submitter.submit.assert_awaited_once_with(
            facilitator_account,
            84532,
            sample_payment_requirements.asset,
            "transferWithAuthorization",
            (
                authorization.from_,
                authorization.to,
                authorization.value,
                authorization.valid_after,
                authorization.valid_before,
                bytes.fromhex(authorization.nonce[2:]),
                bytes.fromhex(sample_payment_payload.payload.signature[2:]),
            ),
        )
        chain_submitter.await_confirmation.assert_awaited_once_with(84532, tx_hash, 120)

    @pytest.mark.asyncio
    async def test_custom_timeout(self, settler, facilitator_account, sample_payment_requirements, sample_payment_payload, chain_submitter, tx_hash):
        await settler.settle(facilitator_account, sample_payment_payload, sample_payment_requirements, timeout=15)

        chain_submitter.await_confirmation.assert_awaited_once_with(84532, tx_hash, 15)


class TestRefusedSettlement:
    """Test that payloads failing re-verification never reach the chain."""

    @pytest.mark.asyncio
    async def test_recipient_mismatch_not_submitted(self, settler, facilitator_account, sample_payment_requirements, sign_payment, chain_submitter, payer_account):
        payload = sign_payment(to=Account.from_key("0x" + "5" * 64).address)

        response = await settler.settle(facilitator_account, payload, sample_payment_requirements)

        assert not response.success
        assert response.transaction == ""
        assert response.error_reason == ErrorReason.RECIPIENT_MISMATCH
        assert response.payer == payer_account.address
        assert response.network == "base-sepolia"
        chain_submitter.submit.assert_not_called()
        chain_submitter.await_confirmation.assert_not_called()

    @pytest.mark.asyncio
    async def test_balance_drained_since_verify(self, settler, facilitator_account, sample_payment_requirements, sample_payment_payload, chain_submitter, balance_oracle):
        balance_oracle.get_balance = AsyncMock(return_value=0)

        response = await settler.settle(facilitator_account, sample_payment_payload, sample_payment_requirements)

        assert response.error_reason == ErrorReason.INSUFFICIENT_FUNDS
        chain_submitter.submit.assert_not_called()

    @pytest.mark.asyncio
    async def test_unsupported_scheme_not_submitted(self, settler, facilitator_account, sample_payment_requirements, sign_payment, chain_submitter):
        response = await settler.settle(facilitator_account, sign_payment(scheme="upto"), sample_payment_requirements)

        assert response.error_reason == ErrorReason.UNSUPPORTED_SCHEME
        chain_submitter.submit.assert_not_called()


class TestFailedSettlement:
    """Test on-chain failures."""

    @pytest.mark.asyncio
    async def test_reverted_receipt(self, settler, facilitator_account, sample_payment_requirements, sample_payment_payload, chain_submitter, tx_hash):
        chain_submitter.await_confirmation = AsyncMock(
            return_value=TransactionReceipt(transaction_hash=tx_hash, status=0)
        )

        response = await settler.settle(facilitator_account, sample_payment_payload, sample_payment_requirements)

        assert not response.success
        assert response.error_reason == ErrorReason.SETTLEMENT_FAILED
        assert response.transaction == tx_hash

    @pytest.mark.asyncio
    async def test_submission_error(self, settler, facilitator_account, sample_payment_requirements, sample_payment_payload, chain_submitter):
        chain_submitter.submit = AsyncMock(side_effect=ChainError("nonce too low"))

        response = await settler.settle(facilitator_account, sample_payment_payload, sample_payment_requirements)

        assert not response.success
        assert response.error_reason == ErrorReason.SETTLEMENT_FAILED
        assert response.transaction == ""
        chain_submitter.await_confirmation.assert_not_called()

    @pytest.mark.asyncio
    async def test_replayed_authorization_reverts(self, settler, facilitator_account, sample_payment_requirements, sample_payment_payload, chain_submitter, tx_hash):
        chain_submitter.await_confirmation = AsyncMock(
            side_effect=ChainError("FiatTokenV2: authorization is used or canceled")
        )

        response = await settler.settle(facilitator_account, sample_payment_payload, sample_payment_requirements)

        assert response.error_reason == ErrorReason.SETTLEMENT_FAILED
        assert response.transaction == tx_hash

    @pytest.mark.asyncio
    async def test_submitter_reports_timeout(self, settler, facilitator_account, sample_payment_requirements, sample_payment_payload, chain_submitter, tx_hash):
        chain_submitter.await_confirmation = AsyncMock(
            side_effect=ConfirmationTimeoutError("not mined", transaction=tx_hash)
        )

        response = await settler.settle(facilitator_account, sample_payment_payload, sample_payment_requirements)

        assert not response.success
        assert response.error_reason == ErrorReason.TIMEOUT
        assert response.transaction == tx_hash

    @pytest.mark.asyncio
    async def test_timeout_reports_submitter_transaction(self, settler, facilitator_account, sample_payment_requirements, sample_payment_payload, chain_submitter):
        replacement_hash = "0x" + "cd" * 32
        chain_submitter.await_confirmation = AsyncMock(
            side_effect=ConfirmationTimeoutError("not mined", transaction=replacement_hash)
        )

        response = await settler.settle(facilitator_account, sample_payment_payload, sample_payment_requirements)

        assert response.error_reason == ErrorReason.TIMEOUT
        assert response.transaction == replacement_hash

    @pytest.mark.asyncio
    async def test_timeout_without_transaction_uses_broadcast_hash(self, settler, facilitator_account, sample_payment_requirements, sample_payment_payload, chain_submitter, tx_hash):
        chain_submitter.await_confirmation = AsyncMock(side_effect=ConfirmationTimeoutError("not mined"))

        response = await settler.settle(facilitator_account, sample_payment_payload, sample_payment_requirements)

        assert response.error_reason == ErrorReason.TIMEOUT
        assert response.transaction == tx_hash

    @pytest.mark.asyncio
    async def test_confirmation_wait_is_bounded(self, settler, facilitator_account, sample_payment_requirements, sample_payment_payload, chain_submitter, tx_hash):
        async def never_mined(*args):
            await asyncio.sleep(10)

        chain_submitter.await_confirmation = AsyncMock(side_effect=never_mined)

        response = await settler.settle(
            facilitator_account, sample_payment_payload, sample_payment_requirements, timeout=0.01
        )

        assert response.error_reason == ErrorReason.TIMEOUT
        assert response.transaction == tx_hash

    @pytest.mark.asyncio
    async def test_no_retry_after_failure(self, settler, facilitator_account, sample_payment_requirements, sample_payment_payload, chain_submitter):
        chain_submitter.submit = AsyncMock(side_effect=RuntimeError("connection reset"))

        response = await settler.settle(facilitator_account, sample_payment_payload, sample_payment_requirements)

        assert response.error_reason == ErrorReason.SETTLEMENT_FAILED
        assert chain_submitter.submit.await_count == 1
