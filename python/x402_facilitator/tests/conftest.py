"""Shared pytest fixtures for x402_facilitator tests."""

from unittest.mock import AsyncMock, Mock

import pytest
from eth_account import Account
from eth_account.messages import encode_typed_data

from x402_facilitator.chain import (
    BalanceOracle,
    ChainMetadataResolver,
    ChainSubmitter,
    TokenMetadata,
    TransactionReceipt
)
from x402_facilitator.core import (
    ExactEvmFacilitator,
    PaymentSettler,
    PaymentValidator,
    build_authorization_typed_data
)
from x402_facilitator.types import (
    EIP3009Authorization,
    ExactPaymentPayload,
    FacilitatorConfig,
    PaymentPayload,
    PaymentRequirements
)


NOW = 1_700_000_000
BASE_SEPOLIA_CHAIN_ID = 84532
USDC_BASE_SEPOLIA = "0x036CbD53842c5426634e7929541eC2318f3dCF7e"
TX_HASH = "0x" + "ab" * 32
NONCE = "0x" + "11" * 32


@pytest.fixture
def now():
    """Frozen clock value used by validator fixtures."""
    return NOW


@pytest.fixture
def tx_hash():
    return TX_HASH


@pytest.fixture
def payer_account():
    """Deterministic payer key for consistent signatures."""
    return Account.from_key("0x" + "1" * 64)


@pytest.fixture
def pay_to_address():
    return Account.from_key("0x" + "2" * 64).address


@pytest.fixture
def facilitator_account():
    return Account.from_key("0x" + "3" * 64)


@pytest.fixture
def facilitator_config():
    return FacilitatorConfig()


@pytest.fixture
def sample_payment_requirements(pay_to_address):
    return PaymentRequirements(
        scheme="exact",
        network="base-sepolia",
        asset=USDC_BASE_SEPOLIA,
        pay_to=pay_to_address,
        max_amount_required=1000,
        resource="/test-service",
        description="Test payment",
        extra={"name": "USDC", "version": "2"},
    )


@pytest.fixture
def sign_payment(payer_account, pay_to_address):
    """Returns a factory producing payloads signed by the payer.

    Keyword overrides replace authorization fields; ``name``, ``version``,
    ``chain_id`` and ``asset`` change the signing domain.
    """
    def _sign(
        signer=None,
        scheme="exact",
        network="base-sepolia",
        name="USDC",
        version="2",
        chain_id=BASE_SEPOLIA_CHAIN_ID,
        asset=USDC_BASE_SEPOLIA,
        **overrides,
    ):
        signer = signer or payer_account
        fields = {
            "from_": payer_account.address,
            "to": pay_to_address,
            "value": 1000,
            "valid_after": NOW - 10,
            "valid_before": NOW + 60,
            "nonce": NONCE,
        }
        fields.update(overrides)
        authorization = EIP3009Authorization(**fields)

        typed_data = build_authorization_typed_data(
            authorization,
            name=name,
            version=version,
            chain_id=chain_id,
            verifying_contract=asset,
        )
        signed = signer.sign_message(encode_typed_data(full_message=typed_data))

        return PaymentPayload(
            x402_version=1,
            scheme=scheme,
            network=network,
            payload=ExactPaymentPayload(
                signature="0x" + bytes(signed.signature).hex(),
                authorization=authorization,
            ),
        )

    return _sign


@pytest.fixture
def sample_payment_payload(sign_payment):
    return sign_payment()


@pytest.fixture
def balance_oracle():
    oracle = Mock(spec=BalanceOracle)
    oracle.get_balance = AsyncMock(return_value=5000)
    return oracle


@pytest.fixture
def metadata_resolver():
    resolver = Mock(spec=ChainMetadataResolver)
    resolver.resolve = AsyncMock(return_value=TokenMetadata(name="USDC", decimals=6))
    resolver.get_version = AsyncMock(return_value="2")
    return resolver


@pytest.fixture
def chain_submitter():
    submitter = Mock(spec=ChainSubmitter)
    submitter.submit = AsyncMock(return_value=TX_HASH)
    submitter.await_confirmation = AsyncMock(
        return_value=TransactionReceipt(transaction_hash=TX_HASH, status=1, block_number=12)
    )
    return submitter


@pytest.fixture
def validator(facilitator_config, balance_oracle, metadata_resolver):
    return PaymentValidator(
        facilitator_config, balance_oracle, metadata_resolver, clock=lambda: NOW
    )


@pytest.fixture
def settler(validator, chain_submitter):
    return PaymentSettler(validator, chain_submitter)


@pytest.fixture
def facilitator(
    facilitator_config, facilitator_account, balance_oracle, metadata_resolver, chain_submitter
):
    return ExactEvmFacilitator(
        facilitator_config,
        facilitator_account,
        balance_oracle=balance_oracle,
        metadata_resolver=metadata_resolver,
        submitter=chain_submitter,
        clock=lambda: NOW,
    )
