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
"""Facilitator entry point composing verification and settlement."""

import logging
import time
from typing import Callable, Optional

from eth_account.signers.local import LocalAccount

from .settler import PaymentSettler
from .validator import PaymentValidator
from ..chain.evm import (
    EvmClients,
    Web3BalanceOracle,
    Web3ChainSubmitter,
    Web3MetadataResolver
)
from ..chain.interfaces import BalanceOracle, ChainMetadataResolver, ChainSubmitter
from ..types import (
    FacilitatorConfig,
    PaymentPayload,
    PaymentRequirements,
    SettleResponse,
    SupportedKind,
    SupportedResponse,
    VerifyResponse
)


logger = logging.getLogger(__name__)


class ExactEvmFacilitator:
    """Verifies and settles "exact" scheme payments on EVM networks.

    Example:
        facilitator = create_evm_facilitator(load_facilitator_config(), signer)
        verify_response = await facilitator.verify(payload, requirements)
        if verify_response.is_valid:
            settle_response = await facilitator.settle(payload, requirements)
    """

    def __init__(
        self,
        config: FacilitatorConfig,
        signer: LocalAccount,
        balance_oracle: BalanceOracle,
        metadata_resolver: ChainMetadataResolver,
        submitter: ChainSubmitter,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self.signer = signer
        self.validator = PaymentValidator(config, balance_oracle, metadata_resolver, clock)
        self.settler = PaymentSettler(self.validator, submitter)

    async def verify(
        self, payload: PaymentPayload, requirements: PaymentRequirements
    ) -> VerifyResponse:
        logger.info(f"Verifying payment from {payload.payer} on {payload.network}")
        verify_response = await self.validator.validate(requirements, payload)
        logger.info(f"Verification result: {verify_response.model_dump_json(by_alias=True)}")
        return verify_response

    async def settle(
        self,
        payload: PaymentPayload,
        requirements: PaymentRequirements,
        timeout: Optional[float] = None,
    ) -> SettleResponse:
        logger.info(f"Settling payment from {payload.payer} on {payload.network}")
        settle_response = await self.settler.settle(self.signer, payload, requirements, timeout)
        logger.info(f"Settlement response: {settle_response.model_dump_json(by_alias=True)}")
        return settle_response

    def supported(self) -> SupportedResponse:
        """Lists the (scheme, network) kinds this facilitator accepts."""
        return SupportedResponse(
            kinds=[
                SupportedKind(
                    x402_version=self.config.x402_version,
                    scheme=self.config.scheme,
                    network=chain.network,
                )
                for chain in self.config.networks
            ]
        )


def create_evm_facilitator(
    config: FacilitatorConfig,
    signer: LocalAccount,
    clock: Callable[[], float] = time.time,
) -> ExactEvmFacilitator:
    """Creates a facilitator backed by web3 RPC clients for every configured network."""
    clients = EvmClients(config)
    return ExactEvmFacilitator(
        config,
        signer,
        balance_oracle=Web3BalanceOracle(clients),
        metadata_resolver=Web3MetadataResolver(clients),
        submitter=Web3ChainSubmitter(clients),
        clock=clock,
    )
