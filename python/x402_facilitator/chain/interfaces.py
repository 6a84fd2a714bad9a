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
"""Narrow chain interfaces the validator and settler depend on.

Implementations wrap an RPC client; the protocol logic only sees these
coroutines, so tests can swap in deterministic fakes.
"""

from abc import ABCMeta, abstractmethod
from typing import Any, Optional, Sequence

from eth_account.signers.local import LocalAccount
from pydantic import BaseModel, ConfigDict


TRANSFER_WITH_AUTHORIZATION = "transferWithAuthorization"


class TokenMetadata(BaseModel):
    """Token fields needed to build the EIP-712 signing domain."""
    model_config = ConfigDict(frozen=True)

    name: str
    decimals: int = 6


class TransactionReceipt(BaseModel):
    model_config = ConfigDict(frozen=True)

    transaction_hash: str
    status: int
    block_number: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class ChainMetadataResolver(metaclass=ABCMeta):
    """Resolves token metadata when requirements omit name/version."""

    @abstractmethod
    async def resolve(self, chain_id: int) -> TokenMetadata:
        raise NotImplementedError

    @abstractmethod
    async def get_version(self, chain_id: int, asset: str) -> str:
        raise NotImplementedError


class BalanceOracle(metaclass=ABCMeta):
    """Reads ERC-20 balances."""

    @abstractmethod
    async def get_balance(
        self, chain_id: int, token_address: str, owner_address: str
    ) -> int:
        raise NotImplementedError


class ChainSubmitter(metaclass=ABCMeta):
    """Broadcasts contract calls signed by the facilitator and tracks them."""

    @abstractmethod
    async def submit(
        self,
        signer: LocalAccount,
        chain_id: int,
        contract_address: str,
        function_name: str,
        args: Sequence[Any],
    ) -> str:
        """Submits the call and returns the 0x-prefixed transaction hash."""
        raise NotImplementedError

    @abstractmethod
    async def await_confirmation(
        self, chain_id: int, tx_hash: str, timeout: float
    ) -> TransactionReceipt:
        """Waits until the transaction is mined.

        Raises:
            ConfirmationTimeoutError: If no receipt arrives within ``timeout``
        """
        raise NotImplementedError
