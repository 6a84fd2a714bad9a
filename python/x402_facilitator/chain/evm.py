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
"""web3-backed chain collaborators for EIP-3009 USDC contracts."""

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import TimeExhausted, Web3Exception

from .interfaces import (
    BalanceOracle,
    ChainMetadataResolver,
    ChainSubmitter,
    TokenMetadata,
    TransactionReceipt
)
from ..types import (
    ChainError,
    ConfirmationTimeoutError,
    FacilitatorConfig,
    NetworkResolutionError
)


logger = logging.getLogger(__name__)


# Gas limit for transferWithAuthorization, well above observed usage.
SETTLEMENT_GAS_LIMIT = 200000

USDC_ABI = [
    {
        "inputs": [{"name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "version",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "from", "type": "address"},
            {"name": "to", "type": "address"},
            {"name": "value", "type": "uint256"},
            {"name": "validAfter", "type": "uint256"},
            {"name": "validBefore", "type": "uint256"},
            {"name": "nonce", "type": "bytes32"},
            {"name": "signature", "type": "bytes"},
        ],
        "name": "transferWithAuthorization",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


class EvmClients:
    """One AsyncWeb3 client per configured chain, created on first use."""

    def __init__(
        self,
        config: FacilitatorConfig,
        clients: Optional[Mapping[int, AsyncWeb3]] = None,
    ):
        self.config = config
        self._clients: Dict[int, AsyncWeb3] = dict(clients or {})

    def get(self, chain_id: int) -> AsyncWeb3:
        client = self._clients.get(chain_id)
        if client is None:
            chain = self.config.get_chain_by_id(chain_id)
            if not chain.rpc_url:
                raise NetworkResolutionError(f"No RPC URL configured for {chain.network}")
            logger.info(f"Creating RPC client for {chain.network} at {chain.rpc_url}")
            client = AsyncWeb3(AsyncHTTPProvider(chain.rpc_url))
            self._clients[chain_id] = client
        return client

    def token_contract(self, chain_id: int, address: str):
        return self.get(chain_id).eth.contract(
            address=to_checksum_address(address), abi=USDC_ABI
        )


class Web3BalanceOracle(BalanceOracle):
    def __init__(self, clients: EvmClients):
        self.clients = clients

    async def get_balance(
        self, chain_id: int, token_address: str, owner_address: str
    ) -> int:
        contract = self.clients.token_contract(chain_id, token_address)
        balance = await contract.functions.balanceOf(to_checksum_address(owner_address)).call()
        return int(balance)


class Web3MetadataResolver(ChainMetadataResolver):
    """Token name comes from the configuration table, version from the contract."""

    def __init__(self, clients: EvmClients):
        self.clients = clients

    async def resolve(self, chain_id: int) -> TokenMetadata:
        chain = self.clients.config.get_chain_by_id(chain_id)
        return TokenMetadata(name=chain.usdc_name, decimals=chain.usdc_decimals)

    async def get_version(self, chain_id: int, asset: str) -> str:
        contract = self.clients.token_contract(chain_id, asset)
        try:
            return await contract.functions.version().call()
        except Web3Exception as e:
            raise NetworkResolutionError(f"Could not read version() of {asset}: {e}") from e


class Web3ChainSubmitter(ChainSubmitter):
    """Signs EIP-1559 transactions with the facilitator account and broadcasts them."""

    def __init__(self, clients: EvmClients, gas_limit: int = SETTLEMENT_GAS_LIMIT):
        self.clients = clients
        self.gas_limit = gas_limit
        # Serializes nonce assignment per chain for a shared facilitator account.
        self._nonce_locks: Dict[int, asyncio.Lock] = {}

    async def submit(
        self,
        signer: LocalAccount,
        chain_id: int,
        contract_address: str,
        function_name: str,
        args: Sequence[Any],
    ) -> str:
        w3 = self.clients.get(chain_id)
        contract = self.clients.token_contract(chain_id, contract_address)
        lock = self._nonce_locks.get(chain_id)
        if lock is None:
            lock = self._nonce_locks[chain_id] = asyncio.Lock()

        try:
            async with lock:
                tx_nonce = await w3.eth.get_transaction_count(signer.address, "pending")
                latest_block = await w3.eth.get_block("latest")
                max_priority_fee = await w3.eth.max_priority_fee
                max_fee = max_priority_fee + 2 * latest_block["baseFeePerGas"]

                tx_unsigned = await getattr(contract.functions, function_name)(
                    *args
                ).build_transaction(
                    {
                        "from": signer.address,
                        "nonce": tx_nonce,
                        "maxFeePerGas": max_fee,
                        "maxPriorityFeePerGas": max_priority_fee,
                        "gas": self.gas_limit,
                        "chainId": chain_id,
                    }
                )
                signed_tx = signer.sign_transaction(tx_unsigned)
                tx_hash = await w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except Web3Exception as e:
            raise ChainError(f"{function_name} submission failed: {e}") from e

        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.info(f"{function_name} transaction sent: {tx_hash_hex}")
        return tx_hash_hex

    async def await_confirmation(
        self, chain_id: int, tx_hash: str, timeout: float
    ) -> TransactionReceipt:
        w3 = self.clients.get(chain_id)
        try:
            receipt = await w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
        except TimeExhausted as e:
            raise ConfirmationTimeoutError(
                f"Transaction {tx_hash} not mined within {timeout}s", transaction=tx_hash
            ) from e

        return TransactionReceipt(
            transaction_hash=tx_hash,
            status=receipt["status"],
            block_number=receipt.get("blockNumber"),
        )
