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
"""Configuration types for x402_facilitator."""

import os
from typing import Optional, Tuple, Union

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError, NetworkResolutionError


EXACT_SCHEME = "exact"

# EIP-3009 deadlines are padded by ~3 blocks to cover submission latency.
MIN_EXPIRY_MARGIN_SECONDS = 6


class ChainConfig(BaseModel):
    """Token metadata for one supported network."""
    model_config = ConfigDict(frozen=True)

    network: str
    chain_id: int
    usdc_address: str
    usdc_name: str
    usdc_decimals: int = 6
    rpc_url: Optional[str] = None


DEFAULT_NETWORKS: Tuple[ChainConfig, ...] = (
    ChainConfig(
        network="base",
        chain_id=8453,
        usdc_address="0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
        usdc_name="USD Coin",
        rpc_url="https://mainnet.base.org",
    ),
    ChainConfig(
        network="base-sepolia",
        chain_id=84532,
        usdc_address="0x036CbD53842c5426634e7929541eC2318f3dCF7e",
        usdc_name="USDC",
        rpc_url="https://sepolia.base.org",
    ),
    ChainConfig(
        network="avalanche",
        chain_id=43114,
        usdc_address="0xB97EF9Ef8734C71904D8002F8b6Bc66Dd9c48a6E",
        usdc_name="USD Coin",
        rpc_url="https://api.avax.network/ext/bc/C/rpc",
    ),
    ChainConfig(
        network="avalanche-fuji",
        chain_id=43113,
        usdc_address="0x5425890298aed601595a70AB815c96711a31Bc65",
        usdc_name="USD Coin",
        rpc_url="https://api.avax-test.network/ext/bc/C/rpc",
    ),
)


class FacilitatorConfig(BaseModel):
    """Process-wide facilitator settings, loaded once and passed explicitly."""
    model_config = ConfigDict(frozen=True)

    scheme: str = EXACT_SCHEME
    x402_version: int = 1
    networks: Tuple[ChainConfig, ...] = DEFAULT_NETWORKS
    expiry_margin_seconds: int = Field(
        default=MIN_EXPIRY_MARGIN_SECONDS, ge=MIN_EXPIRY_MARGIN_SECONDS
    )
    confirmation_timeout_seconds: float = Field(default=120, gt=0)

    def get_chain(self, network: str) -> ChainConfig:
        """Looks up a network by its x402 name."""
        for chain in self.networks:
            if chain.network == network:
                return chain
        raise NetworkResolutionError(f"Unsupported network: {network}")

    def get_chain_by_id(self, chain_id: int) -> ChainConfig:
        for chain in self.networks:
            if chain.chain_id == chain_id:
                return chain
        raise NetworkResolutionError(f"Unsupported chain id: {chain_id}")


def _rpc_env_var(network: str) -> str:
    return "RPC_URL_" + network.upper().replace("-", "_")


def load_facilitator_config(
    env_file: Optional[Union[str, os.PathLike]] = None,
    networks: Tuple[ChainConfig, ...] = DEFAULT_NETWORKS,
) -> FacilitatorConfig:
    """Builds the facilitator configuration from the environment.

    Reads ``env_file`` first, or the nearest ``.env`` in or above the working
    directory when none is given, then:
        FACILITATOR_EXPIRY_MARGIN_SECONDS: validBefore safety margin
        FACILITATOR_CONFIRMATION_TIMEOUT_SECONDS: receipt wait limit
        RPC_URL_<NETWORK>: RPC endpoint per network, e.g. RPC_URL_BASE_SEPOLIA

    Raises:
        ConfigurationError: If a value is malformed or out of range
    """
    load_dotenv(env_file if env_file is not None else find_dotenv(usecwd=True))

    resolved = tuple(
        chain.model_copy(
            update={"rpc_url": os.getenv(_rpc_env_var(chain.network), chain.rpc_url)}
        )
        for chain in networks
    )

    settings = {"networks": resolved}
    margin = os.getenv("FACILITATOR_EXPIRY_MARGIN_SECONDS")
    if margin is not None:
        settings["expiry_margin_seconds"] = margin
    timeout = os.getenv("FACILITATOR_CONFIRMATION_TIMEOUT_SECONDS")
    if timeout is not None:
        settings["confirmation_timeout_seconds"] = timeout

    try:
        return FacilitatorConfig(**settings)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid facilitator configuration: {e}") from e
