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
"""EIP-712 typed data for EIP-3009 transferWithAuthorization."""

import logging
from typing import Any, Dict

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_utils import to_checksum_address

from ..types import EIP3009Authorization


logger = logging.getLogger(__name__)


AUTHORIZATION_TYPES = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ],
    "TransferWithAuthorization": [
        {"name": "from", "type": "address"},
        {"name": "to", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "validAfter", "type": "uint256"},
        {"name": "validBefore", "type": "uint256"},
        {"name": "nonce", "type": "bytes32"},
    ],
}


def hex_to_bytes(value: str) -> bytes:
    return bytes.fromhex(value.removeprefix("0x"))


def build_authorization_typed_data(
    authorization: EIP3009Authorization,
    name: str,
    version: str,
    chain_id: int,
    verifying_contract: str,
) -> Dict[str, Any]:
    """Builds the full EIP-712 message the payer signed.

    Raises:
        ValueError: If an address or the nonce is malformed
    """
    return {
        "types": AUTHORIZATION_TYPES,
        "primaryType": "TransferWithAuthorization",
        "domain": {
            "name": name,
            "version": version,
            "chainId": chain_id,
            "verifyingContract": to_checksum_address(verifying_contract),
        },
        "message": {
            "from": to_checksum_address(authorization.from_),
            "to": to_checksum_address(authorization.to),
            "value": authorization.value,
            "validAfter": authorization.valid_after,
            "validBefore": authorization.valid_before,
            "nonce": hex_to_bytes(authorization.nonce),
        },
    }


def recover_authorization_signer(typed_data: Dict[str, Any], signature: str) -> str:
    """Recovers the address that produced ``signature`` over ``typed_data``."""
    signable_message = encode_typed_data(full_message=typed_data)
    return Account.recover_message(signable_message, signature=hex_to_bytes(signature))


def is_valid_authorization_signature(
    typed_data: Dict[str, Any], signature: str, expected_signer: str
) -> bool:
    """Checks that ``expected_signer`` signed ``typed_data``.

    Malformed signatures count as invalid rather than raising.
    """
    try:
        recovered_address = recover_authorization_signer(typed_data, signature)
    except Exception as e:
        logger.warning(f"Signature recovery failed for {expected_signer}: {e}")
        return False

    if recovered_address.lower() != expected_signer.lower():
        logger.warning(
            f"Recovered signer {recovered_address} does not match authorization.from {expected_signer}"
        )
        return False
    return True
