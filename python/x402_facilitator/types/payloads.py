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
"""Wire types for the x402 "exact" scheme: payloads, requirements, responses."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt
from pydantic.alias_generators import to_camel

from .errors import ErrorReason


class X402Model(BaseModel):
    """Immutable model serialized with camelCase keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class EIP3009Authorization(X402Model):
    """transferWithAuthorization message signed by the payer."""
    from_: str = Field(alias="from")
    to: str
    value: NonNegativeInt
    valid_after: NonNegativeInt
    valid_before: NonNegativeInt
    nonce: str


class ExactPaymentPayload(X402Model):
    signature: str
    authorization: EIP3009Authorization


class PaymentPayload(X402Model):
    """Signed payment produced by the payer."""
    x402_version: int = 1
    scheme: str
    network: str
    payload: ExactPaymentPayload

    @property
    def payer(self) -> str:
        return self.payload.authorization.from_


class PaymentRequirements(X402Model):
    """What a resource server expects to be paid."""
    scheme: str
    network: str
    asset: str
    pay_to: str
    max_amount_required: NonNegativeInt
    resource: str = ""
    description: str = ""
    mime_type: str = "application/json"
    max_timeout_seconds: int = 600
    output_schema: Optional[Any] = None
    extra: Optional[Dict[str, Any]] = None


class VerifyResponse(X402Model):
    is_valid: bool
    invalid_reason: Optional[ErrorReason] = None
    payer: str


class SettleResponse(X402Model):
    success: bool
    transaction: str = ""
    network: str
    payer: str
    error_reason: Optional[ErrorReason] = None


class SupportedKind(X402Model):
    x402_version: int
    scheme: str
    network: str


class SupportedResponse(X402Model):
    kinds: List[SupportedKind]
