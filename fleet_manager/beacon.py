# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Client for the standard beacon-node HTTP API."""

from __future__ import annotations

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator


class NodeIdentity(BaseModel):
    peer_id: str
    enr: str = ""
    p2p_addresses: list[str] = []


class SyncStatus(BaseModel):
    head_slot: int
    sync_distance: int
    is_syncing: bool


class ChainParams(BaseModel):
    """Chain parameters from /eth/v1/config/spec that every client of one network must share.

    Clients publish different sets of extra keys, so only these are compared.
    """

    model_config = ConfigDict(populate_by_name=True)

    seconds_per_slot: int = Field(alias="SECONDS_PER_SLOT")
    slots_per_epoch: int = Field(alias="SLOTS_PER_EPOCH")
    min_genesis_active_validator_count: int = Field(alias="MIN_GENESIS_ACTIVE_VALIDATOR_COUNT")
    genesis_fork_version: str = Field(alias="GENESIS_FORK_VERSION")
    altair_fork_epoch: int | None = Field(default=None, alias="ALTAIR_FORK_EPOCH")
    deposit_chain_id: int = Field(alias="DEPOSIT_CHAIN_ID")
    deposit_contract_address: str = Field(alias="DEPOSIT_CONTRACT_ADDRESS")

    @field_validator("genesis_fork_version", "deposit_contract_address")
    @classmethod
    def _lower(cls, value: str) -> str:
        return value.lower()


class Genesis(BaseModel):
    genesis_time: int
    genesis_validators_root: str
    genesis_fork_version: str


class BeaconClient:
    """Minimal beacon API client used by readiness probes and e2e scenarios.

    Args:
        endpoint: Base URL of the beacon node's HTTP API.
        timeout: Per-request timeout in seconds.
    """

    def __init__(self, endpoint: str, timeout: float = 5.0) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout

    def _get(self, path: str) -> dict:
        response = httpx.get(f"{self.endpoint}{path}", timeout=self.timeout)
        response.raise_for_status()
        return response.json()["data"]

    def identity(self) -> NodeIdentity:
        return NodeIdentity.model_validate(self._get("/eth/v1/node/identity"))

    def syncing(self) -> SyncStatus:
        return SyncStatus.model_validate(self._get("/eth/v1/node/syncing"))

    def spec(self) -> ChainParams:
        return ChainParams.model_validate(self._get("/eth/v1/config/spec"))

    def genesis(self) -> Genesis:
        return Genesis.model_validate(self._get("/eth/v1/beacon/genesis"))
