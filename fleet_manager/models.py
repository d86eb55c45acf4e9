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

"""Request and response models of the control RPC."""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, Field

from fleet_manager.ledger import Tranche
from fleet_manager.node import Node
from fleet_manager.spec import Client, NodeKind


# ============================================================================
# Requests
# ============================================================================

class BeaconDeploy(BaseModel):
    kind: Literal["beacon"] = "beacon"
    count: int = Field(default=1, ge=1)


class ValidatorDeploy(BaseModel):
    """Validator parameters.

    Attributes:
        num_validators: Accounts of a new funded tranche; 0 reuses *tranche*.
        tranche: Index of an existing unconsumed tranche.
        with_beacon: Deploy *beacon_count* beacons of the same client first.
        beacon_count: Beacons deployed when *with_beacon* is set.
        beacon: Name of the beacon to attach to, overriding the default choice.
    """

    kind: Literal["validator"] = "validator"
    num_validators: int = Field(default=0, ge=0)
    tranche: int = Field(default=0, ge=0)
    with_beacon: bool = False
    beacon_count: int = Field(default=1, ge=1)
    beacon: str | None = None


class NodeDeployRequest(BaseModel):
    client: Client
    repo: str | None = None
    tag: str | None = None
    params: Union[BeaconDeploy, ValidatorDeploy] = Field(discriminator="kind")


class DepositCreateRequest(BaseModel):
    num_validators: int = Field(ge=1)


# ============================================================================
# Responses
# ============================================================================

class NodeInfo(BaseModel):
    name: str
    kind: NodeKind | None = None
    client: Client | None = None
    image: str
    labels: dict[str, str] = {}
    ports: dict[str, int] = {}
    exited: bool = False

    @classmethod
    def from_node(cls, node: Node) -> NodeInfo:
        role = node.role
        return cls(
            name=node.name,
            kind=role.kind if role else None,
            client=role.client if role else None,
            image=node.spec.image,
            labels=node.spec.labels,
            ports=node.ports,
            exited=node.exited,
        )


class TrancheInfo(BaseModel):
    index: int
    path: str
    consumer: str = ""
    num_accounts: int
    pubkeys: list[str] = []

    @classmethod
    def from_tranche(cls, tranche: Tranche) -> TrancheInfo:
        return cls(
            index=tranche.index,
            path=str(tranche.path),
            consumer=tranche.consumer,
            num_accounts=len(tranche.accounts),
            pubkeys=[account.pubkey_hex for account in tranche.accounts],
        )


class NodeDeployResponse(BaseModel):
    nodes: list[NodeInfo]


class NodeListResponse(BaseModel):
    nodes: list[NodeInfo]


class NodeStatusResponse(BaseModel):
    node: NodeInfo


class DepositCreateResponse(BaseModel):
    tranche: TrancheInfo


class DepositListResponse(BaseModel):
    tranches: list[TrancheInfo]


class ErrorResponse(BaseModel):
    error: str
    detail: str
