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

"""Inputs shared by the consensus-client recipes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from fleet_manager.accounts import Account
from fleet_manager.beacon import BeaconClient
from fleet_manager.constants import BEACON_DATA_DIR, KEYSTORE_PBKDF2_ITERATIONS, image_ref
from fleet_manager.node import Node
from fleet_manager.ports import PortName
from fleet_manager.spec import Client, NodeKind, NodeSpec

CONFIG_PATH = f"{BEACON_DATA_DIR}/config.yaml"
GENESIS_PATH = f"{BEACON_DATA_DIR}/genesis.ssz"


@dataclass(frozen=True)
class BeaconConfig:
    """Inputs of a beacon node recipe.

    Attributes:
        eth1_endpoint: HTTP endpoint of the execution node.
        bootnode_enr: ENR of the discovery bootnode, empty for none.
        genesis_ssz: Encoded genesis state.
        chain_spec: Rendered config.yaml.
    """

    eth1_endpoint: str
    bootnode_enr: str
    genesis_ssz: bytes
    chain_spec: str


@dataclass(frozen=True)
class ValidatorConfig:
    """Inputs of a validator client recipe.

    Attributes:
        beacon: Beacon node the validator attaches to.
        accounts: Validator keys to load.
        chain_spec: Rendered config.yaml.
        keystore_iterations: pbkdf2 iterations for generated keystores.
    """

    beacon: Node
    accounts: Sequence[Account]
    chain_spec: str
    keystore_iterations: int = KEYSTORE_PBKDF2_ITERATIONS


BeaconRecipe = Callable[[BeaconConfig], NodeSpec]
ValidatorRecipe = Callable[[ValidatorConfig], NodeSpec]


def base_spec(kind: NodeKind, client: Client) -> NodeSpec:
    """Spec with the registered image, role and data mount of a consensus client."""
    repository, tag = image_ref(kind.value, client.value)
    return (
        NodeSpec()
        .with_image(repository)
        .with_tag(tag)
        .with_role(kind, client)
        .with_mount(BEACON_DATA_DIR)
    )


def beacon_api_ready(node: Node) -> None:
    """Readiness probe: the beacon HTTP API answers the identity query."""
    BeaconClient(node.addr(PortName.ETH2_HTTP)).identity()
