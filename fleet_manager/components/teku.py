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

"""Teku beacon node and validator client recipes."""

from __future__ import annotations

from fleet_manager.components.base import (
    CONFIG_PATH,
    GENESIS_PATH,
    BeaconConfig,
    ValidatorConfig,
    base_spec,
    beacon_api_ready,
)
from fleet_manager.constants import WALLET_PASSWORD
from fleet_manager.keystore import encrypt_keystore
from fleet_manager.ports import PortName, port_ref
from fleet_manager.spec import Client, NodeKind, NodeSpec

ROOT_USER = "0:0"


def beacon(config: BeaconConfig) -> NodeSpec:
    spec = (
        base_spec(NodeKind.BEACON, Client.TEKU)
        .with_user(ROOT_USER)
        .with_args(
            "--logging", "debug",
            "--eth1-endpoint", config.eth1_endpoint,
            "--rest-api-enabled",
            "--rest-api-interface", "0.0.0.0",
            "--rest-api-port", port_ref(PortName.ETH2_HTTP),
            "--network", CONFIG_PATH,
            "--initial-state", GENESIS_PATH,
            "--data-path", "/data/beacon",
            "--p2p-advertised-ip", "127.0.0.1",
            "--p2p-port", port_ref(PortName.ETH2_P2P),
        )
        .with_file(CONFIG_PATH, config.chain_spec)
        .with_file(GENESIS_PATH, config.genesis_ssz)
        .with_probe(beacon_api_ready)
    )
    if config.bootnode_enr:
        spec = spec.with_args("--p2p-discovery-bootnodes", config.bootnode_enr)
    return spec


def validator(config: ValidatorConfig) -> NodeSpec:
    """Teku validator client loading one EIP-2335 keystore per account."""
    spec = (
        base_spec(NodeKind.VALIDATOR, Client.TEKU)
        .with_user(ROOT_USER)
        .with_args(
            "vc",
            "--beacon-node-api-endpoint", config.beacon.addr(PortName.ETH2_HTTP),
            "--data-path", "/data",
            "--network", CONFIG_PATH,
            "--validator-keys", "/data/keys:/data/pass",
        )
        .with_file(CONFIG_PATH, config.chain_spec)
    )
    for index, account in enumerate(config.accounts):
        keystore = encrypt_keystore(
            account.secret_key_bytes,
            WALLET_PASSWORD,
            pubkey=account.pubkey,
            path=f"m/12381/3600/{index}/0/0",
            iterations=config.keystore_iterations,
        )
        spec = (
            spec.with_file(f"/data/keys/account_{index}.json", keystore)
            .with_file(f"/data/pass/account_{index}.txt", WALLET_PASSWORD)
        )
    return spec
