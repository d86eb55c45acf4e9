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

"""Lighthouse beacon node and validator client recipes.

Lighthouse reads its network from a testnet directory, so config.yaml,
genesis.ssz, deploy_block.txt and boot_enr.yaml all live in /data.
"""

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

DEPLOY_BLOCK_PATH = "/data/deploy_block.txt"


def beacon(config: BeaconConfig) -> NodeSpec:
    p2p = port_ref(PortName.ETH2_P2P)
    spec = (
        base_spec(NodeKind.BEACON, Client.LIGHTHOUSE)
        .with_args(
            "lighthouse", "beacon_node",
            "--http", "--http-address", "0.0.0.0",
            "--http-port", port_ref(PortName.ETH2_HTTP),
            "--eth1-endpoints", config.eth1_endpoint,
            "--target-peers", "1",
            "--testnet-dir", "/data",
            "--datadir", "/data/beacon",
            "--http-allow-sync-stalled",
            "--debug-level", "debug",
            "--subscribe-all-subnets",
            "--staking",
            "--port", p2p,
            "--enr-address", "127.0.0.1",
            "--enr-udp-port", p2p,
            "--enr-tcp-port", p2p,
            "--disable-packet-filter",
            "--enable-private-discovery",
        )
        .with_file(CONFIG_PATH, config.chain_spec)
        .with_file(GENESIS_PATH, config.genesis_ssz)
        .with_file(DEPLOY_BLOCK_PATH, "0")
        .with_probe(beacon_api_ready)
    )
    if config.bootnode_enr:
        spec = spec.with_file("/data/boot_enr.yaml", f"- {config.bootnode_enr}\n")
    return spec


def validator(config: ValidatorConfig) -> NodeSpec:
    spec = (
        base_spec(NodeKind.VALIDATOR, Client.LIGHTHOUSE)
        .with_args(
            "lighthouse", "vc",
            "--debug-level", "debug",
            "--datadir", "/data/node",
            "--beacon-nodes", config.beacon.addr(PortName.ETH2_HTTP),
            "--testnet-dir", "/data",
            "--init-slashing-protection",
        )
        .with_file(CONFIG_PATH, config.chain_spec)
        .with_file(DEPLOY_BLOCK_PATH, "0")
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
            spec.with_file(f"/data/node/validators/{account.pubkey_hex}/voting-keystore.json", keystore)
            .with_file(f"/data/node/secrets/{account.pubkey_hex}", WALLET_PASSWORD)
        )
    return spec
