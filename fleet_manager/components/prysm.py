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

"""Prysm beacon node and validator client recipes."""

from __future__ import annotations

import base64
import json
from typing import Sequence

from fleet_manager.accounts import Account
from fleet_manager.components.base import (
    CONFIG_PATH,
    GENESIS_PATH,
    BeaconConfig,
    ValidatorConfig,
    base_spec,
    beacon_api_ready,
)
from fleet_manager.constants import KEYSTORE_PBKDF2_ITERATIONS, WALLET_PASSWORD
from fleet_manager.keystore import encrypt_keystore
from fleet_manager.ports import PortName, port_ref
from fleet_manager.spec import Client, NodeKind, NodeSpec

WALLET_KEYSTORE_PATH = "/data/direct/accounts/all-accounts.keystore.json"
WALLET_PASSWORD_PATH = "/data/wallet-password.txt"


def beacon(config: BeaconConfig) -> NodeSpec:
    p2p = port_ref(PortName.ETH2_P2P)
    spec = (
        base_spec(NodeKind.BEACON, Client.PRYSM)
        .with_args(
            "--verbosity", "debug",
            "--http-web3provider", config.eth1_endpoint,
            "--contract-deployment-block", "0",
            "--min-sync-peers", "1",
            "--rpc-host", "0.0.0.0",
            "--rpc-port", port_ref(PortName.PRYSM_GRPC),
            "--grpc-gateway-host", "0.0.0.0",
            "--grpc-gateway-port", port_ref(PortName.ETH2_HTTP),
            "--chain-config-file", CONFIG_PATH,
            "--genesis-state", GENESIS_PATH,
            "--accept-terms-of-use",
            "--datadir", "/data/eth2",
            "--force-clear-db",
            "--minimum-peers-per-subnet", "0",
            "--p2p-tcp-port", p2p,
            "--p2p-udp-port", p2p,
        )
        .with_file(CONFIG_PATH, config.chain_spec)
        .with_file(GENESIS_PATH, config.genesis_ssz)
        .with_probe(beacon_api_ready)
    )
    if config.bootnode_enr:
        spec = spec.with_args("--bootstrap-node", config.bootnode_enr)
    return spec


def wallet_keystore(accounts: Sequence[Account], iterations: int = KEYSTORE_PBKDF2_ITERATIONS) -> dict:
    """Encrypted key store of prysm's direct (non-HD) keymanager."""
    store = {
        "private_keys": [base64.b64encode(account.secret_key_bytes).decode() for account in accounts],
        "public_keys": [base64.b64encode(account.pubkey).decode() for account in accounts],
    }
    return encrypt_keystore(json.dumps(store).encode(), WALLET_PASSWORD, iterations=iterations)


def validator(config: ValidatorConfig) -> NodeSpec:
    """Prysm validator client talking to its beacon over gRPC."""
    return (
        base_spec(NodeKind.VALIDATOR, Client.PRYSM)
        .with_args(
            "--verbosity", "debug",
            "--accept-terms-of-use",
            "--wallet-dir", "/data",
            "--wallet-password-file", WALLET_PASSWORD_PATH,
            "--beacon-rpc-provider", config.beacon.host_port(PortName.PRYSM_GRPC),
            "--chain-config-file", CONFIG_PATH,
        )
        .with_file(WALLET_KEYSTORE_PATH, wallet_keystore(config.accounts, config.keystore_iterations))
        .with_file(WALLET_PASSWORD_PATH, WALLET_PASSWORD)
        .with_file(CONFIG_PATH, config.chain_spec)
    )
