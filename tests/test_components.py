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
"""Tests for the built-in node recipes."""

from __future__ import annotations

import base64
import json

import httpx
import pytest

from fleet_manager import beacon as beacon_module
from fleet_manager.accounts import Account
from fleet_manager.beacon import BeaconClient
from fleet_manager.components import BEACON_RECIPES, VALIDATOR_RECIPES, BeaconConfig, Bootnode, ValidatorConfig
from fleet_manager.components.execution import execution_node
from fleet_manager.components.prysm import WALLET_KEYSTORE_PATH
from fleet_manager.constants import IMAGES, WALLET_PASSWORD
from fleet_manager.deployer import owning_mount
from fleet_manager.keystore import decrypt_keystore
from fleet_manager.node import Node
from fleet_manager.ports import PortName, port_ref
from fleet_manager.spec import Client, NodeKind, NodeSpec

from .fakes import BOOTNODE_ENR

CONSENSUS_CLIENTS = [Client.TEKU, Client.LIGHTHOUSE, Client.PRYSM]


@pytest.fixture
def beacon_config() -> BeaconConfig:
    return BeaconConfig(
        eth1_endpoint="http://127.0.0.1:8000",
        bootnode_enr=BOOTNODE_ENR,
        genesis_ssz=b"\x01\x02\x03",
        chain_spec="PRESET_BASE: mainnet\n",
    )


@pytest.fixture
def beacon_node(runtime, allocator) -> Node:
    node = Node(NodeSpec().with_name("beacon-0-teku"), runtime, allocator)
    node.resolve(port_ref(PortName.ETH2_HTTP))
    node.resolve(port_ref(PortName.PRYSM_GRPC))
    return node


@pytest.fixture
def validator_config(beacon_node) -> ValidatorConfig:
    accounts = [Account(secret_key=k, funding=None) for k in (11, 12)]
    return ValidatorConfig(beacon=beacon_node, accounts=accounts, chain_spec="PRESET_BASE: mainnet\n", keystore_iterations=2)


def _resolved(spec: NodeSpec, runtime, allocator) -> list[str]:
    node = Node(spec, runtime, allocator)
    return [node.resolve(arg) for arg in spec.args]


def _assert_files_are_mounted(spec: NodeSpec) -> None:
    for path in spec.files:
        assert owning_mount(path, spec.mounts) is not None, path


@pytest.mark.parametrize("client", CONSENSUS_CLIENTS)
def test_beacon_recipes(client, beacon_config, runtime, allocator):
    spec = BEACON_RECIPES[client](beacon_config)

    assert spec.role.kind == NodeKind.BEACON
    assert spec.role.client == client
    assert spec.repository == IMAGES["beacon"][client.value]["image"]
    assert spec.tag == str(IMAGES["beacon"][client.value]["tag"])
    assert spec.files["/data/config.yaml"] == b"PRESET_BASE: mainnet\n"
    assert spec.files["/data/genesis.ssz"] == b"\x01\x02\x03"
    assert spec.probe is not None
    _assert_files_are_mounted(spec)

    args = _resolved(spec, runtime, allocator)
    assert "http://127.0.0.1:8000" in args
    assert not any("{" in arg for arg in args)


def test_bootnode_enr_reaches_every_beacon(beacon_config):
    teku = BEACON_RECIPES[Client.TEKU](beacon_config)
    prysm = BEACON_RECIPES[Client.PRYSM](beacon_config)
    lighthouse = BEACON_RECIPES[Client.LIGHTHOUSE](beacon_config)

    assert BOOTNODE_ENR in teku.args
    assert BOOTNODE_ENR in prysm.args
    assert lighthouse.files["/data/boot_enr.yaml"] == f"- {BOOTNODE_ENR}\n".encode()


def test_beacons_without_a_bootnode(beacon_config):
    config = BeaconConfig(beacon_config.eth1_endpoint, "", beacon_config.genesis_ssz, beacon_config.chain_spec)

    assert "/data/boot_enr.yaml" not in BEACON_RECIPES[Client.LIGHTHOUSE](config).files
    assert "--p2p-discovery-bootnodes" not in BEACON_RECIPES[Client.TEKU](config).args


@pytest.mark.parametrize("client", CONSENSUS_CLIENTS)
def test_validator_recipes(client, validator_config):
    spec = VALIDATOR_RECIPES[client](validator_config)

    assert spec.role.kind == NodeKind.VALIDATOR
    assert spec.role.client == client
    assert spec.repository == IMAGES["validator"][client.value]["image"]
    assert spec.files["/data/config.yaml"] == b"PRESET_BASE: mainnet\n"
    _assert_files_are_mounted(spec)


def test_teku_validator_loads_one_keystore_per_account(validator_config, beacon_node):
    spec = VALIDATOR_RECIPES[Client.TEKU](validator_config)

    assert beacon_node.addr(PortName.ETH2_HTTP) in spec.args
    for index, account in enumerate(validator_config.accounts):
        keystore = json.loads(spec.files[f"/data/keys/account_{index}.json"])
        assert keystore["pubkey"] == account.pubkey.hex()
        assert decrypt_keystore(keystore, WALLET_PASSWORD) == account.secret_key_bytes
        assert spec.files[f"/data/pass/account_{index}.txt"] == WALLET_PASSWORD.encode()


def test_lighthouse_validator_layout(validator_config):
    spec = VALIDATOR_RECIPES[Client.LIGHTHOUSE](validator_config)

    for account in validator_config.accounts:
        keystore = json.loads(spec.files[f"/data/node/validators/{account.pubkey_hex}/voting-keystore.json"])
        assert decrypt_keystore(keystore, WALLET_PASSWORD) == account.secret_key_bytes
        assert spec.files[f"/data/node/secrets/{account.pubkey_hex}"] == WALLET_PASSWORD.encode()


def test_prysm_validator_uses_grpc_and_a_wallet(validator_config, beacon_node):
    spec = VALIDATOR_RECIPES[Client.PRYSM](validator_config)

    assert beacon_node.host_port(PortName.PRYSM_GRPC) in spec.args
    store = json.loads(decrypt_keystore(json.loads(spec.files[WALLET_KEYSTORE_PATH]), WALLET_PASSWORD))
    keys = [base64.b64decode(key) for key in store["private_keys"]]
    assert keys == [account.secret_key_bytes for account in validator_config.accounts]


def test_execution_node_references_its_ports(runtime, allocator):
    spec = execution_node(block_period=2)
    node = Node(spec, runtime, allocator)
    args = [node.resolve(arg) for arg in spec.args]

    assert spec.role.kind == NodeKind.EXECUTION
    assert args[args.index("--dev.period") + 1] == "2"
    assert set(node.ports) == {"eth1.http", "eth1.p2p", "eth1.authrpc"}


class _LoggingNode:
    name = "bootnode"

    def __init__(self, output: str) -> None:
        self.output = output

    def logs(self) -> str:
        return self.output


def test_bootnode_probe_captures_the_enr():
    bootnode = Bootnode()
    node = _LoggingNode("starting up\n")

    with pytest.raises(LookupError):
        bootnode.spec.probe(node)
    assert bootnode.enr == ""

    node.output += f"level=info msg=\"Running bootnode: {BOOTNODE_ENR}\"\n"
    bootnode.spec.probe(node)
    assert bootnode.enr == BOOTNODE_ENR
    assert port_ref(PortName.BOOTNODE) in bootnode.spec.args


def test_beacon_client_reads_the_data_envelope(monkeypatch):
    seen = []

    def fake_get(url, timeout):
        seen.append(url)
        return httpx.Response(200, json={"data": {"peer_id": "16Uiu2", "enr": "enr:-abc"}}, request=httpx.Request("GET", url))

    monkeypatch.setattr(beacon_module.httpx, "get", fake_get)

    identity = BeaconClient("http://127.0.0.1:7000/").identity()

    assert identity.peer_id == "16Uiu2"
    assert seen == ["http://127.0.0.1:7000/eth/v1/node/identity"]


def test_beacon_client_raises_on_http_errors(monkeypatch):
    def fake_get(url, timeout):
        return httpx.Response(503, request=httpx.Request("GET", url))

    monkeypatch.setattr(beacon_module.httpx, "get", fake_get)

    with pytest.raises(httpx.HTTPStatusError):
        BeaconClient("http://127.0.0.1:7000").syncing()


def test_beacon_client_reads_genesis(monkeypatch):
    seen = []
    genesis = {
        "genesis_time": "1590832934",
        "genesis_validators_root": "0x" + "cf" * 32,
        "genesis_fork_version": "0x00000000",
    }

    def fake_get(url, timeout):
        seen.append(url)
        return httpx.Response(200, json={"data": genesis}, request=httpx.Request("GET", url))

    monkeypatch.setattr(beacon_module.httpx, "get", fake_get)

    assert BeaconClient("http://127.0.0.1:7000").genesis().genesis_time == 1590832934
    assert seen == ["http://127.0.0.1:7000/eth/v1/beacon/genesis"]
