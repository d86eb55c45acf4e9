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
"""Tests for the fleet control plane."""

from __future__ import annotations

import pytest

from fleet_manager.constants import GENESIS_FILE_NAME, SPEC_FILE_NAME
from fleet_manager.errors import (
    DepositSubmissionError,
    FleetBootstrapError,
    FleetStateError,
    JsonRpcError,
    NoBeaconFoundError,
    NodeExitedError,
    NodeNotFoundError,
    ReadinessTimeoutError,
    TrancheConsumedError,
    TrancheNotFoundError,
    UnknownClientError,
)
from fleet_manager.fleet import FleetState
from fleet_manager.models import BeaconDeploy, NodeDeployRequest, ValidatorDeploy
from fleet_manager.ports import PortName
from fleet_manager.spec import Client, NodeKind, NodeSpec

from .fakes import BOOTNODE_ENR, FakeEth, FakeSubmitter


def _beacons(client: Client = Client.TEKU, count: int = 1, **kwargs) -> NodeDeployRequest:
    return NodeDeployRequest(client=client, params=BeaconDeploy(count=count), **kwargs)


def _validator(client: Client = Client.TEKU, **params) -> NodeDeployRequest:
    return NodeDeployRequest(client=client, params=ValidatorDeploy(**params))


def _names(fleet) -> list[str]:
    return [node.name for node in fleet.list_nodes()]


# ============================================================================
# Bootstrap
# ============================================================================

def test_bootstrap_creates_genesis_tranches_and_artifacts(make_fleet):
    fleet = make_fleet(num_tranches=1, num_genesis_validators=10)
    fleet.bootstrap()

    assert fleet.state == FleetState.SERVING
    tranches = fleet.list_deposits()
    assert len(tranches) == 1
    assert len(tranches[0].accounts) == 10
    assert not tranches[0].consumed
    assert fleet.genesis_ssz

    root = fleet.artifacts.root
    assert root.name == "e2e-test"
    assert (root / GENESIS_FILE_NAME).read_bytes() == fleet.genesis_ssz
    assert "MIN_GENESIS_TIME" in (root / SPEC_FILE_NAME).read_text()
    assert len((root / "tranche_0.txt").read_text().splitlines()) == 10
    assert fleet.bootnode_enr == BOOTNODE_ENR
    assert _names(fleet) == ["bootnode", "execution"]
    assert fleet.eth1_endpoint == fleet.list_nodes()[1].addr(PortName.ETH1_HTTP)


def test_genesis_validators_are_split_across_tranches(make_fleet):
    fleet = make_fleet(num_tranches=2, num_genesis_validators=4)
    fleet.bootstrap()

    assert [len(t.accounts) for t in fleet.list_deposits()] == [2, 2]
    assert [t.index for t in fleet.list_deposits()] == [0, 1]


def test_node_logs_go_to_the_fleet_directory(fleet):
    assert (fleet.artifacts.root / "bootnode.log").exists()
    assert (fleet.artifacts.root / "execution.log").exists()


def test_leftover_fleet_directory_is_fatal(make_fleet, runtime):
    make_fleet().artifacts.root.mkdir(parents=True)
    fleet = make_fleet()

    with pytest.raises(FleetBootstrapError):
        fleet.bootstrap()
    assert fleet.state == FleetState.STOPPED
    assert runtime.started == {}


def test_failed_bootstrap_stops_started_nodes(make_fleet, runtime):
    class BrokenEth(FakeEth):
        def latest_block(self):
            raise JsonRpcError("eth_getBlockByNumber", "connection refused")

    fleet = make_fleet(eth=BrokenEth())

    with pytest.raises(FleetBootstrapError) as excinfo:
        fleet.bootstrap()

    assert isinstance(excinfo.value.__cause__, JsonRpcError)
    assert fleet.state == FleetState.STOPPED
    assert sorted(runtime.stopped) == sorted(runtime.started)
    with pytest.raises(FleetStateError):
        fleet.list_nodes()


def test_requests_need_a_serving_fleet(make_fleet):
    fleet = make_fleet()

    with pytest.raises(FleetStateError):
        fleet.deploy(_beacons())
    with pytest.raises(FleetStateError):
        fleet.list_deposits()


def test_stop_stops_every_node_once(fleet, runtime):
    fleet.deploy(_beacons())
    fleet.stop()
    fleet.stop()

    assert fleet.state == FleetState.STOPPED
    assert len(runtime.stopped) == 3
    with pytest.raises(FleetStateError):
        fleet.node_status("bootnode")


# ============================================================================
# Deploy
# ============================================================================

def test_beacon_deploy_names_and_registers_nodes(fleet, runtime):
    nodes = fleet.deploy(_beacons(Client.LIGHTHOUSE, count=2))

    assert [node.name for node in nodes] == ["beacon-0-lighthouse", "beacon-1-lighthouse"]
    assert _names(fleet)[2:] == ["beacon-0-lighthouse", "beacon-1-lighthouse"]
    assert nodes[0].port(PortName.ETH2_HTTP) != nodes[1].port(PortName.ETH2_HTTP)
    request = runtime.started[nodes[0].container_id]
    assert fleet.eth1_endpoint in request.args

    more = fleet.deploy(_beacons(Client.TEKU))
    assert more[0].name == "beacon-2-teku"


def test_repo_and_tag_overrides(fleet):
    node = fleet.deploy(_beacons(repo="mirror/teku", tag="dev"))[0]
    assert node.spec.image == "mirror/teku:dev"


def test_validator_consumes_a_genesis_tranche(fleet):
    beacon = fleet.deploy(_beacons(Client.TEKU))[0]
    validator = fleet.deploy(_validator(Client.TEKU, tranche=0))[0]

    assert validator.name == "validator-0-teku"
    assert validator.role.kind == NodeKind.VALIDATOR
    assert beacon.addr(PortName.ETH2_HTTP) in validator.spec.args
    assert fleet.list_deposits()[0].consumer == "validator-0-teku"
    assert len(fleet.list_nodes()) == 4


def test_validator_with_its_own_beacons(fleet):
    nodes = fleet.deploy(_validator(Client.LIGHTHOUSE, tranche=0, with_beacon=True, beacon_count=2))

    assert [node.name for node in nodes] == [
        "beacon-0-lighthouse",
        "beacon-1-lighthouse",
        "validator-0-lighthouse",
    ]
    assert nodes[0].addr(PortName.ETH2_HTTP) in nodes[2].spec.args
    assert len(fleet.list_nodes()) == 5


def test_validator_attaches_to_a_named_beacon(fleet):
    fleet.deploy(_beacons(Client.TEKU, count=2))
    validator = fleet.deploy(_validator(Client.TEKU, tranche=0, beacon="beacon-1-teku"))[0]

    assert fleet.node_status("beacon-1-teku").addr(PortName.ETH2_HTTP) in validator.spec.args


def test_named_beacon_must_be_a_beacon(fleet):
    with pytest.raises(NodeNotFoundError):
        fleet.deploy(_validator(tranche=0, beacon="execution"))
    with pytest.raises(NodeNotFoundError):
        fleet.deploy(_validator(tranche=0, beacon="beacon-9-teku"))


def test_validator_without_a_matching_beacon(fleet):
    fleet.deploy(_beacons(Client.LIGHTHOUSE))
    before = len(fleet.list_nodes())

    with pytest.raises(NoBeaconFoundError):
        fleet.deploy(_validator(Client.TEKU, tranche=0))

    assert len(fleet.list_nodes()) == before
    assert not fleet.list_deposits()[0].consumed


def test_tranche_can_only_be_used_once(fleet):
    fleet.deploy(_beacons())
    fleet.deploy(_validator(tranche=0))
    before = len(fleet.list_nodes())

    with pytest.raises(TrancheConsumedError):
        fleet.deploy(_validator(tranche=0))
    with pytest.raises(TrancheNotFoundError):
        fleet.deploy(_validator(tranche=5))

    assert len(fleet.list_nodes()) == before
    assert fleet.list_deposits()[0].consumer == "validator-0-teku"


def test_unknown_client(fleet, runtime):
    started = len(runtime.started)

    with pytest.raises(UnknownClientError):
        fleet.deploy(_beacons(Client.PRYSM))
    with pytest.raises(UnknownClientError):
        fleet.deploy(_validator(Client.PRYSM, tranche=0, with_beacon=True))

    assert len(runtime.started) == started


def test_failed_validator_rolls_back_the_request(fleet, runtime):
    runtime.crash_images["example/crashing-validator:latest"] = 1

    def refuse(node) -> None:
        raise ConnectionError("refused")

    def crashing_validator(config) -> NodeSpec:
        return (
            NodeSpec()
            .with_image("example/crashing-validator")
            .with_role(NodeKind.VALIDATOR, Client.TEKU)
            .with_probe(refuse)
        )

    fleet._validator_recipes = {Client.TEKU: crashing_validator}
    before = _names(fleet)

    with pytest.raises(NodeExitedError):
        fleet.deploy(_validator(Client.TEKU, tranche=0, with_beacon=True))

    assert _names(fleet) == before
    assert not fleet.list_deposits()[0].consumed
    beacon_ids = [cid for cid, req in runtime.started.items() if req.image == "example/teku-beacon:latest"]
    assert len(beacon_ids) == 1
    assert beacon_ids[0] in runtime.stopped


def test_unready_node_runs_until_the_fleet_stops(fleet, runtime):
    def refuse(node) -> None:
        raise ConnectionError("refused")

    def stuck_beacon(config) -> NodeSpec:
        return (
            NodeSpec()
            .with_image("example/stuck-beacon")
            .with_role(NodeKind.BEACON, Client.TEKU)
            .with_probe(refuse)
        )

    fleet._beacon_recipes = {Client.TEKU: stuck_beacon}
    fleet.deployer.readiness_timeout = 0.2
    before = _names(fleet)

    with pytest.raises(ReadinessTimeoutError) as excinfo:
        fleet.deploy(_beacons(Client.TEKU))

    stuck = excinfo.value.node
    assert stuck is not None
    assert _names(fleet) == before
    assert stuck.container_id not in runtime.stopped

    fleet.stop()
    assert stuck.container_id in runtime.stopped


def test_funded_validator_records_its_tranche(fleet):
    fleet.ledger.submitter = FakeSubmitter()
    fleet.deploy(_beacons())

    validator = fleet.deploy(_validator(num_validators=3))[0]

    tranche = fleet.list_deposits()[-1]
    assert tranche.index == 1
    assert tranche.consumer == validator.name
    assert len(tranche.accounts) == 3
    assert len(tranche.deposits) == 3


def test_failed_funding_deploys_nothing(fleet, runtime):
    fleet.ledger.submitter = FakeSubmitter(fail=True)
    fleet.deploy(_beacons())
    started = len(runtime.started)

    with pytest.raises(DepositSubmissionError):
        fleet.deploy(_validator(num_validators=2))

    assert len(runtime.started) == started
    assert len(fleet.list_deposits()) == 1


# ============================================================================
# Queries and deposits
# ============================================================================

def test_node_status(fleet):
    assert fleet.node_status("execution").role.kind == NodeKind.EXECUTION
    with pytest.raises(NodeNotFoundError):
        fleet.node_status("beacon-0-teku")
    with pytest.raises(ValueError):
        fleet.node_status("")


def test_create_deposit(fleet):
    submitter = FakeSubmitter()
    fleet.ledger.submitter = submitter

    tranche = fleet.create_deposit(4)

    assert tranche.index == 1
    assert not tranche.consumed
    assert len(submitter.batches[0]) == 4
    assert fleet.list_deposits()[1] == tranche


def test_create_deposit_without_a_contract(fleet):
    with pytest.raises(DepositSubmissionError):
        fleet.create_deposit(1)
    with pytest.raises(ValueError):
        fleet.create_deposit(0)
    assert len(fleet.list_deposits()) == 1
