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

"""End-to-end scenarios run against a bootstrapped fleet of real clients.

The single-deployment scenario deploys a prysm validator with two prysm
beacons of its own, then one lighthouse and one teku beacon. It checks that
every beacon serves the same chain parameters and genesis, waits for a target
epoch, and checks that no beacon has fallen behind the head.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from rich.panel import Panel

from fleet_manager import console, logger
from fleet_manager.beacon import BeaconClient, ChainParams, Genesis
from fleet_manager.chaintime import ChainTime
from fleet_manager.config import ChainSpec
from fleet_manager.constants import (
    E2E_BEACON_QUERY_INTERVAL_SECONDS,
    E2E_BEACON_QUERY_TIMEOUT_SECONDS,
    E2E_GENESIS_VALIDATORS,
    E2E_TARGET_EPOCH,
)
from fleet_manager.errors import ScenarioError
from fleet_manager.fleet import Fleet
from fleet_manager.models import BeaconDeploy, NodeDeployRequest, ValidatorDeploy
from fleet_manager.node import Node
from fleet_manager.ports import PortName
from fleet_manager.spec import Client, NodeKind
from fleet_manager.utils import poll_until

# FleetConfig overrides of the single-deployment scenario.
SINGLE_DEPLOYMENT_FLEET = {"num_genesis_validators": E2E_GENESIS_VALIDATORS, "num_tranches": 1}


@dataclass(frozen=True)
class BeaconReport:
    name: str
    head_slot: int
    sync_distance: int
    is_syncing: bool


def single_deployment_chain_spec(genesis_in: int, clock: Callable[[], float] = time.time) -> ChainSpec:
    """Chain spec of the single-deployment scenario, with genesis *genesis_in* seconds from now."""
    return ChainSpec(
        min_genesis_active_validator_count=E2E_GENESIS_VALIDATORS,
        min_genesis_time=int(clock()) + genesis_in,
        altair_fork_epoch=1,
    )


def beacon_nodes(fleet: Fleet) -> list[Node]:
    return [node for node in fleet.list_nodes() if node.role is not None and node.role.kind == NodeKind.BEACON]


def check_agreement(
    clients: dict[str, BeaconClient],
    genesis_time: int,
    *,
    interval: float = E2E_BEACON_QUERY_INTERVAL_SECONDS,
    timeout: float = E2E_BEACON_QUERY_TIMEOUT_SECONDS,
) -> None:
    """Check that every beacon reports the same chain parameters and genesis.

    Raises:
        ScenarioError: If two beacons disagree, or a beacon's genesis time is
            not *genesis_time*.
        PollTimeoutError: If a beacon does not answer within *timeout*.
    """
    answers: dict[str, tuple[ChainParams, Genesis]] = {}
    for name, client in clients.items():
        answers[name] = poll_until(
            lambda client=client: (client.spec(), client.genesis()),
            interval=interval,
            timeout=timeout,
            what=f"beacon {name} to serve its spec and genesis",
        )

    first_name, (first_params, first_genesis) = next(iter(answers.items()))
    for name, (params, genesis) in answers.items():
        if params != first_params:
            raise ScenarioError(
                f"beacons {first_name} and {name} disagree on the chain spec: {first_params} != {params}"
            )
        if genesis != first_genesis:
            raise ScenarioError(f"beacons {first_name} and {name} disagree on genesis: {first_genesis} != {genesis}")
    if first_genesis.genesis_time != genesis_time:
        raise ScenarioError(f"beacons report genesis time {first_genesis.genesis_time}, expected {genesis_time}")
    console.print(f"[green]\u2705 {len(answers)} beacons agree on the chain spec and genesis[/green]")


def run_single_deployment(
    fleet: Fleet,
    *,
    target_epoch: int = E2E_TARGET_EPOCH,
    beacon_client: Callable[[str], BeaconClient] = BeaconClient,
    clock: Callable[[], float] = time.time,
    cancel: threading.Event | None = None,
    query_interval: float = E2E_BEACON_QUERY_INTERVAL_SECONDS,
    query_timeout: float = E2E_BEACON_QUERY_TIMEOUT_SECONDS,
) -> list[BeaconReport]:
    """Run the single-deployment scenario on a serving fleet.

    Returns:
        Head and sync status of every beacon at *target_epoch*.

    Raises:
        ScenarioError: If a check fails.
        PollCancelledError: If *cancel* is set while waiting on chain time.
    """
    console.print(Panel.fit("Scenario: single deployment", style="bold blue"))
    fleet.deploy(
        NodeDeployRequest(
            client=Client.PRYSM,
            params=ValidatorDeploy(tranche=0, with_beacon=True, beacon_count=2),
        )
    )
    for client in (Client.LIGHTHOUSE, Client.TEKU):
        fleet.deploy(NodeDeployRequest(client=client, params=BeaconDeploy(count=1)))

    clients = {node.name: beacon_client(node.addr(PortName.ETH2_HTTP)) for node in beacon_nodes(fleet)}
    spec = fleet.chain_spec
    chain = ChainTime(spec.min_genesis_time, spec.seconds_per_slot, spec.slots_per_epoch, clock=clock)

    chain.wait_for_genesis(cancel)
    check_agreement(clients, spec.min_genesis_time, interval=query_interval, timeout=query_timeout)

    logger.info("Waiting for epoch %d (current slot %d)", target_epoch, chain.current_slot())
    epoch = chain.wait_for_epoch(target_epoch, cancel)
    console.print(f"[green]\u2705 Reached epoch {epoch.number} (slot {epoch.start_slot})[/green]")

    reports = []
    for name, client in clients.items():
        status = client.syncing()
        reports.append(BeaconReport(name, status.head_slot, status.sync_distance, status.is_syncing))

    lagging = [report.name for report in reports if report.sync_distance > spec.slots_per_epoch]
    if lagging:
        raise ScenarioError(f"beacons more than one epoch behind the head: {', '.join(lagging)}")
    return reports
