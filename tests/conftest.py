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


"""Shared fixtures: fleets built on an in-memory runtime and a fake execution node."""

from __future__ import annotations

from typing import Iterator

import pytest

from fleet_manager import ports
from fleet_manager.accounts import new_accounts
from fleet_manager.components.execution import execution_node
from fleet_manager.config import ChainSpec, FleetConfig
from fleet_manager.constants import image_ref
from fleet_manager.deployer import Deployer
from fleet_manager.fleet import Fleet
from fleet_manager.ports import PortAllocator
from fleet_manager.spec import Client

from .fakes import BOOTNODE_ENR, FakeEth, FakeRuntime, fake_beacon, fake_validator


@pytest.fixture
def runtime() -> Iterator[FakeRuntime]:
    fake = FakeRuntime()
    repository, tag = image_ref("bootnode")
    fake.image_logs[f"{repository}:{tag}"] = f"level=info msg=\"Running bootnode: {BOOTNODE_ENR}\"\n".encode()
    yield fake
    fake.shutdown()


@pytest.fixture
def allocator(monkeypatch) -> PortAllocator:
    """Allocator that treats every port as bindable."""
    monkeypatch.setattr(ports, "is_port_free", lambda port, transport="tcp", host="": True)
    return PortAllocator()


@pytest.fixture
def deployer(runtime, allocator, tmp_path) -> Deployer:
    staging = tmp_path / "staging"
    staging.mkdir()
    return Deployer(runtime, allocator, staging_root=staging, readiness_timeout=2.0, readiness_interval=0.01)


@pytest.fixture
def make_fleet(deployer, tmp_path):
    """Build fleets on the fake runtime; every fleet is stopped on teardown."""
    fleets: list[Fleet] = []

    def factory(
        eth: FakeEth | None = None,
        *,
        clients: tuple[Client, ...] = (Client.TEKU, Client.LIGHTHOUSE),
        chain_spec: ChainSpec | None = None,
        **overrides,
    ) -> Fleet:
        eth = eth or FakeEth()
        config = FleetConfig(name="test", data_dir=tmp_path / "data", **overrides)
        fleet = Fleet(
            config,
            chain_spec or ChainSpec(),
            deployer,
            eth_client_factory=lambda endpoint: eth,
            account_factory=new_accounts,
            execution_recipe=lambda: execution_node().with_probe(lambda node: None),
            beacon_recipes={client: fake_beacon(client) for client in clients},
            validator_recipes={client: fake_validator(client) for client in clients},
        )
        fleets.append(fleet)
        return fleet

    yield factory
    for fleet in fleets:
        fleet.stop()


@pytest.fixture
def fleet(make_fleet) -> Fleet:
    """A bootstrapped fleet with one genesis tranche of two validators."""
    fleet = make_fleet(num_tranches=1, num_genesis_validators=2)
    fleet.bootstrap()
    return fleet
