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

"""Server subcommands (start)."""

from __future__ import annotations

import time
from pathlib import Path

import typer

from fleet_manager.api import serve
from fleet_manager.config import ChainSpec, FleetConfig, display_config
from fleet_manager.deployer import Deployer
from fleet_manager.fleet import Fleet
from fleet_manager.runtime import DockerRuntime

app = typer.Typer(help="Run the fleet control plane.")


@app.command("start")
def start(
    name: str | None = typer.Option(None, "--name", help="Fleet name (artifacts go to e2e-<name>)"),
    data_dir: Path | None = typer.Option(None, "--data-dir", help="Parent directory of the fleet artifacts"),
    num_tranches: int | None = typer.Option(None, "--num-tranches", help="Genesis key tranches"),
    num_genesis_validators: int | None = typer.Option(
        None, "--num-genesis-validators", help="Validators in the genesis state"
    ),
    min_genesis_validator_count: int | None = typer.Option(
        None, "--min-genesis-validator-count", help="MIN_GENESIS_ACTIVE_VALIDATOR_COUNT"
    ),
    genesis_in: int | None = typer.Option(None, "--genesis-in", help="Seconds from now until genesis"),
    altair_epoch: int | None = typer.Option(None, "--altair-epoch", help="Altair fork epoch"),
    bellatrix_epoch: int | None = typer.Option(None, "--bellatrix-epoch", help="Bellatrix fork epoch"),
    host: str | None = typer.Option(None, "--host", help="Control RPC listen address"),
    port: int | None = typer.Option(None, "--port", help="Control RPC listen port"),
    readiness_timeout: float | None = typer.Option(
        None, "--readiness-timeout", help="Seconds a node may take to become ready"
    ),
    deposit_contract_bin: Path | None = typer.Option(
        None, "--deposit-contract-bin", help="Hex bytecode of the deposit contract to deploy"
    ),
) -> None:
    """Bootstrap a fleet and serve the control RPC until interrupted."""
    overrides: dict = {}
    if name is not None:
        overrides["name"] = name
    if data_dir is not None:
        overrides["data_dir"] = data_dir
    if num_tranches is not None:
        overrides["num_tranches"] = num_tranches
    if num_genesis_validators is not None:
        overrides["num_genesis_validators"] = num_genesis_validators
    if host is not None:
        overrides["api_host"] = host
    if port is not None:
        overrides["api_port"] = port
    if readiness_timeout is not None:
        overrides["readiness_timeout"] = readiness_timeout
    if deposit_contract_bin is not None:
        overrides["deposit_contract_bin"] = deposit_contract_bin
    config = FleetConfig(**overrides)

    spec_overrides: dict = {}
    if min_genesis_validator_count is not None:
        spec_overrides["min_genesis_active_validator_count"] = min_genesis_validator_count
    if genesis_in is not None:
        spec_overrides["min_genesis_time"] = int(time.time()) + genesis_in
    if altair_epoch is not None:
        spec_overrides["altair_fork_epoch"] = altair_epoch
    if bellatrix_epoch is not None:
        spec_overrides["bellatrix_fork_epoch"] = bellatrix_epoch
    chain_spec = ChainSpec(**spec_overrides)

    display_config(config, chain_spec)

    runtime = DockerRuntime()
    deployer = Deployer(
        runtime,
        readiness_timeout=config.readiness_timeout,
        readiness_interval=config.readiness_interval,
    )
    fleet = Fleet(config, chain_spec, deployer)
    try:
        fleet.bootstrap()
        serve(fleet, config.api_host, config.api_port)
    finally:
        fleet.stop()
        runtime.close()
