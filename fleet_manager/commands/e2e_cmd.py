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

"""End-to-end subcommands (run)."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from fleet_manager import console
from fleet_manager.config import FleetConfig, display_config
from fleet_manager.constants import DEFAULT_GENESIS_DELAY_SECONDS, E2E_TARGET_EPOCH
from fleet_manager.deployer import Deployer
from fleet_manager.e2e import (
    SINGLE_DEPLOYMENT_FLEET,
    BeaconReport,
    run_single_deployment,
    single_deployment_chain_spec,
)
from fleet_manager.fleet import Fleet
from fleet_manager.runtime import DockerRuntime

app = typer.Typer(help="Run end-to-end scenarios against real clients.")


def print_reports(reports: list[BeaconReport]) -> None:
    table = Table("Beacon", "Head slot", "Sync distance", "Syncing")
    for report in reports:
        syncing = "yes" if report.is_syncing else "no"
        table.add_row(report.name, str(report.head_slot), str(report.sync_distance), syncing)
    console.print(table)


@app.command("run")
def run(
    name: str | None = typer.Option(None, "--name", help="Fleet name (artifacts go to e2e-<name>)"),
    data_dir: Path | None = typer.Option(None, "--data-dir", help="Parent directory of the fleet artifacts"),
    genesis_in: int = typer.Option(
        DEFAULT_GENESIS_DELAY_SECONDS, "--genesis-in", help="Seconds from now until genesis"
    ),
    epoch: int = typer.Option(E2E_TARGET_EPOCH, "--epoch", min=1, help="Epoch to reach before checking sync status"),
    readiness_timeout: float | None = typer.Option(
        None, "--readiness-timeout", help="Seconds a node may take to become ready"
    ),
) -> None:
    """Bootstrap a fleet and run the single-deployment scenario on it."""
    overrides: dict = dict(SINGLE_DEPLOYMENT_FLEET)
    if name is not None:
        overrides["name"] = name
    if data_dir is not None:
        overrides["data_dir"] = data_dir
    if readiness_timeout is not None:
        overrides["readiness_timeout"] = readiness_timeout
    config = FleetConfig(**overrides)
    chain_spec = single_deployment_chain_spec(genesis_in)
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
        reports = run_single_deployment(fleet, target_epoch=epoch)
    finally:
        fleet.stop()
        runtime.close()
    print_reports(reports)
    console.print("[green]\u2705 Scenario passed[/green]")
