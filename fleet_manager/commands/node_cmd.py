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

"""Node subcommands (deploy-beacon, deploy-validator, list, status)."""

from __future__ import annotations

import typer
from rich.table import Table

from fleet_manager import console
from fleet_manager.client import FleetClient
from fleet_manager.constants import DEFAULT_API_ADDRESS
from fleet_manager.models import BeaconDeploy, NodeDeployRequest, NodeInfo, ValidatorDeploy
from fleet_manager.spec import Client

app = typer.Typer(help="Deploy and inspect fleet nodes.")

ADDRESS_OPTION = typer.Option(DEFAULT_API_ADDRESS, "--address", envvar="FLEET_ADDRESS", help="Control plane address")


def print_nodes(nodes: list[NodeInfo]) -> None:
    table = Table("Name", "Type", "Client", "Ports")
    for node in nodes:
        ports = ", ".join(f"{name}={port}" for name, port in sorted(node.ports.items()))
        table.add_row(
            node.name,
            node.kind.value if node.kind else "-",
            node.client.value if node.client else "-",
            ports or "-",
        )
    console.print(table)


@app.command("deploy-beacon")
def deploy_beacon(
    client: Client = typer.Argument(..., help="Consensus client"),
    count: int = typer.Option(1, "--count", help="Number of beacon nodes"),
    repo: str | None = typer.Option(None, "--repo", help="Image repository override"),
    tag: str | None = typer.Option(None, "--tag", help="Image tag override"),
    address: str = ADDRESS_OPTION,
) -> None:
    """Deploy beacon nodes."""
    request = NodeDeployRequest(client=client, repo=repo, tag=tag, params=BeaconDeploy(count=count))
    with FleetClient(address) as fleet:
        nodes = fleet.deploy(request)
    console.print(f"[green]\u2705 Deployed {len(nodes)} node(s)[/green]")
    print_nodes(nodes)


@app.command("deploy-validator")
def deploy_validator(
    client: Client = typer.Argument(..., help="Consensus client"),
    num_validators: int = typer.Option(0, "--num-validators", help="Fund a new tranche of this size (0 uses --tranche)"),
    tranche: int = typer.Option(0, "--tranche", help="Existing tranche to use"),
    with_beacon: bool = typer.Option(False, "--with-beacon", help="Deploy a beacon node for the validator"),
    beacon_count: int = typer.Option(1, "--beacon-count", help="Beacon nodes to deploy with --with-beacon"),
    beacon: str | None = typer.Option(None, "--beacon", help="Name of the beacon node to attach to"),
    repo: str | None = typer.Option(None, "--repo", help="Image repository override"),
    tag: str | None = typer.Option(None, "--tag", help="Image tag override"),
    address: str = ADDRESS_OPTION,
) -> None:
    """Deploy a validator client, optionally with its own beacon nodes."""
    params = ValidatorDeploy(
        num_validators=num_validators,
        tranche=tranche,
        with_beacon=with_beacon,
        beacon_count=beacon_count,
        beacon=beacon,
    )
    request = NodeDeployRequest(client=client, repo=repo, tag=tag, params=params)
    with FleetClient(address) as fleet:
        nodes = fleet.deploy(request)
    console.print(f"[green]\u2705 Deployed {len(nodes)} node(s)[/green]")
    print_nodes(nodes)


@app.command("list")
def list_nodes(address: str = ADDRESS_OPTION) -> None:
    """List every node of the fleet."""
    with FleetClient(address) as fleet:
        print_nodes(fleet.list_nodes())


@app.command("status")
def status(
    name: str = typer.Argument(..., help="Node name"),
    address: str = ADDRESS_OPTION,
) -> None:
    """Show one node."""
    with FleetClient(address) as fleet:
        node = fleet.node_status(name)
    print_nodes([node])
    for key, value in sorted(node.labels.items()):
        console.print(f"[yellow]{key}:[/yellow] {value}")
    if node.exited:
        console.print("[yellow]\u26a0\ufe0f  Node has exited[/yellow]")
