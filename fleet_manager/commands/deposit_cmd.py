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

"""Deposit subcommands (create, list)."""

from __future__ import annotations

import typer
from rich.table import Table

from fleet_manager import console
from fleet_manager.client import FleetClient
from fleet_manager.commands.node_cmd import ADDRESS_OPTION
from fleet_manager.models import TrancheInfo

app = typer.Typer(help="Create and inspect validator deposits.")


def print_tranches(tranches: list[TrancheInfo]) -> None:
    table = Table("Index", "Path", "Validator", "Num accounts")
    for tranche in tranches:
        table.add_row(str(tranche.index), tranche.path, tranche.consumer or "-", str(tranche.num_accounts))
    console.print(table)


@app.command("create")
def create(
    num_validators: int = typer.Option(..., "--num-validators", min=1, help="Accounts to create and deposit"),
    address: str = ADDRESS_OPTION,
) -> None:
    """Create a tranche of new accounts and deposit them."""
    with FleetClient(address) as fleet:
        tranche = fleet.create_deposit(num_validators)
    console.print(f"[green]\u2705 Tranche {tranche.index} funded with {tranche.num_accounts} deposits[/green]")
    print_tranches([tranche])


@app.command("list")
def list_deposits(address: str = ADDRESS_OPTION) -> None:
    """List every tranche and the validator using it."""
    with FleetClient(address) as fleet:
        print_tranches(fleet.list_deposits())
