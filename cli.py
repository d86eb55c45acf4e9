#!/usr/bin/env python3
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

"""
cli.py - Disposable Ethereum test networks on a single docker host.

Subcommands:
    server   Bootstrap a fleet and serve its control RPC (start)
    node     Deploy and inspect nodes (deploy-beacon, deploy-validator, list, status)
    deposit  Create and inspect validator deposits (create, list)
    e2e      Run end-to-end scenarios against real clients (run)

Examples:
    # Bootstrap a fleet with 64 genesis validators in 4 tranches
    ./cli.py server start --num-genesis-validators 64 --num-tranches 4

    # Two lighthouse beacon nodes
    ./cli.py node deploy-beacon lighthouse --count 2

    # A teku validator on genesis tranche 1 with its own beacon node
    ./cli.py node deploy-validator teku --tranche 1 --with-beacon

    # Fund 8 more validators
    ./cli.py deposit create --num-validators 8

    # Bootstrap a fleet and check that prysm, lighthouse and teku reach epoch 3
    ./cli.py e2e run

Environment Variables:
    FLEET_* configures the server (see FleetConfig), FLEET_SPEC_* the chain
    spec, and FLEET_ADDRESS the control plane the client commands talk to.

For detailed usage information, run: ./cli.py --help
"""

from __future__ import annotations

import logging
import sys

import typer

from fleet_manager import console
from fleet_manager.commands import deposit_cmd, e2e_cmd, node_cmd, server_cmd

app = typer.Typer(
    help="Disposable multi-node Ethereum test networks.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level"),
) -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


app.add_typer(server_cmd.app, name="server")
app.add_typer(node_cmd.app, name="node")
app.add_typer(deposit_cmd.app, name="deposit")
app.add_typer(e2e_cmd.app, name="e2e")


def main() -> None:
    try:
        app()
    except Exception as e:
        console.print(f"[red]\u274c {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
