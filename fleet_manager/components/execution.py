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

"""Execution-layer node recipe (geth in dev mode)."""

from __future__ import annotations

from fleet_manager.constants import image_ref
from fleet_manager.jsonrpc import EthClient
from fleet_manager.node import Node
from fleet_manager.ports import PortName, port_ref
from fleet_manager.spec import Client, NodeKind, NodeSpec


def rpc_ready(node: Node) -> None:
    """Readiness probe: the node answers web3_clientVersion."""
    client = EthClient(node.addr(PortName.ETH1_HTTP))
    try:
        client.client_version()
    finally:
        client.close()


def execution_node(name: str = "execution", block_period: int = 1) -> NodeSpec:
    """Single-node dev chain with one unlocked, prefunded account.

    Args:
        name: Node name.
        block_period: Seconds between blocks.
    """
    repository, tag = image_ref("execution", "geth")
    return (
        NodeSpec()
        .with_name(name)
        .with_image(repository)
        .with_tag(tag)
        .with_role(NodeKind.EXECUTION, Client.GETH)
        .with_args(
            "--dev",
            "--dev.period", str(block_period),
            "--http", "--http.addr", "0.0.0.0",
            "--http.port", port_ref(PortName.ETH1_HTTP),
            "--http.api", "eth,net,web3",
            "--port", port_ref(PortName.ETH1_P2P),
            "--authrpc.port", port_ref(PortName.ETH1_AUTHRPC),
            "--nodiscover",
        )
        .with_probe(rpc_ready)
    )
