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

"""Discovery (discv5) bootnode recipe."""

from __future__ import annotations

import re

from fleet_manager.constants import BOOTNODE_ENR_PATTERN, LOOPBACK_ADDRESS, image_ref
from fleet_manager.node import Node
from fleet_manager.ports import PortName, port_ref
from fleet_manager.spec import Client, NodeKind, NodeSpec

_ENR_RE = re.compile(BOOTNODE_ENR_PATTERN)


class Bootnode:
    """Bootnode recipe whose readiness probe captures the node's ENR.

    Attributes:
        spec: Recipe to deploy.
        enr: ENR record, set once the probe has seen it in the logs.
    """

    def __init__(self, name: str = "bootnode") -> None:
        repository, tag = image_ref("bootnode")
        self.enr = ""
        self.spec = (
            NodeSpec()
            .with_name(name)
            .with_image(repository)
            .with_tag(tag)
            .with_role(NodeKind.BOOTNODE, Client.PRYSM)
            .with_args(
                "--debug",
                "--external-ip", LOOPBACK_ADDRESS,
                "--discv5-port", port_ref(PortName.BOOTNODE),
            )
            .with_probe(self._read_enr)
        )

    def _read_enr(self, node: Node) -> None:
        match = _ENR_RE.search(node.logs())
        if match is None:
            raise LookupError(f"{node.name} has not logged its ENR yet")
        self.enr = "enr:" + match.group(1)
