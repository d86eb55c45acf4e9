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
"""Tests for the Node handle: port resolution, addresses and lifecycle."""

from __future__ import annotations

import pytest

from fleet_manager.errors import CommandTemplateError, UnknownPortError
from fleet_manager.node import Node
from fleet_manager.ports import PortName, port_ref
from fleet_manager.runtime import LaunchRequest
from fleet_manager.spec import NodeSpec


def _node(runtime, allocator, *args: str) -> Node:
    return Node(NodeSpec().with_name("n0").with_args(*args), runtime, allocator)


def test_repeated_references_resolve_to_one_port(runtime, allocator):
    node = _node(runtime, allocator)

    first = node.resolve("--http=" + port_ref(PortName.ETH2_HTTP))
    second = node.resolve(port_ref(PortName.ETH2_HTTP))

    assert first == f"--http={second}"
    assert node.port(PortName.ETH2_HTTP) == int(second)
    assert allocator.taken() == {int(second)}


def test_addresses(runtime, allocator):
    node = _node(runtime, allocator)
    port = node.resolve(port_ref(PortName.PRYSM_GRPC))

    assert node.host_port(PortName.PRYSM_GRPC) == f"127.0.0.1:{port}"
    assert node.addr("eth2.prysm.grpc") == f"http://127.0.0.1:{port}"
    assert node.addr(PortName.PRYSM_GRPC) == node.addr(PortName.PRYSM_GRPC)
    assert node.ports == {"eth2.prysm.grpc": int(port)}


def test_unreferenced_port_is_a_key_error(runtime, allocator):
    node = _node(runtime, allocator)
    node.resolve(port_ref(PortName.ETH2_HTTP))

    with pytest.raises(UnknownPortError):
        node.addr(PortName.ETH2_P2P)
    with pytest.raises(KeyError):
        node.port("not-a-port")


@pytest.mark.parametrize("template", ["{port[eth9.http]}", "{peer}", "{port[eth2.http]", "{0}"])
def test_malformed_templates(runtime, allocator, template):
    node = _node(runtime, allocator)

    with pytest.raises(CommandTemplateError):
        node.resolve(template)


def test_escaped_braces_pass_through(runtime, allocator):
    node = _node(runtime, allocator)
    assert node.resolve('{{"a": 1}}') == '{"a": 1}'


def test_exit_notification(runtime, allocator):
    node = _node(runtime, allocator)
    node.container_id = runtime.start(LaunchRequest("example/node:latest", [], None, {}, {}))
    node.start_watchers()

    assert not node.wait(timeout=0.05)
    assert not node.exited
    node.stop()

    assert node.wait(timeout=2)
    assert node.exited
    assert node.exit_result.status_code == 0
    # a second stop on an exited node does not reach the runtime
    node.stop()
    assert runtime.stopped == [node.container_id]


def test_stop_before_launch_is_a_noop(runtime, allocator):
    _node(runtime, allocator).stop()
    assert runtime.stopped == []


def test_logs_are_decoded(runtime, allocator):
    runtime.image_logs["example/node:latest"] = "café\n".encode() + b"\xff"
    node = _node(runtime, allocator)
    node.container_id = runtime.start(LaunchRequest("example/node:latest", [], None, {}, {}))

    assert node.logs() == "café\n\ufffd"
