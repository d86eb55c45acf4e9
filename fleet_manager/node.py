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

"""Runtime handle for a deployed node."""

from __future__ import annotations

import threading
from pathlib import Path

from fleet_manager import logger
from fleet_manager.constants import LOOPBACK_ADDRESS
from fleet_manager.errors import CommandTemplateError, UnknownPortError
from fleet_manager.ports import PortAllocator, PortName
from fleet_manager.runtime import ContainerRuntime, ExitResult
from fleet_manager.spec import NodeRole, NodeSpec


class _PortLookup:
    """Mapping view used by str.format_map to resolve ``{port[<name>]}``."""

    def __init__(self, node: Node) -> None:
        self._node = node

    def __getitem__(self, name: str) -> int:
        return self._node._allocate(name)


class Node:
    """A live node started by the Deployer.

    Ports are allocated lazily the first time a name is referenced while the
    command is resolved, then fixed for the node's lifetime.
    """

    def __init__(
        self,
        spec: NodeSpec,
        runtime: ContainerRuntime,
        allocator: PortAllocator,
        *,
        address: str = LOOPBACK_ADDRESS,
    ) -> None:
        self._spec = spec
        self._runtime = runtime
        self._allocator = allocator
        self.address = address
        self.container_id: str | None = None
        self.mounts: dict[str, Path] = {}
        self._ports: dict[PortName, int] = {}
        self._exited = threading.Event()
        self._exit_result: ExitResult | None = None
        self._threads: list[threading.Thread] = []

    def __repr__(self) -> str:
        return f"Node(name={self.name!r}, image={self._spec.image!r})"

    @property
    def spec(self) -> NodeSpec:
        return self._spec

    @property
    def name(self) -> str:
        return self._spec.name

    @property
    def role(self) -> NodeRole | None:
        return self._spec.role

    # ========================================================================
    # Ports and addresses
    # ========================================================================

    def _allocate(self, name: PortName | str) -> int:
        port_name = PortName(name)
        if port_name not in self._ports:
            self._ports[port_name] = self._allocator.take(port_name)
        return self._ports[port_name]

    def resolve(self, arg: str) -> str:
        """Render one argument template, allocating any ports it references.

        Raises:
            CommandTemplateError: If the template is malformed or names an
                unknown port.
        """
        try:
            return arg.format_map({"port": _PortLookup(self)})
        except (KeyError, IndexError, AttributeError, ValueError) as e:
            raise CommandTemplateError(f"{self.name}: cannot resolve argument {arg!r}: {e}") from e

    def port(self, name: PortName | str) -> int:
        """Return the port allocated for *name*.

        Raises:
            UnknownPortError: If the node's command never referenced *name*.
        """
        try:
            return self._ports[PortName(name)]
        except (KeyError, ValueError):
            raise UnknownPortError(f"{self.name}: port {name!r} was never allocated") from None

    @property
    def ports(self) -> dict[str, int]:
        return {name.value: port for name, port in self._ports.items()}

    def host_port(self, name: PortName | str) -> str:
        return f"{self.address}:{self.port(name)}"

    def addr(self, name: PortName | str) -> str:
        """Return the HTTP endpoint of the port allocated for *name*."""
        return f"http://{self.host_port(name)}"

    # ========================================================================
    # Process lifecycle
    # ========================================================================

    def start_watchers(self) -> None:
        """Start the exit watcher and, if the spec has outputs, the log forwarder."""
        watcher = threading.Thread(target=self._watch_exit, name=f"{self.name}-exit", daemon=True)
        self._threads.append(watcher)
        watcher.start()
        if self._spec.outputs:
            forwarder = threading.Thread(target=self._forward_logs, name=f"{self.name}-logs", daemon=True)
            self._threads.append(forwarder)
            forwarder.start()

    def _watch_exit(self) -> None:
        result = self._runtime.wait(self.container_id)
        self._exit_result = result
        self._exited.set()
        logger.info("Node %s exited with status %d", self.name, result.status_code)

    def _forward_logs(self) -> None:
        try:
            for chunk in self._runtime.stream_logs(self.container_id):
                for sink in self._spec.outputs:
                    sink.write(chunk)
                    sink.flush()
        except Exception as e:
            logger.error("Log forwarding for %s failed: %s", self.name, e)

    @property
    def exited(self) -> bool:
        return self._exited.is_set()

    @property
    def exit_event(self) -> threading.Event:
        return self._exited

    @property
    def exit_result(self) -> ExitResult | None:
        return self._exit_result

    @property
    def watcher_alive(self) -> bool:
        return bool(self._threads) and self._threads[0].is_alive()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the process exits. Returns False on timeout."""
        return self._exited.wait(timeout)

    def logs(self) -> str:
        """Fetch the node's full combined output."""
        return self._runtime.logs(self.container_id).decode("utf-8", errors="replace")

    def stop(self) -> None:
        """Ask the runtime to stop the container; does not wait for exit."""
        if self.container_id is None or self.exited:
            return
        self._runtime.stop(self.container_id)
