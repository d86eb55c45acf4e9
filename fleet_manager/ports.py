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

"""Host port allocation for nodes sharing the host network.

Every logical port name owns a range starting at its base port. Ranges are
1000 ports apart, so a fleet can run up to 1000 nodes referencing the same
name before two names collide; the allocator still never returns a number
twice, because the taken set is shared across names.
"""

from __future__ import annotations

import socket
import threading
from dataclasses import dataclass, field
from enum import Enum

from fleet_manager import logger
from fleet_manager.constants import LOOPBACK_ADDRESS, MAX_PORT
from fleet_manager.errors import PortExhaustionError


class PortName(str, Enum):
    """Logical port names referenced by node argument templates.

    Each member carries its base port and transport.
    """

    ETH1_HTTP = ("eth1.http", 8000, "tcp")
    ETH1_P2P = ("eth1.p2p", 9000, "tcp")
    ETH1_AUTHRPC = ("eth1.authrpc", 6000, "tcp")
    ETH2_P2P = ("eth2.p2p", 5000, "tcp")
    ETH2_HTTP = ("eth2.http", 7000, "tcp")
    PRYSM_GRPC = ("eth2.prysm.grpc", 4000, "tcp")
    BOOTNODE = ("eth.bootnode", 3000, "udp")

    def __new__(cls, value: str, base: int, transport: str) -> PortName:
        member = str.__new__(cls, value)
        member._value_ = value
        member.base = base
        member.transport = transport
        return member


def port_ref(name: PortName) -> str:
    """Return the argument placeholder resolved to the port of *name*.

    Placeholders use ``str.format`` field syntax, so literal braces in
    arguments must be doubled.
    """
    return "{port[" + name.value + "]}"


def is_port_free(port: int, transport: str = "tcp", host: str = LOOPBACK_ADDRESS) -> bool:
    """Check that *port* can be bound right now on *host*."""
    kind = socket.SOCK_DGRAM if transport == "udp" else socket.SOCK_STREAM
    with socket.socket(socket.AF_INET, kind) as sock:
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


@dataclass
class PortAllocator:
    """Thread-safe allocator of host ports keyed by logical name.

    Attributes:
        host: Address the bind check runs against.
        max_port: Highest port number that may be handed out.
    """

    host: str = LOOPBACK_ADDRESS
    max_port: int = MAX_PORT
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _taken: set[int] = field(default_factory=set, repr=False)
    _next: dict[PortName, int] = field(default_factory=dict, repr=False)

    def take(self, name: PortName | str) -> int:
        """Reserve the next free port for *name*.

        Args:
            name: Logical port name.

        Returns:
            A port number never returned before by this allocator.

        Raises:
            ValueError: If *name* is not a known port name.
            PortExhaustionError: If no bindable port is left in the range.
        """
        name = PortName(name)
        with self._lock:
            port = self._next.get(name, name.base)
            while port <= self.max_port:
                if port not in self._taken and is_port_free(port, name.transport, self.host):
                    self._taken.add(port)
                    self._next[name] = port + 1
                    logger.debug("Allocated port %d for %s", port, name.value)
                    return port
                port += 1
            raise PortExhaustionError(f"no free port left for {name.value} (started at {name.base})")

    def taken(self) -> set[int]:
        with self._lock:
            return set(self._taken)


default_allocator = PortAllocator()
