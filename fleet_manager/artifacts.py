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

"""Per-fleet artifact directory: chain files, key dumps and node logs."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import BinaryIO

from fleet_manager.constants import FLEET_DIR_PREFIX, NODE_LOG_TEMPLATE


class FleetArtifacts:
    """Owns the ``e2e-<name>`` directory of one fleet run."""

    def __init__(self, data_dir: Path, fleet_name: str) -> None:
        self.root = Path(data_dir) / f"{FLEET_DIR_PREFIX}{fleet_name}"
        self._lock = threading.Lock()
        self._logs: list[BinaryIO] = []

    def create(self) -> None:
        """Create the directory; fails if a previous run left it behind."""
        self.root.mkdir(parents=True, exist_ok=False)

    def write(self, name: str, content: bytes | str) -> Path:
        path = self.root / name
        if isinstance(content, str):
            path.write_text(content)
        else:
            path.write_bytes(content)
        return path

    def open_log(self, node_name: str) -> BinaryIO:
        """Open the log file a node's output is forwarded to."""
        sink = open(self.root / NODE_LOG_TEMPLATE.format(name=node_name), "ab")
        with self._lock:
            self._logs.append(sink)
        return sink

    def close(self) -> None:
        with self._lock:
            logs, self._logs = self._logs, []
        for sink in logs:
            sink.close()
