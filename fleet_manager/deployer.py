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

"""Deployment engine: turns a NodeSpec into a running, ready Node."""

from __future__ import annotations

import tempfile
from pathlib import Path, PurePosixPath

from fleet_manager import logger
from fleet_manager.constants import (
    DEFAULT_READINESS_INTERVAL_SECONDS,
    DEFAULT_READINESS_TIMEOUT_SECONDS,
    MOUNT_STAGING_PREFIX,
)
from fleet_manager.errors import (
    MountNotFoundError,
    NodeExitedError,
    PollCancelledError,
    PollTimeoutError,
    ReadinessTimeoutError,
    ResourceStagingError,
)
from fleet_manager.node import Node
from fleet_manager.ports import PortAllocator, default_allocator
from fleet_manager.runtime import ContainerRuntime, LaunchRequest
from fleet_manager.spec import NodeSpec
from fleet_manager.utils import poll_until


def owning_mount(path: str, mounts: tuple[str, ...]) -> str | None:
    """Return the longest mount root that contains *path*, or None."""
    target = PurePosixPath(path)
    best: str | None = None
    for mount in mounts:
        root = PurePosixPath(mount)
        if target == root or root in target.parents:
            if best is None or len(root.parts) > len(PurePosixPath(best).parts):
                best = mount
    return best


class Deployer:
    """Deploys NodeSpecs onto a container runtime.

    Args:
        runtime: Container runtime adapter.
        allocator: Port allocator shared by every node this deployer starts.
        staging_root: Parent directory for mount staging dirs, or None for
            the system temp directory.
        readiness_timeout: Seconds to wait for a probe to succeed.
        readiness_interval: Seconds between probe attempts.
    """

    def __init__(
        self,
        runtime: ContainerRuntime,
        allocator: PortAllocator | None = None,
        *,
        staging_root: Path | None = None,
        readiness_timeout: float = DEFAULT_READINESS_TIMEOUT_SECONDS,
        readiness_interval: float = DEFAULT_READINESS_INTERVAL_SECONDS,
    ) -> None:
        self.runtime = runtime
        self.allocator = allocator or default_allocator
        self.staging_root = staging_root
        self.readiness_timeout = readiness_timeout
        self.readiness_interval = readiness_interval

    def deploy(self, spec: NodeSpec) -> Node:
        """Start a node and block until its readiness probe passes.

        Args:
            spec: Recipe of the node.

        Returns:
            The ready Node.

        Raises:
            ResourceStagingError: If mounts, files or arguments cannot be prepared.
            PortExhaustionError: If a referenced port cannot be allocated.
            RuntimeLaunchError: If the image or container cannot be started.
            ReadinessTimeoutError: If the probe kept failing until the deadline.
            NodeExitedError: If the process exited before becoming ready.
        """
        node = Node(spec, self.runtime, self.allocator)
        node.mounts = self._stage_mounts(spec)
        self.runtime.ensure_image(spec.repository, spec.tag)
        args = [node.resolve(arg) for arg in spec.args]

        node.container_id = self.runtime.start(
            LaunchRequest(
                image=spec.image,
                args=args,
                entrypoint=spec.entrypoint,
                labels=spec.labels,
                binds={str(local): mount for mount, local in node.mounts.items()},
                user=spec.user,
            )
        )
        logger.info("Started node %s (%s) as %s", spec.name, spec.image, node.container_id[:12])
        node.start_watchers()

        if spec.probe is not None:
            self._wait_ready(node)
        return node

    def _stage_mounts(self, spec: NodeSpec) -> dict[str, Path]:
        """Create one fresh host directory per mount and write staged files."""
        prefix = f"{MOUNT_STAGING_PREFIX}{spec.name or 'anon'}-"
        try:
            mounts = {
                mount: Path(tempfile.mkdtemp(prefix=prefix, dir=self.staging_root))
                for mount in spec.mounts
            }
            for path, content in spec.files.items():
                mount = owning_mount(path, spec.mounts)
                if mount is None:
                    raise MountNotFoundError(f"{spec.name}: no mount contains {path}")
                local = mounts[mount] / PurePosixPath(path).relative_to(mount)
                local.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
                local.write_bytes(content)
                local.chmod(0o644)
        except OSError as e:
            raise ResourceStagingError(f"{spec.name}: failed to stage mounts: {e}") from e
        return mounts

    def _wait_ready(self, node: Node) -> None:
        def check() -> bool | None:
            node.spec.probe(node)
            return True

        try:
            poll_until(
                check,
                interval=self.readiness_interval,
                timeout=self.readiness_timeout,
                cancel=node.exit_event,
                what=f"node {node.name} to become ready",
            )
        except PollCancelledError as e:
            result = node.exit_result
            status = result.status_code if result is not None else "unknown"
            raise NodeExitedError(
                f"node {node.name} stopped before becoming ready (exit status {status})", node
            ) from e
        except PollTimeoutError as e:
            raise ReadinessTimeoutError(
                f"node {node.name} not ready after {self.readiness_timeout}s: {e.__cause__ or 'probe gave no result'}", node
            ) from e
        logger.info("Node %s is ready", node.name)
