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

"""Container runtime adapter built on the docker SDK."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Mapping, Protocol, Sequence

import docker
import requests
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_fixed

from fleet_manager import logger
from fleet_manager.constants import CONTAINER_WAIT_ATTEMPTS, CONTAINER_WAIT_RETRY_SECONDS
from fleet_manager.errors import RuntimeLaunchError


@dataclass(frozen=True)
class ExitResult:
    """How a container stopped running.

    Attributes:
        status_code: Process exit status, or -1 if the wait itself failed.
        error: Runtime-reported error message, if any.
    """

    status_code: int
    error: str | None = None


@dataclass(frozen=True)
class LaunchRequest:
    """Everything the runtime needs to create and start one container."""

    image: str
    args: Sequence[str]
    entrypoint: Sequence[str] | None
    labels: Mapping[str, str]
    binds: Mapping[str, str]
    user: str | None = None


class ContainerRuntime(Protocol):
    """Operations the deployment engine needs from a container runtime."""

    def ensure_image(self, repository: str, tag: str) -> None: ...

    def start(self, request: LaunchRequest) -> str: ...

    def wait(self, container_id: str) -> ExitResult: ...

    def stream_logs(self, container_id: str) -> Iterator[bytes]: ...

    def logs(self, container_id: str) -> bytes: ...

    def stop(self, container_id: str) -> None: ...


def _transient_wait_error(error: BaseException) -> bool:
    if isinstance(error, docker.errors.NotFound):
        return False
    return isinstance(error, (docker.errors.DockerException, requests.exceptions.RequestException))


class DockerRuntime:
    """ContainerRuntime backed by the local docker engine.

    All containers run on the host network; bind mounts are read-write.
    """

    def __init__(
        self,
        client: docker.DockerClient | None = None,
        *,
        wait_attempts: int = CONTAINER_WAIT_ATTEMPTS,
        wait_retry_interval: float = CONTAINER_WAIT_RETRY_SECONDS,
    ) -> None:
        self._client = client or docker.from_env()
        self._api = self._client.api
        self.wait_attempts = wait_attempts
        self.wait_retry_interval = wait_retry_interval

    def ensure_image(self, repository: str, tag: str) -> None:
        """Pull ``repository:tag`` unless it is already present locally.

        Raises:
            RuntimeLaunchError: If the pull fails.
        """
        image = f"{repository}:{tag}"
        try:
            self._api.inspect_image(image)
            return
        except docker.errors.ImageNotFound:
            pass
        except docker.errors.APIError as e:
            raise RuntimeLaunchError(f"failed to inspect image {image}: {e}") from e

        logger.info("Pulling image %s", image)
        try:
            for event in self._api.pull(repository, tag=tag, stream=True, decode=True):
                if "error" in event:
                    raise RuntimeLaunchError(f"failed to pull {image}: {event['error']}")
                status = event.get("status")
                if status:
                    logger.debug("%s: %s %s", image, status, event.get("progress", ""))
        except docker.errors.APIError as e:
            raise RuntimeLaunchError(f"failed to pull {image}: {e}") from e

    def start(self, request: LaunchRequest) -> str:
        """Create and start a container.

        Returns:
            The container id.

        Raises:
            RuntimeLaunchError: If the engine rejects the container.
        """
        kwargs: dict = {
            "command": list(request.args),
            "labels": dict(request.labels),
            "network_mode": "host",
            "volumes": {local: {"bind": mount, "mode": "rw"} for local, mount in request.binds.items()},
            "detach": True,
        }
        if request.entrypoint is not None:
            kwargs["entrypoint"] = list(request.entrypoint)
        if request.user:
            kwargs["user"] = request.user
        try:
            container = self._client.containers.run(request.image, **kwargs)
        except docker.errors.DockerException as e:
            raise RuntimeLaunchError(f"failed to start {request.image}: {e}") from e
        return container.id

    def wait(self, container_id: str) -> ExitResult:
        """Block until the container stops.

        Engine and connection errors are retried; only a container that is
        gone or a wait that keeps failing yields status -1.
        """
        retryer = Retrying(
            stop=stop_after_attempt(self.wait_attempts),
            wait=wait_fixed(self.wait_retry_interval),
            retry=retry_if_exception(_transient_wait_error),
            before_sleep=lambda state: logger.warning(
                "Waiting on container %s failed (attempt %d), retrying: %s",
                container_id[:12],
                state.attempt_number,
                state.outcome.exception(),
            ),
            reraise=True,
        )
        try:
            result = retryer(self._api.wait, container_id)
        except docker.errors.NotFound as e:
            return ExitResult(status_code=-1, error=f"container removed: {e}")
        except (docker.errors.DockerException, requests.exceptions.RequestException) as e:
            logger.error(
                "Lost track of container %s after %d wait attempts, treating it as exited: %s",
                container_id[:12],
                self.wait_attempts,
                e,
            )
            return ExitResult(status_code=-1, error=f"wait failed: {e}")
        error = result.get("Error") or None
        if isinstance(error, dict):
            error = error.get("Message") or None
        return ExitResult(status_code=result.get("StatusCode", -1), error=error)

    def stream_logs(self, container_id: str) -> Iterator[bytes]:
        return self._api.logs(container_id, stdout=True, stderr=True, stream=True, follow=True)

    def logs(self, container_id: str) -> bytes:
        return self._api.logs(container_id, stdout=True, stderr=True)

    def stop(self, container_id: str) -> None:
        try:
            self._api.stop(container_id)
        except docker.errors.NotFound:
            logger.debug("Container %s already gone", container_id[:12])

    def close(self) -> None:
        self._client.close()
