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

"""Tests for the docker runtime adapter's exit watch."""

from __future__ import annotations

import docker
import pytest
import requests

from fleet_manager.runtime import DockerRuntime


class _FakeApi:
    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls = 0

    def wait(self, container_id: str) -> dict:
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class _FakeClient:
    def __init__(self, api: _FakeApi) -> None:
        self.api = api


def _runtime(*outcomes, attempts: int = 3) -> tuple[DockerRuntime, _FakeApi]:
    api = _FakeApi(*outcomes)
    return DockerRuntime(_FakeClient(api), wait_attempts=attempts, wait_retry_interval=0), api


def test_wait_reports_the_exit_status():
    runtime, _ = _runtime({"StatusCode": 3, "Error": {"Message": "oom"}})

    result = runtime.wait("c" * 64)
    assert result.status_code == 3
    assert result.error == "oom"


@pytest.mark.parametrize(
    "error",
    [docker.errors.APIError("engine restarting"), requests.exceptions.ConnectionError("connection reset")],
)
def test_wait_survives_a_dropped_connection(error):
    runtime, api = _runtime(error, {"StatusCode": 0})

    result = runtime.wait("c" * 64)
    assert result.status_code == 0
    assert result.error is None
    assert api.calls == 2


def test_wait_gives_up_after_repeated_failures(caplog):
    runtime, api = _runtime(*[docker.errors.APIError("engine down")] * 3)

    result = runtime.wait("c" * 64)
    assert result.status_code == -1
    assert "wait failed" in result.error
    assert api.calls == 3
    assert "Lost track of container" in caplog.text


def test_removed_container_is_not_retried():
    runtime, api = _runtime(docker.errors.NotFound("no such container"), {"StatusCode": 0})

    result = runtime.wait("c" * 64)
    assert result.status_code == -1
    assert "container removed" in result.error
    assert api.calls == 1
