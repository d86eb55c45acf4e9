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

"""Exception hierarchy for fleet orchestration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fleet_manager.deposit import DepositResult
    from fleet_manager.node import Node


class FleetError(RuntimeError):
    """Base class for every error raised by fleet_manager."""


# ============================================================================
# Deployment
# ============================================================================

class ResourceStagingError(FleetError):
    """A node's mounts, files or command could not be prepared."""


class MountNotFoundError(ResourceStagingError):
    """A staged file does not fall under any declared mount root."""


class CommandTemplateError(ResourceStagingError):
    """An argument template could not be rendered."""


class PortExhaustionError(FleetError):
    """No free port is left for a logical port name."""


class RuntimeLaunchError(FleetError):
    """The container runtime failed to pull, create or start a container."""


class ReadinessError(FleetError):
    """A deployed node never became ready.

    The node is attached for diagnosis; its container is left running.
    """

    def __init__(self, message: str, node: Node | None = None) -> None:
        super().__init__(message)
        self.node = node


class ReadinessTimeoutError(ReadinessError, TimeoutError):
    """The readiness probe did not succeed before the deadline."""


class NodeExitedError(ReadinessError):
    """The node's process exited while readiness was being polled."""


class UnknownPortError(KeyError):
    """A port name was looked up that the node never allocated."""


# ============================================================================
# Polling
# ============================================================================

class PollTimeoutError(FleetError, TimeoutError):
    """poll_until ran out of time or attempts."""


class PollCancelledError(FleetError):
    """poll_until was cancelled by its event."""


# ============================================================================
# Ledger and deposits
# ============================================================================

class TrancheStateError(FleetError):
    """A tranche operation was rejected by the ledger."""


class TrancheNotFoundError(TrancheStateError):
    """No tranche exists at the requested index."""


class TrancheConsumedError(TrancheStateError):
    """The tranche already belongs to a validator."""


class DepositSubmissionError(FleetError):
    """At least one deposit in a batch failed.

    Attributes:
        results: Per-account outcomes of the whole batch, when available.
    """

    def __init__(self, message: str, results: list[DepositResult] | None = None) -> None:
        super().__init__(message)
        self.results = results or []


class DepositTimeoutError(DepositSubmissionError):
    """A transaction receipt did not appear in time."""


class JsonRpcError(FleetError):
    """The execution node answered a JSON-RPC call with an error."""

    def __init__(self, method: str, error: Any) -> None:
        super().__init__(f"{method}: {error}")
        self.method = method
        self.error = error


# ============================================================================
# Control plane
# ============================================================================

class NoBeaconFoundError(FleetError):
    """A validator has no beacon node to attach to."""


class UnknownClientError(FleetError):
    """No recipe is registered for the requested client and node kind."""


class NodeNotFoundError(FleetError):
    """No registered node has the requested name."""


class FleetStateError(FleetError):
    """The fleet is not in a state that accepts the request."""


class FleetBootstrapError(FleetError):
    """The fleet could not be brought up."""


class GenesisError(FleetError):
    """The genesis state could not be built from the given inputs."""


# ============================================================================
# End-to-end scenarios
# ============================================================================

class ScenarioError(FleetError):
    """A running network failed an end-to-end scenario check."""
