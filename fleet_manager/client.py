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

"""Client of the control RPC."""

from __future__ import annotations

import httpx

from fleet_manager.constants import DEFAULT_API_ADDRESS, DEFAULT_API_TIMEOUT_SECONDS
from fleet_manager.models import (
    DepositCreateRequest,
    DepositCreateResponse,
    DepositListResponse,
    NodeDeployRequest,
    NodeDeployResponse,
    NodeInfo,
    NodeListResponse,
    NodeStatusResponse,
    TrancheInfo,
)


class FleetClientError(Exception):
    """The control plane rejected a request or could not be reached.

    Attributes:
        status: HTTP status, or None if no response was received.
        detail: Error detail reported by the server.
    """

    def __init__(self, message: str, status: int | None = None, detail: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.detail = detail


class FleetClient:
    """Typed wrapper around the control RPC routes.

    Args:
        address: ``host:port`` of the control plane, or a full URL.
        timeout: Request timeout; deploys wait for readiness, so keep it long.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        address: str = DEFAULT_API_ADDRESS,
        timeout: float = DEFAULT_API_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        base_url = address if "://" in address else f"http://{address}"
        self._client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def __enter__(self) -> FleetClient:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, body: dict | None = None) -> dict:
        try:
            response = self._client.request(method, path, json=body)
        except httpx.HTTPError as e:
            raise FleetClientError(f"cannot reach control plane: {e}") from e
        if response.is_error:
            try:
                payload = response.json()
            except ValueError:
                payload = {}
            detail = payload.get("detail", response.text) if isinstance(payload, dict) else response.text
            raise FleetClientError(f"{method} {path} failed ({response.status_code}): {detail}",
                                   status=response.status_code, detail=str(detail))
        return response.json()

    def deploy(self, request: NodeDeployRequest) -> list[NodeInfo]:
        data = self._request("POST", "/v1/nodes", request.model_dump(mode="json"))
        return NodeDeployResponse.model_validate(data).nodes

    def list_nodes(self) -> list[NodeInfo]:
        return NodeListResponse.model_validate(self._request("GET", "/v1/nodes")).nodes

    def node_status(self, name: str) -> NodeInfo:
        return NodeStatusResponse.model_validate(self._request("GET", f"/v1/nodes/{name}")).node

    def create_deposit(self, num_validators: int) -> TrancheInfo:
        body = DepositCreateRequest(num_validators=num_validators).model_dump()
        return DepositCreateResponse.model_validate(self._request("POST", "/v1/deposits", body)).tranche

    def list_deposits(self) -> list[TrancheInfo]:
        return DepositListResponse.model_validate(self._request("GET", "/v1/deposits")).tranches
