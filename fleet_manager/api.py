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

"""HTTP/JSON control RPC served by FastAPI."""

from __future__ import annotations

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fleet_manager import logger
from fleet_manager.errors import (
    FleetError,
    FleetStateError,
    NoBeaconFoundError,
    NodeNotFoundError,
    TrancheConsumedError,
    TrancheNotFoundError,
    UnknownClientError,
)
from fleet_manager.fleet import Fleet
from fleet_manager.models import (
    DepositCreateRequest,
    DepositCreateResponse,
    DepositListResponse,
    ErrorResponse,
    NodeDeployRequest,
    NodeDeployResponse,
    NodeInfo,
    NodeListResponse,
    NodeStatusResponse,
    TrancheInfo,
)

# Most specific first; the first matching class decides the status.
ERROR_STATUS: list[tuple[type[Exception], int]] = [
    (NodeNotFoundError, 404),
    (TrancheNotFoundError, 404),
    (TrancheConsumedError, 409),
    (FleetStateError, 409),
    (NoBeaconFoundError, 400),
    (UnknownClientError, 400),
    (ValueError, 400),
    (FleetError, 500),
]


def status_for(error: Exception) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 500


def create_app(fleet: Fleet) -> FastAPI:
    """Build the control RPC application for *fleet*."""
    app = FastAPI(title="Fleet control plane", version="0.1.0")

    async def handle_error(request: Request, exc: Exception) -> JSONResponse:
        status = status_for(exc)
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        body = ErrorResponse(error=type(exc).__name__, detail=str(exc))
        return JSONResponse(status_code=status, content=body.model_dump())

    app.add_exception_handler(FleetError, handle_error)
    app.add_exception_handler(ValueError, handle_error)

    # Sync handlers run in the threadpool, so blocking deploys do not stall the loop.

    @app.post("/v1/nodes", response_model=NodeDeployResponse)
    def node_deploy(req: NodeDeployRequest):
        """Deploy beacon or validator nodes."""
        nodes = fleet.deploy(req)
        return NodeDeployResponse(nodes=[NodeInfo.from_node(node) for node in nodes])

    @app.get("/v1/nodes", response_model=NodeListResponse)
    def node_list():
        return NodeListResponse(nodes=[NodeInfo.from_node(node) for node in fleet.list_nodes()])

    @app.get("/v1/nodes/{name}", response_model=NodeStatusResponse)
    def node_status(name: str):
        return NodeStatusResponse(node=NodeInfo.from_node(fleet.node_status(name)))

    @app.post("/v1/deposits", response_model=DepositCreateResponse)
    def deposit_create(req: DepositCreateRequest):
        """Create a tranche of new accounts and deposit them on-chain."""
        tranche = fleet.create_deposit(req.num_validators)
        return DepositCreateResponse(tranche=TrancheInfo.from_tranche(tranche))

    @app.get("/v1/deposits", response_model=DepositListResponse)
    def deposit_list():
        return DepositListResponse(tranches=[TrancheInfo.from_tranche(t) for t in fleet.list_deposits()])

    return app


def serve(fleet: Fleet, host: str, port: int) -> None:
    """Serve the control RPC until interrupted."""
    logger.info("Control RPC listening on %s:%d", host, port)
    uvicorn.run(create_app(fleet), host=host, port=port, log_level="warning")
