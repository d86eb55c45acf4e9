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

"""Fleet control plane: node registry, tranche wiring and request serialization."""

from __future__ import annotations

import threading
from enum import Enum
from typing import Callable, Iterable

from rich.panel import Panel

from fleet_manager import console, logger
from fleet_manager.accounts import Account, new_accounts
from fleet_manager.artifacts import FleetArtifacts
from fleet_manager.components import (
    BEACON_RECIPES,
    VALIDATOR_RECIPES,
    BeaconConfig,
    BeaconRecipe,
    Bootnode,
    ValidatorConfig,
    ValidatorRecipe,
    execution_node,
)
from fleet_manager.config import ChainSpec, FleetConfig
from fleet_manager.constants import GENESIS_FILE_NAME, SPEC_FILE_NAME, ZERO_ADDRESS
from fleet_manager.deployer import Deployer
from fleet_manager.deposit import DepositSubmitter, deploy_deposit_contract
from fleet_manager.errors import (
    FleetBootstrapError,
    FleetStateError,
    NoBeaconFoundError,
    NodeNotFoundError,
    ReadinessError,
    UnknownClientError,
)
from fleet_manager.genesis import GenesisInputs, build_genesis
from fleet_manager.jsonrpc import EthClient
from fleet_manager.ledger import Tranche, TrancheLedger
from fleet_manager.models import BeaconDeploy, NodeDeployRequest, ValidatorDeploy
from fleet_manager.node import Node
from fleet_manager.ports import PortName
from fleet_manager.spec import Client, NodeKind, NodeSpec


class FleetState(str, Enum):
    BOOTSTRAPPING = "bootstrapping"
    SERVING = "serving"
    STOPPING = "stopping"
    STOPPED = "stopped"


class Fleet:
    """Owns every node of one test network and the validator key ledger.

    All requests run under a single lock. A failed request leaves the
    registry and the ledger exactly as they were.

    Args:
        config: Fleet configuration.
        chain_spec: Consensus chain configuration.
        deployer: Deployment engine.
        eth_client_factory: Builds a JSON-RPC client from an endpoint.
        account_factory: Generates fresh validator accounts.
        bootnode_factory: Builds the bootnode recipe.
        execution_recipe: Builds the execution node recipe.
        beacon_recipes: Client -> beacon recipe table.
        validator_recipes: Client -> validator recipe table.
        genesis_builder: Builds the encoded genesis state.
    """

    def __init__(
        self,
        config: FleetConfig,
        chain_spec: ChainSpec,
        deployer: Deployer,
        *,
        eth_client_factory: Callable[[str], EthClient] = EthClient,
        account_factory: Callable[[int], list[Account]] = new_accounts,
        bootnode_factory: Callable[[], Bootnode] = Bootnode,
        execution_recipe: Callable[[], NodeSpec] = execution_node,
        beacon_recipes: dict[Client, BeaconRecipe] | None = None,
        validator_recipes: dict[Client, ValidatorRecipe] | None = None,
        genesis_builder: Callable[[GenesisInputs], bytes] = build_genesis,
    ) -> None:
        self.config = config
        self.chain_spec = chain_spec
        self.deployer = deployer
        self.artifacts = FleetArtifacts(config.data_dir, config.name)
        self.ledger = TrancheLedger(self.artifacts, account_factory=account_factory)
        self.state = FleetState.BOOTSTRAPPING
        self.bootnode_enr = ""
        self.eth1_endpoint = ""
        self.genesis_ssz = b""
        self._eth_client_factory = eth_client_factory
        self._bootnode_factory = bootnode_factory
        self._execution_recipe = execution_recipe
        self._beacon_recipes = BEACON_RECIPES if beacon_recipes is None else beacon_recipes
        self._validator_recipes = VALIDATOR_RECIPES if validator_recipes is None else validator_recipes
        self._genesis_builder = genesis_builder
        self._eth: EthClient | None = None
        self._lock = threading.Lock()
        self._nodes: list[Node] = []
        # nodes that failed readiness, kept running for inspection until stop()
        self._failed: list[Node] = []

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def bootstrap(self) -> None:
        """Bring up the bootnode, execution node, genesis tranches and genesis state.

        Raises:
            FleetBootstrapError: If any step fails; nodes started so far are stopped.
        """
        console.print(Panel.fit(f"Bootstrapping fleet '{self.config.name}'", style="bold blue"))
        with self._lock:
            if self.state != FleetState.BOOTSTRAPPING:
                raise FleetStateError(f"cannot bootstrap a fleet that is {self.state.value}")
            try:
                self.artifacts.create()
            except OSError as e:
                self.state = FleetState.STOPPED
                raise FleetBootstrapError(f"cannot create fleet directory {self.artifacts.root}: {e}") from e

            try:
                self._bootstrap()
            except Exception as e:
                self._stop_nodes(reversed(self._nodes + self._failed))
                self._nodes.clear()
                self._failed.clear()
                self.artifacts.close()
                if self._eth is not None:
                    self._eth.close()
                self.state = FleetState.STOPPED
                raise FleetBootstrapError(f"fleet bootstrap failed: {e}") from e
            self.state = FleetState.SERVING
        console.print(f"[green]\u2705 Fleet '{self.config.name}' is serving ({self.artifacts.root})[/green]")

    def _bootstrap(self) -> None:
        bootnode = self._bootnode_factory()
        self._nodes.append(self._deploy(bootnode.spec))
        self.bootnode_enr = bootnode.enr
        console.print(f"[green]\u2705 Bootnode ready: {self.bootnode_enr}[/green]")

        execution = self._deploy(self._execution_recipe())
        self._nodes.append(execution)
        self.eth1_endpoint = execution.addr(PortName.ETH1_HTTP)
        self._eth = self._eth_client_factory(self.eth1_endpoint)
        block = self._eth.latest_block()
        console.print(f"[green]\u2705 Execution node ready at {self.eth1_endpoint} (block {block.number})[/green]")

        self._setup_deposits(self._eth)

        per_tranche = self.config.validators_per_tranche
        for _ in range(self.config.num_tranches):
            self.ledger.create(per_tranche, with_deposit=False)

        self.genesis_ssz = self._genesis_builder(
            GenesisInputs(
                eth1_block_hash=block.hash,
                eth1_timestamp=block.timestamp,
                genesis_time=self.chain_spec.min_genesis_time,
                fork_version=self.chain_spec.fork_version_bytes,
                pubkeys=[account.pubkey for account in self.ledger.accounts()],
            )
        )
        self.artifacts.write(SPEC_FILE_NAME, self.chain_spec.render())
        self.artifacts.write(GENESIS_FILE_NAME, self.genesis_ssz)
        console.print(
            f"[green]\u2705 Genesis built with {self.config.num_genesis_validators} validators "
            f"in {self.config.num_tranches} tranche(s)[/green]"
        )

    def _setup_deposits(self, eth: EthClient) -> None:
        if self.config.deposit_contract_bin is not None:
            address = deploy_deposit_contract(eth, self.config.deposit_contract_bin)
            self.chain_spec = self.chain_spec.model_copy(update={"deposit_contract_address": address})
        address = self.chain_spec.deposit_contract_address
        if address == ZERO_ADDRESS:
            console.print("[yellow]\u2139\ufe0f  No deposit contract configured, funded tranches are disabled[/yellow]")
            return
        self.ledger.submitter = DepositSubmitter(eth, address, self.chain_spec.fork_version_bytes)

    def stop(self) -> None:
        """Stop every registered node and close the log files."""
        with self._lock:
            if self.state in (FleetState.STOPPING, FleetState.STOPPED):
                return
            self.state = FleetState.STOPPING
            self._stop_nodes(reversed(self._nodes + self._failed))
            self.artifacts.close()
            if self._eth is not None:
                self._eth.close()
            self.state = FleetState.STOPPED
        console.print(f"[green]\u2705 Fleet '{self.config.name}' stopped[/green]")

    @staticmethod
    def _stop_nodes(nodes: Iterable[Node]) -> None:
        for node in nodes:
            try:
                node.stop()
            except Exception as e:
                logger.warning("Failed to stop node %s: %s", node.name, e)

    def _require_serving(self) -> None:
        if self.state != FleetState.SERVING:
            raise FleetStateError(f"fleet is {self.state.value}, not serving")

    # ========================================================================
    # Nodes
    # ========================================================================

    def _deploy(self, spec: NodeSpec) -> Node:
        try:
            return self.deployer.deploy(spec.with_output(self.artifacts.open_log(spec.name)))
        except ReadinessError as e:
            if e.node is not None:
                logger.warning("Node %s left running for inspection until the fleet stops", e.node.name)
                self._failed.append(e.node)
            raise

    def _next_name(self, kind: NodeKind, client: Client, pending: list[Node]) -> str:
        ordinal = sum(1 for node in self._nodes + pending if node.role is not None and node.role.kind == kind)
        return f"{kind.value}-{ordinal}-{client.value}"

    @staticmethod
    def _customize(spec: NodeSpec, request: NodeDeployRequest, name: str) -> NodeSpec:
        spec = spec.with_name(name)
        if request.repo:
            spec = spec.with_image(request.repo)
        if request.tag:
            spec = spec.with_tag(request.tag)
        return spec

    def deploy(self, request: NodeDeployRequest) -> list[Node]:
        """Deploy the nodes described by *request*.

        Nodes are registered, and the validator's tranche recorded or
        consumed, only once every node of the request is ready. On failure
        the nodes already started by the request are stopped.

        Returns:
            The new nodes, beacons first.
        """
        with self._lock:
            self._require_serving()
            pending: list[Node] = []
            try:
                if isinstance(request.params, BeaconDeploy):
                    for _ in range(request.params.count):
                        pending.append(self._deploy_beacon(request, pending))
                else:
                    commit = self._deploy_validator(request, request.params, pending)
                    commit()
            except Exception:
                self._stop_nodes(pending)
                raise
            self._nodes.extend(pending)
            return pending

    def _deploy_beacon(self, request: NodeDeployRequest, pending: list[Node]) -> Node:
        recipe = self._beacon_recipes.get(request.client)
        if recipe is None:
            raise UnknownClientError(f"no beacon recipe for client {request.client.value}")
        spec = recipe(
            BeaconConfig(
                eth1_endpoint=self.eth1_endpoint,
                bootnode_enr=self.bootnode_enr,
                genesis_ssz=self.genesis_ssz,
                chain_spec=self.chain_spec.render(),
            )
        )
        name = self._next_name(NodeKind.BEACON, request.client, pending)
        return self._deploy(self._customize(spec, request, name))

    def _deploy_validator(
        self, request: NodeDeployRequest, params: ValidatorDeploy, pending: list[Node]
    ) -> Callable[[], Tranche]:
        """Deploy a validator and return the ledger update that completes it."""
        recipe = self._validator_recipes.get(request.client)
        if recipe is None:
            raise UnknownClientError(f"no validator recipe for client {request.client.value}")

        if params.with_beacon:
            for _ in range(params.beacon_count):
                pending.append(self._deploy_beacon(request, pending))
            beacon = pending[0]
        elif params.beacon:
            beacon = self._find(params.beacon)
            if beacon.role is None or beacon.role.kind != NodeKind.BEACON:
                raise NodeNotFoundError(f"{params.beacon} is not a beacon node")
        else:
            beacon = next(
                (
                    node for node in self._nodes
                    if node.role is not None
                    and node.role.kind == NodeKind.BEACON
                    and node.role.client == request.client
                ),
                None,
            )
            if beacon is None:
                raise NoBeaconFoundError(f"no {request.client.value} beacon node found")

        if params.num_validators == 0:
            tranche = self.ledger.get_unconsumed(params.tranche)
        else:
            tranche = self.ledger.prepare(params.num_validators, with_deposit=True)

        name = self._next_name(NodeKind.VALIDATOR, request.client, pending)
        spec = recipe(ValidatorConfig(beacon=beacon, accounts=tranche.accounts, chain_spec=self.chain_spec.render()))
        pending.append(self._deploy(self._customize(spec, request, name)))
        logger.info("Validator %s attached to %s with %d keys", name, beacon.name, len(tranche.accounts))

        if params.num_validators == 0:
            return lambda: self.ledger.consume(params.tranche, name)
        return lambda: self.ledger.record(tranche, consumer=name)

    def _find(self, name: str) -> Node:
        for node in self._nodes:
            if node.name == name:
                return node
        raise NodeNotFoundError(f"node {name} not found")

    def list_nodes(self) -> list[Node]:
        with self._lock:
            self._require_serving()
            return list(self._nodes)

    def node_status(self, name: str) -> Node:
        """Look up a registered node by name.

        Raises:
            ValueError: If *name* is empty.
            NodeNotFoundError: If no node has that name.
        """
        if not name:
            raise ValueError("node name must not be empty")
        with self._lock:
            self._require_serving()
            return self._find(name)

    # ========================================================================
    # Deposits
    # ========================================================================

    def create_deposit(self, num_validators: int) -> Tranche:
        """Create a funded tranche of *num_validators* new accounts."""
        if num_validators < 1:
            raise ValueError("num_validators must be at least 1")
        with self._lock:
            self._require_serving()
            return self.ledger.create(num_validators, with_deposit=True)

    def list_deposits(self) -> list[Tranche]:
        with self._lock:
            self._require_serving()
            return self.ledger.list()
