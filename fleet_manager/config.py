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

"""Configuration classes and the consensus chain spec."""

from __future__ import annotations

import time
from pathlib import Path

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.panel import Panel

from fleet_manager import console
from fleet_manager.constants import (
    DEFAULT_API_HOST,
    DEFAULT_API_PORT,
    DEFAULT_DATA_DIR,
    DEFAULT_DEPOSIT_CHAIN_ID,
    DEFAULT_EPOCHS_PER_ETH1_VOTING_PERIOD,
    DEFAULT_ETH1_FOLLOW_DISTANCE,
    DEFAULT_FLEET_NAME,
    DEFAULT_GENESIS_DELAY_SECONDS,
    DEFAULT_MIN_GENESIS_VALIDATOR_COUNT,
    DEFAULT_NUM_GENESIS_VALIDATORS,
    DEFAULT_NUM_TRANCHES,
    DEFAULT_READINESS_INTERVAL_SECONDS,
    DEFAULT_READINESS_TIMEOUT_SECONDS,
    DEFAULT_SECONDS_PER_ETH1_BLOCK,
    DEFAULT_SECONDS_PER_SLOT,
    DEFAULT_SHARD_COMMITTEE_PERIOD,
    DEFAULT_SLOTS_PER_EPOCH,
    FAR_FUTURE_EPOCH,
    FLEET_DIR_PREFIX,
    GENESIS_FORK_VERSION,
    ZERO_ADDRESS,
)


# ============================================================================
# Fleet configuration
# ============================================================================

class FleetConfig(BaseSettings):
    """Control-plane configuration, auto-loaded from FLEET_* env vars.

    Attributes:
        name: Fleet name; artifacts go to ``<data_dir>/e2e-<name>``.
        data_dir: Parent directory for the fleet's artifacts.
        num_tranches: Key tranches created at genesis.
        num_genesis_validators: Validators in the genesis state, split evenly
            across the genesis tranches.
        api_host: Control RPC listen address.
        api_port: Control RPC listen port.
        readiness_timeout: Seconds a node may take to pass its probe.
        readiness_interval: Seconds between probe attempts.
        deposit_contract_bin: Hex bytecode of the deposit contract, deployed
            at bootstrap when set.
    """

    model_config = SettingsConfigDict(env_prefix="FLEET_", extra="ignore")

    name: str = Field(default=DEFAULT_FLEET_NAME, pattern=r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")
    data_dir: Path = Path(DEFAULT_DATA_DIR)
    num_tranches: int = Field(default=DEFAULT_NUM_TRANCHES, ge=1)
    num_genesis_validators: int = Field(default=DEFAULT_NUM_GENESIS_VALIDATORS, ge=1)
    api_host: str = DEFAULT_API_HOST
    api_port: int = Field(default=DEFAULT_API_PORT, ge=1, le=65535)
    readiness_timeout: float = Field(default=DEFAULT_READINESS_TIMEOUT_SECONDS, gt=0)
    readiness_interval: float = Field(default=DEFAULT_READINESS_INTERVAL_SECONDS, gt=0)
    deposit_contract_bin: Path | None = None

    @model_validator(mode="after")
    def _tranches_divide_validators(self) -> FleetConfig:
        if self.num_genesis_validators % self.num_tranches != 0:
            raise ValueError(
                f"num_genesis_validators ({self.num_genesis_validators}) must be a multiple "
                f"of num_tranches ({self.num_tranches})"
            )
        return self

    @property
    def validators_per_tranche(self) -> int:
        return self.num_genesis_validators // self.num_tranches


# ============================================================================
# Chain spec
# ============================================================================

def _default_genesis_time() -> int:
    return int(time.time()) + DEFAULT_GENESIS_DELAY_SECONDS


class ChainSpec(BaseSettings):
    """Consensus-layer chain configuration, auto-loaded from FLEET_SPEC_* env vars.

    Rendered to the ``config.yaml`` every beacon and validator reads.
    Fork epochs left unset are disabled.
    """

    model_config = SettingsConfigDict(env_prefix="FLEET_SPEC_", extra="ignore")

    min_genesis_active_validator_count: int = Field(default=DEFAULT_MIN_GENESIS_VALIDATOR_COUNT, ge=1)
    min_genesis_time: int = Field(default_factory=_default_genesis_time, ge=0)
    genesis_delay: int = Field(default=DEFAULT_GENESIS_DELAY_SECONDS, ge=0)
    genesis_fork_version: str = Field(default=GENESIS_FORK_VERSION, pattern=r"^0x[0-9a-fA-F]{8}$")
    eth1_follow_distance: int = DEFAULT_ETH1_FOLLOW_DISTANCE
    seconds_per_eth1_block: int = DEFAULT_SECONDS_PER_ETH1_BLOCK
    epochs_per_eth1_voting_period: int = DEFAULT_EPOCHS_PER_ETH1_VOTING_PERIOD
    shard_committee_period: int = DEFAULT_SHARD_COMMITTEE_PERIOD
    slots_per_epoch: int = Field(default=DEFAULT_SLOTS_PER_EPOCH, ge=1)
    seconds_per_slot: int = Field(default=DEFAULT_SECONDS_PER_SLOT, ge=1)
    altair_fork_epoch: int | None = None
    bellatrix_fork_epoch: int | None = None
    deposit_chain_id: int = DEFAULT_DEPOSIT_CHAIN_ID
    deposit_contract_address: str = ZERO_ADDRESS

    @field_validator("altair_fork_epoch", "bellatrix_fork_epoch")
    @classmethod
    def _fork_after_genesis(cls, value: int | None) -> int | None:
        # genesis is always built as a phase0 state
        if value is not None and value < 1:
            raise ValueError("fork epochs must be at least 1")
        return value

    @property
    def fork_version_bytes(self) -> bytes:
        return bytes.fromhex(self.genesis_fork_version[2:])

    def _fork_version(self, fork: int) -> str:
        return "0x" + f"{fork:02x}" + self.genesis_fork_version[4:]

    def render(self) -> str:
        """Render the spec as the client config.yaml."""
        def epoch(value: int | None) -> int:
            return FAR_FUTURE_EPOCH if value is None else value

        doc = {
            "PRESET_BASE": "mainnet",
            "CONFIG_NAME": "fleet",
            "MIN_GENESIS_ACTIVE_VALIDATOR_COUNT": self.min_genesis_active_validator_count,
            "MIN_GENESIS_TIME": self.min_genesis_time,
            "GENESIS_FORK_VERSION": self.genesis_fork_version,
            "GENESIS_DELAY": self.genesis_delay,
            "ALTAIR_FORK_VERSION": self._fork_version(1),
            "ALTAIR_FORK_EPOCH": epoch(self.altair_fork_epoch),
            "BELLATRIX_FORK_VERSION": self._fork_version(2),
            "BELLATRIX_FORK_EPOCH": epoch(self.bellatrix_fork_epoch),
            "SECONDS_PER_SLOT": self.seconds_per_slot,
            "SLOTS_PER_EPOCH": self.slots_per_epoch,
            "SECONDS_PER_ETH1_BLOCK": self.seconds_per_eth1_block,
            "ETH1_FOLLOW_DISTANCE": self.eth1_follow_distance,
            "EPOCHS_PER_ETH1_VOTING_PERIOD": self.epochs_per_eth1_voting_period,
            "SHARD_COMMITTEE_PERIOD": self.shard_committee_period,
            "DEPOSIT_CHAIN_ID": self.deposit_chain_id,
            "DEPOSIT_NETWORK_ID": self.deposit_chain_id,
            "DEPOSIT_CONTRACT_ADDRESS": self.deposit_contract_address,
        }
        return yaml.safe_dump(doc, sort_keys=False)


# ============================================================================
# Display
# ============================================================================

def display_config(config: FleetConfig, spec: ChainSpec) -> None:
    """Print the resolved fleet configuration."""
    console.print(Panel.fit("Fleet configuration", style="bold blue"))
    console.print(f"[yellow]Name:[/yellow] {config.name}")
    console.print(f"[yellow]Artifacts:[/yellow] {(config.data_dir / (FLEET_DIR_PREFIX + config.name)).resolve()}")
    console.print(
        f"[yellow]Genesis validators:[/yellow] {config.num_genesis_validators} "
        f"in {config.num_tranches} tranche(s)"
    )
    console.print(f"[yellow]Min genesis time:[/yellow] {spec.min_genesis_time}")
    console.print(f"[yellow]Control RPC:[/yellow] {config.api_host}:{config.api_port}")
    if config.deposit_contract_bin is not None:
        console.print(f"[yellow]Deposit contract:[/yellow] deployed from {config.deposit_contract_bin}")
    elif spec.deposit_contract_address != ZERO_ADDRESS:
        console.print(f"[yellow]Deposit contract:[/yellow] {spec.deposit_contract_address}")
    else:
        console.print("[yellow]Deposit contract:[/yellow] none (funded tranches disabled)")
