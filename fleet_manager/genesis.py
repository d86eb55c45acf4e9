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

"""Phase0 genesis BeaconState construction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from fleet_manager.constants import (
    EMPTY_DEPOSIT_TREE_ROOT,
    EPOCHS_PER_HISTORICAL_VECTOR,
    EPOCHS_PER_SLASHINGS_VECTOR,
    FAR_FUTURE_EPOCH,
    MAX_EFFECTIVE_BALANCE,
    SLOTS_PER_HISTORICAL_ROOT,
    ZERO_WITHDRAWAL_CREDENTIALS,
)
from fleet_manager.errors import GenesisError
from fleet_manager.ssz import (
    ZERO_CHUNK,
    boolean,
    boolean_root,
    bytes_root,
    container_root,
    list_root,
    serialize_container,
    uint64,
    uint64_root,
)

VALIDATOR_REGISTRY_LIMIT = 2**40
PUBKEY_LENGTH = 48

# List limits of the phase0 BeaconBlockBody operation lists.
_BODY_LIST_LIMITS = (16, 2, 128, 16, 16)


@dataclass(frozen=True)
class GenesisInputs:
    """Everything the genesis state depends on.

    Attributes:
        eth1_block_hash: Execution block the chain starts from.
        eth1_timestamp: Timestamp of that block.
        genesis_time: Chain start time; not earlier than *eth1_timestamp*.
        fork_version: Genesis fork version (4 bytes).
        pubkeys: BLS public keys of the genesis validators.
    """

    eth1_block_hash: bytes
    eth1_timestamp: int
    genesis_time: int
    fork_version: bytes
    pubkeys: Sequence[bytes]
    withdrawal_credentials: bytes = ZERO_WITHDRAWAL_CREDENTIALS


def _validator(pubkey: bytes, withdrawal_credentials: bytes) -> tuple[bytes, bytes]:
    """Serialized form and root of an active genesis validator."""
    epochs = (0, 0, FAR_FUTURE_EPOCH, FAR_FUTURE_EPOCH)
    encoded = (
        pubkey
        + withdrawal_credentials
        + uint64(MAX_EFFECTIVE_BALANCE)
        + boolean(False)
        + b"".join(uint64(e) for e in epochs)
    )
    root = container_root(
        [bytes_root(pubkey), withdrawal_credentials, uint64_root(MAX_EFFECTIVE_BALANCE), boolean_root(False)]
        + [uint64_root(e) for e in epochs]
    )
    return encoded, root


def empty_block_body_root() -> bytes:
    """hash_tree_root of a default phase0 BeaconBlockBody."""
    eth1_data = container_root([ZERO_CHUNK, uint64_root(0), ZERO_CHUNK])
    return container_root(
        [bytes_root(bytes(96)), eth1_data, ZERO_CHUNK]
        + [list_root([], limit) for limit in _BODY_LIST_LIMITS]
    )


def build_genesis(inputs: GenesisInputs) -> bytes:
    """Build the SSZ-encoded phase0 genesis BeaconState.

    Every validator starts active with the maximum effective balance.

    Raises:
        GenesisError: If the inputs cannot produce a valid state.
    """
    if inputs.genesis_time < inputs.eth1_timestamp:
        raise GenesisError(
            f"genesis time {inputs.genesis_time} is before the eth1 block timestamp {inputs.eth1_timestamp}"
        )
    if not inputs.pubkeys:
        raise GenesisError("genesis needs at least one validator")
    if any(len(pubkey) != PUBKEY_LENGTH for pubkey in inputs.pubkeys):
        raise GenesisError("validator public keys must be 48 bytes")
    if len(inputs.fork_version) != 4 or len(inputs.eth1_block_hash) != 32:
        raise GenesisError("malformed fork version or eth1 block hash")

    validators = [_validator(pubkey, inputs.withdrawal_credentials) for pubkey in inputs.pubkeys]
    validators_root = list_root([root for _, root in validators], VALIDATOR_REGISTRY_LIMIT)
    count = len(validators)

    fork = inputs.fork_version + inputs.fork_version + uint64(0)
    latest_block_header = uint64(0) + uint64(0) + ZERO_CHUNK + ZERO_CHUNK + empty_block_body_root()
    eth1_data = EMPTY_DEPOSIT_TREE_ROOT + uint64(0) + inputs.eth1_block_hash
    checkpoint = uint64(0) + ZERO_CHUNK

    return serialize_container([
        (uint64(inputs.genesis_time), False),
        (validators_root, False),
        (uint64(0), False),  # slot
        (fork, False),
        (latest_block_header, False),
        (bytes(32 * SLOTS_PER_HISTORICAL_ROOT), False),  # block_roots
        (bytes(32 * SLOTS_PER_HISTORICAL_ROOT), False),  # state_roots
        (b"", True),  # historical_roots
        (eth1_data, False),
        (b"", True),  # eth1_data_votes
        (uint64(0), False),  # eth1_deposit_index
        (b"".join(encoded for encoded, _ in validators), True),
        (uint64(MAX_EFFECTIVE_BALANCE) * count, True),  # balances
        (inputs.eth1_block_hash * EPOCHS_PER_HISTORICAL_VECTOR, False),  # randao_mixes
        (bytes(8 * EPOCHS_PER_SLASHINGS_VECTOR), False),  # slashings
        (b"", True),  # previous_epoch_attestations
        (b"", True),  # current_epoch_attestations
        (b"\x00", False),  # justification_bits
        (checkpoint, False),
        (checkpoint, False),
        (checkpoint, False),
    ])
