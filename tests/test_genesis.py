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
"""Tests for SSZ merkleization and the genesis state."""

from __future__ import annotations

import pytest

from fleet_manager.constants import (
    EMPTY_DEPOSIT_TREE_ROOT,
    EPOCHS_PER_HISTORICAL_VECTOR,
    EPOCHS_PER_SLASHINGS_VECTOR,
    SLOTS_PER_HISTORICAL_ROOT,
)
from fleet_manager.errors import GenesisError
from fleet_manager.genesis import GenesisInputs, build_genesis
from fleet_manager.ssz import (
    ZERO_CHUNK,
    ZERO_HASHES,
    merkleize,
    mix_in_length,
    pack,
    serialize_container,
    uint64,
)

VALIDATOR_SIZE = 48 + 32 + 8 + 1 + 4 * 8
FIXED_STATE_SIZE = (
    8 + 32 + 8                        # genesis_time, genesis_validators_root, slot
    + 16                              # fork
    + 112                             # latest_block_header
    + 2 * 32 * SLOTS_PER_HISTORICAL_ROOT
    + 4                               # historical_roots offset
    + 72                              # eth1_data
    + 4 + 8                           # eth1_data_votes offset, eth1_deposit_index
    + 4 + 4                           # validators, balances offsets
    + 32 * EPOCHS_PER_HISTORICAL_VECTOR
    + 8 * EPOCHS_PER_SLASHINGS_VECTOR
    + 4 + 4                           # attestation offsets
    + 1                               # justification_bits
    + 3 * 40                          # checkpoints
)


def _inputs(count: int = 2, **overrides) -> GenesisInputs:
    values = {
        "eth1_block_hash": bytes.fromhex("11" * 32),
        "eth1_timestamp": 100,
        "genesis_time": 1_700_000_000,
        "fork_version": bytes(4),
        "pubkeys": [bytes([i + 1]) * 48 for i in range(count)],
    }
    values.update(overrides)
    return GenesisInputs(**values)


def test_zero_hashes():
    assert ZERO_HASHES[0] == ZERO_CHUNK
    assert ZERO_HASHES[1].hex() == "f5a5fd42d16a20302798ef6ed309979b43003d2320d9f0e8ea9831a92759fb4b"


def test_empty_deposit_tree_root():
    assert mix_in_length(merkleize([], 2**32), 0) == EMPTY_DEPOSIT_TREE_ROOT


def test_merkleize_pads_to_the_limit():
    chunk = b"\x01" * 32
    assert merkleize([chunk]) == chunk
    assert merkleize([chunk], 4) == merkleize([chunk, ZERO_CHUNK, ZERO_CHUNK, ZERO_CHUNK])
    with pytest.raises(ValueError):
        merkleize([chunk] * 3, 2)


def test_pack():
    assert pack(b"") == []
    assert pack(b"\x01" * 33) == [b"\x01" * 32, b"\x01" + bytes(31)]


def test_serialize_container_places_offsets():
    encoded = serialize_container([(uint64(5), False), (b"abc", True), (b"\x01", False), (b"de", True)])

    assert encoded[:8] == uint64(5)
    assert int.from_bytes(encoded[8:12], "little") == 17
    assert encoded[12:13] == b"\x01"
    assert int.from_bytes(encoded[13:17], "little") == 20
    assert encoded[17:] == b"abcde"


def test_genesis_layout():
    state = build_genesis(_inputs(count=3))

    assert len(state) == FIXED_STATE_SIZE + 3 * (VALIDATOR_SIZE + 8)
    assert int.from_bytes(state[0:8], "little") == 1_700_000_000
    assert state[48:52] == bytes(4)  # fork.previous_version


def test_validators_root_depends_on_the_keys():
    first = build_genesis(_inputs(count=2))
    second = build_genesis(_inputs(count=2, pubkeys=[b"\x09" * 48, b"\x0a" * 48]))

    assert first[8:40] != second[8:40]
    assert first[8:40] != ZERO_CHUNK


def test_genesis_is_deterministic():
    assert build_genesis(_inputs()) == build_genesis(_inputs())


@pytest.mark.parametrize(
    "overrides",
    [
        {"genesis_time": 99},
        {"pubkeys": []},
        {"pubkeys": [b"\x01" * 47]},
        {"fork_version": b"\x00"},
    ],
)
def test_invalid_inputs(overrides):
    with pytest.raises(GenesisError):
        build_genesis(_inputs(**overrides))
