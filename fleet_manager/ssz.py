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

"""Minimal SSZ encoding and hash_tree_root helpers.

Only the shapes needed for deposit data and the phase0 genesis state are
covered: uint64, booleans, byte vectors, containers of those, and lists with
a fixed limit.
"""

from __future__ import annotations

import hashlib
from typing import Sequence

CHUNK_SIZE = 32
ZERO_CHUNK = bytes(CHUNK_SIZE)


def hash_pair(left: bytes, right: bytes) -> bytes:
    return hashlib.sha256(left + right).digest()


def _zero_hashes(depth: int) -> list[bytes]:
    hashes = [ZERO_CHUNK]
    for _ in range(depth):
        hashes.append(hash_pair(hashes[-1], hashes[-1]))
    return hashes


ZERO_HASHES = _zero_hashes(64)


# ============================================================================
# Serialization
# ============================================================================

def uint64(value: int) -> bytes:
    return value.to_bytes(8, "little")


def uint32(value: int) -> bytes:
    return value.to_bytes(4, "little")


def boolean(value: bool) -> bytes:
    return b"\x01" if value else b"\x00"


# ============================================================================
# Merkleization
# ============================================================================

def pack(data: bytes) -> list[bytes]:
    """Split *data* into 32-byte chunks, zero-padding the last one."""
    if not data:
        return []
    padded = data + bytes(-len(data) % CHUNK_SIZE)
    return [padded[i:i + CHUNK_SIZE] for i in range(0, len(padded), CHUNK_SIZE)]


def merkleize(chunks: Sequence[bytes], limit: int | None = None) -> bytes:
    """Merkle root of *chunks*, padded with zero chunks up to *limit*.

    Raises:
        ValueError: If there are more chunks than *limit* allows.
    """
    count = len(chunks)
    limit = count if limit is None else limit
    if count > limit:
        raise ValueError(f"{count} chunks exceed limit {limit}")
    depth = max(limit - 1, 0).bit_length()
    if count == 0:
        return ZERO_HASHES[depth]

    layer = list(chunks)
    for level in range(depth):
        if len(layer) % 2:
            layer.append(ZERO_HASHES[level])
        layer = [hash_pair(layer[i], layer[i + 1]) for i in range(0, len(layer), 2)]
    return layer[0]


def mix_in_length(root: bytes, length: int) -> bytes:
    return hash_pair(root, length.to_bytes(CHUNK_SIZE, "little"))


def uint64_root(value: int) -> bytes:
    return uint64(value) + bytes(CHUNK_SIZE - 8)


def boolean_root(value: bool) -> bytes:
    return boolean(value) + bytes(CHUNK_SIZE - 1)


def bytes_root(data: bytes) -> bytes:
    """hash_tree_root of a fixed-size byte vector."""
    if len(data) <= CHUNK_SIZE:
        return data + bytes(CHUNK_SIZE - len(data))
    return merkleize(pack(data))


def container_root(field_roots: Sequence[bytes]) -> bytes:
    return merkleize(field_roots)


def list_root(element_roots: Sequence[bytes], limit: int) -> bytes:
    """hash_tree_root of a list of composite elements."""
    return mix_in_length(merkleize(element_roots, limit), len(element_roots))


def serialize_container(fields: Sequence[tuple[bytes, bool]]) -> bytes:
    """Serialize container fields given as (encoding, is_variable_size) pairs.

    Variable-size fields are replaced by 4-byte offsets in the fixed part and
    appended, in order, after it.
    """
    fixed_size = sum(4 if variable else len(data) for data, variable in fields)
    head: list[bytes] = []
    tail: list[bytes] = []
    offset = fixed_size
    for data, variable in fields:
        if variable:
            head.append(uint32(offset))
            tail.append(data)
            offset += len(data)
        else:
            head.append(data)
    return b"".join(head + tail)
