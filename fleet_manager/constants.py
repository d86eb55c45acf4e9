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

"""Constants, image table loading, and image_ref helper."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_images() -> dict:
    """Load container image references from images.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    images_file = Path(__file__).resolve().parent / "images.yaml"
    with open(images_file) as f:
        return yaml.safe_load(f)


IMAGES = load_images()


def image_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the IMAGES dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = IMAGES
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


def image_ref(*keys: str) -> tuple[str, str]:
    """Return the (repository, tag) pair registered under a key path.

    Raises:
        KeyError: If no image is registered under the key path.
    """
    entry = image_value(*keys)
    if not isinstance(entry, dict) or "image" not in entry:
        raise KeyError(f"no image registered for {'/'.join(keys)}")
    return entry["image"], str(entry.get("tag", DEFAULT_IMAGE_TAG))


# -- Container runtime --
DEFAULT_IMAGE_TAG = "latest"
LOOPBACK_ADDRESS = "127.0.0.1"
MOUNT_STAGING_PREFIX = "node-"

# -- Node labels (serialization boundary only) --
LABEL_NODE_TYPE = "NodeType"
LABEL_NODE_CLIENT = "NodeClient"

# -- Port allocation --
MAX_PORT = 65535

# -- Readiness --
DEFAULT_READINESS_TIMEOUT_SECONDS = 60.0
DEFAULT_READINESS_INTERVAL_SECONDS = 0.1

# -- Container exit watch --
CONTAINER_WAIT_ATTEMPTS = 5
CONTAINER_WAIT_RETRY_SECONDS = 2.0

# -- Deposits --
DEPOSIT_RECEIPT_MAX_ATTEMPTS = 120
DEPOSIT_RECEIPT_POLL_INTERVAL_SECONDS = 1.0
DEFAULT_DEPOSIT_WORKERS = 16
DEFAULT_GAS_PRICE = 1879048192
DEFAULT_GAS_LIMIT = 5242880
GWEI = 10**9
ETHER = 10**18
DEPOSIT_AMOUNT_GWEI = 32 * GWEI
FUNDING_AMOUNT_WEI = 33 * ETHER
DEPOSIT_LOG_COUNT = 1
DOMAIN_DEPOSIT = bytes.fromhex("03000000")
ZERO_WITHDRAWAL_CREDENTIALS = bytes(32)
DEPOSIT_FUNCTION_SIGNATURE = "deposit(bytes,bytes,bytes,bytes32)"

# -- Genesis --
FAR_FUTURE_EPOCH = 2**64 - 1
MAX_EFFECTIVE_BALANCE = 32 * GWEI
SLOTS_PER_HISTORICAL_ROOT = 8192
EPOCHS_PER_HISTORICAL_VECTOR = 65536
EPOCHS_PER_SLASHINGS_VECTOR = 8192
EMPTY_DEPOSIT_TREE_ROOT = bytes.fromhex("d70a234731285c6804c2a4f56711ddb8c82c99740f207854891028af34e27e5e")
GENESIS_FORK_VERSION = "0x00000000"

# -- Chain spec defaults --
DEFAULT_GENESIS_DELAY_SECONDS = 10
DEFAULT_MIN_GENESIS_VALIDATOR_COUNT = 10
DEFAULT_ETH1_FOLLOW_DISTANCE = 1
DEFAULT_SECONDS_PER_ETH1_BLOCK = 1
DEFAULT_EPOCHS_PER_ETH1_VOTING_PERIOD = 64
DEFAULT_SHARD_COMMITTEE_PERIOD = 4
DEFAULT_SLOTS_PER_EPOCH = 32
DEFAULT_SECONDS_PER_SLOT = 12
DEFAULT_DEPOSIT_CHAIN_ID = 1337
ZERO_ADDRESS = "0x" + "00" * 20

# -- Fleet defaults --
DEFAULT_FLEET_NAME = "e2e-test"
DEFAULT_DATA_DIR = "."
FLEET_DIR_PREFIX = "e2e-"
DEFAULT_NUM_TRANCHES = 1
DEFAULT_NUM_GENESIS_VALIDATORS = 10
DEFAULT_API_HOST = "127.0.0.1"
DEFAULT_API_PORT = 5555
DEFAULT_API_ADDRESS = f"{DEFAULT_API_HOST}:{DEFAULT_API_PORT}"
DEFAULT_API_TIMEOUT_SECONDS = 600.0

# -- Artifacts --
SPEC_FILE_NAME = "spec.yaml"
GENESIS_FILE_NAME = "genesis.ssz"
TRANCHE_FILE_TEMPLATE = "tranche_{index}.txt"
NODE_LOG_TEMPLATE = "{name}.log"

# -- Client recipes --
BEACON_DATA_DIR = "/data"
WALLET_PASSWORD = "qwerty"
KEYSTORE_PBKDF2_ITERATIONS = 2**18
BOOTNODE_ENR_PATTERN = r"Running bootnode: enr:([A-Za-z0-9_\-]+)"

# -- End-to-end scenarios --
E2E_GENESIS_VALIDATORS = 10
E2E_TARGET_EPOCH = 3
E2E_BEACON_QUERY_TIMEOUT_SECONDS = 60.0
E2E_BEACON_QUERY_INTERVAL_SECONDS = 1.0
