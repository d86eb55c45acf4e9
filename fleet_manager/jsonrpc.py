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

"""JSON-RPC client for the execution-layer node."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any

import httpx

from fleet_manager.errors import JsonRpcError


@dataclass(frozen=True)
class Block:
    """The subset of an execution block that genesis needs."""

    number: int
    hash: bytes
    timestamp: int


class EthClient:
    """Thread-safe JSON-RPC client over HTTP.

    Args:
        endpoint: URL of the node's HTTP RPC.
        timeout: Per-request timeout in seconds.
    """

    def __init__(self, endpoint: str, timeout: float = 10.0) -> None:
        self.endpoint = endpoint
        self._client = httpx.Client(timeout=timeout)
        self._ids = itertools.count(1)

    def call(self, method: str, *params: Any) -> Any:
        """Invoke *method* and return its result.

        Raises:
            JsonRpcError: If the node returned an error or could not be reached.
        """
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": list(params)}
        try:
            response = self._client.post(self.endpoint, json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise JsonRpcError(method, e) from e
        if body.get("error") is not None:
            raise JsonRpcError(method, body["error"])
        return body.get("result")

    def client_version(self) -> str:
        return self.call("web3_clientVersion")

    def accounts(self) -> list[str]:
        return self.call("eth_accounts")

    def chain_id(self) -> int:
        return int(self.call("eth_chainId"), 16)

    def latest_block(self) -> Block:
        raw = self.call("eth_getBlockByNumber", "latest", False)
        return Block(
            number=int(raw["number"], 16),
            hash=bytes.fromhex(raw["hash"][2:]),
            timestamp=int(raw["timestamp"], 16),
        )

    def send_transaction(self, tx: dict) -> str:
        """Send a transaction signed by one of the node's unlocked accounts."""
        return self.call("eth_sendTransaction", tx)

    def send_raw_transaction(self, raw: bytes) -> str:
        return self.call("eth_sendRawTransaction", "0x" + raw.hex())

    def transaction_receipt(self, tx_hash: str) -> dict | None:
        return self.call("eth_getTransactionReceipt", tx_hash)

    def close(self) -> None:
        self._client.close()
