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

"""Deposit data construction and on-chain deposit submission."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address

from fleet_manager import logger
from fleet_manager.accounts import Account
from fleet_manager.constants import (
    DEFAULT_DEPOSIT_WORKERS,
    DEFAULT_GAS_LIMIT,
    DEFAULT_GAS_PRICE,
    DEPOSIT_AMOUNT_GWEI,
    DEPOSIT_FUNCTION_SIGNATURE,
    DEPOSIT_LOG_COUNT,
    DEPOSIT_RECEIPT_MAX_ATTEMPTS,
    DEPOSIT_RECEIPT_POLL_INTERVAL_SECONDS,
    DOMAIN_DEPOSIT,
    FUNDING_AMOUNT_WEI,
    GWEI,
    ZERO_WITHDRAWAL_CREDENTIALS,
)
from fleet_manager.errors import DepositSubmissionError, DepositTimeoutError, PollTimeoutError
from fleet_manager.jsonrpc import EthClient
from fleet_manager.ssz import ZERO_CHUNK, bytes_root, container_root, hash_pair, uint64_root
from fleet_manager.utils import poll_until

DEPOSIT_SELECTOR = function_signature_to_4byte_selector(DEPOSIT_FUNCTION_SIGNATURE)


# ============================================================================
# Deposit data
# ============================================================================

def compute_deposit_domain(fork_version: bytes) -> bytes:
    """Signing domain for deposits under *fork_version*.

    Deposits are valid across forks, so the genesis validators root is
    always zero here.
    """
    fork_data_root = hash_pair(bytes_root(fork_version), ZERO_CHUNK)
    return DOMAIN_DEPOSIT + fork_data_root[:28]


@dataclass(frozen=True)
class DepositData:
    pubkey: bytes
    withdrawal_credentials: bytes
    amount: int
    signature: bytes

    @property
    def message_root(self) -> bytes:
        """hash_tree_root of the DepositMessage (data without signature)."""
        return container_root([
            bytes_root(self.pubkey),
            self.withdrawal_credentials,
            uint64_root(self.amount),
        ])

    @property
    def root(self) -> bytes:
        return container_root([
            bytes_root(self.pubkey),
            self.withdrawal_credentials,
            uint64_root(self.amount),
            bytes_root(self.signature),
        ])

    def calldata(self) -> bytes:
        """ABI-encoded call to the deposit contract."""
        return DEPOSIT_SELECTOR + encode(
            ["bytes", "bytes", "bytes", "bytes32"],
            [self.pubkey, self.withdrawal_credentials, self.signature, self.root],
        )


def build_deposit_data(
    account: Account,
    fork_version: bytes,
    amount: int = DEPOSIT_AMOUNT_GWEI,
    withdrawal_credentials: bytes = ZERO_WITHDRAWAL_CREDENTIALS,
) -> DepositData:
    """Build and sign the deposit for *account*."""
    unsigned = DepositData(account.pubkey, withdrawal_credentials, amount, b"")
    signing_root = hash_pair(unsigned.message_root, compute_deposit_domain(fork_version))
    return DepositData(account.pubkey, withdrawal_credentials, amount, account.sign(signing_root))


# ============================================================================
# Submission
# ============================================================================

@dataclass(frozen=True)
class DepositResult:
    """Outcome of one account's deposit.

    Attributes:
        pubkey: Hex BLS public key of the account.
        tx_hash: Hash of the deposit transaction, if it landed.
        error: Failure description, if it did not.
    """

    pubkey: str
    tx_hash: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def wait_for_receipt(
    eth: EthClient,
    tx_hash: str,
    *,
    max_attempts: int = DEPOSIT_RECEIPT_MAX_ATTEMPTS,
    interval: float = DEPOSIT_RECEIPT_POLL_INTERVAL_SECONDS,
) -> dict:
    """Poll for the receipt of *tx_hash*.

    Raises:
        DepositTimeoutError: If no receipt appeared within the attempt cap.
    """
    try:
        return poll_until(
            lambda: eth.transaction_receipt(tx_hash),
            interval=interval,
            max_attempts=max_attempts,
            what=f"receipt of {tx_hash}",
        )
    except PollTimeoutError as e:
        raise DepositTimeoutError(str(e)) from e


def deploy_deposit_contract(eth: EthClient, bytecode_path: Path, **receipt_opts) -> str:
    """Deploy the deposit contract from the node's first unlocked account.

    Returns:
        The contract address.
    """
    bytecode = bytecode_path.read_text().strip()
    if not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode
    owner = eth.accounts()[0]
    tx_hash = eth.send_transaction({
        "from": owner,
        "data": bytecode,
        "gas": hex(DEFAULT_GAS_LIMIT),
        "gasPrice": hex(DEFAULT_GAS_PRICE),
    })
    receipt = wait_for_receipt(eth, tx_hash, **receipt_opts)
    address = receipt.get("contractAddress")
    if receipt.get("status") != "0x1" or not address:
        raise DepositSubmissionError(f"deposit contract deployment failed in {tx_hash}")
    logger.info("Deposit contract deployed at %s", address)
    return address


class DepositSubmitter:
    """Funds accounts and submits their deposits to the deposit contract.

    Args:
        eth: Client of the execution node; its first account must be unlocked.
        contract_address: Address of the deposit contract.
        fork_version: Genesis fork version used for the deposit domain.
        workers: Maximum concurrent deposits.
        receipt_attempts: Receipt polls per transaction.
        receipt_interval: Seconds between receipt polls.
    """

    def __init__(
        self,
        eth: EthClient,
        contract_address: str,
        fork_version: bytes,
        *,
        workers: int = DEFAULT_DEPOSIT_WORKERS,
        receipt_attempts: int = DEPOSIT_RECEIPT_MAX_ATTEMPTS,
        receipt_interval: float = DEPOSIT_RECEIPT_POLL_INTERVAL_SECONDS,
    ) -> None:
        self.eth = eth
        self.contract_address = to_checksum_address(contract_address)
        self.fork_version = fork_version
        self.workers = workers
        self._receipt_opts = {"max_attempts": receipt_attempts, "interval": receipt_interval}
        self._lock = threading.Lock()
        self._owner: str | None = None
        self._chain_id: int | None = None

    def _network(self) -> tuple[str, int]:
        with self._lock:
            if self._owner is None:
                self._owner = self.eth.accounts()[0]
                self._chain_id = self.eth.chain_id()
            return self._owner, self._chain_id

    def submit(self, accounts: list[Account]) -> list[DepositResult]:
        """Deposit for every account concurrently.

        Returns:
            One successful DepositResult per account.

        Raises:
            DepositSubmissionError: If any deposit failed; ``results`` holds
                the outcome of every account and the first failure is chained.
        """
        if not accounts:
            return []
        owner, chain_id = self._network()
        results: list[DepositResult] = []
        first_error: Exception | None = None
        with ThreadPoolExecutor(max_workers=min(self.workers, len(accounts))) as executor:
            futures = {executor.submit(self.deposit, account, owner, chain_id): account for account in accounts}
            for future in as_completed(futures):
                account = futures[future]
                try:
                    results.append(DepositResult(account.pubkey_hex, tx_hash=future.result()))
                except Exception as e:
                    logger.error("Deposit for %s failed: %s", account.pubkey_hex[:12], e)
                    results.append(DepositResult(account.pubkey_hex, error=str(e)))
                    first_error = first_error or e

        if first_error is not None:
            failed = sum(1 for r in results if not r.ok)
            raise DepositSubmissionError(
                f"{failed}/{len(accounts)} deposits failed: {first_error}", results
            ) from first_error
        logger.info("Submitted %d deposits", len(results))
        return results

    def deposit(self, account: Account, owner: str, chain_id: int) -> str:
        """Fund *account*, then send its deposit and wait for it to land.

        Returns:
            The deposit transaction hash.
        """
        fund_tx = self.eth.send_transaction({
            "from": owner,
            "to": account.address,
            "value": hex(FUNDING_AMOUNT_WEI),
            "gas": hex(DEFAULT_GAS_LIMIT),
            "gasPrice": hex(DEFAULT_GAS_PRICE),
        })
        self._expect_success(fund_tx, wait_for_receipt(self.eth, fund_tx, **self._receipt_opts))

        data = build_deposit_data(account, self.fork_version)
        signed = account.funding.sign_transaction({
            "to": self.contract_address,
            "value": data.amount * GWEI,
            "data": data.calldata(),
            "gas": DEFAULT_GAS_LIMIT,
            "gasPrice": DEFAULT_GAS_PRICE,
            "nonce": 0,
            "chainId": chain_id,
        })
        tx_hash = self.eth.send_raw_transaction(signed.raw_transaction)
        receipt = wait_for_receipt(self.eth, tx_hash, **self._receipt_opts)
        self._expect_success(tx_hash, receipt)
        if len(receipt.get("logs", [])) != DEPOSIT_LOG_COUNT:
            raise DepositSubmissionError(
                f"deposit {tx_hash} emitted {len(receipt.get('logs', []))} logs, expected {DEPOSIT_LOG_COUNT}"
            )
        return tx_hash

    @staticmethod
    def _expect_success(tx_hash: str, receipt: dict) -> None:
        if receipt.get("status") != "0x1":
            raise DepositSubmissionError(f"transaction {tx_hash} reverted")
