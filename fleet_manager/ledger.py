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

"""Ledger of validator-key tranches and who consumed them."""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable

from fleet_manager import logger
from fleet_manager.accounts import Account, dump_private_keys, new_accounts
from fleet_manager.artifacts import FleetArtifacts
from fleet_manager.constants import TRANCHE_FILE_TEMPLATE
from fleet_manager.deposit import DepositResult, DepositSubmitter
from fleet_manager.errors import DepositSubmissionError, TrancheConsumedError, TrancheNotFoundError


@dataclass(frozen=True)
class Tranche:
    """A batch of accounts handed to at most one validator.

    Attributes:
        accounts: Accounts in the batch.
        index: Ledger index, None until recorded.
        path: Private-key dump, None until recorded.
        consumer: Name of the validator using the keys, empty if unused.
        deposits: Deposit outcomes when the tranche was funded on-chain.
    """

    accounts: tuple[Account, ...]
    index: int | None = None
    path: Path | None = None
    consumer: str = ""
    deposits: tuple[DepositResult, ...] = ()

    @property
    def consumed(self) -> bool:
        return bool(self.consumer)


class TrancheLedger:
    """Thread-safe, append-only list of tranches.

    Args:
        artifacts: Fleet directory receiving the key dumps.
        submitter: Deposit submitter for funded tranches, or None when the
            fleet has no deposit contract.
        account_factory: Generates fresh accounts.
    """

    def __init__(
        self,
        artifacts: FleetArtifacts,
        submitter: DepositSubmitter | None = None,
        account_factory: Callable[[int], list[Account]] = new_accounts,
    ) -> None:
        self.artifacts = artifacts
        self.submitter = submitter
        self.account_factory = account_factory
        self._lock = threading.Lock()
        self._tranches: list[Tranche] = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._tranches)

    def prepare(self, count: int, with_deposit: bool) -> Tranche:
        """Generate (and optionally fund) an unrecorded tranche.

        Raises:
            DepositSubmissionError: If funding was requested and failed.
        """
        accounts = tuple(self.account_factory(count))
        deposits: tuple[DepositResult, ...] = ()
        if with_deposit:
            if self.submitter is None:
                raise DepositSubmissionError("no deposit contract is configured for this fleet")
            deposits = tuple(self.submitter.submit(list(accounts)))
        return Tranche(accounts=accounts, deposits=deposits)

    def record(self, tranche: Tranche, consumer: str = "") -> Tranche:
        """Assign the next index to a prepared tranche, dump its keys and store it."""
        with self._lock:
            index = len(self._tranches)
            path = self.artifacts.write(
                TRANCHE_FILE_TEMPLATE.format(index=index), dump_private_keys(list(tranche.accounts))
            )
            recorded = replace(tranche, index=index, path=path, consumer=consumer)
            self._tranches.append(recorded)
        logger.info("Tranche %d created with %d accounts", index, len(tranche.accounts))
        return recorded

    def create(self, count: int, with_deposit: bool) -> Tranche:
        return self.record(self.prepare(count, with_deposit))

    def get(self, index: int) -> Tranche:
        with self._lock:
            return self._get(index)

    def _get(self, index: int) -> Tranche:
        if not 0 <= index < len(self._tranches):
            raise TrancheNotFoundError(f"tranche {index} does not exist")
        return self._tranches[index]

    def get_unconsumed(self, index: int) -> Tranche:
        """Return tranche *index*, rejecting it if a validator already owns it."""
        with self._lock:
            tranche = self._get(index)
            if tranche.consumed:
                raise TrancheConsumedError(f"tranche {index} is already used by {tranche.consumer}")
            return tranche

    def consume(self, index: int, consumer: str) -> Tranche:
        """Mark tranche *index* as owned by *consumer*.

        Raises:
            TrancheNotFoundError: If the tranche does not exist.
            TrancheConsumedError: If the tranche is already owned.
        """
        with self._lock:
            tranche = self._get(index)
            if tranche.consumed:
                raise TrancheConsumedError(f"tranche {index} is already used by {tranche.consumer}")
            self._tranches[index] = replace(tranche, consumer=consumer)
            return self._tranches[index]

    def list(self) -> list[Tranche]:
        with self._lock:
            return list(self._tranches)

    def accounts(self) -> list[Account]:
        """Every account in the ledger, in tranche order."""
        with self._lock:
            return [account for tranche in self._tranches for account in tranche.accounts]
