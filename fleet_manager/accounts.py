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

"""Validator accounts: a BLS signing key plus an execution-layer funding key."""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from functools import cached_property

from eth_account import Account as EthAccount
from eth_account.signers.local import LocalAccount
from py_ecc.bls import G2ProofOfPossession as bls


@dataclass(frozen=True)
class Account:
    """One validator identity.

    Attributes:
        secret_key: BLS12-381 secret key.
        funding: secp256k1 account that pays for the deposit transaction.
    """

    secret_key: int
    funding: LocalAccount = field(repr=False, compare=False)

    @cached_property
    def pubkey(self) -> bytes:
        """48-byte compressed BLS public key."""
        return bytes(bls.SkToPk(self.secret_key))

    @property
    def pubkey_hex(self) -> str:
        return "0x" + self.pubkey.hex()

    @property
    def secret_key_bytes(self) -> bytes:
        return self.secret_key.to_bytes(32, "big")

    @property
    def address(self) -> str:
        return self.funding.address

    def sign(self, message: bytes) -> bytes:
        """BLS signature of *message* (proof-of-possession scheme)."""
        return bytes(bls.Sign(self.secret_key, message))


def new_account() -> Account:
    """Generate an account from fresh randomness."""
    secret_key = bls.KeyGen(secrets.token_bytes(32))
    return Account(secret_key=secret_key, funding=EthAccount.create())


def new_accounts(count: int) -> list[Account]:
    return [new_account() for _ in range(count)]


def dump_private_keys(accounts: list[Account]) -> str:
    """Hex BLS secret keys, one per line."""
    return "\n".join(account.secret_key_bytes.hex() for account in accounts)
