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
"""Tests for EIP-2335 keystores."""

from __future__ import annotations

import pytest

from fleet_manager.keystore import decrypt_keystore, encrypt_keystore

SECRET = bytes(range(32))


def test_keystore_fields():
    keystore = encrypt_keystore(SECRET, "qwerty", pubkey=b"\xaa" * 48, path="m/12381/3600/0/0/0", iterations=16)

    assert keystore["version"] == 4
    assert keystore["pubkey"] == "aa" * 48
    assert keystore["path"] == "m/12381/3600/0/0/0"
    assert keystore["crypto"]["kdf"]["function"] == "pbkdf2"
    assert keystore["crypto"]["kdf"]["params"]["c"] == 16
    assert keystore["crypto"]["cipher"]["function"] == "aes-128-ctr"
    assert keystore["crypto"]["cipher"]["message"] != SECRET.hex()


def test_decrypts_with_the_right_password():
    keystore = encrypt_keystore(SECRET, "qwerty", iterations=16)
    assert decrypt_keystore(keystore, "qwerty") == SECRET


def test_control_characters_are_ignored_in_passwords():
    keystore = encrypt_keystore(SECRET, "qwe\x7frty", iterations=16)
    assert decrypt_keystore(keystore, "qwerty") == SECRET


def test_wrong_password():
    keystore = encrypt_keystore(SECRET, "qwerty", iterations=16)
    with pytest.raises(ValueError):
        decrypt_keystore(keystore, "hunter2")


def test_fresh_salt_per_keystore():
    first = encrypt_keystore(SECRET, "qwerty", iterations=16)
    second = encrypt_keystore(SECRET, "qwerty", iterations=16)

    assert first["uuid"] != second["uuid"]
    assert first["crypto"]["kdf"]["params"]["salt"] != second["crypto"]["kdf"]["params"]["salt"]
