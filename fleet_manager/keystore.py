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

"""EIP-2335 keystores (pbkdf2 + aes-128-ctr)."""

from __future__ import annotations

import hashlib
import secrets
import unicodedata
import uuid

from Crypto.Cipher import AES

from fleet_manager.constants import KEYSTORE_PBKDF2_ITERATIONS

_DKLEN = 32


def _normalize_password(password: str) -> bytes:
    """NFKD-normalize and drop control codes, as EIP-2335 requires."""
    normalized = unicodedata.normalize("NFKD", password)
    return "".join(
        c for c in normalized if not (ord(c) < 0x20 or 0x7F <= ord(c) <= 0x9F)
    ).encode("utf-8")


def encrypt_keystore(
    secret: bytes,
    password: str,
    *,
    pubkey: bytes = b"",
    path: str = "",
    iterations: int = KEYSTORE_PBKDF2_ITERATIONS,
) -> dict:
    """Encrypt *secret* into an EIP-2335 version 4 keystore.

    Args:
        secret: Plaintext to protect (a BLS secret key, or a wallet blob).
        password: Keystore password.
        pubkey: Public key recorded in the keystore, if any.
        path: EIP-2334 derivation path recorded in the keystore.
        iterations: pbkdf2 iteration count.

    Returns:
        The keystore as a JSON-ready dict.
    """
    salt = secrets.token_bytes(32)
    iv = secrets.token_bytes(16)
    key = hashlib.pbkdf2_hmac("sha256", _normalize_password(password), salt, iterations, _DKLEN)
    cipher = AES.new(key[:16], AES.MODE_CTR, nonce=b"", initial_value=iv)
    message = cipher.encrypt(secret)
    checksum = hashlib.sha256(key[16:32] + message).digest()
    return {
        "crypto": {
            "kdf": {
                "function": "pbkdf2",
                "params": {"dklen": _DKLEN, "c": iterations, "prf": "hmac-sha256", "salt": salt.hex()},
                "message": "",
            },
            "checksum": {"function": "sha256", "params": {}, "message": checksum.hex()},
            "cipher": {"function": "aes-128-ctr", "params": {"iv": iv.hex()}, "message": message.hex()},
        },
        "description": "",
        "pubkey": pubkey.hex(),
        "path": path,
        "uuid": str(uuid.uuid4()),
        "version": 4,
    }


def decrypt_keystore(keystore: dict, password: str) -> bytes:
    """Recover the secret from a keystore produced by encrypt_keystore.

    Raises:
        ValueError: If the password does not match the checksum.
    """
    crypto = keystore["crypto"]
    params = crypto["kdf"]["params"]
    key = hashlib.pbkdf2_hmac(
        "sha256", _normalize_password(password), bytes.fromhex(params["salt"]), params["c"], params["dklen"]
    )
    message = bytes.fromhex(crypto["cipher"]["message"])
    if hashlib.sha256(key[16:32] + message).hexdigest() != crypto["checksum"]["message"]:
        raise ValueError("keystore checksum mismatch")
    iv = bytes.fromhex(crypto["cipher"]["params"]["iv"])
    return AES.new(key[:16], AES.MODE_CTR, nonce=b"", initial_value=iv).decrypt(message)
