"""Password hashing with bcrypt."""

import base64
import hashlib

import bcrypt


def _prepare(password: str) -> bytes:
    # bcrypt ignores everything past 72 bytes; a SHA-256 digest keeps every byte significant
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(_prepare(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(_prepare(password), password_hash.encode("utf-8"))
