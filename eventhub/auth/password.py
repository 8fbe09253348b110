"""Credential storage for user accounts.

Digests are argon2id strings that carry their own parameters, so a digest
created under older parameters still verifies and can be upgraded at the next
successful login (see :func:`needs_rehash`).
"""

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError

_hasher = PasswordHasher()


def hash_password(plain: str) -> str:
    if not plain:
        raise ValueError("password is required")
    try:
        return _hasher.hash(plain)
    except HashingError as exc:
        raise ValueError("failed to hash password") from exc


def verify_password(plain: str, digest: str) -> bool:
    # A corrupt or foreign digest in the users table reads as a wrong password.
    if not plain or not digest:
        return False
    try:
        return _hasher.verify(digest, plain)
    except (VerificationError, InvalidHashError):
        return False


def needs_rehash(digest: str) -> bool:
    try:
        return _hasher.check_needs_rehash(digest)
    except InvalidHashError:
        return True
