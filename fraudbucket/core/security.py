"""
Security helpers:
- Argon2 password hashing via argon2-cffi, run off the event loop
- Unguessable passcodes for password-reset links
"""

from __future__ import annotations

import asyncio
import secrets

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

ph = PasswordHasher()

PASSCODE_BYTES = 32


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2."""
    return ph.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    """Verify a plaintext password against an Argon2 hash.

    Malformed or missing hashes verify as False.
    """
    if not password_hash:
        return False
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


async def hash_password_async(password: str) -> str:
    return await asyncio.to_thread(hash_password, password)


async def verify_password_async(password: str, password_hash: str | None) -> bool:
    return await asyncio.to_thread(verify_password, password, password_hash)


def generate_passcode() -> str:
    """Generate a URL-safe one-time passcode."""
    return secrets.token_urlsafe(PASSCODE_BYTES)
