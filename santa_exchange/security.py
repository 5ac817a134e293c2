from __future__ import annotations

from passlib.context import CryptContext


pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)


def hash_passphrase(passphrase: str) -> str:
    """Store an argon2 hash of the participant's passphrase."""
    return pwd_context.hash(passphrase)


def verify_passphrase(passphrase: str, stored_hash: str | None) -> bool:
    if not passphrase or not stored_hash:
        return False
    return pwd_context.verify(passphrase, stored_hash)
