"""
Cryptographic helpers: password and one-time-code hashing.

Uses argon2 (via argon2-cffi) for both. OTP codes come from a small numeric
space, so they get the same salted, slow hash as passwords rather than a bare
digest.
"""

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_password_hasher = PasswordHasher()


def hash_password(plain_password: str) -> str:
    """Hash *plain_password* with argon2id.

    Returns:
        Argon2 hash string (includes algorithm parameters and salt).
    """
    return _password_hasher.hash(plain_password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify *plain_password* against an argon2 *password_hash*.

    Returns:
        ``True`` if the password matches, ``False`` for a wrong password or
        an unparseable hash.
    """
    if not password_hash:
        return False
    try:
        return _password_hasher.verify(password_hash, plain_password)
    except (VerificationError, InvalidHashError):
        return False


def hash_otp(otp_code: str) -> str:
    """Hash a plaintext OTP before it is stored."""
    return _password_hasher.hash(otp_code)


def verify_otp_hash(otp_code: str, otp_hash: str) -> bool:
    """Compare a submitted OTP with its stored hash."""
    return verify_password(otp_code, otp_hash)
