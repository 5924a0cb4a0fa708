"""
Random code and key generators: pure, side-effect-free functions.

All generators use cryptographically secure sources (``secrets`` module).
"""

from __future__ import annotations

import secrets


def generate_otp_code(low: int = 1000, high: int = 9999) -> str:
    """Generate a numeric OTP uniformly from the inclusive range [low, high].

    Returns:
        The code as a decimal string.
    """
    return str(low + secrets.randbelow(high - low + 1))


def generate_token_id() -> str:
    """Generate a random identifier for a refresh token (JWT ``jti``)."""
    return secrets.token_urlsafe(24)


def generate_object_key(filename: str) -> str:
    """Build a collision-resistant storage key for an uploaded file.

    The key is 16 random bytes in hex followed by the original filename,
    e.g. ``"9f1c...e2_shirt.png"``. Path separators in *filename* are
    replaced so the key never nests.
    """
    safe_name = filename.replace("/", "_").replace("\\", "_")
    return f"{secrets.token_hex(16)}_{safe_name}"
