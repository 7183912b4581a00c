"""Password hashing.

Hashes are stored as ``"<hex digest>.<hex salt>"`` using scrypt with a
64-byte key, so accounts created by earlier deployments keep working.
"""

import hashlib
import hmac
import secrets

SALT_BYTES = 16
KEY_LENGTH = 64

# scrypt cost parameters
_N = 16384
_R = 8
_P = 1


def _derive(password: str, salt: str) -> bytes:
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=_N,
        r=_R,
        p=_P,
        dklen=KEY_LENGTH,
    )


def hash_password(password: str) -> str:
    """Hash a plaintext password with a fresh random salt."""
    salt = secrets.token_hex(SALT_BYTES)
    return f"{_derive(password, salt).hex()}.{salt}"


def verify_password(supplied: str, stored: str) -> bool:
    """Check ``supplied`` against a stored hash in constant time.

    Malformed stored values never match.
    """
    hashed, sep, salt = stored.partition(".")
    if not sep or not salt:
        return False
    try:
        expected = bytes.fromhex(hashed)
    except ValueError:
        return False
    return hmac.compare_digest(expected, _derive(supplied, salt))


def is_hashed(value: str) -> bool:
    """Whether ``value`` looks like a hash produced by ``hash_password``."""
    hashed, sep, salt = value.partition(".")
    if not sep or len(hashed) != KEY_LENGTH * 2 or len(salt) != SALT_BYTES * 2:
        return False
    try:
        bytes.fromhex(hashed)
        bytes.fromhex(salt)
    except ValueError:
        return False
    return True
