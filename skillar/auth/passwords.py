"""Salted PBKDF2-SHA256 password hashes in `pbkdf2_sha256$<iterations>$<salt>$<hash>` form."""

import base64
import os

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

ALGORITHM = "pbkdf2_sha256"
ITERATIONS = 260_000
KEY_LENGTH = 32


def _kdf(salt: bytes, iterations: int) -> PBKDF2HMAC:
    return PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=iterations,
    )


def hash_password(password: str, iterations: int = ITERATIONS) -> str:
    salt = base64.b64encode(os.urandom(16)).decode("ascii")
    key = _kdf(salt.encode("ascii"), iterations).derive(password.encode("utf-8"))
    return f"{ALGORITHM}${iterations}${salt}${base64.b64encode(key).decode('ascii')}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt, expected = encoded.split("$", 3)
        iterations = int(iterations)
        expected_key = base64.b64decode(expected, validate=True)
    except (AttributeError, ValueError):
        return False
    if algorithm != ALGORITHM:
        return False
    try:
        # verify() compares in constant time
        _kdf(salt.encode("ascii"), iterations).verify(password.encode("utf-8"), expected_key)
    except (InvalidKey, ValueError):
        return False
    return True
