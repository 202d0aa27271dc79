import hashlib
import hmac
import secrets

SALT_SEPARATOR = "$"


def _digest(password: str, salt: str) -> str:
    return hashlib.sha256((salt + password).encode()).hexdigest()


def hash_password(password: str) -> str:
    """Hash with a fresh random salt. The salt travels inside the returned string."""
    salt = secrets.token_hex(16)
    return f"{salt}{SALT_SEPARATOR}{_digest(password, salt)}"


def verify_password(password: str, hashed: str) -> bool:
    """Check a plaintext password against a stored hash. Malformed hashes never match."""
    if not isinstance(password, str) or not isinstance(hashed, str):
        return False
    salt, sep, expected = hashed.partition(SALT_SEPARATOR)
    if not sep or not salt or not expected:
        return False
    return hmac.compare_digest(_digest(password, salt), expected)
