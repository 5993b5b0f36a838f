"""Password hashing for the directory's stored credentials.

The algorithm is a property of the directory, selected by configuration. Every
verification is constant-time, either through ``hmac.compare_digest`` or the
hashing library's own verify.
"""

import base64
import hashlib
import hmac
import secrets
from collections.abc import Callable

import bcrypt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

PBKDF2_ALGORITHM = "pbkdf2_sha256"
PBKDF2_ITERATIONS = 600_000

# bcrypt only reads this many bytes of a password
BCRYPT_MAX_PASSWORD_BYTES = 72

_DIGESTS = {
    "MD5": "md5",
    "SHA-1": "sha1",
    "SHA-256": "sha256",
    "SHA-384": "sha384",
    "SHA-512": "sha512",
}

_argon2 = PasswordHasher()


def _hex_digest(name: str) -> tuple[Callable[[str], str], Callable[[str, str], bool]]:
    def _hash(password: str) -> str:
        return hashlib.new(name, password.encode("utf-8")).hexdigest()

    def _verify(stored: str, password: str) -> bool:
        return hmac.compare_digest(
            stored.strip().lower().encode("utf-8"), _hash(password).encode("utf-8")
        )

    return _hash, _verify


def hash_pbkdf2_sha256(
    password: str, salt: str | None = None, iterations: int = PBKDF2_ITERATIONS
) -> str:
    """Hash a password as ``pbkdf2_sha256$<iterations>$<salt>$<base64 hash>``."""
    salt = salt or secrets.token_urlsafe(16)
    derived = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations
    )
    encoded = base64.b64encode(derived).decode("ascii")
    return f"{PBKDF2_ALGORITHM}${iterations}${salt}${encoded}"


def verify_pbkdf2_sha256(stored: str, password: str) -> bool:
    parts = stored.split("$")
    if len(parts) != 4 or parts[0] != PBKDF2_ALGORITHM:
        return False

    _, iterations, salt, _ = parts
    try:
        expected = hash_pbkdf2_sha256(password, salt=salt, iterations=int(iterations))
    except ValueError:
        return False
    return hmac.compare_digest(stored.encode("utf-8"), expected.encode("utf-8"))


def hash_bcrypt(password: str) -> str:
    """Hash with bcrypt.

    Raises:
        ValueError: The password is longer than bcrypt can hash
    """
    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
        raise ValueError(
            f"password cannot be longer than {BCRYPT_MAX_PASSWORD_BYTES} bytes for bcrypt"
        )
    return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode("ascii")


def verify_bcrypt(stored: str, password: str) -> bool:
    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, stored.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash
        return False


def hash_argon2(password: str) -> str:
    return _argon2.hash(password)


def verify_argon2(stored: str, password: str) -> bool:
    try:
        return _argon2.verify(stored, password)
    except (VerificationError, InvalidHashError):
        return False


_HASH_FUNCTIONS: dict[str, tuple[Callable[[str], str], Callable[[str, str], bool]]] = {
    **{function: _hex_digest(name) for function, name in _DIGESTS.items()},
    "PBKDF2-SHA256": (hash_pbkdf2_sha256, verify_pbkdf2_sha256),
    "Blowfish": (hash_bcrypt, verify_bcrypt),
    "Argon2": (hash_argon2, verify_argon2),
}


def _lookup(hash_function: str):
    try:
        return _HASH_FUNCTIONS[hash_function]
    except KeyError:
        raise ValueError(f"Unsupported hash function '{hash_function}'") from None


def hash_password(hash_function: str, password: str) -> str:
    """Hash a password with the named hash function.

    Args:
        hash_function: One of the configured hash function names (e.g. "Argon2")
        password: Cleartext password

    Returns:
        Stored representation of the password

    Raises:
        ValueError: Unknown hash function, or a password the function cannot hash
    """
    hasher, _ = _lookup(hash_function)
    return hasher(password)


def verify_password(hash_function: str, stored: str | None, password: str) -> bool:
    """Check a cleartext password against its stored representation.

    Args:
        hash_function: Hash function the stored value was produced with
        stored: Stored hash, or None when the user has no password
        password: Cleartext password presented by the user

    Returns:
        True if the password matches, False otherwise (including no stored hash)
    """
    if not stored:
        return False
    _, verifier = _lookup(hash_function)
    return verifier(stored, password)
