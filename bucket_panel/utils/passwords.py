"""Password hashing and temporary password generation"""

import secrets

import bcrypt

# No look-alike characters (0/O, 1/l/I)
CHARSETS = {
    "upper": "ABCDEFGHJKLMNPQRSTUVWXYZ",
    "lower": "abcdefghijkmnopqrstuvwxyz",
    "digits": "23456789",
    "symbols": "!@#$%&*?",
}

MIN_PASSWORD_LENGTH = 14
# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72


def generate_secure_password(length: int = MIN_PASSWORD_LENGTH) -> str:
    """
    Generate a temporary password with at least one character of each class.

    Args:
        length: Desired length (never less than 14)

    Returns:
        Shuffled password string
    """
    length = max(length, MIN_PASSWORD_LENGTH)
    all_chars = "".join(CHARSETS.values())

    result = [secrets.choice(pool) for pool in CHARSETS.values()]
    result.extend(secrets.choice(all_chars) for _ in range(length - len(result)))

    # Fisher-Yates with a CSPRNG
    for i in range(len(result) - 1, 0, -1):
        j = secrets.randbelow(i + 1)
        result[i], result[j] = result[j], result[i]

    return "".join(result)


def hash_password(password: str) -> str:
    """Hash a password with bcrypt"""
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password is longer than {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash; malformed hashes never match"""
    encoded = password.encode("utf-8")
    if not password_hash or len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        return False
