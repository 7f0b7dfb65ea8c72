import bcrypt

from settings.config import get_settings


def hash_password(plain_password: str) -> str:
    """
    bcrypt hash with a per-password salt; the cost factor comes from BCRYPT_ROUNDS.
    """
    if not isinstance(plain_password, str):
        raise TypeError("Password must be a string")
    salt = bcrypt.gensalt(rounds=get_settings().BCRYPT_ROUNDS)
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    # A malformed stored hash counts as a mismatch
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def password_needs_rehash(password_hash: str) -> bool:
    """
    True when the stored hash was made with a different cost factor than the
    one currently configured. Hashes look like "$2b$12$<salt+digest>".
    """
    parts = password_hash.split("$")
    if len(parts) < 4 or not parts[2].isdigit():
        return True
    return int(parts[2]) != get_settings().BCRYPT_ROUNDS
