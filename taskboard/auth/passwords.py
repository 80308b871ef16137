import bcrypt

from taskboard.core import config
from taskboard.errors import InvalidRecordError

_BCRYPT_PREFIXES = ('$2a$', '$2b$', '$2y$')
# bcrypt only looks at the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72


def is_password_hash(value: str) -> bool:
    return value.startswith(_BCRYPT_PREFIXES) and len(value) == 60


def hash_password(password: str, rounds: int | None = None) -> str:
    encoded = password.encode('utf-8')
    if not encoded:
        raise InvalidRecordError('Password is required.')
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise InvalidRecordError(f'Password must be {MAX_PASSWORD_BYTES} bytes or fewer.')

    salt = bcrypt.gensalt(rounds=rounds or config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(encoded, salt).decode('ascii')


def ensure_password_hash(password: str) -> str:
    """Hash plaintext passwords; values that are already bcrypt hashes pass through."""
    if is_password_hash(password):
        return password
    return hash_password(password)


def verify_password(password: str, password_hash: str) -> bool:
    encoded = password.encode('utf-8')
    if not is_password_hash(password_hash) or len(encoded) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(encoded, password_hash.encode('ascii'))
