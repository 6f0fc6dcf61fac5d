"""Password hashing and temporary password generation."""
import secrets
import string

from passlib.context import CryptContext

pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto"
)

_TEMP_ALPHABET = string.ascii_lowercase + string.digits


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def generate_temporary_password(length: int = 8) -> str:
    return "".join(secrets.choice(_TEMP_ALPHABET) for _ in range(length))
