import re

import bcrypt

from recovery_service.libs.result import Error, Result, Return

BCRYPT_ROUNDS = 12
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 20

_SPECIAL_CHARACTERS = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")


class PasswordHasher:
    """Bcrypt hashing plus the app's password strength policy"""

    def __init__(self, rounds: int = BCRYPT_ROUNDS):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(self.rounds)).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))

    def validate(self, password: str) -> Result[None]:
        """
        Validate password complexity.

        8-20 characters with at least one uppercase letter, one lowercase
        letter, one digit and one special character.
        """
        if not MIN_PASSWORD_LENGTH <= len(password) <= MAX_PASSWORD_LENGTH:
            return Return.err(
                Error(
                    "INVALID_PASSWORD",
                    f"Password must be {MIN_PASSWORD_LENGTH}-{MAX_PASSWORD_LENGTH} characters long",
                )
            )

        checks = (
            re.search(r"[A-Z]", password),
            re.search(r"[a-z]", password),
            re.search(r"[0-9]", password),
            _SPECIAL_CHARACTERS.search(password),
        )
        if not all(checks):
            return Return.err(
                Error(
                    "INVALID_PASSWORD",
                    "Password must include uppercase, lowercase, number, and special character",
                )
            )

        return Return.ok(None)
