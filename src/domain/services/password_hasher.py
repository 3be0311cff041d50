from __future__ import annotations

from argon2 import PasswordHasher as Argon2Hasher
from argon2.exceptions import InvalidHashError, VerificationError
from argon2.low_level import Type

_argon2 = Argon2Hasher(time_cost=2, memory_cost=102400, parallelism=8, hash_len=32, type=Type.ID)


class PasswordHasher:
    """Argon2id password hashing.

    Hashes are stored in argon2's encoded form (``$argon2id$v=19$...``).
    """

    @staticmethod
    def hash(password: str) -> str:
        return _argon2.hash(password)

    # Mismatches and malformed or foreign encodings all verify as False.
    @staticmethod
    def verify(password: str, encoded: str) -> bool:
        if not encoded:
            return False
        try:
            return _argon2.verify(encoded, password)
        except (VerificationError, InvalidHashError):
            return False
