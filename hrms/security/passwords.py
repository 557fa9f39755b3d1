"""Pluggable password hashing backed by passlib."""

from __future__ import annotations

from typing import Protocol

from passlib.context import CryptContext


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...

    def verify(self, password: str, encoded: str) -> bool: ...


class PasslibHasher:
    """Argon2id hashes; unknown or malformed encodings verify as ``False``."""

    def __init__(self, context: CryptContext | None = None) -> None:
        self._context = context or CryptContext(schemes=["argon2"], deprecated="auto")

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, encoded: str) -> bool:
        try:
            return self._context.verify(password, encoded)
        except (ValueError, TypeError):
            return False
