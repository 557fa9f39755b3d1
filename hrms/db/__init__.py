"""Database access primitives shared by module repositories."""

from .transactor import (
    DBTXContext,
    NestedStrategy,
    PostCommitHook,
    RegisterHook,
    Transactor,
    TxHandle,
    is_within_transaction,
)

__all__ = [
    "DBTXContext",
    "NestedStrategy",
    "PostCommitHook",
    "RegisterHook",
    "Transactor",
    "TxHandle",
    "is_within_transaction",
]
