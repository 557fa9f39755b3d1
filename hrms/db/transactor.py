"""Scoped psycopg transactions with savepoint nesting and post-commit hooks."""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, ContextManager, Iterator, TypeVar

import psycopg
from psycopg_pool import ConnectionPool

from .. import errors
from ..context import RequestContext, logger_from_context

logger = logging.getLogger(__name__)

T = TypeVar("T")

PostCommitHook = Callable[[RequestContext], None]
RegisterHook = Callable[[PostCommitHook], None]
TxFunc = Callable[[RequestContext, RegisterHook], T]
DBTXContext = Callable[[RequestContext], ContextManager[psycopg.Connection]]


class NestedStrategy(str, Enum):
    """How a ``within_transaction`` call behaves when a transaction is already open."""

    savepoints = "savepoints"
    none = "none"


@dataclass(slots=True)
class TxHandle:
    """Open transaction scope installed on the context; opaque to handlers."""

    connection: psycopg.Connection
    depth: int
    hooks: list[PostCommitHook] = field(default_factory=list)


class Transactor:
    """Opens (possibly nested) transactions and defers side effects to after commit.

    Parameters
    ----------
    pool:
        Connection pool; the outermost transaction borrows one connection for its lifetime.
    hook_executor:
        Executor that runs post-commit hooks detached from the request.
    nested:
        Strategy for calls made while a transaction is already on the context.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        hook_executor: Executor,
        *,
        nested: NestedStrategy = NestedStrategy.savepoints,
    ) -> None:
        self._pool = pool
        self._hook_executor = hook_executor
        self._nested = nested

    @property
    def nested_strategy(self) -> NestedStrategy:
        return self._nested

    def within_transaction(self, ctx: RequestContext, fn: TxFunc[T]) -> T:
        """Run ``fn(ctx_with_tx, register_post_commit)`` inside a transaction.

        The transaction commits (or the savepoint is released) when ``fn``
        returns and rolls back when it raises; the exception is re-raised
        unchanged. Hooks run only after the outermost commit succeeds.
        """
        current: TxHandle | None = ctx.transaction
        if current is None:
            return self._run_outermost(ctx, fn)
        if self._nested is NestedStrategy.none:
            return fn(ctx, current.hooks.append)
        return self._run_savepoint(ctx, current, fn)

    def _run_outermost(self, ctx: RequestContext, fn: TxFunc[T]) -> T:
        remaining = ctx.remaining()
        if remaining is not None and remaining <= 0:
            raise errors.internal("request deadline exceeded before transaction start")

        fn_started = False
        fn_finished = False
        try:
            with self._pool.connection() as conn:
                with conn.transaction():
                    handle = TxHandle(connection=conn, depth=0)
                    self._apply_session_settings(conn, ctx, remaining)
                    fn_started = True
                    result = fn(replace(ctx, transaction=handle), handle.hooks.append)
                    fn_finished = True
        except psycopg.Error as exc:
            if not fn_started:
                logger_from_context(ctx).error("failed to begin transaction: %s", exc)
                raise errors.internal("failed to begin transaction") from exc
            if fn_finished:
                logger_from_context(ctx).error("failed to commit transaction: %s", exc)
                raise errors.internal("failed to commit transaction") from exc
            raise

        self._schedule_hooks(ctx, handle.hooks)
        return result

    def _run_savepoint(self, ctx: RequestContext, parent: TxHandle, fn: TxFunc[T]) -> T:
        handle = TxHandle(connection=parent.connection, depth=parent.depth + 1)
        with parent.connection.transaction():
            result = fn(replace(ctx, transaction=handle), handle.hooks.append)
        # savepoint released: its hooks now belong to the enclosing scope
        parent.hooks.extend(handle.hooks)
        return result

    def _apply_session_settings(
        self, conn: psycopg.Connection, ctx: RequestContext, remaining: float | None
    ) -> None:
        settings: list[tuple[str, str]] = []
        if ctx.tenant is not None:
            settings.append(("app.current_company_id", str(ctx.tenant.company_id)))
            settings.append(("app.current_branch_id", str(ctx.tenant.branch_id) if ctx.tenant.branch_id else ""))
            settings.append(("app.is_admin", "true" if ctx.tenant.is_admin else "false"))
        if ctx.user is not None:
            settings.append(("app.user_role", ctx.user.role))
            settings.append(("app.current_user_id", str(ctx.user.id)))
        if remaining is not None:
            settings.append(("statement_timeout", f"{max(1, int(remaining * 1000))}ms"))
        for name, value in settings:
            conn.execute("SELECT set_config(%s, %s, true)", (name, value))

    def _schedule_hooks(self, ctx: RequestContext, hooks: list[PostCommitHook]) -> None:
        if not hooks:
            return
        commit_ctx = replace(ctx, transaction=None, deadline=None)
        try:
            self._hook_executor.submit(_run_hooks, commit_ctx, list(hooks))
        except RuntimeError:
            logger_from_context(ctx).error("post-commit hooks dropped: executor is shut down")

    @contextmanager
    def connection(self, ctx: RequestContext) -> Iterator[psycopg.Connection]:
        """Yield the open transaction's connection, or borrow one from the pool."""
        handle: TxHandle | None = ctx.transaction
        if handle is not None:
            yield handle.connection
            return
        with self._pool.connection() as conn:
            yield conn

    @property
    def db_context(self) -> DBTXContext:
        return self.connection


def _run_hooks(ctx: RequestContext, hooks: list[PostCommitHook]) -> None:
    log = logger_from_context(ctx)
    for hook in hooks:
        try:
            hook(ctx)
        except Exception:
            log.exception("post-commit hook %s failed", getattr(hook, "__qualname__", hook))


def is_within_transaction(ctx: RequestContext) -> bool:
    return ctx.transaction is not None

