"""In-memory stand-ins for Postgres, the connection pool and the hook executor."""

from __future__ import annotations

import uuid
from concurrent.futures import Executor, Future
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator
from uuid import UUID

import psycopg
from psycopg import errors as pg_errors

from hrms.contracts import BranchDTO, CompanyDTO, CreatedUser
from hrms.modules.activitylog.repository import ActivityLogFilter, ActivityLogRecord
from hrms.modules.auth.repository import PrincipalRecord
from hrms.modules.user.repository import CompanyMembership, UserRecord
from hrms.security import RefreshRecord


PASSWORD = "correct-horse-battery"


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def __init__(self) -> None:
        self._shutdown = False

    def submit(self, fn, /, *args, **kwargs) -> Future:
        if self._shutdown:
            raise RuntimeError("cannot schedule new futures after shutdown")
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:
            future.set_exception(exc)
        return future

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        self._shutdown = True


class FakeConnection:
    """Records statements per transaction frame; a frame merges into its parent on success."""

    def __init__(self) -> None:
        self.committed: list[tuple[str, Any]] = []
        self.session_settings: list[tuple[str, str]] = []
        self.commits = 0
        self.rollbacks = 0
        self.fail_commit = False
        self._frames: list[list[tuple[str, Any]]] = []

    @property
    def depth(self) -> int:
        return len(self._frames)

    @contextmanager
    def transaction(self) -> Iterator["FakeConnection"]:
        frame: list[tuple[str, Any]] = []
        self._frames.append(frame)
        try:
            yield self
        except BaseException:
            self._frames.pop()
            self.rollbacks += 1
            raise
        self._frames.pop()
        if self._frames:
            self._frames[-1].extend(frame)
            return
        if self.fail_commit:
            self.rollbacks += 1
            raise psycopg.OperationalError("connection lost during commit")
        self.committed.extend(frame)
        self.commits += 1

    def execute(self, query: str, params: Any = None) -> None:
        if "set_config" in query:
            self.session_settings.append(tuple(params))
            return
        if self._frames:
            self._frames[-1].append((query, params))
        else:
            self.committed.append((query, params))

    def statements(self) -> list[str]:
        return [query for query, _ in self.committed]


class FakePool:
    def __init__(self) -> None:
        self.conn = FakeConnection()
        self.borrowed = 0
        self.opened = False
        self.closed = False
        self.fail_connect = False

    @contextmanager
    def connection(self) -> Iterator[FakeConnection]:
        if self.fail_connect:
            raise psycopg.OperationalError("connection refused")
        self.borrowed += 1
        yield self.conn

    def open(self) -> None:
        self.opened = True

    def close(self) -> None:
        self.closed = True


class RecordingConnection:
    """Captures the SQL a repository issues and replays queued result rows."""

    def __init__(self, *rows: Any) -> None:
        self.executed: list[tuple[str, Any]] = []
        self.rows = list(rows)

    @contextmanager
    def cursor(self, row_factory: Any = None) -> Iterator["RecordingConnection"]:
        yield self

    def execute(self, query: str, params: Any = None) -> None:
        self.executed.append((" ".join(query.split()), params))

    def fetchone(self) -> Any:
        return self.rows.pop(0) if self.rows else None

    def fetchall(self) -> list[Any]:
        rows, self.rows = self.rows, []
        return rows

    def db(self, ctx) -> Any:
        return nullcontext(self)


@dataclass
class StoredUser:
    id: UUID
    username: str
    password_hash: str
    role: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    deleted: bool = False


class FakeDatabase:
    """Implements every module repository's methods over plain dictionaries."""

    def __init__(self) -> None:
        self.users: dict[UUID, StoredUser] = {}
        self.refresh_tokens: dict[str, RefreshRecord] = {}
        self.access_logs: list[tuple[UUID, str, str, str]] = []
        self.companies: dict[UUID, CompanyDTO] = {}
        self.branches: dict[UUID, BranchDTO] = {}
        self.company_roles: dict[tuple[UUID, UUID], str] = {}
        self.branch_access: set[tuple[UUID, UUID]] = set()
        self.activity_logs: list[ActivityLogRecord] = []

    # seeding helpers

    def add_user(self, username: str, password_hash: str, role: str) -> UUID:
        user = StoredUser(id=uuid.uuid4(), username=username, password_hash=password_hash, role=role)
        self.users[user.id] = user
        return user.id

    def add_company(self, code: str, name: str | None = None) -> UUID:
        company = CompanyDTO(id=uuid.uuid4(), code=code, name=name or code, status="active")
        self.companies[company.id] = company
        return company.id

    def add_branch(self, company_id: UUID, code: str, *, is_default: bool = False) -> UUID:
        branch = BranchDTO(id=uuid.uuid4(), company_id=company_id, code=code, name=code, is_default=is_default)
        self.branches[branch.id] = branch
        return branch.id

    def grant(self, user_id: UUID, company_id: UUID, role: str, *branch_ids: UUID) -> None:
        self.company_roles[(user_id, company_id)] = role
        for branch_id in branch_ids:
            self.branch_access.add((user_id, branch_id))

    def refresh_record(self, digest: str) -> RefreshRecord | None:
        return self.refresh_tokens.get(digest)

    # auth

    def find_user_by_username(self, ctx, username: str) -> PrincipalRecord | None:
        for user in self.users.values():
            if user.username == username and not user.deleted:
                return PrincipalRecord(user.id, user.username, user.password_hash, user.role)
        return None

    def is_principal_active(self, ctx, user_id: UUID) -> bool:
        user = self.users.get(user_id)
        return user is not None and not user.deleted

    def insert_refresh_token(self, ctx, token_hash: str, user_id: UUID, expires_at: datetime) -> None:
        self.refresh_tokens[token_hash] = RefreshRecord(
            id=uuid.uuid4(),
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at,
            revoked_at=None,
            created_at=datetime.now(timezone.utc),
        )

    def get_refresh_token(self, ctx, token_hash: str, *, for_update: bool = False) -> RefreshRecord | None:
        return self.refresh_tokens.get(token_hash)

    def revoke_refresh_token(self, ctx, token_hash: str) -> None:
        record = self.refresh_tokens.get(token_hash)
        if record is not None and record.revoked_at is None:
            record.revoked_at = datetime.now(timezone.utc)

    def log_access(self, ctx, user_id: UUID, status: str, ip: str, user_agent: str) -> None:
        self.access_logs.append((user_id, status, ip, user_agent))

    # tenant

    def get_company_role(self, ctx, user_id: UUID, company_id: UUID) -> str | None:
        return self.company_roles.get((user_id, company_id))

    def get_branch_access(self, ctx, user_id: UUID, branch_id: UUID) -> tuple[bool, UUID | None]:
        branch = self.branches.get(branch_id)
        if branch is None:
            return False, None
        return (user_id, branch_id) in self.branch_access, branch.company_id

    def list_branches(self, ctx, user_id: UUID, company_id: UUID, *, all_branches: bool) -> list[BranchDTO]:
        branches = [
            branch
            for branch in self.branches.values()
            if branch.company_id == company_id and (all_branches or (user_id, branch.id) in self.branch_access)
        ]
        return sorted(branches, key=lambda b: (not b.is_default, b.code))

    # company

    def create_company(self, ctx, code: str, name: str, actor_id: UUID) -> CompanyDTO:
        if any(company.code == code for company in self.companies.values()):
            raise pg_errors.UniqueViolation("duplicate key value violates unique constraint companies_code_key")
        now = datetime.now(timezone.utc)
        company = CompanyDTO(id=uuid.uuid4(), code=code, name=name, status="active", created_at=now, updated_at=now)
        self.companies[company.id] = company
        return company

    def create_default_branch(self, ctx, company_id: UUID, actor_id: UUID) -> BranchDTO:
        branch = BranchDTO(id=uuid.uuid4(), company_id=company_id, code="HQ", name="Head Office", is_default=True)
        self.branches[branch.id] = branch
        return branch

    def get_company(self, ctx, company_id: UUID) -> CompanyDTO | None:
        return self.companies.get(company_id)

    def list_companies(self, ctx) -> list[CompanyDTO]:
        return sorted(self.companies.values(), key=lambda c: c.code)

    # user

    def create_user(self, ctx, username: str, password_hash: str, role: str, actor_id: UUID) -> CreatedUser:
        if self.find_user_by_username(ctx, username) is not None:
            raise pg_errors.UniqueViolation("duplicate key value violates unique constraint users_username_key")
        user_id = self.add_user(username, password_hash, role)
        user = self.users[user_id]
        return CreatedUser(id=user.id, username=user.username, role=user.role, created_at=user.created_at)

    def assign_to_company(self, ctx, user_id: UUID, company_id: UUID, role: str, actor_id: UUID) -> None:
        self.company_roles[(user_id, company_id)] = role

    def assign_to_branch(self, ctx, user_id: UUID, branch_id: UUID, actor_id: UUID) -> None:
        self.branch_access.add((user_id, branch_id))

    def get_user(self, ctx, user_id: UUID) -> UserRecord | None:
        user = self.users.get(user_id)
        if user is None or user.deleted:
            return None
        return UserRecord(id=user.id, username=user.username, role=user.role, password_hash=user.password_hash)

    def update_password(self, ctx, user_id: UUID, password_hash: str) -> None:
        self.users[user_id].password_hash = password_hash

    def list_memberships(self, ctx, user_id: UUID) -> list[CompanyMembership]:
        memberships = [
            CompanyMembership(company_id, self.companies[company_id].code, self.companies[company_id].name, role)
            for (member_id, company_id), role in self.company_roles.items()
            if member_id == user_id and company_id in self.companies
        ]
        return sorted(memberships, key=lambda m: m.company_code)

    # activity log

    def create_log(
        self,
        ctx,
        *,
        user_id: UUID,
        company_id: UUID | None,
        branch_id: UUID | None,
        action: str,
        entity: str,
        entity_id: str,
        details: dict[str, Any],
        created_at: datetime,
    ) -> int:
        user = self.users.get(user_id)
        record = ActivityLogRecord(
            id=len(self.activity_logs) + 1,
            user_id=user_id,
            company_id=company_id,
            branch_id=branch_id,
            action=action,
            entity=entity,
            entity_id=entity_id,
            details=dict(details),
            created_at=created_at,
            user_name=user.username if user else "Unknown",
        )
        self.activity_logs.append(record)
        return record.id

    def list_logs(
        self,
        ctx,
        *,
        company_id: UUID | None,
        branch_id: UUID | None,
        filters: ActivityLogFilter,
        page: int,
        limit: int,
    ) -> tuple[list[ActivityLogRecord], int]:
        results = list(self.activity_logs)
        if company_id is not None:
            results = [r for r in results if r.company_id == company_id]
        if branch_id is not None:
            results = [r for r in results if r.branch_id == branch_id]
        if filters.action:
            results = [r for r in results if r.action == filters.action]
        if filters.entity:
            results = [r for r in results if r.entity == filters.entity]
        if filters.user_name:
            results = [r for r in results if filters.user_name.lower() in r.user_name.lower()]
        if filters.from_date:
            results = [r for r in results if r.created_at.date() >= filters.from_date]
        if filters.to_date:
            results = [r for r in results if r.created_at.date() < filters.to_date + timedelta(days=1)]
        results.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        start = (page - 1) * limit
        return results[start : start + limit], len(results)

    def distinct_filters(self, ctx, company_id: UUID) -> tuple[list[str], list[str]]:
        scoped = [r for r in self.activity_logs if r.company_id == company_id]
        return sorted({r.action for r in scoped}), sorted({r.entity for r in scoped})
