from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from hrms import errors
from hrms.context import RequestContext
from hrms.db import Transactor
from hrms.security import CredentialService, TokenService

from .fakes import FakeDatabase, FakePool, InlineExecutor


def build_service(database: FakeDatabase, refresh_ttl: timedelta = timedelta(hours=1)) -> CredentialService:
    tokens = TokenService(
        "access-secret-0123456789abcdef",
        "refresh-secret-0123456789abcdef",
        timedelta(minutes=15),
        refresh_ttl,
    )
    return CredentialService(tokens, database, Transactor(FakePool(), InlineExecutor()))


@pytest.fixture()
def database() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture()
def service(database: FakeDatabase) -> CredentialService:
    return build_service(database)


@pytest.fixture()
def user_id(database: FakeDatabase):
    return database.add_user("alice", "hash", "admin")


def assert_unauthorized(exc_info) -> None:
    assert exc_info.value.code is errors.ErrorCode.unauthorized


def test_issue_persists_only_the_digest(service, database, user_id):
    pair = service.issue(RequestContext(), user_id, "alice", "admin")

    digest = service.tokens.digest(pair.refresh_token)
    assert list(database.refresh_tokens) == [digest]
    assert pair.refresh_token not in database.refresh_tokens
    record = database.refresh_record(digest)
    assert record.user_id == user_id
    assert record.expires_at == pair.refresh_expires_at
    assert record.is_valid()


def test_authenticate_accepts_access_and_rejects_refresh(service, user_id):
    pair = service.issue(RequestContext(), user_id, "alice", "admin")

    assert service.authenticate(RequestContext(), pair.access_token).user_id == user_id
    with pytest.raises(errors.AppError) as exc_info:
        service.authenticate(RequestContext(), pair.refresh_token)
    assert_unauthorized(exc_info)


def test_rotate_revokes_old_digest_and_stores_new_one(service, database, user_id):
    pair = service.issue(RequestContext(), user_id, "alice", "admin")

    new_pair, claims = service.rotate(RequestContext(), f"  {pair.refresh_token}\n")

    assert claims.user_id == user_id
    assert database.refresh_record(service.tokens.digest(pair.refresh_token)).revoked_at is not None
    assert database.refresh_record(service.tokens.digest(new_pair.refresh_token)).is_valid()


def test_rotating_a_revoked_token_is_rejected(service, user_id):
    pair = service.issue(RequestContext(), user_id, "alice", "admin")
    service.rotate(RequestContext(), pair.refresh_token)

    with pytest.raises(errors.AppError) as exc_info:
        service.rotate(RequestContext(), pair.refresh_token)
    assert_unauthorized(exc_info)


def test_rotate_rejects_unknown_and_mismatched_records(service, database, user_id):
    pair = service.tokens.issue_pair(user_id, "alice", "admin")
    with pytest.raises(errors.AppError) as exc_info:
        service.rotate(RequestContext(), pair.refresh_token)
    assert_unauthorized(exc_info)

    other = database.add_user("mallory", "hash", "hr")
    digest = service.tokens.digest(pair.refresh_token)
    database.insert_refresh_token(RequestContext(), digest, other, pair.refresh_expires_at)
    with pytest.raises(errors.AppError) as exc_info:
        service.rotate(RequestContext(), pair.refresh_token)
    assert_unauthorized(exc_info)


def test_rotate_rejects_record_past_its_stored_expiry(service, database, user_id):
    pair = service.issue(RequestContext(), user_id, "alice", "admin")
    record = database.refresh_record(service.tokens.digest(pair.refresh_token))
    record.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)

    with pytest.raises(errors.AppError) as exc_info:
        service.rotate(RequestContext(), pair.refresh_token)
    assert_unauthorized(exc_info)


def test_rotate_rejects_expired_credential(database, user_id):
    service = build_service(database, refresh_ttl=timedelta(seconds=-5))
    pair = service.issue(RequestContext(), user_id, "alice", "admin")

    with pytest.raises(errors.AppError) as exc_info:
        service.rotate(RequestContext(), pair.refresh_token)
    assert_unauthorized(exc_info)


def test_rotate_rejects_deleted_principal(service, database, user_id):
    pair = service.issue(RequestContext(), user_id, "alice", "admin")
    database.users[user_id].deleted = True

    with pytest.raises(errors.AppError) as exc_info:
        service.rotate(RequestContext(), pair.refresh_token)
    assert_unauthorized(exc_info)
    assert database.refresh_record(service.tokens.digest(pair.refresh_token)).revoked_at is None


def test_empty_refresh_token_is_a_bad_request(service):
    with pytest.raises(errors.AppError) as exc_info:
        service.rotate(RequestContext(), "   ")
    assert exc_info.value.code is errors.ErrorCode.bad_request


def test_revoke_is_idempotent(service, database, user_id):
    pair = service.issue(RequestContext(), user_id, "alice", "admin")

    service.revoke(RequestContext(), pair.refresh_token)
    record = database.refresh_record(service.tokens.digest(pair.refresh_token))
    first_revoked_at = record.revoked_at

    assert service.revoke(RequestContext(), pair.refresh_token).user_id == user_id
    assert record.revoked_at == first_revoked_at


def test_revoke_rejects_unknown_token(service, user_id):
    pair = service.tokens.issue_pair(user_id, "alice", "admin")

    with pytest.raises(errors.AppError) as exc_info:
        service.revoke(RequestContext(), pair.refresh_token)
    assert_unauthorized(exc_info)


def test_lookup_and_revoke_by_digest(service, user_id):
    ctx = RequestContext()
    expires_at = datetime.now(timezone.utc) + timedelta(hours=1)
    service.persist_refresh(ctx, "digest-1", user_id, expires_at)

    record = service.lookup_refresh(ctx, "digest-1")
    assert record.user_id == user_id
    assert service.lookup_refresh(ctx, "digest-2") is None

    service.revoke_refresh(ctx, "digest-1")
    revoked_at = service.lookup_refresh(ctx, "digest-1").revoked_at
    service.revoke_refresh(ctx, "digest-1")

    assert revoked_at is not None
    assert service.lookup_refresh(ctx, "digest-1").revoked_at == revoked_at
    assert not record.is_valid()
