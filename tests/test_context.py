from __future__ import annotations

import logging
import uuid

import pytest

from hrms import errors
from hrms.context import (
    RequestContext,
    TenantScope,
    UserInfo,
    logger_from_context,
    require_tenant,
    require_user,
    tenant_from_context,
    user_from_context,
    with_deadline,
    with_logger,
    with_tenant,
    with_user,
)
from hrms.logs import PROCESS_LOGGER


def test_with_functions_return_new_contexts():
    base = RequestContext()
    user = UserInfo(id=uuid.uuid4(), username="alice", role="admin")
    scope = TenantScope(company_id=uuid.uuid4())

    with_u = with_user(base, user)
    with_t = with_tenant(with_u, scope)

    assert user_from_context(base) is None
    assert tenant_from_context(with_u) is None
    assert user_from_context(with_t) == user
    assert tenant_from_context(with_t) == scope
    assert with_t.request_id == base.request_id


def test_lookups_on_missing_context_signal_absence():
    assert user_from_context(None) is None
    assert tenant_from_context(None) is None


def test_logger_falls_back_to_process_logger():
    assert logger_from_context(RequestContext()).name == PROCESS_LOGGER

    custom = logging.getLogger("custom")
    assert logger_from_context(with_logger(RequestContext(), custom)) is custom


def test_require_helpers_raise_unauthorized():
    with pytest.raises(errors.AppError) as user_exc:
        require_user(RequestContext())
    with pytest.raises(errors.AppError) as tenant_exc:
        require_tenant(RequestContext())

    assert user_exc.value.code is errors.ErrorCode.unauthorized
    assert tenant_exc.value.message == "missing tenant context"


def test_branch_less_scope_rejects_branch_requirement():
    scope = TenantScope(company_id=uuid.uuid4())
    assert not scope.has_branch
    with pytest.raises(errors.AppError) as exc_info:
        scope.require_branch()
    assert exc_info.value.code is errors.ErrorCode.bad_request

    branch_id = uuid.uuid4()
    assert TenantScope(company_id=uuid.uuid4(), branch_id=branch_id).require_branch() == branch_id


def test_deadline_reports_remaining_budget():
    ctx = with_deadline(RequestContext(), 30)
    remaining = ctx.remaining()
    assert remaining is not None and 0 < remaining <= 30
    assert RequestContext().remaining() is None
