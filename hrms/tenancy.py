"""Resolution of the authoritative tenant scope for a request."""

from __future__ import annotations

from uuid import UUID

from . import errors
from .context import ROLE_ADMIN, ROLE_SUPERADMIN, RequestContext, TenantScope, logger_from_context, require_user
from .contracts import BranchAccess, CompanyRole, GetBranchAccessQuery, GetCompanyRoleQuery
from .mediator import Mediator


def parse_scope_id(raw: str | None, header: str) -> UUID | None:
    """Parse a scope header; blank means absent, anything else must be a UUID."""
    if raw is None or not raw.strip():
        return None
    try:
        return UUID(raw.strip())
    except ValueError as exc:
        raise errors.bad_request(f"invalid {header} header") from exc


class TenantResolver:
    """Turns the principal plus ``X-Company-ID``/``X-Branch-ID`` hints into a ``TenantScope``.

    Role and branch lookups are answered by the tenant module through the
    mediator, so this class never touches the database directly.

    Rules
    -----
    * ``superadmin`` may select any company. A branch hint is accepted when
      the branch belongs to that company.
    * Everyone else needs a company role; a branch hint additionally needs
      branch access and the branch must belong to the selected company.
    * ``is_admin`` is true for company admins and for ``superadmin``.
    """

    def __init__(self, mediator: Mediator) -> None:
        self._mediator = mediator

    def resolve(self, ctx: RequestContext, company_id: UUID, branch_id: UUID | None = None) -> TenantScope:
        user = require_user(ctx)
        log = logger_from_context(ctx)

        if user.role == ROLE_SUPERADMIN:
            if branch_id is not None:
                access = self._branch_access(ctx, user.id, branch_id)
                if access.branch_company_id != company_id:
                    log.warning("branch %s is not part of company %s", branch_id, company_id)
                    raise errors.forbidden("branch does not belong to company")
            return TenantScope(company_id=company_id, branch_id=branch_id, is_admin=True)

        role: CompanyRole = self._mediator.send(ctx, GetCompanyRoleQuery(user_id=user.id, company_id=company_id))
        if not role.granted:
            log.warning("user %s has no role in company %s", user.id, company_id)
            raise errors.forbidden("no access to company")

        if branch_id is not None:
            access = self._branch_access(ctx, user.id, branch_id)
            if not access.granted:
                log.warning("user %s has no access to branch %s", user.id, branch_id)
                raise errors.forbidden("no access to branch")
            if access.branch_company_id != company_id:
                log.warning("branch %s is not part of company %s", branch_id, company_id)
                raise errors.forbidden("branch does not belong to company")

        return TenantScope(company_id=company_id, branch_id=branch_id, is_admin=role.role == ROLE_ADMIN)

    def _branch_access(self, ctx: RequestContext, user_id: UUID, branch_id: UUID) -> BranchAccess:
        return self._mediator.send(ctx, GetBranchAccessQuery(user_id=user_id, branch_id=branch_id))
