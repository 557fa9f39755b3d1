"""HTTP adapters for browsing the activity log."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import company_admin_context, get_runtime, require_roles
from ...api.models import APIModel
from ...context import ROLE_SUPERADMIN, RequestContext
from ...runtime import Runtime
from .handlers import ActivityLogPage, FilterOptionsQuery, ListActivityLogsQuery
from .repository import ActivityLogFilter


class ActivityLogEntry(APIModel):
    id: int
    user_id: UUID | None
    user_name: str
    company_id: UUID | None = None
    branch_id: UUID | None = None
    action: str
    entity: str
    entity_id: str
    details: dict[str, Any]
    created_at: datetime


class PageMeta(APIModel):
    page: int
    limit: int
    total: int


class ActivityLogListResponse(APIModel):
    data: list[ActivityLogEntry]
    meta: PageMeta

    @classmethod
    def from_page(cls, page: ActivityLogPage) -> "ActivityLogListResponse":
        return cls(
            data=[
                ActivityLogEntry(
                    id=item.id,
                    user_id=item.user_id,
                    user_name=item.user_name,
                    company_id=item.company_id,
                    branch_id=item.branch_id,
                    action=item.action,
                    entity=item.entity,
                    entity_id=item.entity_id,
                    details=item.details,
                    created_at=item.created_at,
                )
                for item in page.items
            ],
            meta=PageMeta(page=page.page, limit=page.limit, total=page.total),
        )


class FilterOptionsResponse(APIModel):
    actions: list[str]
    entities: list[str]


def list_filters(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    action: str | None = Query(default=None),
    entity: str | None = Query(default=None),
    from_date: date | None = Query(default=None, alias="fromDate"),
    to_date: date | None = Query(default=None, alias="toDate"),
    user_name: str | None = Query(default=None, alias="userName"),
) -> ListActivityLogsQuery:
    filters = ActivityLogFilter(
        action=action or None,
        entity=entity or None,
        from_date=from_date,
        to_date=to_date,
        user_name=(user_name or "").strip() or None,
    )
    return ListActivityLogsQuery(filters=filters, page=page, limit=limit)


def build_router() -> APIRouter:
    router = APIRouter(tags=["activity-logs"])

    @router.get("/admin/activity-logs", response_model=ActivityLogListResponse)
    def list_company_logs(
        query: ListActivityLogsQuery = Depends(list_filters),
        ctx: RequestContext = Depends(company_admin_context),
        runtime: Runtime = Depends(get_runtime),
    ) -> ActivityLogListResponse:
        return ActivityLogListResponse.from_page(runtime.mediator.send(ctx, query))

    @router.get("/admin/activity-logs/filter-options", response_model=FilterOptionsResponse)
    def filter_options(
        ctx: RequestContext = Depends(company_admin_context),
        runtime: Runtime = Depends(get_runtime),
    ) -> FilterOptionsResponse:
        options = runtime.mediator.send(ctx, FilterOptionsQuery())
        return FilterOptionsResponse(actions=options.actions, entities=options.entities)

    @router.get("/super-admin/activity-logs", response_model=ActivityLogListResponse)
    def list_all_logs(
        query: ListActivityLogsQuery = Depends(list_filters),
        ctx: RequestContext = Depends(require_roles(ROLE_SUPERADMIN)),
        runtime: Runtime = Depends(get_runtime),
    ) -> ActivityLogListResponse:
        scoped = ListActivityLogsQuery(filters=query.filters, page=query.page, limit=query.limit, all_companies=True)
        return ActivityLogListResponse.from_page(runtime.mediator.send(ctx, scoped))

    return router
