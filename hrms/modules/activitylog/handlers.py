"""Activity log queries."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from ...context import RequestContext, require_tenant
from .repository import ActivityLogFilter, ActivityLogRecord, ActivityLogRepository


@dataclass(frozen=True)
class ListActivityLogsQuery:
    """``all_companies`` lifts the tenant restriction (super-admin listing)."""

    filters: ActivityLogFilter
    page: int = 1
    limit: int = 10
    all_companies: bool = False


@dataclass(frozen=True)
class ActivityLogPage:
    items: list[ActivityLogRecord]
    page: int
    limit: int
    total: int


@dataclass(frozen=True)
class FilterOptionsQuery:
    pass


@dataclass(frozen=True)
class FilterOptions:
    actions: list[str]
    entities: list[str]


class ListActivityLogsHandler:
    def __init__(self, repository: ActivityLogRepository) -> None:
        self._repository = repository

    def handle(self, ctx: RequestContext, query: ListActivityLogsQuery) -> ActivityLogPage:
        company_id: UUID | None = None
        branch_id: UUID | None = None
        if not query.all_companies:
            tenant = require_tenant(ctx)
            company_id = tenant.company_id
            branch_id = tenant.branch_id
        items, total = self._repository.list_logs(
            ctx,
            company_id=company_id,
            branch_id=branch_id,
            filters=query.filters,
            page=query.page,
            limit=query.limit,
        )
        return ActivityLogPage(items=items, page=query.page, limit=query.limit, total=total)


class FilterOptionsHandler:
    def __init__(self, repository: ActivityLogRepository) -> None:
        self._repository = repository

    def handle(self, ctx: RequestContext, query: FilterOptionsQuery) -> FilterOptions:
        actions, entities = self._repository.distinct_filters(ctx, require_tenant(ctx).company_id)
        return FilterOptions(actions=actions, entities=entities)
