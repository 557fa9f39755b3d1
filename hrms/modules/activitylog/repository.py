"""Storage and filtered listing of activity log entries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any
from uuid import UUID

from psycopg.rows import tuple_row
from psycopg.types.json import Json

from ...context import RequestContext
from ...db import DBTXContext


@dataclass(slots=True)
class ActivityLogRecord:
    """Row projection of ``activity_logs`` joined with the acting user's name."""

    id: int
    user_id: UUID | None
    company_id: UUID | None
    branch_id: UUID | None
    action: str
    entity: str
    entity_id: str
    details: dict[str, Any]
    created_at: datetime
    user_name: str


@dataclass(frozen=True)
class ActivityLogFilter:
    action: str | None = None
    entity: str | None = None
    from_date: date | None = None
    to_date: date | None = None
    user_name: str | None = None


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ActivityLogRepository:
    def __init__(self, db: DBTXContext) -> None:
        self._db = db

    def create_log(
        self,
        ctx: RequestContext,
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
        with self._db(ctx) as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    INSERT INTO activity_logs
                        (user_id, company_id, branch_id, action, entity, entity_id, details, created_at)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING id
                    """,
                    (
                        user_id,
                        company_id,
                        branch_id,
                        action,
                        entity,
                        entity_id,
                        Json(details) if details else None,
                        created_at,
                    ),
                )
                row = cur.fetchone()
        return row[0]

    def list_logs(
        self,
        ctx: RequestContext,
        *,
        company_id: UUID | None,
        branch_id: UUID | None,
        filters: ActivityLogFilter,
        page: int,
        limit: int,
    ) -> tuple[list[ActivityLogRecord], int]:
        """Return one page of entries, newest first, plus the total match count.

        ``company_id`` of ``None`` lists across every company.
        """
        clauses: list[str] = []
        params: list[Any] = []

        if company_id is not None:
            clauses.append("l.company_id = %s")
            params.append(company_id)
        if branch_id is not None:
            clauses.append("l.branch_id = %s")
            params.append(branch_id)
        if filters.action:
            clauses.append("l.action = %s")
            params.append(filters.action)
        if filters.entity:
            clauses.append("l.entity = %s")
            params.append(filters.entity)
        if filters.user_name:
            clauses.append("u.username ILIKE %s ESCAPE '\\'")
            params.append(f"%{_escape_like(filters.user_name)}%")
        if filters.from_date:
            clauses.append("l.created_at >= %s")
            params.append(_day_start(filters.from_date))
        if filters.to_date:
            # whole day inclusive
            clauses.append("l.created_at < %s")
            params.append(_day_start(filters.to_date + timedelta(days=1)))

        where_sql = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        count_query = f"""
            SELECT COUNT(*)
            FROM activity_logs l
            LEFT JOIN users u ON u.id = l.user_id
            {where_sql}
        """
        page_query = f"""
            SELECT l.id, l.user_id, l.company_id, l.branch_id, l.action, l.entity, l.entity_id,
                   COALESCE(l.details, '{{}}'::jsonb), l.created_at, COALESCE(u.username, 'Unknown')
            FROM activity_logs l
            LEFT JOIN users u ON u.id = l.user_id
            {where_sql}
            ORDER BY l.created_at DESC, l.id DESC
            LIMIT %s OFFSET %s
        """

        with self._db(ctx) as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(count_query, params)
                total = cur.fetchone()[0]
                cur.execute(page_query, [*params, limit, (page - 1) * limit])
                rows = cur.fetchall()

        return [ActivityLogRecord(*row) for row in rows], total

    def distinct_filters(self, ctx: RequestContext, company_id: UUID) -> tuple[list[str], list[str]]:
        with self._db(ctx) as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    "SELECT DISTINCT action FROM activity_logs WHERE company_id = %s ORDER BY action",
                    (company_id,),
                )
                actions = [row[0] for row in cur.fetchall()]
                cur.execute(
                    "SELECT DISTINCT entity FROM activity_logs WHERE company_id = %s ORDER BY entity",
                    (company_id,),
                )
                entities = [row[0] for row in cur.fetchall()]
        return actions, entities
