"""Cursor pagination over a scoped SQLAlchemy select.

A page is the run of rows that follow the cursor in ``(updated_at, id)`` order,
truncated to ``limit``, together with the total row count of the scope.

When the cursor names a row inside the scope the boundary is that row's
``(updated_at, id)`` position, so pages are complete and do not drift when
rows are inserted between calls. When the cursor names no visible row (the
zero sentinel, a deleted row, an id from elsewhere) it is applied as a plain
``id > cursor`` filter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.orm import Session

from crm_api.ids import PrefixedId
from crm_api.metrics import observe_page
from crm_api.otel import get_tracer

DEFAULT_LIMIT = 10

T = TypeVar("T")

tracer = get_tracer(__name__)


@dataclass(frozen=True)
class PageRequest:
    limit: int | None = None
    cursor: PrefixedId | None = None

    @property
    def effective_limit(self) -> int:
        if self.limit is None or self.limit <= 0:
            return DEFAULT_LIMIT
        return self.limit


@dataclass
class Page(Generic[T]):
    items: list[T] = field(default_factory=list)
    total: int = 0


def paginate(session: Session, stmt: Select[Any], model: Any, request: PageRequest) -> Page[Any]:
    """Return one page of ``model`` rows selected by ``stmt``.

    ``stmt`` must select ``model`` entities and already carry every scoping
    filter and join (tenant, parent relation). ``model`` must expose ``id`` and
    ``updated_at`` columns. When a cursor is given, the cursor row is looked up
    within ``stmt``; if it is still live the page continues after its
    ``(updated_at, id)`` position, otherwise it falls back to ``id > cursor``.
    """
    limit = request.effective_limit
    cursor = request.cursor

    with tracer.start_as_current_span("crm.paginate") as span:
        span.set_attribute("crm.entity", model.__tablename__)
        span.set_attribute("crm.page.limit", limit)

        total = session.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0

        page_stmt = stmt
        if cursor is not None:
            span.set_attribute("crm.page.cursor", cursor.format())
            cursor_updated_at = session.scalar(
                stmt.with_only_columns(model.updated_at).where(model.id == cursor).limit(1)
            )
            if cursor_updated_at is not None:
                page_stmt = page_stmt.where(
                    or_(
                        model.updated_at > cursor_updated_at,
                        and_(model.updated_at == cursor_updated_at, model.id > cursor),
                    )
                )
            else:
                page_stmt = page_stmt.where(model.id > cursor)

        items = list(session.scalars(page_stmt.order_by(model.updated_at, model.id).limit(limit)))

        span.set_attribute("crm.page.total", total)
        span.set_attribute("crm.page.returned", len(items))
        observe_page(model.__tablename__, len(items))
        return Page(items=items, total=total)
