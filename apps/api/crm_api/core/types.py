from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, Uuid
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from crm_api.ids import PrefixedId


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PrefixedIdType(TypeDecorator[PrefixedId]):
    """Stores a typed id as its bare UUID and loads it back as ``id_type``."""

    impl = Uuid
    cache_ok = True

    def __init__(self, id_type: type[PrefixedId]) -> None:
        super().__init__(as_uuid=True)
        self.id_type = id_type

    def process_bind_param(self, value: Any, dialect: Dialect) -> uuid.UUID | None:
        if value is None:
            return None
        if isinstance(value, self.id_type):
            return value.value
        if isinstance(value, uuid.UUID):
            return value
        raise TypeError(f"expected {self.id_type.__name__}, got {type(value).__name__}")

    def process_result_value(self, value: Any, dialect: Dialect) -> PrefixedId | None:
        if value is None:
            return None
        if not isinstance(value, uuid.UUID):
            value = uuid.UUID(str(value))
        return self.id_type(value)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )
