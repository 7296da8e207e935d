from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, ClassVar, Generic, TypeVar

from sqlalchemy import Select, delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from crm_api.core.types import utcnow
from crm_api.errors import Conflict, InternalError, NotFound
from crm_api.ids import OrgId, PrefixedId
from crm_api.metrics import observe_entity_write
from crm_api.pagination import Page, PageRequest, paginate

logger = logging.getLogger("crm_api.repository")

ModelT = TypeVar("ModelT")


@contextmanager
def storage_errors(session: Session, entity_type: str, operation: str) -> Iterator[None]:
    """Translate storage failures raised inside the block and roll the session back."""
    try:
        yield
    except IntegrityError as exc:
        session.rollback()
        logger.warning(
            "crm.storage.conflict",
            extra={"entity_type": entity_type, "error": str(exc.orig), "error_code": Conflict.code},
        )
        raise Conflict(f"{entity_type} {operation} violates a constraint") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error(
            "crm.storage.error",
            exc_info=True,
            extra={"entity_type": entity_type, "error_code": InternalError.code},
        )
        raise InternalError(f"{entity_type} {operation} failed") from exc


class EntityRepository(Generic[ModelT]):
    """Tenant-scoped CRUD for one entity kind.

    Every query is filtered by ``org_id``; a row owned by another org is
    indistinguishable from a missing one.
    """

    model: ClassVar[type[Any]]
    entity_type: ClassVar[str]

    def scoped(self, org_id: OrgId) -> Select[Any]:
        return select(self.model).where(self.model.org_id == org_id)

    def create(self, session: Session, org_id: OrgId, fields: dict[str, Any]) -> ModelT:
        with storage_errors(session, self.entity_type, "create"):
            self.check_references(session, org_id, fields)
            row = self.model(org_id=org_id, **fields)
            session.add(row)
            session.commit()
            session.refresh(row)
        self._log_write("create", org_id, row.id)
        return row

    def get(self, session: Session, org_id: OrgId, entity_id: PrefixedId) -> ModelT:
        with storage_errors(session, self.entity_type, "get"):
            row = session.scalar(self.scoped(org_id).where(self.model.id == entity_id))
        if row is None:
            raise NotFound(f"{self.entity_type} not found", details={"id": str(entity_id)})
        return row

    def update(self, session: Session, org_id: OrgId, entity_id: PrefixedId, patch: dict[str, Any]) -> ModelT:
        row = self.get(session, org_id, entity_id)
        columns = self.model.__table__.c
        with storage_errors(session, self.entity_type, "update"):
            self.check_references(session, org_id, patch)
            for key, value in patch.items():
                # An explicit null only clears nullable columns.
                if value is None and not columns[key].nullable:
                    continue
                setattr(row, key, value)
            row.updated_at = utcnow()
            session.commit()
            session.refresh(row)
        self._log_write("update", org_id, row.id)
        return row

    def delete(self, session: Session, org_id: OrgId, entity_id: PrefixedId) -> None:
        with storage_errors(session, self.entity_type, "delete"):
            result = session.execute(
                delete(self.model).where(self.model.id == entity_id, self.model.org_id == org_id)
            )
            if result.rowcount == 0:
                session.rollback()
                raise NotFound(f"{self.entity_type} not found", details={"id": str(entity_id)})
            session.commit()
        self._log_write("delete", org_id, entity_id)

    def list(self, session: Session, org_id: OrgId, page_request: PageRequest) -> Page[ModelT]:
        with storage_errors(session, self.entity_type, "list"):
            return paginate(session, self.scoped(org_id), self.model, page_request)

    def check_references(self, session: Session, org_id: OrgId, fields: dict[str, Any]) -> None:
        """Hook for kinds whose fields point at other tenant-scoped rows."""

    def _log_write(self, operation: str, org_id: OrgId, entity_id: PrefixedId) -> None:
        observe_entity_write(self.entity_type, operation)
        logger.info(
            f"crm.{self.entity_type}.{operation}",
            extra={"entity_type": self.entity_type, "entity_id": entity_id, "org_id": org_id},
        )
