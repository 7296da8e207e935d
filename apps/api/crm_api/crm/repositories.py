from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from crm_api.core.repository import EntityRepository, storage_errors
from crm_api.crm.models import Company, Contact, Deal, Email, Link, Note, Phone, Task
from crm_api.crm.relations import Relation
from crm_api.errors import Conflict, NotFound
from crm_api.ids import OrgId, PrefixedId
from crm_api.metrics import observe_entity_write
from crm_api.pagination import Page, PageRequest, paginate

logger = logging.getLogger("crm_api.crm")


class ContactRepository(EntityRepository[Contact]):
    model = Contact
    entity_type = "contact"


class DealRepository(EntityRepository[Deal]):
    model = Deal
    entity_type = "deal"


class NoteRepository(EntityRepository[Note]):
    model = Note
    entity_type = "note"


class CompanyRepository(EntityRepository[Company]):
    model = Company
    entity_type = "company"


class LinkRepository(EntityRepository[Link]):
    model = Link
    entity_type = "link"


class EmailRepository(EntityRepository[Email]):
    model = Email
    entity_type = "email"


class PhoneRepository(EntityRepository[Phone]):
    model = Phone
    entity_type = "phone"


class TaskRepository(EntityRepository[Task]):
    model = Task
    entity_type = "task"

    def check_references(self, session: Session, org_id: OrgId, fields: dict[str, Any]) -> None:
        contact_id = fields.get("contact_id")
        if contact_id is not None:
            contact_repository.get(session, org_id, contact_id)


class RelationRepository:
    """Attach, detach and list the children of a deal or task through a join table."""

    def _parent(self, session: Session, relation: Relation, org_id: OrgId, parent_id: PrefixedId) -> Any:
        parent = relation.parent
        row = session.scalar(select(parent).where(parent.id == parent_id, parent.org_id == org_id))
        if row is None:
            raise NotFound(f"{relation.parent_kind} not found", details={"id": str(parent_id)})
        return row

    def _child(self, session: Session, relation: Relation, org_id: OrgId, child_id: PrefixedId) -> Any:
        row = session.scalar(relation.child_scope(org_id).where(relation.child.id == child_id))
        if row is None:
            raise NotFound(f"{relation.resource_type} resource not found", details={"id": str(child_id)})
        return row

    def attach(
        self,
        session: Session,
        relation: Relation,
        org_id: OrgId,
        parent_id: PrefixedId,
        child_id: PrefixedId,
    ) -> Any:
        with storage_errors(session, relation.name, "attach"):
            self._parent(session, relation, org_id, parent_id)
            self._child(session, relation, org_id, child_id)
            existing = session.scalar(
                select(relation.join).where(relation.parent_column() == parent_id, relation.child_column() == child_id)
            )
            if existing is not None:
                raise Conflict(
                    f"{relation.resource_type} resource already attached",
                    details={"parent_id": str(parent_id), "resource_id": str(child_id)},
                )
            row = relation.join(**{relation.parent_key: parent_id, relation.child_key: child_id})
            session.add(row)
            session.commit()
            session.refresh(row)
        observe_entity_write(relation.name, "attach")
        logger.info(
            "crm.relation.attach",
            extra={"relation": relation.name, "entity_id": row.id, "org_id": org_id},
        )
        return row

    def detach(
        self,
        session: Session,
        relation: Relation,
        org_id: OrgId,
        parent_id: PrefixedId,
        child_id: PrefixedId,
    ) -> None:
        with storage_errors(session, relation.name, "detach"):
            self._parent(session, relation, org_id, parent_id)
            result = session.execute(
                delete(relation.join).where(relation.parent_column() == parent_id, relation.child_column() == child_id)
            )
            if result.rowcount == 0:
                session.rollback()
                raise NotFound(
                    f"{relation.resource_type} resource not attached",
                    details={"parent_id": str(parent_id), "resource_id": str(child_id)},
                )
            session.commit()
        observe_entity_write(relation.name, "detach")
        logger.info(
            "crm.relation.detach",
            extra={"relation": relation.name, "entity_id": child_id, "org_id": org_id},
        )

    def list(
        self,
        session: Session,
        relation: Relation,
        org_id: OrgId,
        parent_id: PrefixedId,
        page_request: PageRequest,
    ) -> Page[Any]:
        with storage_errors(session, relation.name, "list"):
            self._parent(session, relation, org_id, parent_id)
            stmt = (
                relation.child_scope(org_id)
                .join(relation.join, relation.child_column() == relation.child.id)
                .where(relation.parent_column() == parent_id)
            )
            return paginate(session, stmt, relation.child, page_request)


contact_repository = ContactRepository()
deal_repository = DealRepository()
note_repository = NoteRepository()
company_repository = CompanyRepository()
link_repository = LinkRepository()
email_repository = EmailRepository()
phone_repository = PhoneRepository()
task_repository = TaskRepository()
relation_repository = RelationRepository()
