from typing import Any

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from crm_api.core.auth import OrgMember, get_org_member
from crm_api.core.database import get_db
from crm_api.core.repository import EntityRepository
from crm_api.crm.relations import get_relation
from crm_api.crm.repositories import (
    company_repository,
    contact_repository,
    deal_repository,
    email_repository,
    link_repository,
    note_repository,
    phone_repository,
    relation_repository,
    task_repository,
)
from crm_api.crm.schemas import (
    CompanyCreate,
    CompanyList,
    CompanyRead,
    CompanyUpdate,
    ContactCreate,
    ContactList,
    ContactRead,
    ContactUpdate,
    DealContactRead,
    DealCreate,
    DealList,
    DealRead,
    DealUpdate,
    EmailCreate,
    EmailList,
    EmailRead,
    EmailUpdate,
    LinkCreate,
    LinkList,
    LinkRead,
    LinkUpdate,
    NoteCreate,
    NoteList,
    NoteRead,
    NoteUpdate,
    PhoneCreate,
    PhoneList,
    PhoneRead,
    PhoneUpdate,
    RelatedList,
    TaskCreate,
    TaskDealRead,
    TaskLinkRead,
    TaskList,
    TaskRead,
    TaskUpdate,
    TaskUserRead,
)
from crm_api.identity.schemas import UserRead
from crm_api.ids import (
    CompanyId,
    ContactId,
    DealId,
    EmailId,
    LinkId,
    NoteId,
    PhoneId,
    PrefixedId,
    TaskId,
)
from crm_api.pagination import PageRequest

# Read models for the children and join rows of each relation, keyed like RELATIONS.
_CHILD_READS: dict[tuple[str, str], type[BaseModel]] = {
    ("deal", "contacts"): ContactRead,
    ("task", "deals"): DealRead,
    ("task", "links"): LinkRead,
    ("task", "users"): UserRead,
}
_JOIN_READS: dict[tuple[str, str], type[BaseModel]] = {
    ("deal", "contacts"): DealContactRead,
    ("task", "deals"): TaskDealRead,
    ("task", "links"): TaskLinkRead,
    ("task", "users"): TaskUserRead,
}


def page_request(limit: int | None, offset: str | None, id_type: type[PrefixedId]) -> PageRequest:
    """``offset`` carries the cursor: the typed id of the last row already seen."""
    return PageRequest(limit=limit, cursor=id_type.parse_optional(offset))


def entity_router(
    *,
    plural: str,
    repository: EntityRepository[Any],
    id_type: type[PrefixedId],
    create_model: type[BaseModel],
    update_model: type[BaseModel],
    read_model: type[BaseModel],
    list_model: type[BaseModel],
    list_aliases: tuple[str, ...] = (),
) -> APIRouter:
    """CRUD routes for one tenant-scoped entity set under ``/api/{plural}``."""
    router = APIRouter(prefix=f"/api/{plural}", tags=[f"crm.{plural}"])

    def list_entities(
        limit: int | None = Query(default=None),
        offset: str | None = Query(default=None),
        db: Session = Depends(get_db),
        member: OrgMember = Depends(get_org_member),
    ) -> Any:
        page = repository.list(db, member.org_id, page_request(limit, offset, id_type))
        return list_model.model_validate(
            {plural: [read_model.model_validate(item) for item in page.items], "total": page.total}
        )

    # Aliases go first so their literal segments are not read as ids.
    for alias in list_aliases:
        router.add_api_route(alias, list_entities, methods=["GET"], response_model=list_model)
    router.add_api_route("", list_entities, methods=["GET"], response_model=list_model)

    @router.post("", response_model=read_model, status_code=status.HTTP_201_CREATED)
    def create_entity(
        dto: create_model,  # type: ignore[valid-type]
        db: Session = Depends(get_db),
        member: OrgMember = Depends(get_org_member),
    ) -> Any:
        row = repository.create(db, member.org_id, dto.model_dump())
        return read_model.model_validate(row)

    @router.get("/{entity_id}", response_model=read_model)
    def get_entity(
        entity_id: str,
        db: Session = Depends(get_db),
        member: OrgMember = Depends(get_org_member),
    ) -> Any:
        return read_model.model_validate(repository.get(db, member.org_id, id_type.parse(entity_id)))

    @router.put("/{entity_id}", response_model=read_model)
    def update_entity(
        entity_id: str,
        dto: update_model,  # type: ignore[valid-type]
        db: Session = Depends(get_db),
        member: OrgMember = Depends(get_org_member),
    ) -> Any:
        row = repository.update(db, member.org_id, id_type.parse(entity_id), dto.model_dump(exclude_unset=True))
        return read_model.model_validate(row)

    @router.delete("/{entity_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_entity(
        entity_id: str,
        db: Session = Depends(get_db),
        member: OrgMember = Depends(get_org_member),
    ) -> Response:
        repository.delete(db, member.org_id, id_type.parse(entity_id))
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


def add_relation_routes(router: APIRouter, parent_kind: str, parent_id_type: type[PrefixedId]) -> None:
    """Attach/detach/list routes for the relations rooted at ``parent_kind``."""

    @router.get("/{parent_id}/{resource_type}", response_model=RelatedList)
    def list_related(
        parent_id: str,
        resource_type: str,
        limit: int | None = Query(default=None),
        offset: str | None = Query(default=None),
        db: Session = Depends(get_db),
        member: OrgMember = Depends(get_org_member),
    ) -> Any:
        relation = get_relation(parent_kind, resource_type)
        page = relation_repository.list(
            db,
            relation,
            member.org_id,
            parent_id_type.parse(parent_id),
            page_request(limit, offset, relation.child_id_type),
        )
        child_read = _CHILD_READS[(parent_kind, resource_type)]
        return RelatedList(data=[child_read.model_validate(item) for item in page.items], total=page.total)

    @router.post(
        "/{parent_id}/{resource_type}/{resource_id}",
        response_model=DealContactRead | TaskDealRead | TaskLinkRead | TaskUserRead,
        status_code=status.HTTP_201_CREATED,
    )
    def attach_related(
        parent_id: str,
        resource_type: str,
        resource_id: str,
        db: Session = Depends(get_db),
        member: OrgMember = Depends(get_org_member),
    ) -> Any:
        relation = get_relation(parent_kind, resource_type)
        row = relation_repository.attach(
            db,
            relation,
            member.org_id,
            parent_id_type.parse(parent_id),
            relation.child_id_type.parse(resource_id),
        )
        return _JOIN_READS[(parent_kind, resource_type)].model_validate(row)

    @router.delete("/{parent_id}/{resource_type}/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
    def detach_related(
        parent_id: str,
        resource_type: str,
        resource_id: str,
        db: Session = Depends(get_db),
        member: OrgMember = Depends(get_org_member),
    ) -> Response:
        relation = get_relation(parent_kind, resource_type)
        relation_repository.detach(
            db,
            relation,
            member.org_id,
            parent_id_type.parse(parent_id),
            relation.child_id_type.parse(resource_id),
        )
        return Response(status_code=status.HTTP_204_NO_CONTENT)


contacts_router = entity_router(
    plural="contacts",
    repository=contact_repository,
    id_type=ContactId,
    create_model=ContactCreate,
    update_model=ContactUpdate,
    read_model=ContactRead,
    list_model=ContactList,
    list_aliases=("/list",),
)

deals_router = entity_router(
    plural="deals",
    repository=deal_repository,
    id_type=DealId,
    create_model=DealCreate,
    update_model=DealUpdate,
    read_model=DealRead,
    list_model=DealList,
    list_aliases=("/list/org",),
)
add_relation_routes(deals_router, "deal", DealId)

notes_router = entity_router(
    plural="notes",
    repository=note_repository,
    id_type=NoteId,
    create_model=NoteCreate,
    update_model=NoteUpdate,
    read_model=NoteRead,
    list_model=NoteList,
)

companies_router = entity_router(
    plural="companies",
    repository=company_repository,
    id_type=CompanyId,
    create_model=CompanyCreate,
    update_model=CompanyUpdate,
    read_model=CompanyRead,
    list_model=CompanyList,
)

links_router = entity_router(
    plural="links",
    repository=link_repository,
    id_type=LinkId,
    create_model=LinkCreate,
    update_model=LinkUpdate,
    read_model=LinkRead,
    list_model=LinkList,
)

emails_router = entity_router(
    plural="emails",
    repository=email_repository,
    id_type=EmailId,
    create_model=EmailCreate,
    update_model=EmailUpdate,
    read_model=EmailRead,
    list_model=EmailList,
)

phones_router = entity_router(
    plural="phones",
    repository=phone_repository,
    id_type=PhoneId,
    create_model=PhoneCreate,
    update_model=PhoneUpdate,
    read_model=PhoneRead,
    list_model=PhoneList,
)

tasks_router = entity_router(
    plural="tasks",
    repository=task_repository,
    id_type=TaskId,
    create_model=TaskCreate,
    update_model=TaskUpdate,
    read_model=TaskRead,
    list_model=TaskList,
)
add_relation_routes(tasks_router, "task", TaskId)

crm_routers = [
    contacts_router,
    deals_router,
    notes_router,
    companies_router,
    links_router,
    emails_router,
    phones_router,
    tasks_router,
]
