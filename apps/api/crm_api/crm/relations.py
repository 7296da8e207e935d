"""Static table of the many-to-many relations exposed under deals and tasks."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select, select

from crm_api.crm.models import Contact, Deal, DealContact, Link, Task, TaskDeal, TaskLink, TaskUser
from crm_api.errors import NotFound
from crm_api.identity.models import OrgUser, User
from crm_api.ids import ContactId, DealId, LinkId, OrgId, PrefixedId, TaskId, UserId


def _org_rows(model: type[Any]) -> Callable[[OrgId], Select[Any]]:
    def scope(org_id: OrgId) -> Select[Any]:
        return select(model).where(model.org_id == org_id)

    return scope


def _org_members(org_id: OrgId) -> Select[Any]:
    return select(User).join(OrgUser, OrgUser.user_id == User.id).where(OrgUser.org_id == org_id)


@dataclass(frozen=True)
class Relation:
    parent_kind: str
    resource_type: str
    parent: type[Any]
    parent_id_type: type[PrefixedId]
    child: type[Any]
    child_id_type: type[PrefixedId]
    join: type[Any]
    parent_key: str
    child_key: str
    # Children the caller's org may attach: rows of the org, or its members for users.
    child_scope: Callable[[OrgId], Select[Any]]

    @property
    def name(self) -> str:
        return f"{self.parent_kind}.{self.resource_type}"

    def parent_column(self) -> Any:
        return getattr(self.join, self.parent_key)

    def child_column(self) -> Any:
        return getattr(self.join, self.child_key)


RELATIONS: dict[tuple[str, str], Relation] = {
    ("deal", "contacts"): Relation(
        parent_kind="deal",
        resource_type="contacts",
        parent=Deal,
        parent_id_type=DealId,
        child=Contact,
        child_id_type=ContactId,
        join=DealContact,
        parent_key="deal_id",
        child_key="contact_id",
        child_scope=_org_rows(Contact),
    ),
    ("task", "deals"): Relation(
        parent_kind="task",
        resource_type="deals",
        parent=Task,
        parent_id_type=TaskId,
        child=Deal,
        child_id_type=DealId,
        join=TaskDeal,
        parent_key="task_id",
        child_key="deal_id",
        child_scope=_org_rows(Deal),
    ),
    ("task", "links"): Relation(
        parent_kind="task",
        resource_type="links",
        parent=Task,
        parent_id_type=TaskId,
        child=Link,
        child_id_type=LinkId,
        join=TaskLink,
        parent_key="task_id",
        child_key="link_id",
        child_scope=_org_rows(Link),
    ),
    ("task", "users"): Relation(
        parent_kind="task",
        resource_type="users",
        parent=Task,
        parent_id_type=TaskId,
        child=User,
        child_id_type=UserId,
        join=TaskUser,
        parent_key="task_id",
        child_key="user_id",
        child_scope=_org_members,
    ),
}


def get_relation(parent_kind: str, resource_type: str) -> Relation:
    relation = RELATIONS.get((parent_kind, resource_type))
    if relation is None:
        raise NotFound(
            f"unknown {parent_kind} resource type",
            details={"resource_type": resource_type},
        )
    return relation
