from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from crm_api.identity.schemas import UserRead
from crm_api.ids import (
    CompanyId,
    ContactId,
    DealContactId,
    DealId,
    EmailId,
    LinkId,
    NoteId,
    OrgId,
    PhoneId,
    TaskDealId,
    TaskId,
    TaskLinkId,
    TaskUserId,
    UserId,
)


class ContactCreate(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)


class ContactUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1)
    last_name: str | None = Field(default=None, min_length=1)


class ContactRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: ContactId
    org_id: OrgId
    first_name: str
    last_name: str
    created_at: datetime
    updated_at: datetime


class ContactList(BaseModel):
    contacts: list[ContactRead]
    total: int


class DealCreate(BaseModel):
    name: str | None = None
    size: float | None = None
    active: bool = False


class DealUpdate(BaseModel):
    name: str | None = None
    size: float | None = None
    active: bool | None = None


class DealRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: DealId
    org_id: OrgId
    name: str | None
    size: float | None
    active: bool
    created_at: datetime
    updated_at: datetime


class DealList(BaseModel):
    deals: list[DealRead]
    total: int


class NoteCreate(BaseModel):
    title: str = Field(min_length=1)
    body: str = ""


class NoteUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    body: str | None = None


class NoteRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: NoteId
    org_id: OrgId
    title: str
    body: str
    created_at: datetime
    updated_at: datetime


class NoteList(BaseModel):
    notes: list[NoteRead]
    total: int


class CompanyCreate(BaseModel):
    name: str = Field(min_length=1)


class CompanyUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)


class CompanyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: CompanyId
    org_id: OrgId
    name: str
    created_at: datetime
    updated_at: datetime


class CompanyList(BaseModel):
    companies: list[CompanyRead]
    total: int


class LinkCreate(BaseModel):
    link: str = Field(min_length=1)


class LinkUpdate(BaseModel):
    link: str | None = Field(default=None, min_length=1)


class LinkRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: LinkId
    org_id: OrgId
    link: str
    created_at: datetime
    updated_at: datetime


class LinkList(BaseModel):
    links: list[LinkRead]
    total: int


class EmailCreate(BaseModel):
    email: str = Field(min_length=1)


class EmailUpdate(BaseModel):
    email: str | None = Field(default=None, min_length=1)


class EmailRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: EmailId
    org_id: OrgId
    email: str
    created_at: datetime
    updated_at: datetime


class EmailList(BaseModel):
    emails: list[EmailRead]
    total: int


class PhoneCreate(BaseModel):
    number: str = Field(min_length=1)


class PhoneUpdate(BaseModel):
    number: str | None = Field(default=None, min_length=1)


class PhoneRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: PhoneId
    org_id: OrgId
    number: str
    created_at: datetime
    updated_at: datetime


class PhoneList(BaseModel):
    phones: list[PhoneRead]
    total: int


class TaskCreate(BaseModel):
    deadline: datetime | None = None
    description: str | None = None
    contact_id: ContactId | None = None


class TaskUpdate(BaseModel):
    deadline: datetime | None = None
    description: str | None = None
    contact_id: ContactId | None = None


class TaskRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: TaskId
    org_id: OrgId
    deadline: datetime | None
    description: str | None
    contact_id: ContactId | None
    created_at: datetime
    updated_at: datetime


class TaskList(BaseModel):
    tasks: list[TaskRead]
    total: int


class DealContactRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: DealContactId
    deal_id: DealId
    contact_id: ContactId
    created_at: datetime
    updated_at: datetime


class TaskDealRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: TaskDealId
    task_id: TaskId
    deal_id: DealId
    created_at: datetime
    updated_at: datetime


class TaskLinkRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: TaskLinkId
    task_id: TaskId
    link_id: LinkId
    created_at: datetime
    updated_at: datetime


class TaskUserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: TaskUserId
    task_id: TaskId
    user_id: UserId
    created_at: datetime
    updated_at: datetime


class RelatedList(BaseModel):
    """Children attached to a deal or task; ``data`` holds reads of the child kind."""

    data: list[ContactRead] | list[DealRead] | list[LinkRead] | list[UserRead]
    total: int
