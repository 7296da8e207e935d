from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from crm_api.core.database import Base
from crm_api.core.types import PrefixedIdType, TimestampMixin
from crm_api.identity import models as identity_models  # noqa: F401  orgs and users must be mapped first
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


def _org_fk() -> Mapped[OrgId]:
    return mapped_column(
        PrefixedIdType(OrgId),
        ForeignKey("orgs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


class Contact(TimestampMixin, Base):
    __tablename__ = "contacts"

    id: Mapped[ContactId] = mapped_column(PrefixedIdType(ContactId), primary_key=True, default=ContactId.create)
    org_id: Mapped[OrgId] = _org_fk()
    first_name: Mapped[str] = mapped_column(Text, nullable=False)
    last_name: Mapped[str] = mapped_column(Text, nullable=False)


class Deal(TimestampMixin, Base):
    __tablename__ = "deals"

    id: Mapped[DealId] = mapped_column(PrefixedIdType(DealId), primary_key=True, default=DealId.create)
    org_id: Mapped[OrgId] = _org_fk()
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    size: Mapped[float | None] = mapped_column(Float, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Note(TimestampMixin, Base):
    __tablename__ = "notes"

    id: Mapped[NoteId] = mapped_column(PrefixedIdType(NoteId), primary_key=True, default=NoteId.create)
    org_id: Mapped[OrgId] = _org_fk()
    title: Mapped[str] = mapped_column(Text, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")


class Company(TimestampMixin, Base):
    __tablename__ = "companies"

    id: Mapped[CompanyId] = mapped_column(PrefixedIdType(CompanyId), primary_key=True, default=CompanyId.create)
    org_id: Mapped[OrgId] = _org_fk()
    name: Mapped[str] = mapped_column(Text, nullable=False)


class Link(TimestampMixin, Base):
    __tablename__ = "links"

    id: Mapped[LinkId] = mapped_column(PrefixedIdType(LinkId), primary_key=True, default=LinkId.create)
    org_id: Mapped[OrgId] = _org_fk()
    link: Mapped[str] = mapped_column(Text, nullable=False)


class Email(TimestampMixin, Base):
    __tablename__ = "emails"

    id: Mapped[EmailId] = mapped_column(PrefixedIdType(EmailId), primary_key=True, default=EmailId.create)
    org_id: Mapped[OrgId] = _org_fk()
    email: Mapped[str] = mapped_column(Text, nullable=False)


class Phone(TimestampMixin, Base):
    __tablename__ = "phones"

    id: Mapped[PhoneId] = mapped_column(PrefixedIdType(PhoneId), primary_key=True, default=PhoneId.create)
    org_id: Mapped[OrgId] = _org_fk()
    number: Mapped[str] = mapped_column(Text, nullable=False)


class Task(TimestampMixin, Base):
    __tablename__ = "tasks"

    id: Mapped[TaskId] = mapped_column(PrefixedIdType(TaskId), primary_key=True, default=TaskId.create)
    org_id: Mapped[OrgId] = _org_fk()
    deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    contact_id: Mapped[ContactId | None] = mapped_column(
        PrefixedIdType(ContactId),
        ForeignKey("contacts.id", ondelete="SET NULL"),
        nullable=True,
    )


class DealContact(TimestampMixin, Base):
    __tablename__ = "deal_contacts"
    __table_args__ = (UniqueConstraint("deal_id", "contact_id", name="uq_deal_contacts_pair"),)

    id: Mapped[DealContactId] = mapped_column(
        PrefixedIdType(DealContactId), primary_key=True, default=DealContactId.create
    )
    deal_id: Mapped[DealId] = mapped_column(
        PrefixedIdType(DealId), ForeignKey("deals.id", ondelete="CASCADE"), nullable=False, index=True
    )
    contact_id: Mapped[ContactId] = mapped_column(
        PrefixedIdType(ContactId), ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True
    )


class TaskDeal(TimestampMixin, Base):
    __tablename__ = "task_deals"
    __table_args__ = (UniqueConstraint("task_id", "deal_id", name="uq_task_deals_pair"),)

    id: Mapped[TaskDealId] = mapped_column(PrefixedIdType(TaskDealId), primary_key=True, default=TaskDealId.create)
    task_id: Mapped[TaskId] = mapped_column(
        PrefixedIdType(TaskId), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    deal_id: Mapped[DealId] = mapped_column(
        PrefixedIdType(DealId), ForeignKey("deals.id", ondelete="CASCADE"), nullable=False, index=True
    )


class TaskLink(TimestampMixin, Base):
    __tablename__ = "task_links"
    __table_args__ = (UniqueConstraint("task_id", "link_id", name="uq_task_links_pair"),)

    id: Mapped[TaskLinkId] = mapped_column(PrefixedIdType(TaskLinkId), primary_key=True, default=TaskLinkId.create)
    task_id: Mapped[TaskId] = mapped_column(
        PrefixedIdType(TaskId), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    link_id: Mapped[LinkId] = mapped_column(
        PrefixedIdType(LinkId), ForeignKey("links.id", ondelete="CASCADE"), nullable=False, index=True
    )


class TaskUser(TimestampMixin, Base):
    __tablename__ = "task_users"
    __table_args__ = (UniqueConstraint("task_id", "user_id", name="uq_task_users_pair"),)

    id: Mapped[TaskUserId] = mapped_column(PrefixedIdType(TaskUserId), primary_key=True, default=TaskUserId.create)
    task_id: Mapped[TaskId] = mapped_column(
        PrefixedIdType(TaskId), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[UserId] = mapped_column(
        PrefixedIdType(UserId), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
