from __future__ import annotations

from enum import IntEnum

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from crm_api.core.database import Base
from crm_api.core.types import PrefixedIdType, TimestampMixin
from crm_api.ids import ApiKeyId, InvitationId, OrgId, OrgUserId, UserId


class Role(IntEnum):
    USER = 0
    ADMIN = 1
    OWNER = 2


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[UserId] = mapped_column(PrefixedIdType(UserId), primary_key=True, default=UserId.create)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)


class Org(TimestampMixin, Base):
    __tablename__ = "orgs"

    id: Mapped[OrgId] = mapped_column(PrefixedIdType(OrgId), primary_key=True, default=OrgId.create)
    name: Mapped[str] = mapped_column(Text, nullable=False)


class OrgUser(TimestampMixin, Base):
    __tablename__ = "org_users"
    __table_args__ = (UniqueConstraint("user_id", "org_id", name="uq_org_users_user_org"),)

    id: Mapped[OrgUserId] = mapped_column(PrefixedIdType(OrgUserId), primary_key=True, default=OrgUserId.create)
    user_id: Mapped[UserId] = mapped_column(
        PrefixedIdType(UserId),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    org_id: Mapped[OrgId] = mapped_column(
        PrefixedIdType(OrgId),
        ForeignKey("orgs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[int] = mapped_column(Integer, nullable=False, default=Role.USER)


class Invitation(TimestampMixin, Base):
    __tablename__ = "invitations"

    id: Mapped[InvitationId] = mapped_column(
        PrefixedIdType(InvitationId), primary_key=True, default=InvitationId.create
    )
    email: Mapped[str] = mapped_column(Text, nullable=False)
    org_id: Mapped[OrgId] = mapped_column(
        PrefixedIdType(OrgId),
        ForeignKey("orgs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[int] = mapped_column(Integer, nullable=False, default=Role.USER)
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class ApiKey(TimestampMixin, Base):
    __tablename__ = "api_keys"

    id: Mapped[ApiKeyId] = mapped_column(PrefixedIdType(ApiKeyId), primary_key=True, default=ApiKeyId.create)
    user_id: Mapped[UserId] = mapped_column(
        PrefixedIdType(UserId),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    key_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
