from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from crm_api.identity.models import Role
from crm_api.ids import InvitationId, OrgId, UserId


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UserId
    email: str
    name: str | None
    created_at: datetime
    updated_at: datetime


class OrgCreate(BaseModel):
    name: str = Field(min_length=1)


class OrgUpdate(BaseModel):
    name: str = Field(min_length=1)


class OrgRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: OrgId
    name: str
    created_at: datetime
    updated_at: datetime


class OrgList(BaseModel):
    orgs: list[OrgRead]
    total: int


class InvitationCreate(BaseModel):
    email: EmailStr
    org_id: OrgId
    role: Role = Role.USER


class InvitationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: InvitationId
    email: str
    org_id: OrgId
    role: Role
    used: bool
    created_at: datetime
    updated_at: datetime


class InvitationList(BaseModel):
    invitations: list[InvitationRead]
    total: int


class ApiKeyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class ApiKeyCreated(BaseModel):
    api_key: str
