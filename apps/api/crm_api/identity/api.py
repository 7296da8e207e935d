from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from crm_api.core.auth import OrgMember, get_current_user, org_member_with_role, require_role, resolve_member
from crm_api.core.config import get_settings
from crm_api.core.database import get_db
from crm_api.errors import Unauthorized
from crm_api.identity.models import Role, User
from crm_api.identity.repositories import api_key_repository, invitation_repository, org_repository
from crm_api.identity.schemas import (
    ApiKeyCreate,
    ApiKeyCreated,
    InvitationCreate,
    InvitationList,
    InvitationRead,
    OrgCreate,
    OrgList,
    OrgRead,
    OrgUpdate,
    UserRead,
)
from crm_api.ids import InvitationId, OrgId
from crm_api.pagination import PageRequest

auth_router = APIRouter(prefix="/api", tags=["auth"])
orgs_router = APIRouter(prefix="/api/orgs", tags=["orgs"])
invitations_router = APIRouter(prefix="/api/invitation", tags=["invitations"])


@auth_router.get("/auth/whoami", response_model=UserRead)
def whoami(user: User = Depends(get_current_user)) -> UserRead:
    return UserRead.model_validate(user)


@auth_router.post("/api_key", response_model=ApiKeyCreated, status_code=status.HTTP_201_CREATED)
def create_api_key(
    dto: ApiKeyCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> ApiKeyCreated:
    _, raw_key = api_key_repository.create(db, user.id, dto.name, get_settings().api_key_prefix)
    return ApiKeyCreated(api_key=raw_key)


@orgs_router.post("", response_model=OrgRead, status_code=status.HTTP_201_CREATED)
def create_org(
    dto: OrgCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> OrgRead:
    return OrgRead.model_validate(org_repository.create(db, dto.name, user.id))


@orgs_router.get("", response_model=OrgList)
def list_orgs(
    limit: int | None = Query(default=None),
    offset: str | None = Query(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> OrgList:
    page = org_repository.list_for_user(db, user.id, PageRequest(limit=limit, cursor=OrgId.parse_optional(offset)))
    return OrgList(orgs=[OrgRead.model_validate(org) for org in page.items], total=page.total)


@orgs_router.delete("/leave/{org_id}", status_code=status.HTTP_204_NO_CONTENT)
def leave_org(
    org_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Response:
    org_repository.leave(db, OrgId.parse(org_id), user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@orgs_router.get("/{org_id}", response_model=OrgRead)
def get_org(
    org_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> OrgRead:
    member = resolve_member(db, user, OrgId.parse(org_id))
    return OrgRead.model_validate(org_repository.get(db, member.org_id))


@orgs_router.put("/{org_id}", response_model=OrgRead)
def update_org(
    org_id: str,
    dto: OrgUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> OrgRead:
    member = require_role(Role.ADMIN, resolve_member(db, user, OrgId.parse(org_id)))
    return OrgRead.model_validate(org_repository.update(db, member.org_id, dto.name))


@orgs_router.delete("/{org_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_org(
    org_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Response:
    member = require_role(Role.OWNER, resolve_member(db, user, OrgId.parse(org_id)))
    org_repository.delete(db, member.org_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@invitations_router.post("", response_model=InvitationRead, status_code=status.HTTP_201_CREATED)
def create_invitation(
    dto: InvitationCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> InvitationRead:
    member = require_role(Role.ADMIN, resolve_member(db, user, dto.org_id))
    if dto.role > member.role:
        raise Unauthorized(
            "cannot invite with a role above your own",
            details={"role": dto.role.name.lower()},
        )
    invitation = invitation_repository.create(db, member.org_id, str(dto.email), dto.role)
    return InvitationRead.model_validate(invitation)


@invitations_router.get("/{org_id}", response_model=InvitationList)
def list_invitations(
    org_id: str,
    limit: int | None = Query(default=None),
    offset: str | None = Query(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> InvitationList:
    member = require_role(Role.ADMIN, resolve_member(db, user, OrgId.parse(org_id)))
    page = invitation_repository.list(
        db,
        member.org_id,
        PageRequest(limit=limit, cursor=InvitationId.parse_optional(offset)),
    )
    return InvitationList(
        invitations=[InvitationRead.model_validate(invitation) for invitation in page.items],
        total=page.total,
    )


@invitations_router.delete("/{invitation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invitation(
    invitation_id: str,
    db: Session = Depends(get_db),
    member: OrgMember = Depends(org_member_with_role(Role.ADMIN)),
) -> Response:
    invitation_repository.delete(db, member.org_id, InvitationId.parse(invitation_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


identity_routers = [auth_router, orgs_router, invitations_router]
