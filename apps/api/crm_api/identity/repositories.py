from __future__ import annotations

import hashlib
import logging
import secrets
from typing import Any

from sqlalchemy import Select, delete, func, select
from sqlalchemy.orm import Session

from crm_api.core.repository import storage_errors
from crm_api.core.types import utcnow
from crm_api.errors import NotFound, Unauthorized
from crm_api.identity.models import ApiKey, Invitation, Org, OrgUser, Role, User
from crm_api.ids import InvitationId, OrgId, UserId
from crm_api.metrics import observe_entity_write
from crm_api.pagination import Page, PageRequest, paginate

logger = logging.getLogger("crm_api.identity")


def hash_api_key(raw_key: str) -> str:
    return hashlib.sha256(raw_key.encode("utf-8")).hexdigest()


def _log_write(entity_type: str, operation: str, entity_id: object, org_id: OrgId | None = None) -> None:
    observe_entity_write(entity_type, operation)
    logger.info(
        f"crm.{entity_type}.{operation}",
        extra={"entity_type": entity_type, "entity_id": entity_id, "org_id": org_id},
    )


class UserRepository:
    def get(self, session: Session, user_id: UserId) -> User:
        with storage_errors(session, "user", "get"):
            user = session.get(User, user_id)
        if user is None:
            raise NotFound("user not found", details={"id": str(user_id)})
        return user

    def get_by_email(self, session: Session, email: str) -> User | None:
        with storage_errors(session, "user", "get"):
            return session.scalar(select(User).where(User.email == email))

    def get_by_api_key(self, session: Session, raw_key: str) -> User | None:
        with storage_errors(session, "user", "get"):
            return session.scalar(
                select(User).join(ApiKey, ApiKey.user_id == User.id).where(ApiKey.key_hash == hash_api_key(raw_key))
            )

    def create(self, session: Session, email: str, name: str | None = None, user_id: UserId | None = None) -> User:
        """Create a user and turn any pending invitations for its email into memberships."""
        with storage_errors(session, "user", "create"):
            user = User(id=user_id or UserId.create(), email=email, name=name)
            session.add(user)
            session.flush()
            pending = session.scalars(
                select(Invitation).where(Invitation.email == email, Invitation.used.is_(False))
            ).all()
            for invitation in pending:
                session.add(OrgUser(user_id=user.id, org_id=invitation.org_id, role=invitation.role))
                invitation.used = True
                invitation.updated_at = utcnow()
            session.commit()
            session.refresh(user)
        _log_write("user", "create", user.id)
        return user


class OrgRepository:
    def scoped_for_user(self, user_id: UserId) -> Select[Any]:
        return select(Org).join(OrgUser, OrgUser.org_id == Org.id).where(OrgUser.user_id == user_id)

    def create(self, session: Session, name: str, owner_id: UserId) -> Org:
        with storage_errors(session, "org", "create"):
            org = Org(name=name)
            session.add(org)
            session.flush()
            session.add(OrgUser(user_id=owner_id, org_id=org.id, role=int(Role.OWNER)))
            session.commit()
            session.refresh(org)
        _log_write("org", "create", org.id, org.id)
        return org

    def get(self, session: Session, org_id: OrgId) -> Org:
        with storage_errors(session, "org", "get"):
            org = session.get(Org, org_id)
        if org is None:
            raise NotFound("org not found", details={"id": str(org_id)})
        return org

    def list_for_user(self, session: Session, user_id: UserId, page_request: PageRequest) -> Page[Org]:
        with storage_errors(session, "org", "list"):
            return paginate(session, self.scoped_for_user(user_id), Org, page_request)

    def update(self, session: Session, org_id: OrgId, name: str) -> Org:
        org = self.get(session, org_id)
        with storage_errors(session, "org", "update"):
            org.name = name
            org.updated_at = utcnow()
            session.commit()
            session.refresh(org)
        _log_write("org", "update", org.id, org.id)
        return org

    def delete(self, session: Session, org_id: OrgId) -> None:
        with storage_errors(session, "org", "delete"):
            result = session.execute(delete(Org).where(Org.id == org_id))
            if result.rowcount == 0:
                session.rollback()
                raise NotFound("org not found", details={"id": str(org_id)})
            session.commit()
        _log_write("org", "delete", org_id, org_id)

    def leave(self, session: Session, org_id: OrgId, user_id: UserId) -> None:
        with storage_errors(session, "org", "leave"):
            role = session.scalar(select(OrgUser.role).where(OrgUser.org_id == org_id, OrgUser.user_id == user_id))
            if role == Role.OWNER:
                owners = session.scalar(
                    select(func.count()).select_from(OrgUser).where(OrgUser.org_id == org_id, OrgUser.role == Role.OWNER)
                )
                if owners == 1:
                    raise Unauthorized("the last owner cannot leave the org", details={"id": str(org_id)})
            result = session.execute(delete(OrgUser).where(OrgUser.org_id == org_id, OrgUser.user_id == user_id))
            if result.rowcount == 0:
                session.rollback()
                raise NotFound("not a member of org", details={"id": str(org_id)})
            session.commit()
        _log_write("org_user", "delete", user_id, org_id)


class MembershipRepository:
    def get_role(self, session: Session, user_id: UserId, org_id: OrgId) -> Role | None:
        with storage_errors(session, "org_user", "get"):
            role = session.scalar(select(OrgUser.role).where(OrgUser.user_id == user_id, OrgUser.org_id == org_id))
        return None if role is None else Role(role)


class InvitationRepository:
    def create(self, session: Session, org_id: OrgId, email: str, role: Role) -> Invitation:
        with storage_errors(session, "invitation", "create"):
            invitation = Invitation(org_id=org_id, email=email, role=int(role), used=False)
            session.add(invitation)
            session.commit()
            session.refresh(invitation)
        _log_write("invitation", "create", invitation.id, org_id)
        return invitation

    def list(self, session: Session, org_id: OrgId, page_request: PageRequest) -> Page[Invitation]:
        with storage_errors(session, "invitation", "list"):
            return paginate(session, select(Invitation).where(Invitation.org_id == org_id), Invitation, page_request)

    def delete(self, session: Session, org_id: OrgId, invitation_id: InvitationId) -> None:
        with storage_errors(session, "invitation", "delete"):
            result = session.execute(
                delete(Invitation).where(Invitation.id == invitation_id, Invitation.org_id == org_id)
            )
            if result.rowcount == 0:
                session.rollback()
                raise NotFound("invitation not found", details={"id": str(invitation_id)})
            session.commit()
        _log_write("invitation", "delete", invitation_id, org_id)


class ApiKeyRepository:
    def create(self, session: Session, user_id: UserId, name: str, prefix: str) -> tuple[ApiKey, str]:
        """Store a new key for the user; the plaintext is returned once and never persisted."""
        raw_key = f"{prefix}{secrets.token_urlsafe(32)}"
        with storage_errors(session, "api_key", "create"):
            api_key = ApiKey(user_id=user_id, name=name, key_hash=hash_api_key(raw_key))
            session.add(api_key)
            session.commit()
            session.refresh(api_key)
        _log_write("api_key", "create", api_key.id)
        return api_key, raw_key


user_repository = UserRepository()
org_repository = OrgRepository()
membership_repository = MembershipRepository()
invitation_repository = InvitationRepository()
api_key_repository = ApiKeyRepository()
