from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Depends, Header
from jose import JWTError, jwt
from sqlalchemy.orm import Session
from starlette.requests import Request

from crm_api.core.config import get_settings
from crm_api.core.database import get_db
from crm_api.errors import MalformedIdentifier, NotFound, Unauthorized
from crm_api.identity.models import Role, User
from crm_api.identity.repositories import membership_repository, user_repository
from crm_api.ids import OrgId, UserId


@dataclass
class OrgMember:
    user: User
    org_id: OrgId
    role: Role


def issue_token(user_id: UserId, email: str, name: str | None = None, expires_in: timedelta | None = None) -> str:
    settings = get_settings()
    claims: dict[str, object] = {"sub": user_id.format(), "email": email}
    if name is not None:
        claims["name"] = name
    if expires_in is not None:
        claims["exp"] = datetime.now(timezone.utc) + expires_in
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def _user_from_token(db: Session, token: str) -> User:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise Unauthorized("invalid bearer token") from exc

    try:
        user_id = UserId.parse(str(payload.get("sub", "")))
    except MalformedIdentifier as exc:
        raise Unauthorized("bearer token subject is not a user id") from exc

    try:
        return user_repository.get(db, user_id)
    except NotFound:
        pass

    email = payload.get("email")
    if not isinstance(email, str) or not email:
        raise Unauthorized("bearer token for an unknown user carries no email")
    existing = user_repository.get_by_email(db, email)
    if existing is not None:
        return existing
    name = payload.get("name")
    return user_repository.create(db, email=email, name=name if isinstance(name, str) else None, user_id=user_id)


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Resolve the caller from an ``Authorization`` header: a bearer JWT or a raw API key."""
    auth_header = request.headers.get("authorization", "").strip()
    if not auth_header:
        raise Unauthorized("missing credentials")

    if auth_header.startswith("Bearer "):
        return _user_from_token(db, auth_header.removeprefix("Bearer ").strip())

    user = user_repository.get_by_api_key(db, auth_header)
    if user is None:
        raise Unauthorized("invalid api key")
    return user


def resolve_member(db: Session, user: User, org_id: OrgId) -> OrgMember:
    role = membership_repository.get_role(db, user.id, org_id)
    if role is None:
        raise Unauthorized("caller is not a member of the organization", details={"org_id": org_id.format()})
    return OrgMember(user=user, org_id=org_id, role=role)


def get_org_member(
    organization: str | None = Header(default=None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> OrgMember:
    if not organization:
        raise MalformedIdentifier("missing Organization header")
    return resolve_member(db, user, OrgId.parse(organization))


def require_role(minimum: Role, member: OrgMember) -> OrgMember:
    if member.role < minimum:
        raise Unauthorized(
            f"requires the {minimum.name.lower()} role",
            details={"org_id": member.org_id.format(), "role": member.role.name.lower()},
        )
    return member


def org_member_with_role(minimum: Role) -> Callable[..., OrgMember]:
    def dependency(member: OrgMember = Depends(get_org_member)) -> OrgMember:
        return require_role(minimum, member)

    return dependency
