from __future__ import annotations

from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from crm_api.core.config import get_settings
from crm_api.core.database import Base, enable_sqlite_foreign_keys, get_db
from crm_api.crm import models as crm_models  # noqa: F401
from crm_api.identity.models import Org, OrgUser, Role, User
from crm_api.ids import OrgId, UserId
from crm_api.main import app
from factories import Member


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clear_settings() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_member(db_session: Session) -> Callable[..., Member]:
    """Create a user that belongs to an org (a new one unless ``org_id`` is given)."""

    def factory(role: Role = Role.OWNER, org_id: OrgId | None = None, org_name: str = "Acme") -> Member:
        email = f"{UserId.create().value.hex[:12]}@example.com"
        user = User(email=email)
        db_session.add(user)
        if org_id is None:
            org = Org(name=org_name)
            db_session.add(org)
            db_session.flush()
            org_id = org.id
        db_session.flush()
        db_session.add(OrgUser(user_id=user.id, org_id=org_id, role=int(role)))
        db_session.commit()
        return Member(user_id=user.id, org_id=org_id, role=role, email=email)

    return factory
