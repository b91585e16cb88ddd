"""
Test configuration and fixtures.

Provides:
- In-memory SQLite session (fresh schema per test)
- An agency with owner, staff member, project and joined client
- JWT session minting and HTTPX AsyncClients per viewer
"""
import os
import uuid
from dataclasses import dataclass
from typing import AsyncGenerator, Generator

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOCAL_STORAGE_PATH", "/tmp/agencyhub-test-storage")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from agencyhub.core.deps import COOKIE_NAME, CSRF_HEADER, CSRF_HEADER_VALUE, get_db
from agencyhub.core.permissions import Viewer
from agencyhub.core.security import create_session_token, hash_password
from agencyhub.db.base import Base
from agencyhub.db.enums import AgencyRole, Tier, ViewerKind
from agencyhub.db.models import Agency, AgencyMember, Project, ProjectMember, User
from agencyhub.db.types import utcnow
from agencyhub.main import app

PASSWORD = "correct-horse-battery"


# =============================================================================
# Database
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Session on a private in-memory database.

    App code commits freely; the whole database is dropped with the engine.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestSession()
    yield session
    session.close()
    engine.dispose()


# =============================================================================
# Tenant fixtures
# =============================================================================

def make_user(db: Session, name: str, email: str | None = None) -> User:
    user = User(
        email=email or f"{name.lower().replace(' ', '.')}-{uuid.uuid4().hex[:6]}@test.com",
        name=name,
        password_hash=hash_password(PASSWORD),
    )
    db.add(user)
    db.flush()
    return user


@dataclass
class Tenant:
    """One agency with a member of every viewer kind."""
    agency: Agency
    owner: User
    staff: User
    client: User
    project: Project

    @property
    def owner_viewer(self) -> Viewer:
        return Viewer(ViewerKind.OWNER, self.owner.id, self.agency.id)

    @property
    def staff_viewer(self) -> Viewer:
        return Viewer(ViewerKind.STAFF, self.staff.id, self.agency.id)

    @property
    def client_viewer(self) -> Viewer:
        return Viewer(ViewerKind.CLIENT, self.client.id, self.agency.id)


def make_tenant(db: Session, name: str = "Acme Studio") -> Tenant:
    agency = Agency(
        name=name,
        slug=f"{name.lower().replace(' ', '-')}-{uuid.uuid4().hex[:6]}",
        tier=Tier.GROWTH.value,
    )
    db.add(agency)
    owner = make_user(db, "Olive Owner")
    staff = make_user(db, "Sam Staff")
    client = make_user(db, "Casey Client")
    db.flush()

    now = utcnow()
    db.add_all([
        AgencyMember(agency_id=agency.id, user_id=owner.id, role=AgencyRole.OWNER.value, joined_at=now),
        AgencyMember(agency_id=agency.id, user_id=staff.id, role=AgencyRole.STAFF.value, joined_at=now),
    ])
    project = Project(agency_id=agency.id, name="Website", created_by=owner.id)
    db.add(project)
    db.flush()
    db.add(ProjectMember(project_id=project.id, user_id=client.id, joined_at=now))
    db.commit()
    return Tenant(agency=agency, owner=owner, staff=staff, client=client, project=project)


@pytest.fixture(scope="function")
def tenant(db: Session) -> Tenant:
    return make_tenant(db)


@pytest.fixture(scope="function")
def other_tenant(db: Session) -> Tenant:
    return make_tenant(db, "Other Agency")


# =============================================================================
# Client Fixtures
# =============================================================================

def session_cookie(user: User, agency: Agency, kind: ViewerKind) -> dict[str, str]:
    token = create_session_token(user.id, agency.id, kind.value, user.token_version)
    return {COOKIE_NAME: token}


@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated AsyncClient for public endpoints."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={CSRF_HEADER: CSRF_HEADER_VALUE},
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client_for(db: Session):
    """
    Factory for authenticated AsyncClients with session cookie and CSRF header.

    Usage:
        async with client_for(tenant.staff, tenant.agency, ViewerKind.STAFF) as c:
            ...
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    def factory(user: User, agency: Agency, kind: ViewerKind) -> AsyncClient:
        return AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies=session_cookie(user, agency, kind),
            headers={CSRF_HEADER: CSRF_HEADER_VALUE},
        )

    yield factory
    app.dependency_overrides.clear()
