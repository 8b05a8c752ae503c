"""
Portal Test Configuration

Shared fixtures: in-memory database, seeded profiles/projects, hook
contexts and API clients.
"""
import uuid
from datetime import date

import pytest
from werkzeug.security import generate_password_hash

from common.auth import create_access_token
from common.config import reload_config
from modules.tracking import DataClient, HookContext
from modules.tracking.database import get_engine, get_session_factory, init_db
from modules.tracking.models import (
    ClientRecord,
    DashboardConfig,
    Identity,
    PaymentSchedule,
    Phase,
    Profile,
    Project,
)

PASSWORD = "correct-horse"


# =============================================================================
# FIXTURES: Configuration & Database
# =============================================================================

@pytest.fixture(autouse=True)
def config(monkeypatch, tmp_path):
    """Fresh configuration per test, no config file, local identity backend."""
    monkeypatch.setenv("CONFIG_PATH", str(tmp_path / "missing.yml"))
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("IDENTITY_BACKEND", "local")
    monkeypatch.setenv("JWT_SECRET_KEY", "test-secret")
    yield reload_config()
    reload_config()


@pytest.fixture
def engine(config):
    """Create a fresh in-memory SQLite engine for each test."""
    eng = get_engine("sqlite://", echo=False)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    sess = get_session_factory(engine)()
    yield sess
    sess.close()


@pytest.fixture
def data_client(session):
    return DataClient(session)


# =============================================================================
# FIXTURES: Seed data
# =============================================================================

@pytest.fixture
def make_user(session):
    """Create identity + profile. Returns the Profile row."""

    def _make(role="client", email=None, full_name=None, company=None, with_profile=True):
        email = email or f"{role}-{uuid.uuid4().hex[:8]}@example.com"
        identity = Identity(
            email=email,
            password_hash=generate_password_hash(PASSWORD, method="pbkdf2:sha256:1000"),
            email_confirmed=True,
            user_metadata={"full_name": full_name or role.title(), "role": role},
        )
        session.add(identity)
        session.commit()
        if not with_profile:
            return identity
        profile = Profile(
            user_id=identity.id,
            email=email,
            full_name=full_name or role.title(),
            company=company,
            role=role,
        )
        session.add(profile)
        session.commit()
        return profile

    return _make


@pytest.fixture
def password():
    """Plain-text password of every seeded identity."""
    return PASSWORD


@pytest.fixture
def admin(make_user):
    return make_user("admin", email="admin@example.com", full_name="Ada Admin")


@pytest.fixture
def team_member(make_user):
    return make_user("team_member", email="team@example.com", full_name="Tim Team")


@pytest.fixture
def client_profile(make_user):
    return make_user("client", email="client@acme.com", full_name="Carla Client", company="Acme")


@pytest.fixture
def project(session, client_profile):
    """Active project owned by client_profile with three phases and three payments."""
    proj = Project(
        profile_id=client_profile.id,
        name="Automation Rollout",
        description="Invoice processing automation",
        status="active",
        progress_percentage=40,
        total_amount=10000.0,
        monthly_savings=2000.0,
        annual_roi_percentage=140.0,
    )
    session.add(proj)
    session.commit()
    session.add_all([
        Phase(project_id=proj.id, name="Discovery", order_index=1, status="completed",
              progress_percentage=100, end_date=date(2026, 1, 31)),
        Phase(project_id=proj.id, name="Build", order_index=2, status="in_progress",
              progress_percentage=50, end_date=date(2026, 11, 15)),
        Phase(project_id=proj.id, name="Launch", order_index=3, status="not_started",
              progress_percentage=0),
        PaymentSchedule(project_id=proj.id, name="Deposit", amount=3000.0,
                        due_date=date(2026, 1, 15), status="paid"),
        PaymentSchedule(project_id=proj.id, name="Milestone", amount=4000.0,
                        due_date=date(2026, 6, 15), status="pending"),
        PaymentSchedule(project_id=proj.id, name="Final", amount=3000.0,
                        due_date=date(2026, 12, 15), status="overdue"),
    ])
    session.commit()
    session.refresh(proj)
    return proj


@pytest.fixture
def client_record(session, client_profile):
    """Billing record linked to client_profile."""
    record = ClientRecord(
        profile_id=client_profile.id,
        name="Acme Corp",
        contact_email="client@acme.com",
        company="Acme",
    )
    session.add(record)
    session.commit()
    return record


@pytest.fixture
def global_config(session):
    config = DashboardConfig(
        project_id=None,
        widgets=["progress", "payments"],
        branding={"primaryColor": "#111111"},
        permissions={"viewPayments": True, "viewTimeline": False},
        notifications={"emailUpdates": False},
    )
    session.add(config)
    session.commit()
    return config


# =============================================================================
# FIXTURES: Hook contexts
# =============================================================================

@pytest.fixture
def ctx_for(data_client):
    """HookContext for a given profile (or None)."""

    def _ctx(profile=None):
        return HookContext(client=data_client, profile=profile)

    return _ctx


def token_for(profile_or_identity) -> str:
    user_id = getattr(profile_or_identity, "user_id", None) or profile_or_identity.id
    return create_access_token({"sub": user_id})


@pytest.fixture
def issue_token():
    return token_for


@pytest.fixture
def auth_header():
    def _header(profile_or_identity):
        return {"Authorization": f"Bearer {token_for(profile_or_identity)}"}

    return _header


# =============================================================================
# FIXTURES: API clients
# =============================================================================

def _override(app, session):
    from common.auth import LocalIdentityProvider, get_provider
    from modules.tracking.database import get_db

    def _db():
        yield session

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_provider] = lambda: LocalIdentityProvider(session)


@pytest.fixture
def api(session):
    """TestClient for the portal app bound to the test session."""
    from fastapi.testclient import TestClient

    from portal.main import app

    _override(app, session)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def provisioning_api(session):
    """TestClient for the standalone provisioning service."""
    from fastapi.testclient import TestClient

    from services.provisioning.app import app

    _override(app, session)
    yield TestClient(app)
    app.dependency_overrides.clear()
