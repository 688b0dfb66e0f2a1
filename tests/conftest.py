"""
conftest.py — Shared Test Fixtures for Bid Tracker

Provides an in-memory SQLite database, FastAPI TestClient with auth
overrides, and factory fixtures for core models (User, Company, Contact,
Bid with Scopes).

Business Rules:
- All tests run against an isolated in-memory DB (no prod data risk)
- SQLite is put in PostgreSQL-like mode: FKs enforced, LIKE case-sensitive
- Auth is overridden so tests don't need tokens (see `client`, `client_as`)
- Uploads go to a per-test temp directory

Called by: all test files via pytest autodiscovery
Depends on: bidtracker.models (Base), bidtracker.database (get_db),
            bidtracker.dependencies (get_current_user)
"""

import os

os.environ["TESTING"] = "1"  # Must be set before importing app modules
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("FOLLOWUP_EMAILS_ENABLED", "false")

from datetime import date, datetime, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bidtracker.config import settings
from bidtracker.models import Base, Bid, Company, Contact, Scope, User
from bidtracker.utils.security import hash_password

# ── In-memory SQLite engine ──────────────────────────────────────────

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@event.listens_for(engine, "connect")
def _sqlite_pragmas(dbapi_conn, _):
    """SQLite ignores FKs and matches LIKE case-insensitively by default."""
    dbapi_conn.execute("PRAGMA foreign_keys=ON")
    dbapi_conn.execute("PRAGMA case_sensitive_like=ON")


# ── Fixtures ─────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def db_session():
    """Create all tables, yield a session, then tear down."""
    Base.metadata.create_all(bind=engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def upload_dir(tmp_path):
    """Send stored attachments to a temp dir."""
    target = tmp_path / "uploads"
    with patch.object(settings, "upload_dir", str(target)):
        yield target


def _make_user(db: Session, email: str, name: str, role: str, **kw) -> User:
    user = User(
        email=email,
        name=name,
        role=role,
        password_hash=hash_password(kw.pop("password", "password123")),
        is_active=kw.pop("is_active", True),
        created_at=datetime.now(timezone.utc),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def test_user(db_session: Session) -> User:
    """A standard owner-scoped USER."""
    return _make_user(db_session, "estimator@bidtracker.test", "Test Estimator", "USER")


@pytest.fixture()
def other_user(db_session: Session) -> User:
    """A second USER who owns nothing by default."""
    return _make_user(db_session, "other@bidtracker.test", "Other Estimator", "USER")


@pytest.fixture()
def manager_user(db_session: Session) -> User:
    return _make_user(db_session, "manager@bidtracker.test", "Test Manager", "MANAGER")


@pytest.fixture()
def admin_user(db_session: Session) -> User:
    """An admin-role user for privileged operations."""
    return _make_user(db_session, "admin@bidtracker.test", "Test Admin", "ADMIN")


@pytest.fixture()
def test_company(db_session: Session) -> Company:
    """A sample client company."""
    co = Company(name="Acme Construction", website="https://acme.example.com")
    db_session.add(co)
    db_session.commit()
    db_session.refresh(co)
    return co


@pytest.fixture()
def test_contact(db_session: Session, test_company: Company) -> Contact:
    contact = Contact(
        company_id=test_company.id,
        name="Jane Roe",
        email="jane@acme.example.com",
        phone="555-0100",
    )
    db_session.add(contact)
    db_session.commit()
    db_session.refresh(contact)
    return contact


def make_bid(
    db: Session,
    company: Company,
    owner: User | None,
    project_name: str = "Warehouse Fitout",
    scopes=(("Foundation", 100.0, "Won"), ("Framing", 50.0, "Pending")),
    **fields,
) -> Bid:
    """Insert a bid with scopes directly, bypassing the service layer."""
    bid = Bid(
        project_name=project_name,
        client_company_id=company.id,
        owner_id=owner.id if owner else None,
        bid_status=fields.pop("bid_status", "Active"),
        **fields,
    )
    for name, cost, status in scopes:
        bid.scopes.append(Scope(name=name, cost=cost, status=status))
    db.add(bid)
    db.commit()
    db.refresh(bid)
    return bid


@pytest.fixture()
def bid_factory(db_session: Session):
    """make_bid bound to the test session."""

    def _make(company, owner, **kw) -> Bid:
        return make_bid(db_session, company, owner, **kw)

    return _make


@pytest.fixture()
def test_bid(db_session: Session, test_company: Company, test_contact: Contact, test_user: User) -> Bid:
    """A bid owned by test_user with one Won and one Pending scope."""
    return make_bid(
        db_session,
        test_company,
        test_user,
        contact_id=test_contact.id,
        proposal_date=date(2025, 6, 10),
        created_at=datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture()
def client_as(db_session: Session):
    """Factory: a TestClient whose requests are authenticated as `user`."""
    from bidtracker.database import get_db
    from bidtracker.dependencies import get_current_user
    from bidtracker.main import app

    def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db
    clients = []

    def _make(user: User) -> TestClient:
        app.dependency_overrides[get_current_user] = lambda: user
        c = TestClient(app)
        clients.append(c)
        return c

    yield _make
    for c in clients:
        c.close()
    app.dependency_overrides.clear()


@pytest.fixture()
def client(client_as, test_user: User) -> TestClient:
    """TestClient authenticated as test_user (role USER)."""
    return client_as(test_user)


@pytest.fixture()
def admin_client(client_as, admin_user: User) -> TestClient:
    return client_as(admin_user)


@pytest.fixture()
def anon_client(db_session: Session) -> TestClient:
    """TestClient with the real auth dependency (no user override)."""
    from bidtracker.database import get_db
    from bidtracker.main import app

    def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
