"""
Test configuration: an in-memory SQLite database, users with bearer tokens
and small helpers that create records through the API.

Environment variables are set before the application is imported because
configuration is read at import time.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["RATE_LIMIT_ENABLED"] = "true"
os.environ["RATE_LIMIT_MAX"] = "1000"
os.environ["AUTH_RATE_LIMIT_MAX"] = "5"
os.environ["TRUSTED_PROXIES"] = "testclient"
os.environ["MAX_BODY_SIZE"] = str(1024 * 1024)
os.environ["MAX_DOCUMENT_SIZE"] = str(64 * 1024)
os.environ["GOOGLE_CLIENT_ID"] = "google-client-id"
os.environ["GOOGLE_CLIENT_SECRET"] = "google-client-secret"
os.environ["CLIENT_URL"] = "http://frontend.test"
os.environ["API_BASE_URL"] = "http://api.test"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ.pop("REDIS_URL", None)
os.environ.pop("REDIS_HOST", None)
os.environ.pop("MICROSOFT_CLIENT_ID", None)
os.environ.pop("MICROSOFT_CLIENT_SECRET", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from venue_crm.database import Base, SessionLocal, engine  # noqa: E402
from venue_crm.main import app  # noqa: E402
from venue_crm.models import User  # noqa: E402
from venue_crm.rate_limiter import reset_rate_limits  # noqa: E402
from venue_crm.security_utils import clear_revoked_tokens, create_access_token  # noqa: E402


@pytest.fixture(autouse=True)
def database():
    """Fresh schema for every test"""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def reset_state():
    reset_rate_limits()
    clear_revoked_tokens()
    yield
    reset_rate_limits()
    clear_revoked_tokens()


@pytest.fixture
def db(database):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def _make_user(db, email: str, name: str, role: str) -> User:
    user = User(email=email, name=name, role=role, provider="google", provider_id=f"google-{email}")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def admin_user(db):
    return _make_user(db, "admin@agency.test", "Ada Admin", "admin")


@pytest.fixture
def consultant_user(db):
    return _make_user(db, "carol@agency.test", "Carol Consultant", "consultant")


@pytest.fixture
def other_consultant(db):
    return _make_user(db, "dan@agency.test", "Dan Consultant", "consultant")


@pytest.fixture
def admin_headers(admin_user):
    return _auth_headers(admin_user)


@pytest.fixture
def consultant_headers(consultant_user):
    return _auth_headers(consultant_user)


@pytest.fixture
def other_headers(other_consultant):
    return _auth_headers(other_consultant)


# ============================================================================
# API HELPERS
# ============================================================================


@pytest.fixture
def create_client_record(client):
    def _create(headers, **overrides):
        body = {"name": "Acme Events", "company": "Acme Ltd", "email": "events@acme.test", **overrides}
        response = client.post("/api/clients", json=body, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture
def create_venue_record(client):
    def _create(headers, **overrides):
        body = {"name": "Grand Hall", "location": "London", "standardCommission": 10, **overrides}
        response = client.post("/api/venues", json=body, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


SAMPLE_CHARGE_LINES = [
    {"description": "Main hall hire", "quantity": 2, "unitPrice": 2500, "category": "room_hire"},
    {"description": "Lunch", "quantity": 100, "unitPrice": 45, "category": "food_beverage"},
]


@pytest.fixture
def create_proposal_record(client):
    def _create(headers, client_id, venue_ids, status="draft", charge_lines=None, **overrides):
        body = {
            "clientId": client_id,
            "status": status,
            "venues": [
                {"venueId": venue_id, "chargeLines": charge_lines or SAMPLE_CHARGE_LINES}
                for venue_id in venue_ids
            ],
            **overrides,
        }
        response = client.post("/api/proposals", json=body, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture
def booking_setup(create_client_record, create_venue_record, create_proposal_record, client):
    """A sent proposal for one venue and a booking created from it"""

    def _create(headers, **booking_fields):
        acme = create_client_record(headers)
        venue = create_venue_record(headers)
        proposal = create_proposal_record(headers, acme["id"], [venue["id"]], status="sent")
        response = client.post(
            "/api/bookings",
            json={"proposalId": proposal["id"], "venueId": venue["id"], **booking_fields},
            headers=headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create
