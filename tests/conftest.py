"""Test configuration and fixtures."""
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from blog_platform.config.settings import (
    AdminSettings,
    AuthSettings,
    DatabaseSettings,
    RateLimitSettings,
    Settings,
)
from blog_platform.core.auth import CredentialService
from blog_platform.database import Database
from blog_platform.main import create_app
from blog_platform.schemas.auth import UserCreate
from blog_platform.services.auth import AuthService

TEST_SECRET = "test-secret-key"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "Adm1n!Password"
USER_PASSWORD = "Passw0rd!"


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        environment="testing",
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"),
        auth=AuthSettings(secret_key=TEST_SECRET, bcrypt_rounds=4),
        admin=AdminSettings(email=ADMIN_EMAIL, username="admin", password=ADMIN_PASSWORD),
        rate_limit=RateLimitSettings(enabled=False),
    )


@pytest.fixture
def credentials(settings):
    return CredentialService(settings.auth)


@pytest_asyncio.fixture
async def database(settings):
    """Database with tables created."""
    database = Database(settings.database)
    await database.create_all()

    yield database

    await database.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def auth_service(db_session, credentials, settings):
    return AuthService(db_session, credentials, settings.auth)


@pytest_asyncio.fixture
async def registered(auth_service):
    """A freshly registered regular user and its auth result."""
    return await auth_service.register(
        UserCreate(
            email="test@example.com",
            username="tester",
            password=USER_PASSWORD,
            name="Test User",
        )
    )


@pytest.fixture
def client(settings):
    """Test client running the full application lifespan."""
    app = create_app(settings)

    with TestClient(app) as test_client:
        yield test_client


def login_headers(client: TestClient, email: str, password: str) -> dict:
    """Log in and return bearer headers; the session cookie is dropped."""
    response = client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
    )
    assert response.status_code == 200, response.text
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['session_token']}"}


def register_user(
    client: TestClient,
    email: str = "newuser@example.com",
    username: str = "newuser",
    password: str = USER_PASSWORD,
) -> dict:
    """Register through the API and return bearer headers."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": email, "username": username, "password": password},
    )
    assert response.status_code == 201, response.text
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['session_token']}"}


@pytest.fixture
def user_headers(client):
    return register_user(client)


@pytest.fixture
def admin_headers(client):
    return login_headers(client, ADMIN_EMAIL, ADMIN_PASSWORD)
