"""
ProjectHub - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator, List, Optional, Tuple

import pytest
from httpx import AsyncClient, ASGITransport
from faker import Faker

# Set testing environment before the app reads its settings
os.environ['ENVIRONMENT'] = 'testing'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'

from projecthub.core.config import Settings
from projecthub.core.database import Database
from projecthub.main import create_app
from projecthub.services.change_notifier import ChangeAction, ChangeNotifier
from projecthub.services.user_store import UserStore

fake = Faker()


class RecordingNotifier(ChangeNotifier):
    """Collects notifications instead of sending them"""

    def __init__(self):
        self.events: List[Tuple[str, Optional[ChangeAction]]] = []

    def notify_changed(self, scope: str, action: Optional[ChangeAction] = None) -> None:
        self.events.append((scope, action))


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a fresh SQLite file per test"""
    return Settings(
        ENVIRONMENT='testing',
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        JWT_SECRET_KEY='test-jwt-secret-key-for-testing',
        BCRYPT_ROUNDS=4,
        RATE_LIMIT_ENABLED=False,
    )


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def app(test_settings, notifier):
    return create_app(test_settings, notifier=notifier)


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with its tables created"""
    await app.state.database.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    await app.state.database.dispose()


@pytest.fixture
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """Standalone database for store/service tests"""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'unit.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def db_session(database):
    async with database.session_factory() as session:
        yield session


@pytest.fixture
async def owner(db_session):
    """A user row that can own projects"""
    return await UserStore(db_session).create_user(
        username=fake.user_name(),
        email=fake.unique.email(),
        password_hash='not-a-real-hash',
    )


@pytest.fixture
def test_user_data() -> dict:
    """Registration payload"""
    return {
        'username': fake.user_name(),
        'email': fake.unique.email(),
        'password': 'testpassword123',
    }


async def register_and_signin(client: AsyncClient, user_data: dict) -> dict:
    """Register a user through the API and return auth headers for it"""
    response = await client.post('/api/register', json=user_data)
    assert response.status_code == 200, response.text

    response = await client.post(
        '/api/signin',
        json={'email': user_data['email'], 'password': user_data['password']}
    )
    assert response.status_code == 200, response.text
    return {'Authorization': f"Bearer {response.json()['token']}"}


@pytest.fixture
def make_auth_headers(client: AsyncClient):
    """Factory: register and sign in a user, return its auth headers"""
    async def _make(user_data: dict) -> dict:
        return await register_and_signin(client, user_data)
    return _make


@pytest.fixture
async def auth_headers(client: AsyncClient, test_user_data) -> dict:
    """Authentication headers for a freshly registered user"""
    return await register_and_signin(client, test_user_data)


@pytest.fixture
async def other_auth_headers(client: AsyncClient) -> dict:
    """Authentication headers for a second, unrelated user"""
    return await register_and_signin(client, {
        'username': fake.user_name(),
        'email': fake.unique.email(),
        'password': 'otherpassword123',
    })


@pytest.fixture
def project_data() -> dict:
    return {
        'title': 'Inventory Dashboard',
        'description': 'Track stock levels across warehouses',
        'category': 'Web Development',
    }
