import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.services.logging_mailer import LoggingMailer
from src.adapter.services.memory_session_backend import MemorySessionBackend
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.auth.password_hasher import PasswordHasher
from src.depends import (
    get_mailer,
    get_password_hasher,
    get_session_backend,
    get_session_factory,
    get_unit_of_work,
)
from src.domain.entities import User, UserRole, UserStatus

DEFAULT_PASSWORD = "SecurePass123"


@pytest.fixture
def hasher():
    return PasswordHasher(algorithm="bcrypt", bcrypt_rounds=4)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
def mailer():
    return LoggingMailer()


@pytest.fixture
def session_backend():
    return MemorySessionBackend()


@pytest_asyncio.fixture
async def client(session_factory, mailer, session_backend, hasher):
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        async with session_factory() as session:
            yield SqlAlchemyUnitOfWork(session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_session_backend] = lambda: session_backend
    app.dependency_overrides[get_password_hasher] = lambda: hasher

    # Secure cookies are only sent back over https
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="https://test") as ac:
        yield ac


@pytest.fixture
def create_user(session_factory, hasher):
    """Insert a user directly, bypassing registration"""

    async def factory(
        username="alice",
        email=None,
        password=DEFAULT_PASSWORD,
        role=UserRole.subscriber,
        status=UserStatus.active,
        email_verified=True,
    ):
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            password_hash=hasher.hash(password),
            role=role,
            status=status,
            email_verified=email_verified,
        )
        async with session_factory() as session:
            session.add(user)
            await session.commit()
        return user

    return factory


@pytest.fixture
def get_user(session_factory):
    """Reload a user by username from a fresh session"""

    async def fetch(username):
        async with session_factory() as session:
            result = await session.exec(select(User).where(User.username == username))
            return result.one_or_none()

    return fetch


@pytest.fixture
def csrf_headers(client):
    """Fetch the session's CSRF token as a request header"""

    async def fetch() -> dict:
        response = await client.get("/auth/csrf-token")
        assert response.status_code == 200
        return {"X-CSRF-Token": response.json()["csrf_token"]}

    return fetch


@pytest.fixture
def login(client, csrf_headers):
    async def submit(username="alice", password=DEFAULT_PASSWORD, **extra):
        return await client.post(
            "/auth/login",
            json={"username": username, "password": password, **extra},
            headers=await csrf_headers(),
        )

    return submit


@pytest.fixture
def last_token(mailer):
    """Plaintext token from the link in the most recent email"""

    def extract() -> str:
        return mailer.outbox[-1].body.split("?token=")[1].split()[0]

    return extract


@pytest.fixture
def admin_headers():
    from config import ApplicationConfig

    return {"X-Admin-API-Key": ApplicationConfig.ADMIN_API_KEY}


@pytest.fixture
def fetch_all(session_factory):
    """All rows of a table, read through a fresh session"""

    async def fetch(model, order_by=None):
        async with session_factory() as session:
            stmt = select(model)
            if order_by is not None:
                stmt = stmt.order_by(order_by)
            result = await session.exec(stmt)
            return list(result.all())

    return fetch
