import os
import tempfile

# Settings are read once per process, so the test environment must be in
# place before anything from ``eats`` is imported.
os.environ["ENV_MODE"] = "development"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_PRIVATE_KEY"] = "test-private-key"
os.environ["PAGINATION_UNIT"] = "3"
os.environ.setdefault("UPLOAD_DIRECTORY", tempfile.mkdtemp(prefix="eats-uploads-"))

from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.exc import OperationalError  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from eats.core.security import TokenService  # noqa: E402
from eats.database import Base, get_db  # noqa: E402
from eats.models import User, UserRole  # noqa: E402
from eats.routers.deps import get_gateway, get_mailer, get_tokens, get_uploads  # noqa: E402
from eats.services.gateway import MockPaymentGateway  # noqa: E402
from eats.services.uploads import UploadService  # noqa: E402
from eats.services.users import UserService  # noqa: E402

PASSWORD = "12345"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy
    # emit BEGIN itself.
    @event.listens_for(engine.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def tokens() -> TokenService:
    return TokenService("test-private-key")


@pytest.fixture
def mailer() -> MagicMock:
    return MagicMock()


@pytest.fixture
def user_service(db, tokens, mailer) -> UserService:
    return UserService(db, tokens, mailer)


async def make_user(db: AsyncSession, email: str, role: UserRole) -> User:
    user = User(email=email, password=PASSWORD, role=role)
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
def create_user(db):
    async def factory(email: str, role: UserRole = UserRole.CLIENT) -> User:
        return await make_user(db, email, role)
    return factory


@pytest.fixture
async def client_user(db) -> User:
    return await make_user(db, "client@eats.io", UserRole.CLIENT)


@pytest.fixture
async def owner(db) -> User:
    return await make_user(db, "owner@eats.io", UserRole.OWNER)


@pytest.fixture
async def other_owner(db) -> User:
    return await make_user(db, "rival@eats.io", UserRole.OWNER)


@pytest.fixture
async def driver(db) -> User:
    return await make_user(db, "driver@eats.io", UserRole.DELIVERY)


@pytest.fixture
async def other_driver(db) -> User:
    return await make_user(db, "driver2@eats.io", UserRole.DELIVERY)


@pytest.fixture
def broken_query():
    """Stand-in for a repository method when the database is unreachable."""
    async def fail(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))
    return fail


@pytest.fixture
def gateway() -> MockPaymentGateway:
    return MockPaymentGateway(max_latency=0.0)


@pytest.fixture
async def api(session_maker, tokens, mailer, gateway, tmp_path):
    """HTTP client against the app, one database session per request."""
    from eats.main import app

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_tokens] = lambda: tokens
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_uploads] = lambda: UploadService(
        directory=str(tmp_path),
        base_url="http://testserver",
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http

    app.dependency_overrides.clear()
