import pytest
from httpx import ASGITransport, AsyncClient

TEST_USER_ID = "123e4567-e89b-12d3-a456-426614174000"


@pytest.fixture(scope="function")
def db_url(tmp_path, monkeypatch):
    db_path = tmp_path / "test.db"
    database_url = f"sqlite:///{db_path}"

    # Set environment before importing app modules (ziron.api.main creates a module-level app).
    monkeypatch.setenv("TESTING", "true")
    monkeypatch.setenv("SCHEDULER_ENABLED", "false")
    monkeypatch.setenv("QUEUE_BACKEND", "memory")
    monkeypatch.setenv("CACHE_BACKEND", "memory")
    monkeypatch.setenv("SEED_DEFAULT_ADMIN", "false")
    monkeypatch.setenv("DATABASE_URL", database_url)

    from ziron.config import get_settings
    from ziron.database import engine as db_engine
    from ziron.database.session import reset_session_factories

    get_settings.cache_clear()
    db_engine.get_async_engine.cache_clear()
    reset_session_factories()

    yield database_url

    get_settings.cache_clear()
    reset_session_factories()


@pytest.fixture(scope="function")
async def db_schema(db_url):
    from ziron.database import dispose_engines, get_async_engine
    from ziron.models import Base

    async with get_async_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    await dispose_engines()


@pytest.fixture(scope="function")
async def db_session(db_schema):
    from ziron.database import get_async_db_session

    async with get_async_db_session() as session:
        yield session


@pytest.fixture(scope="function")
async def broker():
    from ziron.queue import InMemoryBroker

    broker = InMemoryBroker()
    await broker.connect()
    return broker


@pytest.fixture(scope="function")
def queue(broker):
    from ziron.queue import QueueClient, set_queue_client

    client = QueueClient(broker, queue_name="queue")
    set_queue_client(client)
    yield client
    set_queue_client(None)


@pytest.fixture(scope="function")
def cache():
    from ziron.cache import CacheMonitor, InMemoryCache, set_cache

    store = InMemoryCache()
    set_cache(store, CacheMonitor())
    yield store
    set_cache(None)


@pytest.fixture(scope="function")
def cache_monitor(cache):
    from ziron.cache import get_cache_monitor

    return get_cache_monitor()


@pytest.fixture(scope="function")
def worker(db_schema, queue):
    from ziron.config import get_settings
    from ziron.worker import Worker

    return Worker(queue, settings=get_settings(), poll_timeout=1.0, name="test-worker")


@pytest.fixture(scope="function")
def fastapi_app(db_schema, queue, cache):
    from ziron.api.main import create_app

    return create_app()


@pytest.fixture(scope="function")
async def async_client(fastapi_app):
    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def admin_user(db_session):
    from ziron.models import User

    admin = User(email="admin@example.com", name="Admin", role="admin")
    db_session.add(admin)
    await db_session.commit()
    return admin
