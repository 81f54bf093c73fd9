import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.database import Base, build_engine, build_session_factory, get_async_session
from app.crud.jar import seed_default_jars
from app.models import jar, transaction  # noqa: F401


@pytest_asyncio.fixture
async def engine(tmp_path):
    # A file database so concurrent sessions get separate connections
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def jars(session_factory):
    """The six canonical jars, keyed by name, as jar ids."""
    async with session_factory() as session:
        created = await seed_default_jars(session)
    return {j.name: j.id for j in created}


@pytest_asyncio.fixture
async def client(session_factory):
    from app.main import app

    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
