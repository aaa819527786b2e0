import io

import pytest
import pytest_asyncio
from testcontainers.postgres import PostgresContainer

from examples.models import Comment, Post, Trackback, Zoo
from ormtour import DatabaseManager, auto_migrate, setup_logger


@pytest.fixture(scope="session")
def postgres_container():
    """Start a PostgreSQL test container for the session, or skip database tests."""
    container = PostgresContainer("postgres:17")
    try:
        container.start()
    except Exception as e:
        pytest.skip(f"PostgreSQL test container unavailable: {e}")
    yield container
    container.stop()


def container_dsn(container: PostgresContainer) -> str:
    host = container.get_container_host_ip()
    port = container.get_exposed_port(5432)
    return f"postgresql://{container.username}:{container.password}@{host}:{port}/{container.dbname}"


@pytest.fixture(autouse=True)
def log_stream():
    """Route ormtour logs to a buffer for each test"""
    stream = io.StringIO()
    setup_logger(stream, "debug")
    yield stream


@pytest_asyncio.fixture
async def test_db_pool(postgres_container):
    """Fresh pool and freshly migrated tables for each test."""
    # A new pool per test avoids sharing connections across event loops
    pool = await DatabaseManager.setup(
        "test_db", container_dsn(postgres_container), min_size=1, max_size=5
    )
    await auto_migrate(Zoo, Post, Comment, Trackback, db_name="test_db")

    yield pool

    await DatabaseManager.remove_pool("test_db")
    await pool.close()
