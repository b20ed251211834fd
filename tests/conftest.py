import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from bulletin.database import build_engine, get_db
from bulletin.main import app
from bulletin.services.schema_manager import reset_schema_cache


@pytest.fixture
def engine(tmp_path):
    # one SQLite file per test: fresh schema, and the schema cache key differs per test
    engine = build_engine(f"sqlite:///{tmp_path / 'bulletin.db'}")
    yield engine
    engine.dispose()
    reset_schema_cache()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # no context manager: the lifespan would touch the configured (non-test) database
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
