"""
Pytest configuration and shared fixtures for the low-code platform server tests.
"""

import os
import tempfile
import uuid
from contextlib import asynccontextmanager
from unittest.mock import patch

import pytest
from argon2 import PasswordHasher
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from lowcode_server.persistence.db import Base, enter_test_mode, exit_test_mode

TEST_PASSWORD = "testpassword"  # nosec B105 - test fixture password

# Test configuration with ports that do not clash with a dev server
TEST_CONFIG = {
    "api": {"host": "localhost", "port": 9443},
    "webui": {"host": "localhost", "port": 9080},
    "database": {"user": "sqlite", "password": "", "host": "", "port": 5432},
    "security": {
        "jwt_secret": "test_secret",
        "jwt_algorithm": "HS256",
        "jwt_auth_timeout": 3600,
        "jwt_refresh_timeout": 86400,
    },
    "logging": {"level": "INFO|WARNING|ERROR|CRITICAL", "format": "%(message)s"},
    "billing": {
        "enabled": False,
        "url": "https://billing.test",
        "api_key": "test-key",
        "timeout": 5,
    },
    "codegen": {"plugins": [], "static_files": True},
}


@pytest.fixture(scope="function")
def engine():
    """Create test database engine with fresh schema for each test."""
    test_db_fd, test_db_file = tempfile.mkstemp(suffix=f"_{uuid.uuid4().hex}.db")
    os.close(test_db_fd)  # Close the file descriptor, we only need the path

    test_engine = create_engine(
        f"sqlite:///{test_db_file}", connect_args={"check_same_thread": False}
    )

    # Enter test mode to prevent production database access
    enter_test_mode(test_engine)

    # Import models to ensure metadata registration
    from lowcode_server.persistence import models  # noqa: F401

    Base.metadata.create_all(bind=test_engine)

    yield test_engine

    test_engine.dispose()
    exit_test_mode()

    try:
        if os.path.exists(test_db_file):
            os.unlink(test_db_file)
    except OSError:
        pass


@pytest.fixture(scope="function")
def db_session(engine):
    """Create a test database session."""
    testing_session_local = sessionmaker(
        autocommit=False, autoflush=False, bind=engine
    )
    session = testing_session_local()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def session(db_session):
    """Alias for db_session to match test expectations."""
    return db_session


@pytest.fixture(scope="function")
def mock_config():
    """Mock the configuration system to use test config."""
    with patch("lowcode_server.config.config.get_config", return_value=TEST_CONFIG):
        yield TEST_CONFIG


@pytest.fixture(scope="function")
def workspace_user(db_session):
    """A workspace with one account that is a member of it."""
    from lowcode_server.persistence.models import Account, User, Workspace

    workspace = Workspace(id=uuid.uuid4(), name="Test Workspace")
    account = Account(
        id=uuid.uuid4(),
        email="test_user@example.com",
        first_name="Test",
        last_name="User",
        hashed_password=PasswordHasher().hash(TEST_PASSWORD),
    )
    user = User(
        id=uuid.uuid4(),
        account_id=account.id,
        workspace_id=workspace.id,
        is_owner=True,
    )
    db_session.add_all([workspace, account, user])
    db_session.commit()
    return workspace, account, user


@pytest.fixture(scope="function")
def auth_headers(workspace_user, mock_config):
    """Authorization header with a valid token for the workspace user."""
    from lowcode_server.auth.auth_handler import sign_jwt

    workspace, account, user = workspace_user
    token = sign_jwt(user.id, account_id=account.id, workspace_id=workspace.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def client(engine, db_session, mock_config):
    """Create a test client with test database and mocked config."""
    from lowcode_server.main import app
    from lowcode_server.persistence.db import get_db

    def override_get_db():
        yield db_session

    # Mock the FastAPI app lifespan to prevent service startup during tests
    @asynccontextmanager
    async def mock_lifespan(fastapi_app):
        yield

    original_lifespan = app.router.lifespan_context
    app.router.lifespan_context = mock_lifespan

    try:
        app.dependency_overrides[get_db] = override_get_db
        with TestClient(app) as test_client:
            yield test_client
        app.dependency_overrides.clear()
    finally:
        app.router.lifespan_context = original_lifespan
