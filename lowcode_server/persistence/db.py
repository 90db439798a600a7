"""
Database access for the low-code platform server.

The engine is created lazily from the database section of the configuration,
or from DATABASE_URL when it is set. Tests swap in their own engine with
enter_test_mode() so the configured database is never touched.
"""

import os
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from lowcode_server.config import config

# Declarative base shared by every model
Base = declarative_base()

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None
_test_mode = False


def database_url_from_config(the_config: dict) -> str:
    """
    Build the SQLAlchemy URL for the configured database.

    A "sqlite" user or an empty host selects a sqlite file named after the
    database; anything else is a PostgreSQL server.
    """
    database = the_config["database"]
    if database["user"] == "sqlite" or not database["host"]:
        return f"sqlite:///{database['name']}"
    return (
        f"postgresql://{database['user']}:{database['password']}"
        f"@{database['host']}:{database['port']}/{database['name']}"
    )


def _make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def _bind(engine: Engine) -> None:
    global _engine, _session_factory  # pylint: disable=global-statement
    _engine = engine
    _session_factory = _make_session_factory(engine)


def _ensure_engine() -> None:
    if _engine is not None:
        return
    if _test_mode:
        raise RuntimeError("Test mode is active but no test engine is configured")

    url = os.getenv("DATABASE_URL") or database_url_from_config(config.get_config())
    # sqlite connections are shared by the threadpool FastAPI runs sync code in
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    _bind(create_engine(url, connect_args=connect_args, echo=False))


def enter_test_mode(test_engine: Engine) -> None:
    """
    Route every session to the given engine until exit_test_mode() is called.
    """
    global _test_mode  # pylint: disable=global-statement
    _test_mode = True
    _bind(test_engine)


def exit_test_mode() -> None:
    """Drop the test engine; the next access builds the configured engine."""
    global _engine, _session_factory, _test_mode  # pylint: disable=global-statement
    _test_mode = False
    _engine = None
    _session_factory = None


def get_engine() -> Engine:
    _ensure_engine()
    return _engine


def get_db():
    """
    FastAPI dependency yielding a session that is closed after the request.
    """
    _ensure_engine()
    db = _session_factory()
    try:
        yield db
    finally:
        db.close()


def create_all() -> None:
    """Create every table known to the model metadata."""
    # pylint: disable=import-outside-toplevel,unused-import
    from lowcode_server.persistence import models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())
