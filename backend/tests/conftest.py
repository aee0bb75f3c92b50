"""
Point the app at a throwaway SQLite file before anything imports liftlog.db,
and create the schema once per test session. Set DB_URL yourself to run the
suite against Postgres instead.
"""
import os
import tempfile

_tmpdir = tempfile.mkdtemp(prefix="liftlog-tests-")
os.environ.setdefault("DB_URL", f"sqlite:///{os.path.join(_tmpdir, 'test.db')}")

import pytest

from liftlog.db import Base, SessionLocal, engine
from liftlog import models  # noqa: F401  # registers the tables on Base.metadata


@pytest.fixture(scope="session", autouse=True)
def _schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
