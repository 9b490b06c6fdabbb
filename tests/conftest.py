"""Pytest configuration and shared fixtures."""

import os

import pytest
from sqlalchemy import create_engine, text

from seqalchemy import IdentityConfig

# SQL Server is only used when a test server is configured, e.g.
# SEQALCHEMY_MSSQL_URL="mssql+pyodbc://sa:pw@localhost/seqtest?driver=ODBC+Driver+18+for+SQL+Server&TrustServerCertificate=yes"
MSSQL_URL_ENV = "SEQALCHEMY_MSSQL_URL"


def _mssql_available():
    """Check whether a SQL Server test database is reachable."""
    url = os.environ.get(MSSQL_URL_ENV)
    if not url:
        return False
    try:
        engine = create_engine(url)
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        engine.dispose()
        return True
    except Exception:
        return False


MSSQL_AVAILABLE = _mssql_available()


def pytest_configure(config):
    config.addinivalue_line("markers", "mssql: test needs a SQL Server database")


@pytest.fixture
def sqlite_engine(tmp_path):
    """SQLite-specific engine fixture."""
    db_path = tmp_path / "test.db"
    engine = create_engine(f"sqlite:///{db_path}")
    yield engine
    engine.dispose()


@pytest.fixture
def sqlite_config():
    """Configuration without a namespace, as SQLite has no dbo schema."""
    return IdentityConfig(namespace=None)


@pytest.fixture
def mssql_engine():
    """SQL Server engine fixture with the school schema dropped before and after."""
    from school_models import metadata

    if not MSSQL_AVAILABLE:
        raise RuntimeError(
            f"SQL Server not available - set {MSSQL_URL_ENV} to enable SQL Server tests."
        )
    engine = create_engine(os.environ[MSSQL_URL_ENV])
    _drop_everything(engine, metadata)
    yield engine
    _drop_everything(engine, metadata)
    engine.dispose()


def _drop_everything(engine, metadata):
    config = IdentityConfig()
    with engine.begin() as conn:
        metadata.drop_all(conn, checkfirst=True)
        conn.execute(text(
            f"IF OBJECT_ID(N'{config.namespace}.{config.ledger_table}', N'U') IS NOT NULL "
            f"DROP TABLE [{config.namespace}].[{config.ledger_table}]"
        ))


def pytest_collection_modifyitems(config, items):
    """Deselect tests that require an unavailable SQL Server."""
    if MSSQL_AVAILABLE:
        return
    deselected = []
    for item in items[:]:
        if "mssql_engine" in item.fixturenames or item.get_closest_marker("mssql"):
            items.remove(item)
            deselected.append(item)
    if deselected:
        config.hook.pytest_deselected(items=deselected)
