"""Tests for database engine construction."""

import ssl

import pytest

from src.feedback.core.config import Settings
from src.feedback.core.db.engine import _asyncpg_connect_args, _ssl_context, build_engine

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("mode", "check_hostname", "verify_mode"),
    [
        ("prefer", False, ssl.CERT_NONE),
        ("require", False, ssl.CERT_NONE),
        ("verify-ca", False, ssl.CERT_REQUIRED),
        ("verify-full", True, ssl.CERT_REQUIRED),
    ],
)
def test_ssl_modes(mode, check_hostname, verify_mode):
    context = _ssl_context(mode)
    assert context is not None
    assert context.check_hostname is check_hostname
    assert context.verify_mode == verify_mode


def test_ssl_disabled():
    assert _ssl_context("disable") is None


def test_asyncpg_args():
    settings = Settings(
        database_url="postgresql+asyncpg://u:p@db/feedback",
        database_ssl_mode="disable",
        database_statement_cache_size=0,
    )
    assert _asyncpg_connect_args(settings) == {"statement_cache_size": 0}


async def test_sqlite_engine_has_no_pool_tuning():
    engine = build_engine(Settings(database_url="sqlite+aiosqlite:///:memory:"))
    try:
        assert engine.dialect.name == "sqlite"
    finally:
        await engine.dispose()
