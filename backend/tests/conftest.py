"""
Root pytest configuration for backend tests.

Provides:
- backend/ on sys.path (imports like `from services.resolver import ...`)
- Shared fixtures: counting tier doubles, resolver, in-memory SQLite engine,
  Flask app and client wired to the doubles
"""

import sys
from pathlib import Path

# Add backend directory to Python path so imports like
# `from services.resolver import ...` and `from utils.normalize import ...` work
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

tests_dir = Path(__file__).parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from word_doubles import CountingCache, FakeFetcher, FakeStore


@pytest.fixture
def cache():
    return CountingCache()


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def resolver(cache, store, fetcher):
    from services.resolver import WordResolver

    resolver = WordResolver(cache, store, fetcher, clock=lambda: 1700000500)
    yield resolver
    resolver.close()


@pytest.fixture
def sqlite_engine():
    """In-memory SQLite shared across threads."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    yield engine
    engine.dispose()


@pytest.fixture
def word_service(resolver, store):
    from services.batch import BatchOrchestrator
    from services.word_service import WordService

    return WordService(
        resolver=resolver,
        orchestrator=BatchOrchestrator(resolver),
        store=store,
        resolve_timeout=5,
    )


@pytest.fixture
def app(word_service):
    """Create test Flask application."""
    from app import create_app

    app = create_app(service=word_service)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()
