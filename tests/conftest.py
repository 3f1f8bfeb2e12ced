"""
conftest.py - Shared pytest fixtures for kvledger tests

Provides common fixtures used across unit, functional and conformance tests:
- In-memory ledgers (empty, funded)
- Apps bound to them
- A failure-injecting fake ledger
"""

import pytest

from kvledger import App, InMemoryLedger

from tests.fake_ledger import FakeLedger


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def ledger():
    """Fresh in-memory ledger with nothing committed."""
    return InMemoryLedger("test", verbose=False)


@pytest.fixture
def app(ledger):
    """Payment app bound to the in-memory ledger."""
    return App(ledger, verbose=False)


@pytest.fixture
def funded_app(ledger, app):
    """App whose ledger has alice=100 and bob=50 committed."""
    ledger.commit(app.init({"alice": 100, "bob": 50}))
    return app


@pytest.fixture
def fake_ledger():
    """Fake ledger with failure switches, nothing stored."""
    return FakeLedger()


@pytest.fixture
def fake_app(fake_ledger):
    return App(fake_ledger, verbose=False)
