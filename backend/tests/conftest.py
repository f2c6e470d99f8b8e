"""Fixtures for affiliate command tests.

Provides a fresh temp-file SQLite Database for each test, the two stores
bound to it, and in-memory fakes of the store interfaces for tests that
need to observe collaborator calls.
"""
import os
import shutil
import tempfile
from datetime import datetime
from types import SimpleNamespace

import pytest
import structlog

from affiliate_admin.accounts.store import AccountStore
from affiliate_admin.affiliates.processor import AffiliateCommands
from affiliate_admin.affiliates.store import AffiliateStore
from affiliate_admin.storage.db import Database
from affiliate_admin.storage.models import Affiliate


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop logging configuration bound to a CliRunner stream."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def temp_db():
    """Yield a Database bound to a temp SQLite file with all tables created."""
    temp_dir = tempfile.mkdtemp(prefix="affiliate-tests-")
    db_path = os.path.join(temp_dir, "test.db")
    database = Database(database_url=f"sqlite:///{db_path}")
    database.create_tables()

    try:
        yield database
    finally:
        database.dispose()
        shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def db_url(temp_db):
    """URL of the temp database, for CLI tests."""
    return temp_db.database_url


@pytest.fixture
def accounts(temp_db):
    return AccountStore(temp_db, multisite=False)


@pytest.fixture
def store(temp_db):
    return AffiliateStore(temp_db, require_approval=False)


@pytest.fixture
def commands(store, accounts):
    return AffiliateCommands(store=store, accounts=accounts, multisite=False)


@pytest.fixture
def alice(accounts):
    return accounts.create("alice", "alice@example.com")


@pytest.fixture
def bob(accounts):
    return accounts.create("bob", "bob@example.com")


# ============================================================
# In-memory fakes
# ============================================================


def make_affiliate(affiliate_id=1, user_id=10, **overrides) -> Affiliate:
    """Build a transient Affiliate row."""
    values = {
        "affiliate_id": affiliate_id,
        "user_id": user_id,
        "rate": None,
        "rate_type": None,
        "payment_email": None,
        "status": "active",
        "earnings": 0.0,
        "referrals": 0,
        "visits": 0,
        "date_registered": datetime(2024, 1, 28, 10, 0, 0),
    }
    values.update(overrides)
    return Affiliate(**values)


class FakeAffiliateStore:
    """Affiliate store double that records every call."""

    def __init__(self, affiliates=(), delete_result=True):
        self.affiliates = {a.affiliate_id: a for a in affiliates}
        self.delete_result = delete_result
        self.calls = []

    def get(self, affiliate_id):
        self.calls.append(("get", affiliate_id))
        return self.affiliates.get(affiliate_id)

    def get_by(self, field, value):
        self.calls.append(("get_by", field, value))
        for affiliate in self.affiliates.values():
            if getattr(affiliate, field) == value:
                return affiliate
        return None

    def create(self, fields):
        self.calls.append(("create", dict(fields)))
        affiliate = make_affiliate(affiliate_id=len(self.affiliates) + 1, user_id=fields["user_id"])
        self.affiliates[affiliate.affiliate_id] = affiliate
        return affiliate

    def update(self, fields):
        self.calls.append(("update", dict(fields)))
        return True

    def delete(self, affiliate, delete_data=False):
        self.calls.append(("delete", affiliate.affiliate_id, delete_data))
        return self.delete_result

    def list(self, filters=None):
        self.calls.append(("list", filters))
        return list(self.affiliates.values())

    def count(self, filters=None):
        self.calls.append(("count", filters))
        return len(self.affiliates)

    def get_payment_email(self, affiliate_id):
        self.calls.append(("get_payment_email", affiliate_id))
        return f"pay-{affiliate_id}@example.com"

    def names(self):
        return [call[0] for call in self.calls]


class FakeAccountStore:
    """Account store double that records every call."""

    def __init__(self, users=(), delete_result=True):
        self.users = {u.id: u for u in users}
        self.delete_result = delete_result
        self.calls = []

    def get_by_id(self, user_id):
        self.calls.append(("get_by_id", user_id))
        return self.users.get(user_id)

    def get_by_login(self, login):
        self.calls.append(("get_by_login", login))
        for user in self.users.values():
            if user.user_login == login:
                return user
        return None

    def delete(self, user_id):
        self.calls.append(("delete", user_id))
        return self.delete_result

    def delete_network_wide(self, user_id):
        self.calls.append(("delete_network_wide", user_id))
        return self.delete_result

    def names(self):
        return [call[0] for call in self.calls]


def make_user(user_id=10, login="alice"):
    return SimpleNamespace(id=user_id, user_login=login, user_email=f"{login}@example.com")


@pytest.fixture
def fake_store():
    return FakeAffiliateStore([make_affiliate(affiliate_id=1, user_id=10)])


@pytest.fixture
def fake_accounts():
    return FakeAccountStore([make_user(10, "alice")])
