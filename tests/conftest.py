"""Shared pytest fixtures for ledgerbook tests."""

import os
import tempfile
from decimal import Decimal

import pytest

from ledgerbook.database.factories import create_sqlite_database
from ledgerbook.database.memory import InMemoryDatabase
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.account_transaction import AccountTransactionService
from ledgerbook.domain.lending import LendingService
from ledgerbook.domain.person import PersonService
from ledgerbook.domain.report import ReportService

TEST_USER_ID = 7


@pytest.fixture
def temp_db():
    """Create a temporary SQLite database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def memory_db():
    """Create an empty in-memory database."""
    return InMemoryDatabase()


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def person_service(temp_db):
    """Create a PersonService with a temporary database."""
    return PersonService(temp_db)


@pytest.fixture
def lending_service(temp_db):
    """Create a LendingService attributed to the test user."""
    return LendingService(temp_db, user_id=TEST_USER_ID)


@pytest.fixture
def txn_service(temp_db):
    """Create an AccountTransactionService attributed to the test user."""
    return AccountTransactionService(temp_db, user_id=TEST_USER_ID)


@pytest.fixture
def report_service(temp_db):
    """Create a ReportService with a temporary database."""
    return ReportService(temp_db)


@pytest.fixture
def sample_accounts(account_service):
    """Create accounts A (balance 1000) and B (balance 500)."""
    a_id = account_service.create_account(name="Account A", balance=Decimal("1000"))
    b_id = account_service.create_account(name="Account B", balance=Decimal("500"))
    return account_service.get_account(a_id), account_service.get_account(b_id)


@pytest.fixture
def sample_person(person_service):
    """Create a sample person."""
    person_id = person_service.create_person(name="Tanaka", memo="friend")
    return person_service.get_person(person_id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
