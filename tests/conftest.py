"""
Shared fixtures: a SQLite file seeded with the demo customers and loans
"""

import pytest

from toybank.schema import create_schema, seed_demo_data
from toybank.session import ConnectionManager
from toybank.store import Credentials, SQLiteBackend


@pytest.fixture
def credentials():
    """Credentials are required by the interface but unused by SQLite"""
    return Credentials(user="demo", password="secret")


@pytest.fixture
def db_path(tmp_path, credentials):
    """Path of a committed, seeded toybank database"""
    path = tmp_path / "toybank.db"
    manager = ConnectionManager(SQLiteBackend(path))
    with manager.session(credentials) as session:
        create_schema(session)
        seed_demo_data(session)
        manager.commit(session)
    return path


@pytest.fixture
def backend(db_path):
    return SQLiteBackend(db_path)


@pytest.fixture
def manager(backend):
    return ConnectionManager(backend)


@pytest.fixture
def session(manager, credentials):
    """Open session on the seeded database, closed after the test"""
    session = manager.open(credentials)
    yield session
    manager.close(session)


@pytest.fixture
def read_loan_amount(db_path):
    """Return a function reading a loan amount through a fresh session"""
    def read(loan_number):
        manager = ConnectionManager(SQLiteBackend(db_path))
        with manager.session(Credentials(user="check", password="")) as session:
            cursor = session.connection.cursor()
            cursor.execute("SELECT amount FROM loans WHERE loan_number = ?", (loan_number,))
            row = cursor.fetchone()
            cursor.close()
        return None if row is None else session.backend.read_amount(row[0])
    return read
