"""
Schema Module

Creates the ``customers`` and ``loans`` tables and loads the demo data set.
Statements run inside the caller's session; nothing here commits.
"""

from typing import Iterable, Sequence, Tuple

from .errors import QueryError
from .logging_config import get_logger, log_action
from .money import to_amount
from .session import Session


logger = get_logger("toybank.schema")

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS customers (
        id INTEGER PRIMARY KEY,
        fname VARCHAR(40) NOT NULL,
        lname VARCHAR(40) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS loans (
        loan_number INTEGER PRIMARY KEY,
        amount NUMERIC(12, 2) NOT NULL CHECK (amount >= 0),
        owner_id INTEGER NOT NULL REFERENCES customers(id)
    )
    """,
]

SQL_INSERT_CUSTOMER = "INSERT INTO customers (id, fname, lname) VALUES (?, ?, ?)"
SQL_INSERT_LOAN = "INSERT INTO loans (loan_number, amount, owner_id) VALUES (?, ?, ?)"

# (id, first name, last name)
DEMO_CUSTOMERS: Sequence[Tuple[int, str, str]] = [
    (1, "Jane", "Doe"),
    (2, "John", "Smith"),
    (3, "Mary", "Johnson"),
    (4, "Robert", "Garcia"),
]

# (loan number, amount, owner id)
DEMO_LOANS: Sequence[Tuple[int, str, int]] = [
    (100, "500.00", 1),
    (101, "1200.00", 2),
    (102, "75.50", 2),
    (103, "15000.00", 3),
    (104, "2500.25", 3),
]


def _run(session: Session, operation: str, sql: str, rows: Iterable[tuple] = ((),)) -> int:
    backend = session.backend
    count = 0
    try:
        cursor = session.connection.cursor()
        try:
            for params in rows:
                cursor.execute(backend.prepare(sql), params)
                count += 1
        finally:
            cursor.close()
    except backend.error_types as e:
        log_action(logger, "error", f"Unable to execute DB statement due to error {e}",
                   action=operation, resource=session.resource)
        raise QueryError(operation, e) from e
    return count


def create_schema(session: Session) -> None:
    """Create the customers and loans tables if they are missing"""
    for statement in SCHEMA_STATEMENTS:
        _run(session, "create_schema", statement)
    log_action(logger, "info", "Schema ready", action="create_schema", resource=session.resource)


def seed_demo_data(
    session: Session,
    customers: Sequence[Tuple[int, str, str]] = DEMO_CUSTOMERS,
    loans: Sequence[Tuple[int, object, int]] = DEMO_LOANS
) -> Tuple[int, int]:
    """
    Insert customers and loans

    Args:
        session: Open session
        customers: ``(id, first name, last name)`` rows
        loans: ``(loan number, amount, owner id)`` rows; amounts may be
            Decimal, int or numeric strings

    Returns:
        Number of customers and loans inserted
    """
    backend = session.backend
    customer_count = _run(session, "seed_customers", SQL_INSERT_CUSTOMER, customers)
    loan_count = _run(
        session, "seed_loans", SQL_INSERT_LOAN,
        ((number, backend.bind_amount(to_amount(amount)), owner) for number, amount, owner in loans)
    )
    log_action(
        logger, "info", "Demo data loaded", action="seed_demo_data", resource=session.resource,
        extra={"customers": customer_count, "loans": loan_count}
    )
    return customer_count, loan_count
