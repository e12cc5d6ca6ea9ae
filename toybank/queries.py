"""
Loan Query Module

The two fixed read queries of the workflow: every loan with the name of its
owner, and the loans of one customer looked up by exact name. Results are
lazy, single-pass iterators over the store's cursor.
"""

from decimal import Decimal
from typing import Iterator, NamedTuple, Sequence

from .errors import QueryError
from .logging_config import get_logger, log_action
from .session import Session


# Query to retrieve all loans including the owner of each loan
SQL_FIND_ALL_LOANS = (
    "SELECT fname, lname, loan_number, amount "
    "FROM customers INNER JOIN loans ON id = owner_id"
)

# Query to retrieve the loans (number and amount) of a specified customer
SQL_FIND_LOANS_TO_ADJUST = (
    "SELECT loan_number, amount "
    "FROM customers INNER JOIN loans ON id = owner_id "
    "WHERE fname = ? AND lname = ?"
)


class LoanListing(NamedTuple):
    """One row of the all-loans listing"""
    customer_name: str
    loan_number: int
    amount: Decimal


class CustomerLoan(NamedTuple):
    """One loan of a single customer"""
    loan_number: int
    amount: Decimal


def _query_failed(session: Session, operation: str, error: Exception) -> QueryError:
    log_action(
        get_logger("toybank.queries"), "error",
        f"Unable to execute DB statement due to error {error}",
        action=operation, resource=session.resource
    )
    return QueryError(operation, error)


def _execute(session: Session, operation: str, sql: str, params: Sequence = ()) -> Iterator[tuple]:
    """Run a read statement and yield raw rows, wrapping driver errors"""
    backend = session.backend
    try:
        cursor = session.connection.cursor()
    except backend.error_types as e:
        raise _query_failed(session, operation, e) from e

    try:
        cursor.execute(backend.prepare(sql), tuple(params))
        while True:
            row = cursor.fetchone()
            if row is None:
                break
            yield row
    except backend.error_types as e:
        raise _query_failed(session, operation, e) from e
    finally:
        cursor.close()


class LoanQueryService:
    """Read access to customers and their loans"""

    def list_all_loans(self, session: Session) -> Iterator[LoanListing]:
        """
        All loans joined with their owner's full name, in store order

        Raises:
            QueryError: If the store fails while the rows are read
        """
        for fname, lname, loan_number, amount in _execute(
                session, "list_all_loans", SQL_FIND_ALL_LOANS):
            yield LoanListing(
                customer_name=f"{fname} {lname}",
                loan_number=int(loan_number),
                amount=session.backend.read_amount(amount)
            )

    def find_loans_for_customer(self, session: Session, first_name: str,
                                last_name: str) -> Iterator[CustomerLoan]:
        """
        Loans owned by the customer with exactly this first and last name

        The names are bound as statement parameters and matched
        case-sensitively. An unknown customer yields no rows.

        Raises:
            QueryError: If the store fails while the rows are read
        """
        for loan_number, amount in _execute(
                session, "find_loans_for_customer", SQL_FIND_LOANS_TO_ADJUST,
                (first_name, last_name)):
            yield CustomerLoan(
                loan_number=int(loan_number),
                amount=session.backend.read_amount(amount)
            )
