"""
Loan Adjustment Module

Validates a signed adjustment against the loan's current amount and writes the
new amount with a parameterized update keyed by loan number. Adjustments are
never committed here; the workflow decides when to commit.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .errors import QueryError
from .logging_config import get_logger, log_action
from .money import DEFAULT_PRECISION, DEFAULT_ROUNDING, format_amount, to_amount
from .session import Session


# Update statement to change the amount of a specified loan
SQL_ADJUST_LOAN = (
    "UPDATE loans "
    "SET amount = ? "
    "WHERE loan_number = ?"
)


@dataclass(frozen=True)
class AdjustmentRequest:
    """A proposed signed change to one loan's amount"""
    loan_number: int
    current_amount: Decimal
    delta: Decimal


@dataclass(frozen=True)
class AdjustmentOutcome:
    """What happened to an adjustment request"""
    request: AdjustmentRequest
    accepted: bool
    new_amount: Optional[Decimal] = None
    rows_affected: int = 0

    @property
    def applied(self) -> bool:
        """True when the store actually changed the loan"""
        return self.accepted and self.rows_affected == 1


def validate_adjustment(current_amount: Decimal, delta: Decimal) -> bool:
    """
    Whether ``delta`` may be applied to a loan of ``current_amount``

    Increases are always accepted. A decrease must leave a strictly positive
    balance, so ``abs(delta)`` has to be smaller than the current amount.
    """
    if delta >= 0:
        return True
    return abs(delta) < current_amount


class LoanAdjustmentEngine:
    """Applies validated adjustments to loans"""

    def __init__(self, precision: int = DEFAULT_PRECISION, rounding: str = DEFAULT_ROUNDING):
        self.precision = precision
        self.rounding = rounding
        self.logger = get_logger("toybank.adjustments")

    def apply_adjustment(self, session: Session, loan_number: int, new_amount: Decimal) -> int:
        """
        Set a loan's amount

        Args:
            session: Open session; the change stays uncommitted
            loan_number: The unique identifier of the loan to be adjusted
            new_amount: The new amount of the loan

        Returns:
            Number of rows changed. 0 means the loan number no longer exists.

        Raises:
            QueryError: If the store rejects the update
        """
        backend = session.backend
        amount = to_amount(new_amount, self.precision, self.rounding)
        try:
            cursor = session.connection.cursor()
            try:
                cursor.execute(
                    backend.prepare(SQL_ADJUST_LOAN),
                    (backend.bind_amount(amount), loan_number)
                )
                rows_affected = cursor.rowcount
            finally:
                cursor.close()
        except backend.error_types as e:
            log_action(
                self.logger, "error", f"Unable to adjust loan due to error {e}",
                action="apply_adjustment", resource=f"loan:{loan_number}",
                extra={"session": session.id, "new_amount": str(amount)}
            )
            raise QueryError("apply_adjustment", e) from e

        if rows_affected == 0:
            log_action(
                self.logger, "warning", "Loan not found while adjusting",
                action="apply_adjustment", resource=f"loan:{loan_number}",
                extra={"session": session.id}
            )
        return rows_affected

    def adjust(self, session: Session, request: AdjustmentRequest) -> AdjustmentOutcome:
        """
        Validate a request and, when accepted, apply the new amount

        Raises:
            QueryError: If the store rejects the update
        """
        # Validate the quantized values that will actually be stored
        current = to_amount(request.current_amount, self.precision, self.rounding)
        delta = to_amount(request.delta, self.precision, self.rounding)
        if not validate_adjustment(current, delta):
            log_action(
                self.logger, "info", "Adjustment rejected",
                action="validate_adjustment", resource=f"loan:{request.loan_number}",
                extra={"current_amount": str(request.current_amount), "delta": str(request.delta)}
            )
            return AdjustmentOutcome(request=request, accepted=False)

        new_amount = current + delta
        rows_affected = self.apply_adjustment(session, request.loan_number, new_amount)

        log_action(
            self.logger, "info", f"Loan adjusted to {format_amount(new_amount, self.precision)}",
            action="adjust_loan", resource=f"loan:{request.loan_number}",
            extra={
                "session": session.id,
                "delta": str(request.delta),
                "new_amount": str(new_amount),
                "rows_affected": rows_affected
            }
        )
        return AdjustmentOutcome(
            request=request,
            accepted=True,
            new_amount=new_amount,
            rows_affected=rows_affected
        )
