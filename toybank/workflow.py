"""
Interactive Loan Workflow Module

Drives one run of the demo as an explicit state machine: connect, list every
loan, let the user adjust the loans of one customer after another, then
commit and close. Each state has its own handler that returns the next state,
so every transition can be exercised with a scripted console.

Errors while querying or updating end the adjustment loop but do not roll
back: whatever was applied before the error is still committed.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional, Tuple

from .adjustments import AdjustmentOutcome, AdjustmentRequest, LoanAdjustmentEngine
from .console import ConsoleChannel
from .errors import CommitError, DatabaseConnectionError, QueryError
from .logging_config import get_logger, log_action
from .money import DEFAULT_PRECISION, DEFAULT_ROUNDING, format_amount, parse_amount
from .queries import CustomerLoan, LoanQueryService
from .session import ConnectionManager, Session
from .store import Credentials


class WorkflowState(Enum):
    """States of one workflow run"""
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    FAILED = "failed"                    # Terminal, no session was opened
    PROMPT_CUSTOMER = "prompt_customer"
    REVIEW_LOAN = "review_loan"
    PROMPT_CONTINUE = "prompt_continue"
    COMMITTING = "committing"
    CLOSING = "closing"
    CLOSED = "closed"                    # Terminal


TERMINAL_STATES = frozenset({WorkflowState.FAILED, WorkflowState.CLOSED})

# States that read from the console inside the adjustment loop; running out of
# input in any of them is treated as declining to continue
_ADJUSTMENT_LOOP_STATES = frozenset({
    WorkflowState.PROMPT_CUSTOMER,
    WorkflowState.REVIEW_LOAN,
    WorkflowState.PROMPT_CONTINUE,
})


@dataclass
class WorkflowResult:
    """Summary of a finished run"""
    final_state: WorkflowState
    committed: bool = False
    adjustments: List[AdjustmentOutcome] = field(default_factory=list)

    @property
    def connected(self) -> bool:
        return self.final_state is not WorkflowState.FAILED


def is_response_yes(user_response: Optional[str]) -> bool:
    """True if the response starts with y or Y"""
    if not user_response:
        return False
    return user_response.strip()[:1] in ("y", "Y")


def parse_customer_name(line: str) -> Optional[Tuple[str, str]]:
    """
    Split "first last" into its parts

    Everything after the first word is the last name, so "Ana de Souza"
    gives ("Ana", "de Souza"). Returns None when fewer than two words are given.
    """
    parts = line.split()
    if len(parts) < 2:
        return None
    return parts[0], " ".join(parts[1:])


class LoanWorkflowController:
    """Runs the interactive list-and-adjust workflow over one session"""

    def __init__(
        self,
        connection_manager: ConnectionManager,
        console: ConsoleChannel,
        query_service: Optional[LoanQueryService] = None,
        adjustment_engine: Optional[LoanAdjustmentEngine] = None,
        precision: int = DEFAULT_PRECISION,
        rounding: str = DEFAULT_ROUNDING
    ):
        self.connection_manager = connection_manager
        self.console = console
        self.query_service = query_service or LoanQueryService()
        self.adjustment_engine = adjustment_engine or LoanAdjustmentEngine(precision, rounding)
        self.precision = precision
        self.rounding = rounding
        self.logger = get_logger("toybank.workflow")

        self.state = WorkflowState.DISCONNECTED
        self.session: Optional[Session] = None
        self.committed = False
        self.adjustments: List[AdjustmentOutcome] = []
        self._pending_loans: Deque[CustomerLoan] = deque()

        self._handlers: Dict[WorkflowState, Callable[[], WorkflowState]] = {
            WorkflowState.DISCONNECTED: self._connect,
            WorkflowState.CONNECTED: self._display_all_loans,
            WorkflowState.PROMPT_CUSTOMER: self._prompt_customer,
            WorkflowState.REVIEW_LOAN: self._review_next_loan,
            WorkflowState.PROMPT_CONTINUE: self._prompt_continue,
            WorkflowState.COMMITTING: self._commit,
            WorkflowState.CLOSING: self._close,
        }

    def run(self) -> WorkflowResult:
        """Step until a terminal state is reached"""
        while self.state not in TERMINAL_STATES:
            self.step()
        return WorkflowResult(
            final_state=self.state,
            committed=self.committed,
            adjustments=list(self.adjustments)
        )

    def step(self) -> WorkflowState:
        """Run the handler of the current state and move to the state it returns"""
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"Workflow already finished in state {self.state.value}")

        previous = self.state
        try:
            self.state = self._handlers[previous]()
        except EOFError:
            self.state = self._on_end_of_input(previous)

        log_action(
            self.logger, "debug", "Workflow transition",
            action="transition",
            extra={"from": previous.value, "to": self.state.value}
        )
        return self.state

    def _on_end_of_input(self, state: WorkflowState) -> WorkflowState:
        log_action(self.logger, "info", "Input closed",
                   action="end_of_input", extra={"state": state.value})
        if state in _ADJUSTMENT_LOOP_STATES:
            self._pending_loans.clear()
            return WorkflowState.COMMITTING
        self.console.write("Exiting, connection was not established!")
        return WorkflowState.FAILED

    # State handlers

    def _connect(self) -> WorkflowState:
        user = self.console.prompt("Connecting to DB:: name of database user: ")
        password = self.console.prompt_secret("Connecting to DB:: password: ")

        try:
            self.session = self.connection_manager.open(Credentials(user=user, password=password))
        except DatabaseConnectionError:
            self.session = None

        if not self.connection_manager.is_open(self.session):
            self.console.write("Exiting, connection was not established!")
            return WorkflowState.FAILED
        return WorkflowState.CONNECTED

    def _display_all_loans(self) -> WorkflowState:
        self.console.write()
        self.console.write("The following are the loans in ToyBank:")
        self.console.write()
        try:
            for listing in self.query_service.list_all_loans(self.session):
                self.console.write(
                    f"{listing.customer_name} owns Loan # {listing.loan_number}, "
                    f"in the amount of {format_amount(listing.amount, self.precision)}"
                )
        except QueryError as e:
            self.console.write(f"Unable to list loans: {e.message}")
        self.console.write()
        return WorkflowState.PROMPT_CUSTOMER

    def _prompt_customer(self) -> WorkflowState:
        line = self.console.prompt("Name of customer whose loans are to be adjusted (first last): ")
        name = parse_customer_name(line)
        if name is None:
            self.console.write("Please enter both a first and a last name.")
            return WorkflowState.PROMPT_CUSTOMER

        first_name, last_name = name
        try:
            loans = list(self.query_service.find_loans_for_customer(
                self.session, first_name, last_name))
        except QueryError as e:
            return self._abort_loop(e)

        if not loans:
            self.console.write(f"No loans found for {first_name} {last_name}.")
            return WorkflowState.PROMPT_CONTINUE

        self._pending_loans = deque(loans)
        return WorkflowState.REVIEW_LOAN

    def _review_next_loan(self) -> WorkflowState:
        loan = self._pending_loans.popleft()
        self.console.write(
            f"Loan # {loan.loan_number} in the amount of "
            f"{format_amount(loan.amount, self.precision)}"
        )

        if is_response_yes(self.console.prompt("Would you like to adjust this loan (y/n)? ")):
            self.console.write("By how much should it be adjusted?")
            text = self.console.prompt("Enter a positive or negative amount: ")
            try:
                delta = parse_amount(text, self.precision, self.rounding)
            except ValueError:
                self.console.write(f"{text.strip()!r} is not an amount. Resuming with next loan")
            else:
                request = AdjustmentRequest(
                    loan_number=loan.loan_number,
                    current_amount=loan.amount,
                    delta=delta
                )
                try:
                    outcome = self.adjustment_engine.adjust(self.session, request)
                except QueryError as e:
                    return self._abort_loop(e)
                self.adjustments.append(outcome)
                self._report(outcome)

        if self._pending_loans:
            return WorkflowState.REVIEW_LOAN
        return WorkflowState.PROMPT_CONTINUE

    def _prompt_continue(self) -> WorkflowState:
        if is_response_yes(self.console.prompt("Continue with another customer's loans (y/n)? ")):
            return WorkflowState.PROMPT_CUSTOMER
        return WorkflowState.COMMITTING

    def _commit(self) -> WorkflowState:
        try:
            self.connection_manager.commit(self.session)
            self.committed = True
        except (CommitError, QueryError) as e:
            # QueryError here comes from beginning the next transaction, after the commit
            self.committed = isinstance(e, QueryError)
            if not self.committed:
                self.console.write("Unable to commit changes; they were not saved.")
        return WorkflowState.CLOSING

    def _close(self) -> WorkflowState:
        self.connection_manager.close(self.session)
        return WorkflowState.CLOSED

    # Helpers

    def _report(self, outcome: AdjustmentOutcome) -> None:
        if not outcome.accepted:
            self.console.write("The loan cannot be adjusted by that amount. Resuming with next loan")
        elif outcome.rows_affected == 1:
            self.console.write(
                "Loan successfully adjusted, the new loan amount is "
                f"{format_amount(outcome.new_amount, self.precision)}"
            )
        else:
            self.console.write(
                f"Loan # {outcome.request.loan_number} no longer exists; nothing was adjusted"
            )

    def _abort_loop(self, error: QueryError) -> WorkflowState:
        log_action(
            self.logger, "error", f"Unable to process result due to error {error}",
            action=error.operation,
            resource=self.session.resource if self.session else None
        )
        self.console.write("A database error ended the adjustments; saving what was done so far.")
        self._pending_loans.clear()
        return WorkflowState.COMMITTING
