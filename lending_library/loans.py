import logging
from datetime import datetime
from typing import Callable, List, Optional, Union

from lending_library.config import settings
from lending_library.models import MAX_LOANS, Loan
from lending_library.registry import EntityRegistry
from lending_library.results import FailureKind, Result

logger = logging.getLogger(__name__)


def _loan_token(value) -> Optional[int]:
    """Exact integer token, or None. Floats and bools are not tokens."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value.strip())
    return None


def format_loan_date(when: datetime, date_format: str = "") -> str:
    """Day/month/year without zero padding (19/10/2026, 5/1/2026) unless a strftime format is given."""
    if date_format:
        return when.strftime(date_format)
    return f"{when.day}/{when.month}/{when.year}"


class LoanEngine:
    """Lends and returns books against an EntityRegistry.

    A loan touches three records: the loan list, the borrower's
    ``active_loans`` counter and the book's ``available`` flag. All checks
    run before the first of them is changed.
    """

    def __init__(self, registry: EntityRegistry, clock: Optional[Callable[[], datetime]] = None,
                 date_format: Optional[str] = None) -> None:
        self.registry = registry
        self.clock = clock or datetime.now
        self.date_format = settings.loan_date_format if date_format is None else date_format

    def _next_token(self, now: datetime) -> int:
        token = int(now.timestamp() * 1000)
        taken = {loan.id for loan in self.registry.loans}
        if token in taken:
            token = max(taken) + 1
        return token

    def create_loan(self, user_id: str, book_id: str) -> Result:
        registry = self.registry
        user = registry.find_user(user_id)
        book = registry.find_book(book_id)

        if user is None:
            return registry.reject(FailureKind.NOT_FOUND, "Invalid user.")
        if book is None:
            return registry.reject(FailureKind.NOT_FOUND, "Invalid book.")
        if not book.available:
            return registry.reject(FailureKind.UNAVAILABLE, "The book is not available.")
        if not user.can_borrow:
            return registry.reject(FailureKind.LIMIT_EXCEEDED, f"The user has reached the limit of {MAX_LOANS} loans.")

        now = self.clock()
        loan = Loan(
            id=self._next_token(now),
            user_id=user.id,
            user_name=user.name,
            book_id=book.id,
            book_title=book.title,
            date=format_loan_date(now, self.date_format),
        )
        registry.loans.append(loan)
        user.active_loans += 1
        book.available = False

        registry.commit("Loan registered successfully")
        return Result.success(loan, "Loan registered successfully")

    def return_book(self, loan_id: Union[int, str]) -> Result:
        """Close a loan. Unknown or already returned tokens are a no-op success."""
        registry = self.registry
        token = _loan_token(loan_id)
        loan = registry.find_loan(token) if token is not None else None
        if loan is None:
            logger.debug(f"Return of unknown loan {loan_id!r} ignored")
            return Result.success(None)

        user = registry.find_user(loan.user_id)
        book = registry.find_book(loan.book_id)
        if user is not None:
            user.active_loans = max(0, user.active_loans - 1)
        else:
            logger.warning(f"Loan {loan.id} references missing user {loan.user_id}")
        if book is not None:
            book.available = True
        else:
            logger.warning(f"Loan {loan.id} references missing book {loan.book_id}")
        registry.loans.remove(loan)

        registry.commit("Book returned successfully")
        return Result.success(loan, "Book returned successfully")

    def loans_for_user(self, user_id: str) -> List[Loan]:
        return [loan for loan in self.registry.loans if loan.user_id == user_id]
