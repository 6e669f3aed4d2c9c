import logging
from datetime import datetime
from typing import Callable, List, Optional, Union

from lending_library import database
from lending_library.config import settings
from lending_library.database import SnapshotStore, migrate_from_json
from lending_library.loans import LoanEngine
from lending_library.models import Book, Loan, User, UserType
from lending_library.registry import EntityRegistry
from lending_library.results import Result

logger = logging.getLogger(__name__)


def default_records() -> dict:
    """Starter collections used when no snapshot has been saved yet."""
    return {
        "users": [
            User("U001", "Ana García", UserType.STUDENT).to_dict(),
            User("P001", "Prof. Carlos Ruiz", UserType.FACULTY).to_dict(),
        ],
        "books": [
            Book("L001", "Cálculo I", "Stewart").to_dict(),
            Book("L002", "Física Básica", "Sears").to_dict(),
            Book("L003", "Química Orgánica", "Wade").to_dict(),
        ],
        "loans": [],
    }


class Library:
    """Manages users, books and loans, and their persistence."""

    def __init__(self, db_file: Optional[str] = None, presenter=None,
                 clock: Optional[Callable[[], datetime]] = None,
                 seed_defaults: Optional[bool] = None) -> None:
        self.store = SnapshotStore(db_file or database.DATABASE_FILE)
        self.presenter = presenter
        self.registry = EntityRegistry(store=self.store, presenter=presenter)
        self.engine = LoanEngine(self.registry, clock=clock)

        if seed_defaults is None:
            seed_defaults = settings.seed_defaults
        self._load(seed_defaults)
        if presenter is not None:
            presenter.refresh(self.registry)

    def _load(self, seed_defaults: bool) -> None:
        migrate_from_json(self.store)
        if self.registry.load_snapshot(self.store.load()):
            logger.info(
                f"Loaded {len(self.registry.users)} users, {len(self.registry.books)} books "
                f"and {len(self.registry.loans)} loans"
            )
        elif seed_defaults:
            self.registry.load_snapshot(default_records())

    def _report(self, result: Result) -> Result:
        if not result.ok and self.presenter is not None:
            self.presenter.notify(result.message, "error")
        return result

    # ------------------------- Users ------------------------- #
    def register_user(self, name: Optional[str], user_type: Union[UserType, str, None]) -> Result:
        return self._report(self.registry.register_user(name, user_type))

    def update_user(self, user_id: str, name: Optional[str], user_type: Union[UserType, str, None]) -> Result:
        return self._report(self.registry.update_user(user_id, name, user_type))

    def delete_user(self, user_id: str) -> Result:
        return self._report(self.registry.delete_user(user_id))

    # ------------------------- Books ------------------------- #
    def register_book(self, title: Optional[str], author: Optional[str]) -> Result:
        return self._report(self.registry.register_book(title, author))

    def update_book(self, book_id: str, title: Optional[str], author: Optional[str]) -> Result:
        return self._report(self.registry.update_book(book_id, title, author))

    def delete_book(self, book_id: str) -> Result:
        return self._report(self.registry.delete_book(book_id))

    # ------------------------- Loans ------------------------- #
    def create_loan(self, user_id: str, book_id: str) -> Result:
        return self._report(self.engine.create_loan(user_id, book_id))

    def return_book(self, loan_id: Union[int, str]) -> Result:
        return self._report(self.engine.return_book(loan_id))

    # ------------------------- Queries ------------------------- #
    def list_users(self) -> List[User]:
        return list(self.registry.users)

    def list_books(self) -> List[Book]:
        return list(self.registry.books)

    def list_loans(self) -> List[Loan]:
        return list(self.registry.loans)

    def available_books(self) -> List[Book]:
        return self.registry.available_books()

    def find_user(self, user_id: str) -> Optional[User]:
        return self.registry.find_user(user_id)

    def find_book(self, book_id: str) -> Optional[Book]:
        return self.registry.find_book(book_id)

    def close(self) -> None:
        """Compatibility helper: connections are opened per operation, so there's nothing to close."""
        return None
