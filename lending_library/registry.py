import logging
from typing import Any, Dict, List, Optional

from lending_library.identifiers import IdentifierSpaceExhausted, allocate_id
from lending_library.models import Book, Loan, User, UserType
from lending_library.results import FailureKind, Result
from lending_library.validators import TextValidator

logger = logging.getLogger(__name__)

BOOK_PREFIX = "L"


class EntityRegistry:
    """Owns the users, books and loans collections and their mutations.

    ``store`` is anything with ``save(snapshot) -> bool`` (see
    database.SnapshotStore). ``presenter`` is anything with
    ``notify(message, kind)`` and ``refresh(registry)`` (see
    ui_helpers.ConsolePresenter). Both are optional so a registry can be
    used on its own in tests.
    """

    def __init__(self, store: Optional[Any] = None, presenter: Optional[Any] = None) -> None:
        self.users: List[User] = []
        self.books: List[Book] = []
        self.loans: List[Loan] = []
        self.store = store
        self.presenter = presenter

    # ------------------------- Lookups ------------------------- #
    def find_user(self, user_id: str) -> Optional[User]:
        for user in self.users:
            if user.id == user_id:
                return user
        return None

    def find_book(self, book_id: str) -> Optional[Book]:
        for book in self.books:
            if book.id == book_id:
                return book
        return None

    def find_loan(self, loan_id: int) -> Optional[Loan]:
        for loan in self.loans:
            if loan.id == loan_id:
                return loan
        return None

    def available_books(self) -> List[Book]:
        return [b for b in self.books if b.available]

    # ------------------------- Snapshot ------------------------- #
    def snapshot(self) -> Dict[str, list]:
        return {
            "users": [u.to_dict() for u in self.users],
            "books": [b.to_dict() for b in self.books],
            "loans": [l.to_dict() for l in self.loans],
        }

    def load_snapshot(self, data: Optional[Dict[str, Any]]) -> bool:
        """Replace all collections with the contents of a snapshot.

        Collections missing from the snapshot keep their current contents.
        If any record cannot be read, nothing is replaced.
        """
        if not data:
            return False
        try:
            users = [User.from_dict(item) for item in data["users"]] if data.get("users") is not None else self.users
            books = [Book.from_dict(item) for item in data["books"]] if data.get("books") is not None else self.books
            loans = [Loan.from_dict(item) for item in data["loans"]] if data.get("loans") is not None else self.loans
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Ignoring unreadable snapshot: {e}")
            return False
        self.users, self.books, self.loans = users, books, loans
        return True

    def commit(self, message: str) -> None:
        """Persist the current state and tell the presenter about the change."""
        logger.info(message)
        if self.store is not None and not self.store.save(self.snapshot()):
            logger.warning("Snapshot not saved; in-memory state is kept for this session")
        if self.presenter is not None:
            self.presenter.notify(message, "success")
            self.presenter.refresh(self)

    @staticmethod
    def reject(kind: FailureKind, message: str) -> Result:
        logger.warning(f"Rejected ({kind.value}): {message}")
        return Result.failure(kind, message)

    # ------------------------- Users ------------------------- #
    def _check_user_fields(self, name: Optional[str], user_type) -> Optional[Result]:
        if TextValidator.missing(name, user_type.value if isinstance(user_type, UserType) else user_type):
            return self.reject(FailureKind.VALIDATION, "All fields are required.")
        error = TextValidator.validate_name(name) or TextValidator.validate_user_type(user_type)
        if error:
            return self.reject(FailureKind.VALIDATION, error)
        return None

    def register_user(self, name: Optional[str], user_type) -> Result:
        failed = self._check_user_fields(name, user_type)
        if failed is not None:
            return failed
        user_type = UserType.parse(user_type)
        try:
            user_id = allocate_id(self.users, user_type.prefix, lambda u: u.type is user_type)
        except IdentifierSpaceExhausted as e:
            return self.reject(FailureKind.CONFLICT, str(e))

        user = User(id=user_id, name=TextValidator.clean(name), type=user_type)
        self.users.append(user)
        self.commit(f"User registered with ID: {user_id}")
        return Result.success(user, f"User registered with ID: {user_id}")

    def update_user(self, user_id: str, name: Optional[str], user_type) -> Result:
        user = self.find_user(user_id)
        if user is None:
            return self.reject(FailureKind.NOT_FOUND, "User not found")
        failed = self._check_user_fields(name, user_type)
        if failed is not None:
            return failed

        user.name = TextValidator.clean(name)
        user.type = UserType.parse(user_type)
        self.commit(f"User {user_id} updated")
        return Result.success(user, f"User {user_id} updated")

    def delete_user(self, user_id: str) -> Result:
        user = self.find_user(user_id)
        if user is None:
            return self.reject(FailureKind.NOT_FOUND, "User not found")
        if user.active_loans > 0:
            return self.reject(FailureKind.CONFLICT, "Cannot delete: the user has active loans")

        self.users.remove(user)
        self.commit(f"User {user_id} deleted")
        return Result.success(user, f"User {user_id} deleted")

    # ------------------------- Books ------------------------- #
    def _check_book_fields(self, title: Optional[str], author: Optional[str]) -> Optional[Result]:
        if TextValidator.missing(title, author):
            return self.reject(FailureKind.VALIDATION, "All fields are required.")
        error = (TextValidator.validate_title_or_author(title, "Title")
                 or TextValidator.validate_title_or_author(author, "Author"))
        if error:
            return self.reject(FailureKind.VALIDATION, error)
        return None

    def register_book(self, title: Optional[str], author: Optional[str]) -> Result:
        failed = self._check_book_fields(title, author)
        if failed is not None:
            return failed
        try:
            book_id = allocate_id(self.books, BOOK_PREFIX, lambda b: b.id.startswith(BOOK_PREFIX))
        except IdentifierSpaceExhausted as e:
            return self.reject(FailureKind.CONFLICT, str(e))

        book = Book(id=book_id, title=TextValidator.clean(title), author=TextValidator.clean(author))
        self.books.append(book)
        self.commit(f"Book registered: {book_id}")
        return Result.success(book, f"Book registered: {book_id}")

    def update_book(self, book_id: str, title: Optional[str], author: Optional[str]) -> Result:
        book = self.find_book(book_id)
        if book is None:
            return self.reject(FailureKind.NOT_FOUND, "Book not found")
        failed = self._check_book_fields(title, author)
        if failed is not None:
            return failed

        book.title = TextValidator.clean(title)
        book.author = TextValidator.clean(author)
        self.commit(f"Book {book_id} updated")
        return Result.success(book, f"Book {book_id} updated")

    def delete_book(self, book_id: str) -> Result:
        book = self.find_book(book_id)
        if book is None:
            return self.reject(FailureKind.NOT_FOUND, "Book not found")
        if not book.available:
            return self.reject(FailureKind.CONFLICT, "Cannot delete: the book is on loan")

        self.books.remove(book)
        self.commit(f"Book {book_id} deleted")
        return Result.success(book, f"Book {book_id} deleted")
