from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

MAX_LOANS = 3


class UserType(Enum):
    """Borrower category; decides the id prefix."""
    STUDENT = "Student"
    FACULTY = "Faculty"

    @property
    def prefix(self) -> str:
        return "U" if self is UserType.STUDENT else "P"

    @staticmethod
    def parse(value: "UserType | str | None") -> "UserType | None":
        """Return the matching UserType, or None if the value is not recognized.

        Accepts the enum itself, its value or name in any case, and the
        Spanish labels found in snapshots exported by the old browser app.
        """
        if isinstance(value, UserType):
            return value
        if value is None:
            return None
        key = str(value).strip().lower()
        return _USER_TYPE_ALIASES.get(key)


_USER_TYPE_ALIASES = {
    "student": UserType.STUDENT,
    "estudiante": UserType.STUDENT,
    "faculty": UserType.FACULTY,
    "docente": UserType.FACULTY,
}


class User:
    """A registered borrower."""

    def __init__(self, id: str, name: str, type: UserType, active_loans: int = 0) -> None:
        self.id = id
        self.name = name
        self.type = type
        self.active_loans = active_loans

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.id} {self.name} ({self.type.value})"

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, name={self.name!r}, type={self.type.value!r}, active_loans={self.active_loans})"

    @property
    def can_borrow(self) -> bool:
        return self.active_loans < MAX_LOANS

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "activeLoans": self.active_loans,
        }

    @staticmethod
    def from_dict(data: dict) -> "User":
        user_type = UserType.parse(data.get("type"))
        if user_type is None:
            raise ValueError(f"Unknown user type: {data.get('type')!r}")
        return User(
            id=data["id"],
            name=data["name"],
            type=user_type,
            active_loans=int(data.get("activeLoans", 0)),
        )


class Book:
    """A single-copy title held by the library."""

    def __init__(self, id: str, title: str, author: str, available: bool = True) -> None:
        self.id = id
        self.title = title
        self.author = author
        self.available = available

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.id} {self.title} by {self.author}"

    def __repr__(self) -> str:
        return f"Book(id={self.id!r}, title={self.title!r}, author={self.author!r}, available={self.available})"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "available": self.available,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        return Book(
            id=data["id"],
            title=data["title"],
            author=data["author"],
            available=bool(data.get("available", True)),
        )


@dataclass(frozen=True)
class Loan:
    """An open loan.

    ``user_name`` and ``book_title`` are copied when the loan is created and
    keep that value even if the user or book is edited afterwards.
    """
    id: int
    user_id: str
    user_name: str
    book_id: str
    book_title: str
    date: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "userName": self.user_name,
            "bookId": self.book_id,
            "bookTitle": self.book_title,
            "date": self.date,
        }

    @staticmethod
    def from_dict(data: dict) -> "Loan":
        return Loan(
            id=int(data["id"]),
            user_id=data["userId"],
            user_name=data.get("userName", ""),
            book_id=data["bookId"],
            book_title=data.get("bookTitle", ""),
            date=data.get("date", ""),
        )
