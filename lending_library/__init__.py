"""Lending Library - circulation records core package

This package contains the core modules including:
- Identifier allocation (identifiers.py)
- User, book and loan records (models.py)
- Entity registry and loan engine (registry.py, loans.py)
- Snapshot persistence (database.py)
- Console rendering (ui_helpers.py)
- Library facade (library.py)
"""

from lending_library.library import Library
from lending_library.models import MAX_LOANS, Book, Loan, User, UserType
from lending_library.results import CirculationError, FailureKind, Result
from lending_library.ui_helpers import ConsolePresenter

__all__ = [
    "Library",
    "MAX_LOANS",
    "Book",
    "Loan",
    "User",
    "UserType",
    "CirculationError",
    "FailureKind",
    "Result",
    "ConsolePresenter",
]
