import json
import os
from typing import Any, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from lending_library.config import settings
from lending_library.models import MAX_LOANS, Book, Loan, User

# Environment variable to control output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_OUTPUT"
OUTPUT_MODES = {"plain", "json", "rich"}


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in OUTPUT_MODES:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    mode = os.environ.get(OUTPUT_MODE_ENV, settings.output_mode).lower()
    return mode if mode in OUTPUT_MODES else "plain"


class ConsolePresenter:
    """Renders the registry's collections to the terminal.

    All methods are read-only projections; nothing here touches the
    collections it is given.
    - plain: one line per record
    - json: a JSON array per collection
    - rich: Rich tables, with user text escaped
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def _emit(self, text: str) -> None:
        self.console.print(text, markup=False, highlight=False, soft_wrap=True)

    def _table(self, title: str, columns: List[str], rows: List[List[Any]]) -> None:
        table = Table(title=title, show_lines=True, header_style="bold cyan")
        for col in columns:
            table.add_column(col)
        for row in rows:
            table.add_row(*[escape(str(v)) for v in row])
        self.console.print(table)

    # ------------------------- Tables ------------------------- #
    def render_users(self, users: List[User]) -> None:
        mode = get_output_mode()
        if mode == "json":
            self._emit(json.dumps([u.to_dict() for u in users], ensure_ascii=False))
        elif mode == "rich":
            self._table(
                "Users",
                ["ID", "Name", "Type", "Loans"],
                [[u.id, u.name, u.type.value, f"{u.active_loans} / {MAX_LOANS}"] for u in users],
            )
        else:
            if not users:
                self._emit("No registered users")
            for u in users:
                self._emit(f"{u.id} - {u.name} ({u.type.value}) {u.active_loans}/{MAX_LOANS}")

    def render_books(self, books: List[Book]) -> None:
        mode = get_output_mode()
        if mode == "json":
            self._emit(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
        elif mode == "rich":
            self._table(
                "Books",
                ["ID", "Title", "Author", "Status"],
                [[b.id, b.title, b.author, "Available" if b.available else "On loan"] for b in books],
            )
        else:
            if not books:
                self._emit("No books in library.")
            for b in books:
                status = "Available" if b.available else "On loan"
                self._emit(f"{b.id} - {b.title} by {b.author} [{status}]")

    def render_loans(self, loans: List[Loan]) -> None:
        mode = get_output_mode()
        if mode == "json":
            self._emit(json.dumps([l.to_dict() for l in loans], ensure_ascii=False))
            return
        if not loans:
            self._emit("No active loans")
            return
        if mode == "rich":
            self._table(
                "Active loans",
                ["Loan", "User", "Book", "Date"],
                [[l.id, l.user_name, l.book_title, l.date] for l in loans],
            )
        else:
            for l in loans:
                self._emit(f"{l.id} - {l.user_name}: {l.book_title} ({l.date})")

    # ------------------------- Pickers ------------------------- #
    def render_selectable_users(self, users: List[User]) -> None:
        options = [(u.id, f"{u.name} ({u.active_loans} loans)") for u in users]
        self._render_options("Select user...", options)

    def render_selectable_books(self, books: List[Book]) -> None:
        """Render the lendable books; callers pass only available ones."""
        options = [(b.id, f"{b.title} - {b.author}") for b in books]
        self._render_options("Select available book...", options)

    def _render_options(self, placeholder: str, options: List[tuple]) -> None:
        if get_output_mode() == "json":
            self._emit(json.dumps([{"value": v, "label": label} for v, label in options], ensure_ascii=False))
            return
        self._emit(placeholder)
        for value, label in options:
            self._emit(f"  {value}: {label}")

    # ------------------------- Feedback ------------------------- #
    def notify(self, message: str, kind: str = "success") -> None:
        if get_output_mode() == "rich":
            style = "green" if kind == "success" else "bold red"
            self.console.print(f"[{style}]{escape(message)}[/]")
        else:
            prefix = "OK" if kind == "success" else "ERROR"
            self._emit(f"{prefix}: {message}")

    def refresh(self, registry) -> None:
        """Re-render every view after a change."""
        self.render_users(registry.users)
        self.render_books(registry.books)
        self.render_loans(registry.loans)
        self.render_selectable_users(registry.users)
        self.render_selectable_books(registry.available_books())
