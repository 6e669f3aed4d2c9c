import re
from unittest.mock import MagicMock

import pytest

from lending_library.identifiers import format_id
from lending_library.models import Book, User, UserType
from lending_library.registry import EntityRegistry
from lending_library.results import CirculationError, FailureKind


@pytest.fixture
def registry():
    store = MagicMock()
    store.save.return_value = True
    reg = EntityRegistry(store=store, presenter=MagicMock())
    reg.users = [User("U001", "Ana García", UserType.STUDENT), User("P001", "Carlos Ruiz", UserType.FACULTY)]
    reg.books = [Book("L001", "Cálculo I", "Stewart"), Book("L002", "Física Básica", "Sears"),
                 Book("L003", "Química Orgánica", "Wade")]
    return reg


def test_register_user_assigns_prefix_by_type(registry):
    student = registry.register_user("Bruno Díaz", UserType.STUDENT).unwrap()
    faculty = registry.register_user("Elena Soto", "Faculty").unwrap()

    assert student.id == "U002"
    assert faculty.id == "P002"
    assert student.active_loans == 0
    assert registry.find_user("P002").type is UserType.FACULTY


def test_register_user_trims_name(registry):
    user = registry.register_user("   Marta López  ", UserType.STUDENT).unwrap()
    assert user.name == "Marta López"


def test_register_user_saves_and_notifies(registry):
    result = registry.register_user("Bruno Díaz", UserType.STUDENT)

    assert result.ok
    registry.store.save.assert_called_once()
    saved = registry.store.save.call_args[0][0]
    assert {"id": "U002", "name": "Bruno Díaz", "type": "Student", "activeLoans": 0} in saved["users"]
    registry.presenter.notify.assert_called_once_with("User registered with ID: U002", "success")
    registry.presenter.refresh.assert_called_once_with(registry)


@pytest.mark.parametrize("name", ["Al", "R2D2", "Ana-María", "x" * 101, "O'Brien"])
def test_register_user_rejects_bad_names(registry, name):
    result = registry.register_user(name, UserType.STUDENT)

    assert not result.ok
    assert result.kind is FailureKind.VALIDATION
    assert len(registry.users) == 2
    registry.store.save.assert_not_called()


@pytest.mark.parametrize("name,user_type", [(None, UserType.STUDENT), ("   ", "Student"), ("Bruno Díaz", None), ("Bruno Díaz", "")])
def test_register_user_requires_all_fields(registry, name, user_type):
    result = registry.register_user(name, user_type)
    assert result.kind is FailureKind.VALIDATION
    assert result.message == "All fields are required."


def test_register_user_rejects_unknown_type(registry):
    result = registry.register_user("Bruno Díaz", "Librarian")
    assert result.kind is FailureKind.VALIDATION
    with pytest.raises(CirculationError) as exc:
        result.unwrap()
    assert exc.value.kind is FailureKind.VALIDATION


def test_register_user_accepts_unicode_letters(registry):
    assert registry.register_user("Zoë Ñúñez Ærø", UserType.STUDENT).ok


def test_user_ids_stay_unique_after_delete_and_reregister(registry):
    registry.register_user("Bruno Díaz", UserType.STUDENT)   # U002
    registry.register_user("Carla Pérez", UserType.STUDENT)  # U003
    assert registry.delete_user("U002").ok

    # two students left, so the counter lands on U003, which is taken
    user = registry.register_user("Diego Torres", UserType.STUDENT).unwrap()
    assert user.id == "U004"

    registry.register_user("Eva Romero", UserType.STUDENT)
    ids = [u.id for u in registry.users]
    assert len(ids) == len(set(ids))
    assert all(re.match(r"^[UP]\d{3}$", i) for i in ids)


def test_update_user_keeps_id_and_loan_count(registry):
    user = registry.find_user("U001")
    user.active_loans = 2

    result = registry.update_user("U001", "Ana Gómez", UserType.FACULTY)

    assert result.ok
    assert user.id == "U001"
    assert user.name == "Ana Gómez"
    assert user.type is UserType.FACULTY
    assert user.active_loans == 2


def test_update_user_not_found(registry):
    result = registry.update_user("U999", "Nobody Here", UserType.STUDENT)
    assert result.kind is FailureKind.NOT_FOUND


def test_update_user_invalid_leaves_record(registry):
    result = registry.update_user("U001", "A1", UserType.STUDENT)
    assert result.kind is FailureKind.VALIDATION
    assert registry.find_user("U001").name == "Ana García"


def test_delete_user_with_loans_conflicts(registry):
    registry.find_user("U001").active_loans = 1

    result = registry.delete_user("U001")

    assert result.kind is FailureKind.CONFLICT
    assert registry.find_user("U001") is not None
    registry.store.save.assert_not_called()


def test_delete_user_not_found(registry):
    assert registry.delete_user("U404").kind is FailureKind.NOT_FOUND


def test_register_book_allocates_next_id(registry):
    book = registry.register_book("Calc I", "Stewart").unwrap()
    assert book.id == "L004"
    assert book.available is True


@pytest.mark.parametrize("title,author,message", [
    ("C", "Stewart", "Title must be at least 2 characters"),
    ("Calc I", " S ", "Author must be at least 2 characters"),
    ("T" * 151, "Stewart", "Title must be at most 150 characters"),
    ("", "Stewart", "All fields are required."),
])
def test_register_book_validation(registry, title, author, message):
    result = registry.register_book(title, author)
    assert result.kind is FailureKind.VALIDATION
    assert result.message == message
    assert len(registry.books) == 3


def test_update_book_keeps_availability(registry):
    book = registry.find_book("L002")
    book.available = False

    result = registry.update_book("L002", "Física Universitaria", "Sears, Zemansky")

    assert result.ok
    assert book.title == "Física Universitaria"
    assert book.author == "Sears, Zemansky"
    assert book.available is False


def test_update_book_not_found(registry):
    assert registry.update_book("L999", "Title", "Author").kind is FailureKind.NOT_FOUND


def test_delete_book_on_loan_conflicts(registry):
    registry.find_book("L001").available = False
    assert registry.delete_book("L001").kind is FailureKind.CONFLICT
    assert registry.find_book("L001") is not None


def test_delete_book(registry):
    assert registry.delete_book("L003").ok
    assert registry.find_book("L003") is None


def test_save_failure_keeps_memory_state(registry):
    registry.store.save.return_value = False

    result = registry.register_book("Calc I", "Stewart")

    assert result.ok
    assert registry.find_book("L004") is not None


def test_load_snapshot_rejects_broken_records(registry):
    before = list(registry.users)
    loaded = registry.load_snapshot({"users": [{"id": "U010"}], "books": [], "loans": []})
    assert loaded is False
    assert registry.users == before


def test_registry_works_without_collaborators():
    reg = EntityRegistry()
    assert reg.register_user("Ana García", UserType.STUDENT).value.id == "U001"
    assert reg.register_book("Calc I", "Stewart").value.id == "L001"


def test_register_user_when_student_ids_exhausted(registry):
    registry.users = [User(format_id("U", n), "Some Student", UserType.STUDENT) for n in range(1, 1000)]

    result = registry.register_user("Bruno Díaz", UserType.STUDENT)

    assert result.kind is FailureKind.CONFLICT
    assert len(registry.users) == 999
    registry.store.save.assert_not_called()
    # the faculty category is unaffected
    assert registry.register_user("Elena Soto", UserType.FACULTY).value.id == "P001"


def test_register_book_when_ids_exhausted(registry):
    registry.books = [Book(format_id("L", n), "Some Title", "Some Author") for n in range(1, 1000)]

    result = registry.register_book("Calc I", "Stewart")

    assert result.kind is FailureKind.CONFLICT
    assert len(registry.books) == 999
    registry.store.save.assert_not_called()
    registry.presenter.notify.assert_not_called()


@pytest.mark.parametrize("title,author", [("C", "Stewart"), ("Calc I", ""), (None, "Stewart")])
def test_update_book_invalid_leaves_record(registry, title, author):
    result = registry.update_book("L001", title, author)

    assert result.kind is FailureKind.VALIDATION
    book = registry.find_book("L001")
    assert (book.title, book.author) == ("Cálculo I", "Stewart")
    registry.store.save.assert_not_called()


def test_register_user_without_type_is_not_stored(registry):
    result = registry.register_user("Bruno Díaz", None)

    assert result.kind is FailureKind.VALIDATION
    assert len(registry.users) == 2
    registry.store.save.assert_not_called()
