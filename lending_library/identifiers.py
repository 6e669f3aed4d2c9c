from typing import Callable, Iterable, TypeVar

T = TypeVar("T")

MAX_COUNTER = 999


class IdentifierSpaceExhausted(LookupError):
    """No free three-digit identifier is left for a prefix."""
    pass


def format_id(prefix: str, counter: int) -> str:
    return f"{prefix}{counter:03d}"


def allocate_id(members: Iterable[T], prefix: str, in_category: Callable[[T], bool],
                key: Callable[[T], str] = lambda m: m.id) -> str:
    """Return the next free ``<prefix>NNN`` identifier for a collection.

    The counter starts at the number of members in the category plus one.
    When that id is already taken (an earlier member was deleted, leaving a
    higher number in use) the counter is probed upwards until a free id is
    found, so a live id is never handed out twice.
    """
    members = list(members)
    taken = {key(m) for m in members}
    counter = sum(1 for m in members if in_category(m)) + 1
    candidate = format_id(prefix, counter)
    while candidate in taken:
        counter += 1
        candidate = format_id(prefix, counter)
    if counter > MAX_COUNTER:
        raise IdentifierSpaceExhausted(f"No identifiers left for prefix {prefix!r}")
    return candidate
