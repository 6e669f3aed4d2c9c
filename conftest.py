import os
from datetime import datetime

import pytest

from lending_library.library import Library

FIXED_NOW = datetime(2026, 10, 19, 9, 30)


@pytest.fixture
def db_file(tmp_path, request):
    # Unique database file per test
    return str(tmp_path / f"test_{request.node.name}.db")


@pytest.fixture
def lib(db_file):
    lib = Library(db_file=db_file, clock=lambda: FIXED_NOW, seed_defaults=True)
    yield lib
    try:
        lib.close()
    except Exception:
        pass
    if os.path.exists(db_file):
        os.remove(db_file)
