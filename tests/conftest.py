import random

import pytest

from sign_tutor.catalog import SignCatalog
from sign_tutor.store import ProgressStore

CATALOG_DATA = {
    "x": {
        "name": "Warning signs",
        "code": "A",
        "signs": [
            {"id": "x1", "name": "Bend", "img": "x1", "difficulty": 1},
            {"id": "x2", "name": "Hill", "img": "x2", "difficulty": 2},
            {"id": "x3", "name": "Narrow", "img": "x3", "difficulty": 3},
            {"id": "x4", "name": "Moose", "img": "x4", "difficulty": 4},
            {"id": "x5", "name": "Wind", "img": "x5"},
        ],
    },
    "y": {
        "name": "Prohibitory signs",
        "code": "C",
        "signs": [
            {"id": f"y{i}", "name": f"Prohibition {i}", "img": f"y{i}", "difficulty": (i % 5) + 1}
            for i in range(1, 13)
        ],
    },
}


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_tutor.db")
    return db_path


@pytest.fixture
def store(tmp_db):
    return ProgressStore(tmp_db)


@pytest.fixture
def catalog():
    return SignCatalog.from_dict(CATALOG_DATA)


@pytest.fixture
def rng():
    return random.Random(42)
