from __future__ import annotations

from pathlib import Path

import pytest

from knapsack_optimizer.optimization.greedy_selector import Item
from knapsack_optimizer.storage.database import initialize_database
from knapsack_optimizer.web.app import create_app


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "runs.db"
    initialize_database(path)
    return path


@pytest.fixture
def app(tmp_path: Path, db_path: Path):
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test",
            "DATABASE_PATH": db_path,
            "UPLOAD_DIR": tmp_path / "uploads",
            "EXPORT_DIR": tmp_path / "exports",
        }
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def classic_items() -> list[Item]:
    return [
        Item(id="a", name="A", weight=10.0, value=60.0),
        Item(id="b", name="B", weight=20.0, value=100.0),
        Item(id="c", name="C", weight=30.0, value=120.0),
    ]
