from __future__ import annotations

import logging
from typing import List, Optional

import pytest

from app import create_app
from gendocs.ai import LineItemDraft
from gendocs.config import Settings
from gendocs.shell import AppState
from gendocs.storage import MemoryKeyValueStore


class FakeGenerator:
    """Stands in for LineItemGenerator; records calls and returns canned drafts."""

    def __init__(self, items: Optional[List[dict]] = None, error: Optional[Exception] = None):
        self.items = items or []
        self.error = error
        self.calls = []

    def generate(self, doc_type, prompt):
        self.calls.append((doc_type, prompt))
        if self.error is not None:
            raise self.error
        return [LineItemDraft.model_validate(it) for it in self.items]


DESIGN_AND_HOSTING = [
    {"description": "Design", "quantity": 10, "unitPrice": 50},
    {"description": "Hosting", "quantity": 1, "unitPrice": 120},
]


@pytest.fixture
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator(items=DESIGN_AND_HOSTING)


@pytest.fixture
def state(store, generator) -> AppState:
    return AppState(store, generator)


@pytest.fixture
def app(store, generator):
    flask_app = create_app(
        Settings(api_key="test-key", secret_key="test-secret"),
        store=store,
        generator=generator,
    )
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def storage_log(caplog):
    """caplog attached to the storage logger, which does not propagate to root."""
    logger = logging.getLogger("gendocs.storage")
    logger.addHandler(caplog.handler)
    yield caplog
    logger.removeHandler(caplog.handler)
