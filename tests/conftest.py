import itertools

import pytest
from fastapi.testclient import TestClient

from masterplan.client import MasterPlanClient
from masterplan.core.errors import ConflictError, InternalError
from masterplan.main import create_app
from masterplan.settings import Settings
from masterplan.storage import LocalStorage


class InMemoryDocumentStore:
    """Stand-in for DocumentStore that keeps rows in a dict."""

    def __init__(self):
        self.rows: dict[int, dict] = {}
        self._ids = itertools.count(1)
        self.healthy = True

    def doc_id_exists(self, doc_id: str) -> bool:
        return any(r["doc_id"] == doc_id for r in self.rows.values())

    def insert(self, row: dict) -> dict:
        # unique constraint on doc_id
        if any(r["doc_id"] == row["doc_id"] for r in self.rows.values()):
            raise ConflictError("Document ID already exists in database")
        stored = dict(row, id=next(self._ids))
        self.rows[stored["id"]] = stored
        return dict(stored)

    def list_all(self) -> list[dict]:
        return sorted(
            (dict(r) for r in self.rows.values()),
            key=lambda r: (r["created_at"], r["id"]),
            reverse=True,
        )

    def get(self, id: int) -> dict | None:
        row = self.rows.get(id)
        return dict(row) if row else None

    def ping(self) -> None:
        if not self.healthy:
            raise InternalError("connection refused")


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "uploads")


@pytest.fixture
def app(store, storage):
    return create_app(store=store, storage=storage, settings=Settings(_env_file=None))


@pytest.fixture
def http(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def api_client(http):
    return MasterPlanClient(http=http)


@pytest.fixture
def doc_payload():
    return {
        "doc_id": "DOC-1",
        "doc_type": "Policy",
        "doc_title": "X",
        "revision_no": "1.0",
        "year": 2024,
        "owner": "Ops",
        "status": "Draft",
    }


@pytest.fixture
def pdf_bytes():
    return b"%PDF-1.4\n" + b"0" * (1024 - 9)
