import pytest
from fastapi.testclient import TestClient

from safetyapp.auth.dependencies import get_auth_client, get_current_user
from safetyapp.core.dependencies import get_database, get_storage
from safetyapp.database.database_service import validation_error
from safetyapp.main import app
from safetyapp.services.storage_service import StorageService

DEFAULT_USER = {"uid": "user_1", "email": "inspector@example.com"}
ADMIN_USER = {"uid": "admin_1", "email": "admin@example.com", "admin": True}


def _matches(data, query_filter):
    field, op, value = query_filter
    if op == "==":
        return data.get(field) == value
    if op == "in":
        return data.get(field) in value
    raise AssertionError(f"FakeDB does not support operator {op}")


class FakeDB:
    """In-memory stand-in with the DatabaseService method signatures."""

    def __init__(self, data=None):
        self.collections = {name: {k: dict(v) for k, v in docs.items()} for name, docs in (data or {}).items()}
        self.fail = False
        self.queries = []
        self._counter = 0

    def docs(self, collection):
        return self.collections.setdefault(collection, {})

    async def create_document(self, collection, data, document_id=None, validate=True):
        if self.fail:
            return False, None, "store unavailable"
        error = validation_error(collection, data) if validate else None
        if error:
            return False, None, error
        docs = self.docs(collection)
        if document_id:
            if document_id in docs:
                return False, None, f"Document {document_id} already exists in {collection}"
        else:
            self._counter += 1
            document_id = f"auto_{self._counter}"
        docs[document_id] = dict(data)
        return True, document_id, None

    async def get_document(self, collection, document_id):
        if self.fail:
            return False, None, "store unavailable"
        doc = self.docs(collection).get(document_id)
        if doc is None:
            return False, None, "Document not found"
        return True, {**doc, "_doc_id": document_id}, None

    async def update_document(self, collection, document_id, data, validate=True):
        if self.fail:
            return False, "store unavailable"
        docs = self.docs(collection)
        if document_id not in docs:
            return False, "Document not found"
        docs[document_id].update(data)
        return True, None

    async def set_document(self, collection, document_id, data, merge=True):
        if self.fail:
            return False, "store unavailable"
        docs = self.docs(collection)
        if merge and document_id in docs:
            docs[document_id].update(data)
        else:
            docs[document_id] = dict(data)
        return True, None

    async def delete_fields(self, collection, document_id, fields):
        if self.fail:
            return False, "store unavailable"
        doc = self.docs(collection).get(document_id)
        for field in fields:
            if doc is not None:
                doc.pop(field, None)
        return True, None

    async def delete_document(self, collection, document_id):
        if self.fail:
            return False, "store unavailable"
        self.docs(collection).pop(document_id, None)
        return True, None

    async def query_documents(self, collection, filters=None, limit=None, order_by=None):
        self.queries.append((collection, list(filters or [])))
        if self.fail:
            return False, [], "store unavailable"
        results = [
            {**data, "_doc_id": doc_id}
            for doc_id, data in self.docs(collection).items()
            if all(_matches(data, f) for f in filters or [])
        ]
        if limit:
            results = results[:limit]
        return True, results, None


class FakeBlob:
    def __init__(self, bucket, path):
        self.bucket = bucket
        self.path = path

    def delete(self):
        if self.path in self.bucket.broken:
            raise RuntimeError(f"cannot delete {self.path}")
        self.bucket.deleted.append(self.path)


class FakeBucket:
    name = "test-bucket"

    def __init__(self, broken=()):
        self.deleted = []
        self.broken = set(broken)

    def blob(self, path):
        return FakeBlob(self, path)


class FakeAuth:
    """Accepts tokens of the form "valid:<uid>"."""

    async def verify_token(self, token):
        if token.startswith("valid:"):
            return {"uid": token.split(":", 1)[1], "email": "someone@example.com"}
        return None


@pytest.fixture
def fake_db():
    return FakeDB()


@pytest.fixture
def fake_bucket():
    return FakeBucket()


@pytest.fixture
def make_client(fake_db, fake_bucket):
    """TestClient over the real app with the store, storage and user swapped for fakes."""

    def _make(user=DEFAULT_USER, authenticate=True):
        app.dependency_overrides[get_database] = lambda: fake_db
        app.dependency_overrides[get_storage] = lambda: StorageService(fake_bucket)
        if authenticate:
            app.dependency_overrides[get_current_user] = lambda: user
        else:
            app.dependency_overrides[get_auth_client] = lambda: FakeAuth()
        return TestClient(app, follow_redirects=False)

    yield _make
    app.dependency_overrides.clear()
