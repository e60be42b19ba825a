import psycopg
import pytest
from psycopg import errors as pg_errors

from masterplan.core.errors import ConflictError, InternalError, NotFoundError, UploadError, ValidationError
from masterplan.models import DocumentCreate
from masterplan.services import upload_service
from masterplan.services.document_service import get_document, simplify_file_type
from masterplan.services.document_store import DocumentStore


class TestSimplifyFileType:
    def test_known_types(self):
        assert simplify_file_type("application/pdf") == "pdf"
        assert simplify_file_type("text/plain") == "txt"
        assert simplify_file_type(
            "application/vnd.openxmlformats-officedocument.presentationml.presentation"
        ) == "pptx"

    def test_unknown_types_are_truncated(self):
        assert simplify_file_type("application/vnd.ms-excel") == "application/vnd.ms-e"

    def test_empty(self):
        assert simplify_file_type(None) is None
        assert simplify_file_type("") is None


class TestDocumentCreate:
    def test_missing_fields_in_declared_order(self):
        body = DocumentCreate(doc_id="A", owner="", year=None)
        assert body.missing_fields() == ["doc_type", "doc_title", "revision_no", "year", "owner", "status"]

    def test_defaults(self):
        body = DocumentCreate()
        assert body.doc_status == "Open"
        assert body.is_uploaded is False

    def test_unknown_fields_are_ignored(self):
        body = DocumentCreate(doc_id="A", id=99, created_at="yesterday")
        assert not hasattr(body, "id")

    def test_strings_are_trimmed(self):
        body = DocumentCreate(doc_id=" DOC-1 ", owner="\tOps\n", quarter="  ")
        assert body.doc_id == "DOC-1"
        assert body.owner == "Ops"
        assert body.quarter is None


class TestFileNames:
    @pytest.mark.parametrize("filename, expected", [
        ("report.pdf", ("report", ".pdf")),
        ("my report (v2).docx", ("my_report_v2", ".docx")),
        ("C:\\Users\\me\\plan.xlsx", ("plan", ".xlsx")),
        ("../../etc/passwd", ("passwd", "")),
        (".hidden", ("hidden", "")),
        ("???.txt", ("file", ".txt")),
    ])
    def test_sanitize_basename(self, filename, expected):
        assert upload_service.sanitize_basename(filename) == expected

    def test_build_file_name(self):
        assert upload_service.build_file_name("DOC-1", "site plan.pdf", 123) == "DOC-1_site_plan_123.pdf"

    def test_long_names_are_truncated(self):
        base, ext = upload_service.sanitize_basename("a" * 240 + ".pdf")
        assert base == "a" * upload_service.MAX_BASE_LENGTH
        assert ext == ".pdf"
        name = upload_service.build_file_name("D" * 50, "a" * 240 + ".pdf", 1_700_000_000_000)
        assert len(name.encode()) < 255


class TestUploadValidation:
    def test_size_checked_before_type(self, storage):
        with pytest.raises(UploadError, match="less than 1MB"):
            upload_service.upload_file(
                storage, b"0" * (1024 * 1024 + 1), "a.png", "image/png", "A", "T", "1", max_size=1024 * 1024
            )

    def test_empty_doc_id(self, storage):
        with pytest.raises(ValidationError):
            upload_service.upload_file(storage, b"x", "a.pdf", "application/pdf", "  ", "T", "1")

    def test_resolve_download_rejects_traversal(self, storage):
        with pytest.raises(NotFoundError):
            upload_service.resolve_download(storage, "..", "secret.txt")


class TestGetDocument:
    def test_not_found(self, store):
        with pytest.raises(NotFoundError):
            get_document(store, 1)

    @pytest.mark.parametrize("id", ["abc", "", "1e3", "²", "2147483648"])
    def test_unparseable_id_is_not_found(self, store, id):
        with pytest.raises(NotFoundError, match="Master Plan Document not found"):
            get_document(store, id)


class _FailingDatabase:
    def __init__(self, exc):
        self.exc = exc

    def fetch_one(self, sql, params=None, **kw):
        raise self.exc


class TestDocumentStoreErrors:
    def test_value_too_long_for_column_is_a_validation_error(self):
        store = DocumentStore(_FailingDatabase(pg_errors.StringDataRightTruncation("value too long")))
        with pytest.raises(ValidationError, match="check field types"):
            store.insert({"doc_id": "DOC-1"})

    def test_unique_violation_is_a_conflict(self):
        store = DocumentStore(_FailingDatabase(pg_errors.UniqueViolation("duplicate key")))
        with pytest.raises(ConflictError):
            store.insert({"doc_id": "DOC-1"})

    def test_other_database_errors_are_internal(self):
        store = DocumentStore(_FailingDatabase(psycopg.OperationalError("connection lost")))
        with pytest.raises(InternalError):
            store.insert({"doc_id": "DOC-1"})
