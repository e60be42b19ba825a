import logging
from datetime import datetime, timezone

from ..core.errors import ConflictError, NotFoundError, ValidationError
from ..models.documents import DocumentCreate, DocumentOut
from .document_store import DocumentStore

logger = logging.getLogger(__name__)

# long MIME types do not fit the file_type column comfortably
FILE_TYPE_SHORT = {
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": "pptx",
    "application/msword": "doc",
    "application/pdf": "pdf",
    "text/plain": "txt",
}


def simplify_file_type(file_type: str | None) -> str | None:
    if not file_type:
        return None
    return FILE_TYPE_SHORT.get(file_type, file_type[:20])


def _serialize(row: dict) -> dict:
    return DocumentOut.model_validate(row).model_dump(mode="json")


def check_doc_id_exists(store: DocumentStore, doc_id: str) -> bool:
    return store.doc_id_exists(doc_id)


def create_document(store: DocumentStore, body: DocumentCreate) -> dict:
    """Validate and persist a new document. Returns the stored record."""
    missing = body.missing_fields()
    if missing:
        logger.warning(f"create rejected, missing fields: {missing}")
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            errors=[{"field": name, "message": "Field is required"} for name in missing],
        )
    if body.is_uploaded and not (body.storage_path and body.uploaded_file):
        raise ValidationError(
            "storage_path and uploaded_file are required when is_uploaded is true",
            errors=[
                {"field": name, "message": "Field is required when is_uploaded is true"}
                for name in ("storage_path", "uploaded_file")
                if not getattr(body, name)
            ],
        )

    if store.doc_id_exists(body.doc_id):
        logger.warning(f"create rejected, doc_id {body.doc_id!r} already exists")
        raise ConflictError("Document ID already exists")

    now = datetime.now(timezone.utc)
    row = {
        "doc_id": body.doc_id,
        "doc_type": body.doc_type,
        "doc_title": body.doc_title,
        "revision_no": body.revision_no,
        "year": body.year,
        "quarter": body.quarter,
        "owner": body.owner,
        "status": body.status,
        "doc_status": body.doc_status or "Open",
        "is_uploaded": bool(body.is_uploaded),
        "uploaded_file": body.uploaded_file,
        "file_type": simplify_file_type(body.file_type),
        "file_size": body.file_size,
        "storage_path": body.storage_path,
        "download_url": body.download_url,
        "uploaded_at": body.uploaded_at,
        "created_at": now,
        "updated_at": now,
    }
    created = store.insert(row)
    logger.info(f"✓ document created: id={created['id']} doc_id={created['doc_id']}")
    return _serialize(created)


def list_documents(store: DocumentStore) -> list[dict]:
    return [_serialize(r) for r in store.list_all()]


# surrogate ids are SERIAL (int4)
MAX_ID = 2**31 - 1


def get_document(store: DocumentStore, id: int | str) -> dict:
    if isinstance(id, str):
        id = int(id) if id.isascii() and id.isdigit() else 0
    row = store.get(id) if 0 < id <= MAX_ID else None
    if not row:
        raise NotFoundError("Master Plan Document not found")
    return _serialize(row)
