import io
import logging
import re
import time
from pathlib import Path, PurePosixPath

from ..core.errors import InternalError, NotFoundError, UploadError, ValidationError
from ..models.documents import UploadOut
from ..storage import LocalStorage

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
ALLOWED_CONTENT = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "text/plain",
)
UPLOAD_PREFIX = "master-plans"
DOWNLOAD_ROUTE = "/api/masterplandocs/download"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_MAX_NAME_ATTEMPTS = 100
# keeps <doc_id>_<base>_<ms>.<ext> under the 255-byte filename limit
MAX_BASE_LENGTH = 100
MAX_DOC_ID_LENGTH = 50


def _is_safe_segment(value: str) -> bool:
    return bool(value) and value not in (".", "..") and not any(c in value for c in "/\\\x00")


def sanitize_basename(filename: str) -> tuple[str, str]:
    """Split an uploaded filename into a filesystem-safe (base, ext) pair."""
    name = PurePosixPath(filename.replace("\\", "/")).name
    suffix = PurePosixPath(name).suffix
    base = name[: -len(suffix)] if suffix else name
    base = _UNSAFE_CHARS.sub("_", base)[:MAX_BASE_LENGTH].strip("._") or "file"
    ext = _UNSAFE_CHARS.sub("", suffix)[:16]
    if ext == ".":
        ext = ""
    return base, ext


def build_file_name(doc_id: str, filename: str, timestamp_ms: int) -> str:
    base, ext = sanitize_basename(filename)
    return f"{doc_id}_{base}_{timestamp_ms}{ext}"


def upload_file(
    storage: LocalStorage,
    file_content: bytes | None,
    filename: str | None,
    content_type: str | None,
    doc_id: str | None,
    doc_type: str | None,
    revision_no: str | None,
    max_size: int = MAX_FILE_SIZE,
) -> dict:
    """Validate and store an uploaded file. Does not touch the document table."""
    if file_content is None or not filename:
        raise ValidationError("No file uploaded")
    doc_id = (doc_id or "").strip()
    if not doc_id or not (doc_type or "").strip() or not (revision_no or "").strip():
        raise ValidationError("All metadata (doc_id, doc_type, revision_no) is required for file upload")
    if not _is_safe_segment(doc_id) or len(doc_id) > MAX_DOC_ID_LENGTH:
        raise ValidationError("Document ID cannot be used as a folder name")

    size = len(file_content)
    if size > max_size:
        logger.warning(f"upload rejected for {doc_id}: {size} bytes exceeds {max_size}")
        raise UploadError(f"File size must be less than {max_size // (1024 * 1024)}MB")
    content_type = (content_type or "").split(";")[0].strip().lower() or None
    if content_type not in ALLOWED_CONTENT:
        logger.warning(f"upload rejected for {doc_id}: content type {content_type!r}")
        raise UploadError("File type not supported")

    timestamp = time.time_ns() // 1_000_000
    for _ in range(_MAX_NAME_ATTEMPTS):
        file_name = build_file_name(doc_id, filename, timestamp)
        key = f"{UPLOAD_PREFIX}/{doc_id}/{file_name}"
        try:
            storage.put(key, io.BytesIO(file_content))
            break
        except FileExistsError:
            timestamp += 1
        except OSError as e:
            logger.error(f"✗ writing {key} failed: {e}", exc_info=True)
            raise InternalError("File upload failed") from e
    else:
        raise InternalError("File upload failed: could not allocate a unique file name")

    logger.info(f"✓ stored {filename!r} for {doc_id} as {key} ({size} bytes)")
    result = UploadOut(
        message="File uploaded successfully and stored permanently",
        file_name=file_name,
        original_name=filename,
        file_size=size,
        file_type=content_type,
        storage_path=storage.public_path(key),
        download_url=f"{DOWNLOAD_ROUTE}/{doc_id}/{file_name}",
    )
    return result.model_dump(by_alias=True)


def delete_file(storage: LocalStorage, file_path: str | None) -> None:
    if not file_path:
        raise ValidationError("File path is required")
    key = storage.key_from_public_path(file_path)
    try:
        deleted = storage.delete(key)
    except OSError as e:
        logger.error(f"✗ deleting {key} failed: {e}", exc_info=True)
        raise InternalError("File deletion failed") from e
    if not deleted:
        raise NotFoundError("File not found")
    logger.info(f"✓ deleted {key}")


def resolve_download(storage: LocalStorage, doc_id: str, file_name: str) -> Path:
    if not (_is_safe_segment(doc_id) and _is_safe_segment(file_name)):
        raise NotFoundError("File not found")
    path = storage.get_path(f"{UPLOAD_PREFIX}/{doc_id}/{file_name}")
    if path is None:
        raise NotFoundError("File not found")
    return path
