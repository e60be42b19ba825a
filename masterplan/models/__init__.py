from .common import ok_data
from .documents import (
    REQUIRED_FIELDS,
    CheckDocIdOut,
    DocumentCreate,
    DocumentOut,
    FileDeleteRequest,
    UploadOut,
)

__all__ = [
    "ok_data",
    "REQUIRED_FIELDS",
    "CheckDocIdOut",
    "DocumentCreate",
    "DocumentOut",
    "FileDeleteRequest",
    "UploadOut",
]
