import logging
import mimetypes
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Literal

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .api import ClientError, MasterPlanClient, ServerUnreachable

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024
ALLOWED_FILE_TYPES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "text/plain",
)
REQUIRED_FORM_FIELDS = ("doc_id", "doc_type", "doc_title", "revision_no", "owner", "status")

FIELD_LABELS = {
    "doc_id": "Document ID",
    "doc_type": "Document type",
    "doc_title": "Document title",
    "revision_no": "Revision number",
    "year": "Year",
    "quarter": "Quarter",
    "owner": "Owner",
    "status": "Status",
    "doc_status": "Document status",
}
PATTERN_MESSAGES = {
    "doc_id": "Document ID can only contain letters, numbers, hyphens, and underscores",
    "revision_no": "Revision number can only contain numbers and dots",
}
DOC_ID_EXISTS = "Document ID already exists"


class DocumentForm(BaseModel):
    doc_id: str = Field(min_length=1, max_length=50, pattern=r"^[a-zA-Z0-9_-]+$")
    doc_type: str = Field(min_length=1, max_length=100)
    doc_title: str = Field(min_length=1, max_length=255)
    revision_no: str = Field(min_length=1, max_length=20, pattern=r"^[0-9.]+$")
    year: int = Field(ge=2000, le=2100)
    quarter: str | None = Field(default=None, max_length=10)
    owner: str = Field(min_length=1, max_length=150)
    status: str = Field(min_length=1, max_length=50)
    doc_status: str | None = Field(default="Open", max_length=50)


def _message(name: str, err: dict) -> str:
    label = FIELD_LABELS.get(name, name)
    kind = err["type"]
    ctx = err.get("ctx") or {}
    if kind in ("string_too_short", "missing"):
        return f"{label} is required"
    if kind == "string_too_long":
        return f"{label} must be less than {ctx.get('max_length')} characters"
    if kind == "string_pattern_mismatch":
        return PATTERN_MESSAGES.get(name, f"{label} has an invalid format")
    if kind == "greater_than_equal":
        return f"{label} must be after {ctx.get('ge')}"
    if kind == "less_than_equal":
        return f"{label} must be before {ctx.get('le')}"
    return err.get("msg", f"{label} is invalid")


def validate_form(values: dict) -> dict[str, str]:
    """Field name -> first error message. Empty when the values are valid."""
    try:
        DocumentForm.model_validate(values)
    except PydanticValidationError as e:
        errors: dict[str, str] = {}
        for err in e.errors():
            name = str(err["loc"][0]) if err["loc"] else "__root__"
            errors.setdefault(name, _message(name, err))
        return errors
    return {}


@dataclass
class SelectedFile:
    path: Path
    name: str
    size: int
    content_type: str

    def read(self) -> bytes:
        return self.path.read_bytes()


def select_file(path: str | Path, max_size: int = MAX_FILE_SIZE) -> SelectedFile:
    """Check size and type of a local file. Raises ValueError with a user-facing message."""
    path = Path(path)
    size = path.stat().st_size
    content_type = mimetypes.guess_type(path.name)[0] or ""
    if size > max_size:
        raise ValueError(
            f"File size must be less than {max_size // (1024 * 1024)}MB. "
            f"Current size: {size / 1024 / 1024:.2f}MB"
        )
    # unknown types pass here and are left to the server to judge
    if content_type and content_type not in ALLOWED_FILE_TYPES:
        raise ValueError("File type not supported. Please upload PDF, Word, Excel, PowerPoint, or Text files.")
    return SelectedFile(path=path, name=path.name, size=size, content_type=content_type)


@dataclass
class SubmitResult:
    type: Literal["success", "error"]
    message: str


def _default_values() -> dict:
    return {
        "doc_id": "",
        "doc_type": "",
        "doc_title": "",
        "revision_no": "",
        "year": datetime.now().year,
        "quarter": None,
        "owner": "",
        "status": "",
        "doc_status": "Open",
    }


@dataclass
class AddDocumentForm:
    """State of the add-document form: values, field errors, selected file, last result."""

    client: MasterPlanClient
    on_success: Callable[[dict], None] | None = None
    max_file_size: int = MAX_FILE_SIZE
    values: dict = field(default_factory=_default_values)
    errors: dict[str, str] = field(default_factory=dict)
    selected_file: SelectedFile | None = None
    result: SubmitResult | None = None
    submitting: bool = False

    def set(self, name: str, value) -> None:
        if name not in self.values:
            raise KeyError(name)
        self.values[name] = value
        field_errors = validate_form(self.values)
        if name in field_errors:
            self.errors[name] = field_errors[name]
        else:
            self.errors.pop(name, None)

    def update(self, **values) -> None:
        for name, value in values.items():
            self.set(name, value)

    def blur_doc_id(self) -> bool | None:
        """Ask the API whether doc_id is taken. Returns None when the check could not run."""
        doc_id = self.values.get("doc_id")
        if not doc_id:
            return None
        try:
            exists = self.client.check_doc_id_exists(doc_id)
        except ClientError as e:
            logger.error(f"Error checking document ID: {e.message}")
            return None
        if exists:
            self.errors["doc_id"] = DOC_ID_EXISTS
        elif self.errors.get("doc_id") == DOC_ID_EXISTS:
            self.errors.pop("doc_id")
        return exists

    def choose_file(self, path: str | Path) -> bool:
        try:
            self.selected_file = select_file(path, self.max_file_size)
        except ValueError as e:
            self.selected_file = None
            self.result = SubmitResult("error", str(e))
            return False
        self.result = None
        return True

    @property
    def can_submit(self) -> bool:
        required_filled = all(str(self.values.get(n) or "").strip() for n in REQUIRED_FORM_FIELDS)
        year = self.values.get("year")
        year_ok = isinstance(year, int) and 2000 <= year <= 2100
        return (
            required_filled
            and year_ok
            and not self.errors
            and self.selected_file is not None
            and not self.submitting
        )

    def submit(self) -> SubmitResult:
        """Upload the selected file, then create the record that points at it."""
        if self.selected_file is None:
            self.result = SubmitResult("error", "Please select a file before saving the document.")
            return self.result
        field_errors = validate_form(self.values)
        if field_errors or self.errors:
            self.errors.update(field_errors)
            self.result = SubmitResult("error", "Please correct the highlighted fields before saving.")
            return self.result

        data = DocumentForm.model_validate(self.values)
        f = self.selected_file
        self.submitting = True
        self.result = None
        try:
            uploaded = self.client.upload_file(
                f.read(),
                f.name,
                f.content_type or "application/octet-stream",
                data.doc_id,
                data.doc_type,
                data.revision_no,
            )
            payload = data.model_dump()
            payload.update(
                quarter=data.quarter or None,
                doc_status=data.doc_status or "Open",
                is_uploaded=True,
                uploaded_file=f.name,
                file_type=f.content_type,
                file_size=f.size,
                storage_path=uploaded["storagePath"],
                download_url=uploaded["downloadUrl"],
                uploaded_at=datetime.now(timezone.utc).isoformat(),
            )
            created = self.client.create_document(payload)
        except ClientError as e:
            logger.error(f"Error saving master plan document: {e.message}")
            self.result = SubmitResult("error", self._friendly(e))
            return self.result
        finally:
            self.submitting = False

        if self.on_success:
            self.on_success(created)
        self.clear()
        self.result = SubmitResult(
            "success",
            "Master Plan Document saved successfully! File has been uploaded and stored.",
        )
        return self.result

    def _friendly(self, e: ClientError) -> str:
        if isinstance(e, ServerUnreachable):
            return f"Cannot connect to server. Please make sure backend is running on {self.client.base_url}"
        if e.status_code == 404 and e.payload is None:
            return "Upload endpoint not available. Please check backend server."
        if e.status_code == 413 or "File size" in e.message or "File too large" in e.message:
            return f"File is too large. Maximum file size is {self.max_file_size // (1024 * 1024)}MB."
        return e.message or "Failed to save master plan document. Please try again."

    def clear(self) -> None:
        self.values = _default_values()
        self.errors = {}
        self.selected_file = None
        self.result = None
