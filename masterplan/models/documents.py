from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

REQUIRED_FIELDS = ("doc_id", "doc_type", "doc_title", "revision_no", "year", "owner", "status")


class DocumentCreate(BaseModel):
    """Body of POST /api/masterplandocs.

    Required fields are declared optional here so the service can report every
    missing one in a single message instead of failing on the first.
    """

    model_config = ConfigDict(extra="ignore")

    # limits match the masterplandocs column sizes
    doc_id: str | None = Field(default=None, max_length=50)
    doc_type: str | None = Field(default=None, max_length=100)
    doc_title: str | None = Field(default=None, max_length=255)
    revision_no: str | None = Field(default=None, max_length=20)
    year: int | None = None
    quarter: str | None = Field(default=None, max_length=10)
    owner: str | None = Field(default=None, max_length=150)
    status: str | None = Field(default=None, max_length=50)
    doc_status: str | None = Field(default="Open", max_length=50)
    is_uploaded: bool = False
    uploaded_file: str | None = Field(default=None, max_length=255)
    file_type: str | None = None
    file_size: int | None = None
    storage_path: str | None = Field(default=None, max_length=500)
    download_url: str | None = Field(default=None, max_length=500)
    uploaded_at: datetime | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _strip(cls, v):
        if isinstance(v, str):
            return v.strip() or None
        return v

    def missing_fields(self) -> list[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name)]


class DocumentOut(BaseModel):
    id: int
    doc_id: str
    doc_type: str
    doc_title: str
    revision_no: str
    year: int
    quarter: str | None = None
    owner: str
    status: str
    doc_status: str | None = "Open"
    is_uploaded: bool = False
    uploaded_file: str | None = None
    file_type: str | None = None
    file_size: int | None = None
    storage_path: str | None = None
    download_url: str | None = None
    uploaded_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class CheckDocIdOut(BaseModel):
    exists: bool


class UploadOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    file_name: str = Field(serialization_alias="fileName")
    original_name: str = Field(serialization_alias="originalName")
    file_size: int = Field(serialization_alias="fileSize")
    file_type: str | None = Field(default=None, serialization_alias="fileType")
    storage_path: str = Field(serialization_alias="storagePath")
    download_url: str = Field(serialization_alias="downloadUrl")


class FileDeleteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_path: str | None = Field(default=None, alias="filePath")
    doc_id: str | None = None
