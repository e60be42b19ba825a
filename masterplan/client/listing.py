import math
from pathlib import Path, PurePosixPath
from urllib.parse import quote

from .api import API_PREFIX, MasterPlanClient

PAGE_SIZE = 5
SEARCH_FIELDS = ("doc_id", "doc_title", "doc_type", "owner")


def filter_documents(documents: list[dict], term: str) -> list[dict]:
    if not term:
        return list(documents)
    needle = term.lower()
    return [
        doc for doc in documents
        if any(needle in str(doc.get(f) or "").lower() for f in SEARCH_FIELDS)
    ]


def resolve_download_url(doc: dict, base_url: str) -> str | None:
    """Stored download_url when present, else one built from the stored file name."""
    base_url = base_url.rstrip("/")
    url = doc.get("download_url")
    if url:
        if url.startswith(("http://", "https://")):
            return url
        return f"{base_url}/{url.lstrip('/')}"
    if not doc.get("is_uploaded"):
        return None
    file_name = PurePosixPath(doc["storage_path"]).name if doc.get("storage_path") else doc.get("uploaded_file")
    if not file_name:
        return None
    return f"{base_url}{API_PREFIX}/download/{quote(doc['doc_id'], safe='')}/{quote(file_name, safe='')}"


class DocumentListing:
    """Documents fetched once per refresh(), searched and paginated in memory."""

    def __init__(self, client: MasterPlanClient, page_size: int = PAGE_SIZE):
        self.client = client
        self.page_size = page_size
        self.documents: list[dict] = []
        self.search_term = ""
        self.page_index = 0

    def refresh(self) -> list[dict]:
        self.documents = self.client.list_documents()
        self.page_index = min(self.page_index, self.page_count - 1)
        return self.documents

    def search(self, term: str) -> None:
        self.search_term = term or ""
        self.page_index = 0

    @property
    def filtered(self) -> list[dict]:
        return filter_documents(self.documents, self.search_term)

    @property
    def page_count(self) -> int:
        return max(1, math.ceil(len(self.filtered) / self.page_size))

    def page(self, index: int | None = None) -> list[dict]:
        if index is not None:
            self.page_index = max(0, min(index, self.page_count - 1))
        start = self.page_index * self.page_size
        return self.filtered[start:start + self.page_size]

    def next_page(self) -> list[dict]:
        return self.page(self.page_index + 1)

    def previous_page(self) -> list[dict]:
        return self.page(self.page_index - 1)

    def summary(self) -> str:
        return f"Showing {len(self.filtered)} of {len(self.documents)} documents"

    def is_downloadable(self, doc: dict) -> bool:
        return bool(doc.get("download_url") or doc.get("is_uploaded"))

    def download(self, doc: dict, dest_dir: str | Path = ".") -> Path:
        url = resolve_download_url(doc, self.client.base_url)
        if url is None:
            raise ValueError(f"Document {doc.get('doc_id')} has no attached file")
        name = doc.get("uploaded_file") or PurePosixPath(url).name or f"document-{doc['doc_id']}"
        return self.client.download_file(url, Path(dest_dir) / PurePosixPath(name).name)
