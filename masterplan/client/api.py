import logging
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:3001"
API_PREFIX = "/api/masterplandocs"


class ClientError(Exception):
    def __init__(self, message: str, status_code: int | None = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class ServerUnreachable(ClientError):
    pass


class MasterPlanClient:
    """HTTP client for the master plan documents API.

    ``http`` may be any ``httpx.Client`` with a base_url set (FastAPI's
    TestClient included); otherwise one is created for ``base_url``.
    """

    def __init__(self, base_url: str = DEFAULT_API_URL, http: httpx.Client | None = None, timeout: float = 30.0):
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.base_url = str(self.http.base_url).rstrip("/")
        self._owns_http = http is None

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            resp = self.http.request(method, url, **kwargs)
        except httpx.TransportError as e:
            raise ServerUnreachable(f"Failed to fetch {url}: {e}") from e
        if resp.is_success:
            return resp
        payload = None
        message = f"HTTP error! status: {resp.status_code}"
        if "application/json" in resp.headers.get("content-type", ""):
            payload = resp.json()
            if isinstance(payload, dict):
                message = payload.get("message") or payload.get("error") or message
        raise ClientError(message, resp.status_code, payload)

    def check_doc_id_exists(self, doc_id: str) -> bool:
        resp = self._request("GET", f"{API_PREFIX}/check-doc-id/{quote(doc_id, safe='')}")
        return bool(resp.json().get("exists"))

    def create_document(self, data: dict) -> dict:
        resp = self._request("POST", API_PREFIX, json=data)
        return resp.json()["data"]

    def list_documents(self) -> list[dict]:
        data = self._request("GET", API_PREFIX).json()
        if isinstance(data, list):
            return data
        for key in ("data", "documents"):
            if isinstance(data.get(key), list):
                return data[key]
        logger.warning(f"Unexpected API response format: {data!r}")
        return []

    def get_document(self, id: int) -> dict:
        return self._request("GET", f"{API_PREFIX}/{id}").json()["data"]

    def upload_file(
        self,
        content: bytes,
        filename: str,
        content_type: str,
        doc_id: str,
        doc_type: str,
        revision_no: str,
    ) -> dict:
        resp = self._request(
            "POST",
            f"{API_PREFIX}/upload",
            files={"document": (filename, content, content_type)},
            data={"doc_id": doc_id, "doc_type": doc_type, "revision_no": revision_no},
        )
        result = resp.json()
        if not result.get("success"):
            raise ClientError(result.get("message") or "Upload failed", resp.status_code, result)
        return result

    def delete_file(self, file_path: str, doc_id: str | None = None) -> dict:
        resp = self._request("DELETE", f"{API_PREFIX}/upload", json={"filePath": file_path, "doc_id": doc_id})
        return resp.json()

    def download_file(self, url: str, dest: str | Path) -> Path:
        """Stream url (absolute, or relative to the API base) into dest."""
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        try:
            with self.http.stream("GET", url) as resp:
                if not resp.is_success:
                    resp.read()
                    raise ClientError(f"HTTP error! status: {resp.status_code}", resp.status_code)
                with open(dest, "wb") as f:
                    for chunk in resp.iter_bytes():
                        f.write(chunk)
        except httpx.TransportError as e:
            raise ServerUnreachable(f"Failed to fetch {url}: {e}") from e
        return dest
