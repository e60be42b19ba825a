"""
API tests for file upload, download and deletion.

Run with: pytest tests/test_upload_api.py -v
"""
import re

from masterplan.services import upload_service

URL = "/api/masterplandocs"
META = {"doc_id": "DOC-1", "doc_type": "Policy", "revision_no": "1.0"}


def _upload(http, content, filename="report.pdf", content_type="application/pdf", data=None):
    return http.post(
        f"{URL}/upload",
        files={"document": (filename, content, content_type)},
        data=META if data is None else data,
    )


class TestUpload:
    def test_pdf_upload_is_stored_under_doc_folder(self, http, storage, pdf_bytes):
        resp = _upload(http, pdf_bytes)
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["storagePath"].startswith("/uploads/master-plans/DOC-1/")
        assert re.fullmatch(r"DOC-1_report_\d+\.pdf", body["fileName"])
        assert body["originalName"] == "report.pdf"
        assert body["fileSize"] == 1024
        assert body["fileType"] == "application/pdf"
        assert body["downloadUrl"] == f"/api/masterplandocs/download/DOC-1/{body['fileName']}"

        on_disk = storage.root / "master-plans" / "DOC-1" / body["fileName"]
        assert on_disk.read_bytes() == pdf_bytes

    def test_upload_does_not_create_a_record(self, http, store, pdf_bytes):
        _upload(http, pdf_bytes)
        assert store.rows == {}

    def test_oversize_file_is_rejected_before_writing(self, http, storage):
        big = b"0" * (10 * 1024 * 1024 + 1)
        resp = _upload(http, big)
        assert resp.status_code == 400
        assert resp.json()["message"] == "File size must be less than 10MB"
        assert list(storage.root.iterdir()) == []

    def test_exactly_10mb_is_accepted(self, http):
        resp = _upload(http, b"0" * (10 * 1024 * 1024))
        assert resp.status_code == 200

    def test_disallowed_type_is_rejected(self, http, storage):
        resp = _upload(http, b"\x89PNG....", filename="photo.png", content_type="image/png")
        assert resp.status_code == 400
        assert resp.json()["message"] == "File type not supported"
        assert list(storage.root.iterdir()) == []

    def test_office_and_text_types_are_accepted(self, http):
        for filename, content_type in [
            ("a.doc", "application/msword"),
            ("a.xlsx", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"),
            ("a.ppt", "application/vnd.ms-powerpoint"),
            ("a.txt", "text/plain; charset=utf-8"),
        ]:
            resp = _upload(http, b"data", filename=filename, content_type=content_type)
            assert resp.status_code == 200, filename

    def test_missing_file(self, http):
        resp = http.post(f"{URL}/upload", data=META)
        assert resp.status_code == 400
        assert resp.json()["message"] == "No file uploaded"

    def test_missing_metadata(self, http, pdf_bytes):
        resp = _upload(http, pdf_bytes, data={"doc_id": "DOC-1"})
        assert resp.status_code == 400
        assert "doc_type" in resp.json()["message"]

    def test_doc_id_must_be_a_single_folder_name(self, http, storage, pdf_bytes):
        resp = _upload(http, pdf_bytes, data=dict(META, doc_id="../escape"))
        assert resp.status_code == 400
        assert list(storage.root.iterdir()) == []

    def test_unsafe_characters_in_name_are_replaced(self, http, pdf_bytes):
        body = _upload(http, pdf_bytes, filename="my report (v2).pdf").json()
        assert re.fullmatch(r"DOC-1_my_report_v2_\d+\.pdf", body["fileName"])

    def test_very_long_filename_is_shortened(self, http, storage, pdf_bytes):
        resp = _upload(http, pdf_bytes, filename="a" * 240 + ".pdf")
        assert resp.status_code == 200
        body = resp.json()
        assert re.fullmatch(r"DOC-1_a{100}_\d+\.pdf", body["fileName"])
        assert body["originalName"] == "a" * 240 + ".pdf"
        assert len(body["storagePath"]) <= 500
        assert (storage.root / "master-plans" / "DOC-1" / body["fileName"]).read_bytes() == pdf_bytes

    def test_doc_id_longer_than_its_column_is_rejected(self, http, storage, pdf_bytes):
        resp = _upload(http, pdf_bytes, data=dict(META, doc_id="D" * 51))
        assert resp.status_code == 400
        assert list(storage.root.iterdir()) == []

    def test_same_name_same_millisecond_does_not_collide(self, http, storage, pdf_bytes, monkeypatch):
        monkeypatch.setattr(upload_service.time, "time_ns", lambda: 1_700_000_000_000_000_000)
        first = _upload(http, pdf_bytes).json()
        second = _upload(http, b"second").json()
        assert first["fileName"] == "DOC-1_report_1700000000000.pdf"
        assert second["fileName"] == "DOC-1_report_1700000000001.pdf"
        folder = storage.root / "master-plans" / "DOC-1"
        assert (folder / first["fileName"]).read_bytes() == pdf_bytes
        assert (folder / second["fileName"]).read_bytes() == b"second"


class TestDownload:
    def test_download_streams_file(self, http, pdf_bytes):
        body = _upload(http, pdf_bytes).json()
        resp = http.get(body["downloadUrl"])
        assert resp.status_code == 200
        assert resp.content == pdf_bytes
        assert "attachment" in resp.headers["content-disposition"]
        assert body["fileName"] in resp.headers["content-disposition"]

    def test_download_missing_file(self, http):
        resp = http.get(f"{URL}/download/DOC-1/nothing.pdf")
        assert resp.status_code == 404
        assert resp.json()["message"] == "File not found"


class TestDeleteFile:
    def test_delete_then_not_found(self, http, storage, pdf_bytes):
        body = _upload(http, pdf_bytes).json()
        payload = {"filePath": body["storagePath"], "doc_id": "DOC-1"}

        resp = http.request("DELETE", f"{URL}/upload", json=payload)
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "File deleted successfully"}
        assert not (storage.root / "master-plans" / "DOC-1" / body["fileName"]).exists()

        again = http.request("DELETE", f"{URL}/upload", json=payload)
        assert again.status_code == 404

    def test_delete_requires_path(self, http):
        resp = http.request("DELETE", f"{URL}/upload", json={"doc_id": "DOC-1"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "File path is required"

    def test_delete_outside_uploads_is_not_found(self, http, tmp_path):
        outside = tmp_path / "keep.txt"
        outside.write_text("keep")
        resp = http.request("DELETE", f"{URL}/upload", json={"filePath": "/uploads/../keep.txt"})
        assert resp.status_code == 404
        assert outside.exists()
