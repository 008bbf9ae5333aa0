"""
Unit tests for API REST endpoints.

Runs the real application on a temporary storage directory through the
Flask test client, with a frozen clock for expiry.
"""

import io

import pytest
from werkzeug.http import parse_options_header

from tests.conftest import MAX_UPLOAD_BYTES


def _upload(client, content=b"0123456789", filename="a b.txt", content_type="text/plain"):
    data = {"file": (io.BytesIO(content), filename, content_type)}
    return client.post("/upload", data=data, content_type="multipart/form-data")


@pytest.fixture
def uploaded(client):
    response = _upload(client)
    assert response.status_code == 200
    return response.get_json()


class TestUpload:
    def test_upload_returns_id_and_links(self, client):
        response = _upload(client)

        assert response.status_code == 200
        data = response.get_json()
        assert data["message"] == "Upload successful"
        assert data["id"]
        assert data["fileUrl"] == f"http://localhost/files/{data['id']}"
        assert data["shareUrl"] == f"http://localhost/file/{data['id']}"

    def test_missing_file_is_bad_request(self, client):
        response = client.post("/upload", data={"note": "no file here"}, content_type="multipart/form-data")

        assert response.status_code == 400
        assert response.get_json() == {
            "error": "No file uploaded",
            "code": "invalid_request",
            "title": "Invalid Request",
        }

    def test_wrong_field_name_is_bad_request(self, client):
        data = {"document": (io.BytesIO(b"x"), "x.txt")}
        response = client.post("/upload", data=data, content_type="multipart/form-data")

        assert response.status_code == 400

    def test_zero_byte_upload_accepted_and_downloadable(self, client):
        response = _upload(client, content=b"", filename="empty.txt")
        assert response.status_code == 200

        download = client.get(f"/files/{response.get_json()['id']}/download")
        assert download.status_code == 200
        assert download.data == b""

    def test_upload_exactly_at_cap_accepted(self, client):
        response = _upload(client, content=b"x" * MAX_UPLOAD_BYTES, filename="cap.bin")
        assert response.status_code == 200

    def test_upload_one_byte_over_cap_rejected(self, client, app):
        response = _upload(client, content=b"x" * (MAX_UPLOAD_BYTES + 1), filename="big.bin")

        assert response.status_code == 413
        assert set(response.get_json()) == {"error", "code", "title"}
        assert response.get_json()["code"] == "file_too_large"
        assert app.upload_service.metadata_index.load() == {}

    def test_body_over_transport_limit_rejected(self, client):
        response = _upload(client, content=b"x" * (MAX_UPLOAD_BYTES + 128 * 1024), filename="huge.bin")

        assert response.status_code == 413
        assert response.get_json()["code"] == "file_too_large"

    def test_storage_failure_is_generic_500(self, client, app, monkeypatch):
        from domain.errors import WriteError

        def broken_put(*args, **kwargs):
            raise WriteError("Failed to store blob: [Errno 28] No space left on device: '/secret/path/uploads/.partial/x.part'")

        monkeypatch.setattr(app.upload_service.blob_store, "put", broken_put)
        response = _upload(client)

        assert response.status_code == 500
        assert response.get_json() == {
            "error": "Internal server error",
            "code": "system_error",
            "title": "System Error",
        }
        assert "/secret/path" not in response.get_data(as_text=True)


class TestMetadataEndpoint:
    def test_scenario_a_b_txt(self, client, uploaded):
        response = client.get(f"/api/file/{uploaded['id']}")

        assert response.status_code == 200
        data = response.get_json()
        assert data["id"] == uploaded["id"]
        assert data["sizeBytes"] == 10
        assert data["originalName"] == "a b.txt"
        assert data["mimeType"] == "text/plain"
        assert data["fileUrl"] == uploaded["fileUrl"]
        assert data["shareUrl"] == uploaded["shareUrl"]
        assert data["createdAt"] < data["expiresAt"]

    def test_repeated_reads_are_identical(self, client, uploaded):
        first = client.get(f"/api/file/{uploaded['id']}").get_json()
        second = client.get(f"/api/file/{uploaded['id']}").get_json()

        assert first == second

    def test_urls_follow_request_host(self, client, uploaded):
        response = client.get(f"/api/file/{uploaded['id']}", base_url="https://files.example.org")

        assert response.get_json()["fileUrl"] == f"https://files.example.org/files/{uploaded['id']}"

    def test_unknown_id_is_not_found(self, client):
        response = client.get("/api/file/1740830400000-0123456789ab-missing.txt")

        assert response.status_code == 404
        assert response.get_json() == {
            "error": "File not found",
            "code": "file_not_found",
            "title": "File Not Found",
        }

    def test_not_found_after_retention_never_before(self, client, uploaded, frozen_clock):
        frozen_clock.advance(600)
        assert client.get(f"/api/file/{uploaded['id']}").status_code == 200

        frozen_clock.advance(0.001)
        assert client.get(f"/api/file/{uploaded['id']}").status_code == 404


class TestDownloadEndpoints:
    def test_scenario_download_restores_name_and_bytes(self, client, uploaded):
        response = client.get(f"/files/{uploaded['id']}/download")

        assert response.status_code == 200
        assert response.data == b"0123456789"
        disposition, params = parse_options_header(response.headers["Content-Disposition"])
        assert disposition == "attachment"
        assert params["filename"] == "a b.txt"

    def test_non_ascii_name_round_trips(self, client):
        uploaded = _upload(client, content=b"ok", filename="résumé final.pdf").get_json()

        response = client.get(f"/files/{uploaded['id']}/download")

        _, params = parse_options_header(response.headers["Content-Disposition"])
        assert params["filename"] == "résumé final.pdf"

    def test_inline_file_served_with_declared_type(self, client, uploaded):
        response = client.get(f"/files/{uploaded['id']}")

        assert response.status_code == 200
        assert response.data == b"0123456789"
        assert response.mimetype == "text/plain"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Content-Security-Policy"] == "sandbox"

    def test_pdf_served_without_sandbox(self, client):
        uploaded = _upload(client, content=b"%PDF-1.4", filename="doc.pdf",
                           content_type="application/pdf").get_json()

        response = client.get(f"/files/{uploaded['id']}")

        assert "Content-Security-Policy" not in response.headers

    def test_download_unknown_key_is_not_found(self, client):
        response = client.get("/files/1740830400000-0123456789ab-missing.txt/download")
        assert response.status_code == 404

    def test_traversal_key_is_not_found(self, client):
        response = client.get("/files/..%2FfileMetadata.json")
        assert response.status_code == 404

    def test_download_after_retention_is_not_found(self, client, uploaded, frozen_clock):
        frozen_clock.advance(601)

        assert client.get(f"/files/{uploaded['id']}/download").status_code == 404
        assert client.get(f"/files/{uploaded['id']}").status_code == 404


class TestSharePage:
    def test_share_page_renders_details(self, client, uploaded):
        response = client.get(f"/file/{uploaded['id']}")

        assert response.status_code == 200
        assert response.mimetype == "text/html"
        html = response.get_data(as_text=True)
        assert "a b.txt" in html
        assert "10.00 Bytes" in html
        assert f"/files/{uploaded['id']}/download" in html
        assert "Preview not available for this file type." in html

    def test_image_preview(self, client):
        uploaded = _upload(client, content=b"\x89PNG", filename="pic.png",
                           content_type="image/png").get_json()

        html = client.get(f"/file/{uploaded['id']}").get_data(as_text=True)

        assert '<img class="preview-img"' in html

    def test_pdf_preview(self, client):
        uploaded = _upload(client, content=b"%PDF-1.4", filename="doc.pdf",
                           content_type="application/pdf").get_json()

        html = client.get(f"/file/{uploaded['id']}").get_data(as_text=True)

        assert "<iframe" in html

    def test_filename_is_escaped(self, client):
        uploaded = _upload(client, content=b"x", filename="<img src=x onerror=alert(1)>.txt").get_json()

        html = client.get(f"/file/{uploaded['id']}").get_data(as_text=True)

        assert "<img src=x" not in html
        assert "&lt;img src=x onerror=alert(1)&gt;.txt" in html

    def test_unknown_id_renders_not_found_page(self, client):
        response = client.get("/file/1740830400000-0123456789ab-missing.txt")

        assert response.status_code == 404
        assert response.mimetype == "text/html"
        assert "File not found" in response.get_data(as_text=True)


class TestSweepScenario:
    def test_sweep_removes_record_and_blob(self, client, app, uploaded, frozen_clock):
        blob_path = app.upload_service.blob_store.base_path / uploaded["id"]
        assert blob_path.exists()

        frozen_clock.advance(601)
        report = app.garbage_collector.sweep()

        assert report.expired_ids == [uploaded["id"]]
        assert client.get(f"/api/file/{uploaded['id']}").status_code == 404
        assert not blob_path.exists()

    def test_upload_survives_sweep_between_blob_and_record(self, client, app, frozen_clock, monkeypatch):
        frozen_clock.advance(601)
        index = app.upload_service.metadata_index
        commit = index.upsert

        def sweep_then_commit(record):
            app.garbage_collector.sweep()
            commit(record)

        monkeypatch.setattr(index, "upsert", sweep_then_commit)
        response = _upload(client, content=b"fresh bytes")

        assert response.status_code == 200
        download = client.get(f"/files/{response.get_json()['id']}/download")
        assert download.status_code == 200
        assert download.data == b"fresh bytes"


class TestHealth:
    def test_health_ok(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "ok"
        assert data["storage"] == "writable"
        assert data["index"] == "readable"

    def test_health_degraded_on_corrupt_snapshot(self, client, app):
        app.upload_service.metadata_index.snapshot_path.write_text("{broken")

        response = client.get("/health")

        assert response.status_code == 503
        assert response.get_json()["index"] == "unreadable"

    def test_swagger_spec_available(self, client):
        response = client.get("/swagger.json")

        assert response.status_code == 200
        paths = response.get_json()["paths"]
        assert "/upload" in paths
        assert "/api/file/{object_id}" in paths
