"""
Tests para carpetas, archivos y el cliente de Cloudinary
"""

import hashlib
import io

import pytest
from fastapi import HTTPException, UploadFile
from starlette.datastructures import Headers

from app.core.config import settings
from app.modules.files import service as files_service
from app.modules.files import storage
from app.modules.files.models import Folder, File
from app.modules.files.storage import (
    CloudinaryService, CloudinaryError, generate_signature, resource_type_for, read_upload
)


# ===== FIXTURES =====

class FakeResponse:
    def __init__(self, status_code: int, payload: dict):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload


@pytest.fixture
def cloudinary():
    return CloudinaryService("demo", "key-123", "secret-xyz", base_folder="local-fishing")


@pytest.fixture
def fake_upload(monkeypatch):
    """Reemplaza la subida a Cloudinary y registra las carpetas usadas"""
    folders = []

    def _upload(upload, subfolder, allowed_types=None):
        folders.append(subfolder)
        return {
            "public_id": f"local-fishing/{subfolder}/doc",
            "url": "http://res.cloudinary.com/demo/doc.pdf",
            "secure_url": "https://res.cloudinary.com/demo/doc.pdf",
            "resource_type": "raw",
            "bytes": 2048,
        }

    monkeypatch.setattr(files_service, "upload_to_cloudinary", _upload)
    return folders


def _upload_file(content: bytes, content_type: str, filename: str = "doc.pdf") -> UploadFile:
    return UploadFile(file=io.BytesIO(content), filename=filename, headers=Headers({"content-type": content_type}))


# ===== STORAGE =====

class TestCloudinaryStorage:
    """Firma, subida y validación de archivos"""

    def test_signature_sorts_and_skips_empty(self):
        params = {"timestamp": 1700000000, "folder": "local-fishing/files", "public_id": None, "tags": ""}
        expected = hashlib.sha1(b"folder=local-fishing/files&timestamp=1700000000secret").hexdigest()
        assert generate_signature(params, "secret") == expected

    def test_resource_type(self):
        assert resource_type_for("image/png") == "image"
        assert resource_type_for("video/mp4") == "video"
        assert resource_type_for("application/pdf") == "raw"
        assert resource_type_for(None) == "raw"

    def test_folder_path(self, cloudinary):
        assert cloudinary.folder_path("deposits") == "local-fishing/deposits"
        assert cloudinary.folder_path() == "local-fishing"

    def test_upload_posts_signed_request(self, cloudinary, monkeypatch):
        captured = {}

        def fake_post(url, data=None, files=None, timeout=None):
            captured.update(url=url, data=data, files=files)
            return FakeResponse(200, {"public_id": "local-fishing/deposits/x", "secure_url": "https://x"})

        monkeypatch.setattr(storage.requests, "post", fake_post)
        result = cloudinary.upload(b"bytes", "slip.png", subfolder="deposits")

        assert result["secure_url"] == "https://x"
        assert captured["url"] == "https://api.cloudinary.com/v1_1/demo/image/upload"
        assert captured["data"]["folder"] == "local-fishing/deposits"
        assert captured["data"]["api_key"] == "key-123"
        signed = {k: v for k, v in captured["data"].items() if k not in ("signature", "api_key")}
        assert captured["data"]["signature"] == generate_signature(signed, "secret-xyz")

    def test_upload_error_payload(self, cloudinary, monkeypatch):
        monkeypatch.setattr(
            storage.requests, "post",
            lambda *a, **kw: FakeResponse(400, {"error": {"message": "Invalid Signature"}}),
        )
        with pytest.raises(CloudinaryError, match="Invalid Signature"):
            cloudinary.upload(b"bytes", "slip.png")

    def test_read_upload_rejects_type(self):
        with pytest.raises(HTTPException) as exc:
            read_upload(_upload_file(b"x", "application/x-msdownload", "virus.exe"))
        assert exc.value.status_code == 415

    def test_read_upload_rejects_size(self, monkeypatch):
        monkeypatch.setattr(settings, "MAX_FILE_SIZE", 4)
        with pytest.raises(HTTPException) as exc:
            read_upload(_upload_file(b"too large", "text/plain", "a.txt"))
        assert exc.value.status_code == 413

    def test_read_upload_reads_at_most_limit(self, monkeypatch):
        monkeypatch.setattr(settings, "MAX_FILE_SIZE", 4)
        upload = _upload_file(b"x" * 1000, "text/plain", "a.txt")
        with pytest.raises(HTTPException):
            read_upload(upload)
        # Solo se consumen MAX_FILE_SIZE + 1 bytes del archivo
        assert upload.file.tell() == 5

    def test_read_upload_accepts_exact_limit(self, monkeypatch):
        monkeypatch.setattr(settings, "MAX_FILE_SIZE", 4)
        assert read_upload(_upload_file(b"abcd", "text/plain", "a.txt")) == b"abcd"

    def test_read_upload_rejects_empty(self):
        with pytest.raises(HTTPException) as exc:
            read_upload(_upload_file(b"", "text/plain", "a.txt"))
        assert exc.value.status_code == 400

    def test_missing_credentials(self, monkeypatch):
        monkeypatch.setattr(settings, "CLOUDINARY_CLOUD_NAME", None)
        with pytest.raises(HTTPException) as exc:
            storage.get_cloudinary_service()
        assert exc.value.status_code == 503


# ===== FOLDERS & FILES =====

class TestFolders:
    """/api/folders"""

    def test_create_and_duplicate(self, client, employee_headers):
        response = client.post("/api/folders/", json={"folder_name": "Invoices"}, headers=employee_headers)
        assert response.status_code == 201
        assert response.json()["data"]["color"] == "#3B82F6"
        duplicate = client.post("/api/folders/", json={"folder_name": "Invoices"}, headers=employee_headers)
        assert duplicate.status_code == 409

    def test_cannot_delete_folder_with_files(self, client, db_session, manager_headers):
        folder = Folder(folder_name="Receipts", file_count=1)
        db_session.add(folder)
        db_session.flush()
        db_session.add(File(file_name="a.pdf", file_url="https://x/a.pdf", folder_id=folder.folder_id))
        db_session.commit()
        response = client.delete(f"/api/folders/{folder.folder_id}", headers=manager_headers)
        assert response.status_code == 409


class TestFiles:
    """/api/files"""

    def test_upload_updates_folder_counters(self, client, db_session, employee_headers, fake_upload):
        folder = Folder(folder_name="Contracts")
        db_session.add(folder)
        db_session.commit()

        response = client.post(
            "/api/files/upload",
            files={"file": ("doc.pdf", io.BytesIO(b"%PDF-1.4"), "application/pdf")},
            data={"folder_id": str(folder.folder_id), "description": "Supplier contract"},
            headers=employee_headers,
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["file_url"] == "https://res.cloudinary.com/demo/doc.pdf"
        assert data["file_size"] == 2048
        assert fake_upload == ["files/Contracts"]

        db_session.refresh(folder)
        assert folder.file_count == 1
        assert folder.total_size == 2048

    def test_move_file_between_folders(self, client, db_session, employee_headers):
        source = Folder(folder_name="Inbox", file_count=1, total_size=100)
        target = Folder(folder_name="Archive")
        db_session.add_all([source, target])
        db_session.flush()
        file = File(file_name="a.pdf", file_url="https://x/a.pdf", folder_id=source.folder_id, file_size=100)
        db_session.add(file)
        db_session.commit()

        response = client.put(
            f"/api/files/{file.file_id}", json={"folder_id": str(target.folder_id)}, headers=employee_headers
        )
        assert response.status_code == 200
        db_session.refresh(source)
        db_session.refresh(target)
        assert (source.file_count, source.total_size) == (0, 0)
        assert (target.file_count, target.total_size) == (1, 100)

    def test_delete_survives_storage_failure(self, client, db_session, employee_headers, monkeypatch):
        monkeypatch.setattr(settings, "CLOUDINARY_CLOUD_NAME", None)
        file = File(file_name="a.pdf", file_url="https://x/a.pdf", cloudinary_public_id="local-fishing/files/a")
        db_session.add(file)
        db_session.commit()
        file_id = file.file_id

        assert client.delete(f"/api/files/{file_id}", headers=employee_headers).status_code == 200
        assert client.get(f"/api/files/{file_id}", headers=employee_headers).status_code == 404
