"""
Cloudinary service for signed uploads and deletions over the REST API
"""
from fastapi import HTTPException, UploadFile, status
from typing import Optional, List
import hashlib
import logging
import time

import requests

from app.core.config import settings

logger = logging.getLogger(__name__)

CLOUDINARY_API_URL = "https://api.cloudinary.com/v1_1"

IMAGE_TYPES = ["image/jpeg", "image/png", "image/gif", "image/webp"]


class CloudinaryError(Exception):
    """Error returned by Cloudinary or raised while reaching it."""


def generate_signature(params: dict, api_secret: str) -> str:
    """
    Firma de Cloudinary: SHA-1 de los parámetros no vacíos ordenados por clave,
    unidos como k=v&k=v, con el api secret concatenado al final.
    """
    to_sign = "&".join(
        f"{key}={params[key]}"
        for key in sorted(params)
        if params[key] is not None and params[key] != ""
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


def resource_type_for(content_type: Optional[str]) -> str:
    if content_type and content_type.startswith("image/"):
        return "image"
    if content_type and content_type.startswith("video/"):
        return "video"
    return "raw"


class CloudinaryService:
    """Service for handling Cloudinary operations"""

    def __init__(self, cloud_name: str, api_key: str, api_secret: str, base_folder: str = "", timeout: int = 30):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_folder = base_folder.strip("/")
        self.timeout = timeout

    def folder_path(self, subfolder: Optional[str] = None) -> str:
        parts = [p for p in (self.base_folder, (subfolder or "").strip("/")) if p]
        return "/".join(parts)

    def _signed_params(self, params: dict) -> dict:
        signed = {k: v for k, v in params.items() if v is not None and v != ""}
        signed["timestamp"] = int(time.time())
        signed["signature"] = generate_signature(signed, self.api_secret)
        signed["api_key"] = self.api_key
        return signed

    def _post(self, url: str, data: dict, files: Optional[dict] = None) -> dict:
        try:
            response = requests.post(url, data=data, files=files, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Cloudinary request failed: {e}")
            raise CloudinaryError(str(e))

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.status_code >= 400 or "error" in payload:
            message = payload.get("error", {}).get("message") if isinstance(payload.get("error"), dict) else None
            message = message or f"HTTP {response.status_code}"
            logger.error(f"Cloudinary API error: {message}")
            raise CloudinaryError(message)
        return payload

    def upload(
        self,
        content: bytes,
        filename: str,
        subfolder: Optional[str] = None,
        resource_type: str = "image",
        public_id: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> dict:
        """Sube un archivo y devuelve la respuesta de Cloudinary (public_id, url, secure_url, bytes...)."""
        params = self._signed_params({
            "folder": self.folder_path(subfolder),
            "overwrite": "false",
            "public_id": public_id,
            "tags": ",".join(tags) if tags else None,
        })
        url = f"{CLOUDINARY_API_URL}/{self.cloud_name}/{resource_type}/upload"
        result = self._post(url, data=params, files={"file": (filename, content)})
        logger.info(f"Uploaded {filename} to Cloudinary as {result.get('public_id')}")
        return result

    def destroy(self, public_id: str, resource_type: str = "image") -> dict:
        params = self._signed_params({"public_id": public_id})
        url = f"{CLOUDINARY_API_URL}/{self.cloud_name}/{resource_type}/destroy"
        result = self._post(url, data=params)
        logger.info(f"Deleted Cloudinary asset {public_id}: {result.get('result')}")
        return result


def get_cloudinary_service() -> CloudinaryService:
    """Devuelve el cliente configurado o 503 si faltan credenciales."""
    if not settings.cloudinary_configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="File storage service is not configured"
        )
    return CloudinaryService(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        base_folder=settings.CLOUDINARY_BASE_FOLDER,
        timeout=settings.CLOUDINARY_TIMEOUT,
    )


def read_upload(upload: UploadFile, allowed_types: Optional[List[str]] = None) -> bytes:
    """
    Lee el archivo subido y valida tamaño (413) y tipo de contenido (415).
    """
    allowed = allowed_types or settings.ALLOWED_FILE_TYPES
    if upload.content_type not in allowed:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"File type {upload.content_type} not allowed"
        )
    content = upload.file.read(settings.MAX_FILE_SIZE + 1)
    content = upload.file.read()
    if len(content) > settings.MAX_FILE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size is {settings.MAX_FILE_SIZE // (1024 * 1024)}MB"
        )
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")
    return content


def upload_to_cloudinary(upload: UploadFile, subfolder: str, allowed_types: Optional[List[str]] = None) -> dict:
    """
    Valida y sube un UploadFile a <base>/<subfolder>. Errores de Cloudinary -> 502.
    """
    content = read_upload(upload, allowed_types)
    service = get_cloudinary_service()
    try:
        result = service.upload(
            content,
            upload.filename or "upload",
            subfolder=subfolder,
            resource_type=resource_type_for(upload.content_type),
        )
    except CloudinaryError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"File upload failed: {e}"
        )
    result.setdefault("bytes", len(content))
    return result
