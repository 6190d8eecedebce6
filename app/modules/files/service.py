from sqlalchemy import or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, UploadFile, status
from typing import Optional, List, Tuple
from uuid import UUID
import logging

from app.common.responses import paginate
from app.modules.files.models import Folder, File
from app.modules.files.schemas import FolderCreate, FolderUpdate, FileUpdate
from app.modules.files.storage import (
    CloudinaryError, get_cloudinary_service, upload_to_cloudinary
)

logger = logging.getLogger(__name__)


class FolderService:
    """Servicio para carpetas de documentos"""

    def __init__(self, db: Session):
        self.db = db

    def list_folders(self, search: Optional[str] = None) -> List[Folder]:
        query = self.db.query(Folder)
        if search:
            query = query.filter(Folder.folder_name.ilike(f"%{search}%"))
        return query.order_by(Folder.folder_name.asc()).all()

    def get_folder(self, folder_id: UUID) -> Folder:
        folder = self.db.query(Folder).filter(Folder.folder_id == folder_id).first()
        if not folder:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Folder not found")
        return folder

    def _ensure_unique_name(self, name: str, exclude_id: Optional[UUID] = None):
        query = self.db.query(Folder).filter(Folder.folder_name == name)
        if exclude_id:
            query = query.filter(Folder.folder_id != exclude_id)
        if query.first():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Folder name already exists")

    def create_folder(self, data: FolderCreate, user_id: UUID) -> Folder:
        try:
            self._ensure_unique_name(data.folder_name)
            folder = Folder(**data.model_dump(exclude_none=True), created_by=user_id)
            self.db.add(folder)
            self.db.commit()
            self.db.refresh(folder)
            logger.info(f"Folder created: {folder.folder_name}")
            return folder
        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Folder name already exists")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating folder: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create folder"
            )

    def update_folder(self, folder_id: UUID, data: FolderUpdate) -> Folder:
        try:
            folder = self.get_folder(folder_id)
            update_dict = data.model_dump(exclude_unset=True)
            if update_dict.get("folder_name") and update_dict["folder_name"] != folder.folder_name:
                self._ensure_unique_name(update_dict["folder_name"], exclude_id=folder_id)
            for field, value in update_dict.items():
                setattr(folder, field, value)
            self.db.commit()
            self.db.refresh(folder)
            return folder
        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Folder name already exists")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating folder {folder_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update folder"
            )

    def delete_folder(self, folder_id: UUID) -> None:
        folder = self.get_folder(folder_id)
        has_files = self.db.query(File).filter(File.folder_id == folder_id).first()
        if has_files:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Folder contains files. Move or delete them first"
            )
        try:
            self.db.delete(folder)
            self.db.commit()
            logger.info(f"Folder deleted: {folder_id}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting folder {folder_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete folder"
            )


class FileService:
    """
    Servicio de archivos: los binarios viven en Cloudinary y aquí sólo
    se guardan metadatos y contadores de carpeta.
    """

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _bump_folder(folder: Optional[Folder], count: int, size: int):
        if folder is None:
            return
        folder.file_count = max(0, (folder.file_count or 0) + count)
        folder.total_size = max(0, (folder.total_size or 0) + size)

    def list_files(
        self,
        page: int,
        limit: int,
        folder_id: Optional[UUID] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[File], int]:
        query = self.db.query(File)
        if folder_id:
            query = query.filter(File.folder_id == folder_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(File.file_name.ilike(pattern), File.description.ilike(pattern)))
        query = query.order_by(File.upload_date.desc())
        return paginate(query, page, limit)

    def get_file(self, file_id: UUID) -> File:
        file = self.db.query(File).filter(File.file_id == file_id).first()
        if not file:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
        return file

    def upload_file(
        self,
        upload: UploadFile,
        user_id: UUID,
        folder_id: Optional[UUID] = None,
        description: Optional[str] = None,
    ) -> File:
        folder = FolderService(self.db).get_folder(folder_id) if folder_id else None
        subfolder = f"files/{folder.folder_name}" if folder else "files"

        result = upload_to_cloudinary(upload, subfolder)

        try:
            file = File(
                file_name=upload.filename or result.get("original_filename") or "file",
                file_url=result.get("secure_url") or result.get("url"),
                cloudinary_public_id=result.get("public_id"),
                cloudinary_url=result.get("url"),
                cloudinary_secure_url=result.get("secure_url"),
                file_type=upload.content_type,
                cloudinary_resource_type=result.get("resource_type", "image"),
                description=description,
                folder_id=folder.folder_id if folder else None,
                file_size=int(result.get("bytes") or 0),
                added_by=user_id,
            )
            self.db.add(file)
            self._bump_folder(folder, 1, file.file_size)
            self.db.commit()
            self.db.refresh(file)
            logger.info(f"File uploaded: {file.file_name} ({file.file_size} bytes)")
            return file
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error saving file metadata: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to save file"
            )

    def update_file(self, file_id: UUID, data: FileUpdate) -> File:
        try:
            file = self.get_file(file_id)
            update_dict = data.model_dump(exclude_unset=True)

            if "folder_id" in update_dict and update_dict["folder_id"] != file.folder_id:
                new_folder = None
                if update_dict["folder_id"] is not None:
                    new_folder = FolderService(self.db).get_folder(update_dict["folder_id"])
                self._bump_folder(file.folder, -1, -(file.file_size or 0))
                self._bump_folder(new_folder, 1, file.file_size or 0)

            for field, value in update_dict.items():
                setattr(file, field, value)

            self.db.commit()
            self.db.refresh(file)
            return file
        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating file {file_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update file"
            )

    def delete_file(self, file_id: UUID) -> None:
        file = self.get_file(file_id)

        if file.cloudinary_public_id:
            try:
                get_cloudinary_service().destroy(
                    file.cloudinary_public_id,
                    resource_type=file.cloudinary_resource_type or "image",
                )
            except (CloudinaryError, HTTPException) as e:
                # El registro se elimina aunque el asset remoto no pueda borrarse
                logger.warning(f"Could not delete Cloudinary asset {file.cloudinary_public_id}: {e}")

        try:
            self._bump_folder(file.folder, -1, -(file.file_size or 0))
            self.db.delete(file)
            self.db.commit()
            logger.info(f"File deleted: {file_id}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting file {file_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete file"
            )
