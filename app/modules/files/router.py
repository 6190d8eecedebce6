"""
Routers de carpetas y archivos (Cloudinary)
"""
from fastapi import APIRouter, Depends, File as FileParam, Form, Query, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.dependencies.dbDependecies import get_db
from app.common.responses import success_response, paginated_response
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.files.schemas import FolderCreate, FolderUpdate, FolderOut, FileUpdate, FileOut
from app.modules.files.service import FolderService, FileService

folders_router = APIRouter()
files_router = APIRouter()


@folders_router.get("/")
def list_folders(
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    folders = FolderService(db).list_folders(search)
    return success_response([FolderOut.model_validate(f) for f in folders], "Folders retrieved successfully")


@folders_router.get("/{folder_id}")
def get_folder(
    folder_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    folder = FolderService(db).get_folder(folder_id)
    return success_response(FolderOut.model_validate(folder), "Folder retrieved successfully")


@folders_router.post("/", status_code=status.HTTP_201_CREATED)
def create_folder(
    data: FolderCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    folder = FolderService(db).create_folder(data, auth_context.user_id)
    return success_response(FolderOut.model_validate(folder), "Folder created successfully", status.HTTP_201_CREATED)


@folders_router.put("/{folder_id}")
def update_folder(
    folder_id: UUID,
    data: FolderUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    folder = FolderService(db).update_folder(folder_id, data)
    return success_response(FolderOut.model_validate(folder), "Folder updated successfully")


@folders_router.delete("/{folder_id}")
def delete_folder(
    folder_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    FolderService(db).delete_folder(folder_id)
    return success_response({"deleted": True, "folder_id": folder_id}, "Folder deleted successfully")


@files_router.get("/")
def list_files(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    folder_id: Optional[UUID] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    files, total = FileService(db).list_files(page, limit, folder_id, search)
    return paginated_response([FileOut.model_validate(f) for f in files], page, limit, total, "Files retrieved successfully")


@files_router.post("/upload", status_code=status.HTTP_201_CREATED)
def upload_file(
    file: UploadFile = FileParam(...),
    folder_id: Optional[UUID] = Form(None),
    description: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    """
    Subir un archivo a Cloudinary y registrar sus metadatos.
    """
    stored = FileService(db).upload_file(file, auth_context.user_id, folder_id, description)
    return success_response(FileOut.model_validate(stored), "File uploaded successfully", status.HTTP_201_CREATED)


@files_router.get("/{file_id}")
def get_file(
    file_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    file = FileService(db).get_file(file_id)
    return success_response(FileOut.model_validate(file), "File retrieved successfully")


@files_router.put("/{file_id}")
def update_file(
    file_id: UUID,
    data: FileUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    file = FileService(db).update_file(file_id, data)
    return success_response(FileOut.model_validate(file), "File updated successfully")


@files_router.delete("/{file_id}")
def delete_file(
    file_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    FileService(db).delete_file(file_id)
    return success_response({"deleted": True, "file_id": file_id}, "File deleted successfully")
