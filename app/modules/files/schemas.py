"""
Pydantic schemas for folders and files
"""
from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID
from datetime import datetime


class FolderCreate(BaseModel):
    folder_name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    color: Optional[str] = Field("#3B82F6", max_length=7)
    icon: Optional[str] = Field(None, max_length=50)


class FolderUpdate(BaseModel):
    folder_name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    color: Optional[str] = Field(None, max_length=7)
    icon: Optional[str] = Field(None, max_length=50)


class FolderOut(BaseModel):
    folder_id: UUID
    folder_name: str
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    file_count: int = 0
    total_size: int = 0
    created_by: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FileUpdate(BaseModel):
    file_name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    folder_id: Optional[UUID] = None


class FileOut(BaseModel):
    """File metadata output schema"""
    file_id: UUID
    file_name: str
    file_url: str
    cloudinary_public_id: Optional[str] = None
    cloudinary_url: Optional[str] = None
    cloudinary_secure_url: Optional[str] = None
    file_type: Optional[str] = None
    cloudinary_resource_type: Optional[str] = None
    description: Optional[str] = None
    folder_id: Optional[UUID] = None
    file_size: int = 0
    upload_date: Optional[datetime] = None
    added_by: Optional[UUID] = None

    class Config:
        from_attributes = True
