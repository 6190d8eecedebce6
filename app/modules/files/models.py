from sqlalchemy import Column, String, Text, Integer, BigInteger, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from app.database.database import Base
from app.common.mixins import TimestampMixin


class Folder(Base, TimestampMixin):
    """
    Carpeta lógica de documentos. file_count y total_size se mantienen
    desde el servicio de archivos en cada alta, baja o movimiento.
    """
    __tablename__ = "folders"

    folder_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    folder_name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    color = Column(String(7), nullable=False, default="#3B82F6")
    icon = Column(String(50), nullable=True)
    file_count = Column(Integer, nullable=False, default=0)
    total_size = Column(BigInteger, nullable=False, default=0)
    created_by = Column(Uuid, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)

    files = relationship("File", back_populates="folder")

    @property
    def id(self):
        return self.folder_id


class File(Base):
    """Metadatos de un archivo almacenado en Cloudinary."""
    __tablename__ = "files"

    file_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    file_name = Column(String(255), nullable=False)
    file_url = Column(Text, nullable=False)
    cloudinary_public_id = Column(String(255), nullable=True, index=True)
    cloudinary_url = Column(Text, nullable=True)
    cloudinary_secure_url = Column(Text, nullable=True)
    file_type = Column(String(100), nullable=True)
    cloudinary_resource_type = Column(String(20), nullable=True, default="image")
    description = Column(Text, nullable=True)
    folder_id = Column(Uuid, ForeignKey("folders.folder_id", ondelete="SET NULL"), nullable=True, index=True)
    file_size = Column(BigInteger, nullable=False, default=0)
    upload_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    added_by = Column(Uuid, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)

    folder = relationship("Folder", back_populates="files")

    @property
    def id(self):
        return self.file_id
