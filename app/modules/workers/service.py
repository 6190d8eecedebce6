from sqlalchemy import or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, UploadFile, status
from typing import Optional, Tuple, List
from uuid import UUID
import logging

from app.common.responses import paginate
from app.modules.files.storage import IMAGE_TYPES, upload_to_cloudinary
from app.modules.workers.models import Worker
from app.modules.workers.schemas import WorkerCreate, WorkerUpdate

logger = logging.getLogger(__name__)


class WorkerService:
    """Servicio para gestión de trabajadores"""

    def __init__(self, db: Session):
        self.db = db

    def list_workers(self, page: int, limit: int, search: Optional[str] = None) -> Tuple[List[Worker], int]:
        query = self.db.query(Worker)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Worker.full_name.ilike(pattern), Worker.email.ilike(pattern)))
        query = query.order_by(Worker.created_at.desc())
        return paginate(query, page, limit)

    def get_worker(self, worker_id: UUID) -> Worker:
        worker = self.db.query(Worker).filter(Worker.worker_id == worker_id).first()
        if not worker:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Worker not found")
        return worker

    def _ensure_unique_email(self, email: str, exclude_id: Optional[UUID] = None):
        query = self.db.query(Worker).filter(Worker.email == email.lower())
        if exclude_id:
            query = query.filter(Worker.worker_id != exclude_id)
        if query.first():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Worker with this email already exists")

    def create_worker(self, data: WorkerCreate) -> Worker:
        try:
            self._ensure_unique_email(data.email)
            worker_data = data.model_dump()
            worker_data["email"] = data.email.lower()
            worker = Worker(**worker_data, total_revenue_generated=0, recent_login_history=[])
            self.db.add(worker)
            self.db.commit()
            self.db.refresh(worker)
            logger.info(f"Worker created: {worker.email}")
            return worker
        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Worker with this email already exists")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating worker: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create worker"
            )

    def update_worker(self, worker_id: UUID, data: WorkerUpdate) -> Worker:
        try:
            worker = self.get_worker(worker_id)
            update_dict = data.model_dump(exclude_unset=True)
            if not update_dict:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

            if update_dict.get("email"):
                update_dict["email"] = update_dict["email"].lower()
                if update_dict["email"] != worker.email:
                    self._ensure_unique_email(update_dict["email"], exclude_id=worker_id)

            for field, value in update_dict.items():
                setattr(worker, field, value)

            self.db.commit()
            self.db.refresh(worker)
            return worker
        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Worker with this email already exists")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating worker {worker_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update worker"
            )

    def delete_worker(self, worker_id: UUID) -> None:
        worker = self.get_worker(worker_id)
        try:
            self.db.delete(worker)
            self.db.commit()
            logger.info(f"Worker deleted: {worker_id}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting worker {worker_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete worker"
            )

    def upload_identification(self, worker_id: UUID, upload: UploadFile) -> Worker:
        """Sube la imagen de identificación a la carpeta `workers` de Cloudinary."""
        worker = self.get_worker(worker_id)
        result = upload_to_cloudinary(upload, "workers", allowed_types=IMAGE_TYPES)
        try:
            worker.identification_image_url = result.get("secure_url") or result.get("url")
            self.db.commit()
            self.db.refresh(worker)
            return worker
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error saving identification for worker {worker_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to save identification image"
            )
