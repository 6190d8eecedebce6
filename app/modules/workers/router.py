from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.dependencies.dbDependecies import get_db
from app.common.responses import success_response, paginated_response
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.workers.schemas import WorkerCreate, WorkerUpdate, WorkerOut
from app.modules.workers.service import WorkerService

workers_router = APIRouter()

@workers_router.get("/")
def list_workers(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    workers, total = WorkerService(db).list_workers(page, limit, search)
    return paginated_response([WorkerOut.model_validate(w) for w in workers], page, limit, total, "Workers retrieved successfully")

@workers_router.get("/{worker_id}")
def get_worker(
    worker_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    worker = WorkerService(db).get_worker(worker_id)
    return success_response(WorkerOut.model_validate(worker), "Worker retrieved successfully")

@workers_router.post("/", status_code=status.HTTP_201_CREATED)
def create_worker(
    data: WorkerCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    worker = WorkerService(db).create_worker(data)
    return success_response(WorkerOut.model_validate(worker), "Worker created successfully", status.HTTP_201_CREATED)

@workers_router.put("/{worker_id}")
def update_worker(
    worker_id: UUID,
    data: WorkerUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    worker = WorkerService(db).update_worker(worker_id, data)
    return success_response(WorkerOut.model_validate(worker), "Worker updated successfully")

@workers_router.delete("/{worker_id}")
def delete_worker(
    worker_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_admin())
):
    WorkerService(db).delete_worker(worker_id)
    return success_response({"deleted": True, "worker_id": worker_id}, "Worker deleted successfully")

@workers_router.post("/{worker_id}/identification")
def upload_identification(
    worker_id: UUID,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    """
    Subir imagen de identificación del trabajador.
    """
    worker = WorkerService(db).upload_identification(worker_id, file)
    return success_response(WorkerOut.model_validate(worker), "Identification uploaded successfully")
