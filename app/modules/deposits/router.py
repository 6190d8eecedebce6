from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from app.dependencies.dbDependecies import get_db
from app.common.responses import success_response, paginated_response
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.deposits.models import DepositType, DepositApproval
from app.modules.deposits.schemas import DepositCreate, DepositUpdate, DepositOut
from app.modules.deposits.service import DepositService

deposits_router = APIRouter()


@deposits_router.get("/")
def list_deposits(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sortBy: Optional[str] = Query("date_time"),
    sortOrder: Optional[str] = Query("desc", pattern="^(asc|desc)$"),
    search: Optional[str] = Query(None),
    deposit_type: Optional[DepositType] = Query(None),
    approval: Optional[DepositApproval] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    deposits, total = DepositService(db).list_deposits(
        auth_context, page, limit, sortBy, sortOrder, search,
        deposit_type.value if deposit_type else None,
        approval.value if approval else None,
    )
    return paginated_response(
        [DepositOut.model_validate(d) for d in deposits], page, limit, total,
        "Deposits retrieved successfully"
    )


@deposits_router.get("/stats")
def get_deposit_stats(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    stats = DepositService(db).get_stats(auth_context.user_id)
    return success_response(stats, "Deposit statistics retrieved successfully")


@deposits_router.post("/upload", status_code=status.HTTP_201_CREATED)
def create_deposit_with_image(
    amount: Decimal = Form(..., gt=0),
    deposit_type: DepositType = Form(...),
    account_name: str = Form(..., min_length=1, max_length=255),
    account_number: Optional[str] = Form(None, max_length=50),
    to_recipient: Optional[str] = Form(None, max_length=100),
    date_time: Optional[datetime] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    """Crear depósito con comprobante (multipart/form-data, campo `image`)."""
    data = DepositCreate(
        amount=amount,
        deposit_type=deposit_type,
        account_name=account_name,
        account_number=account_number,
        to_recipient=to_recipient,
        date_time=date_time,
    )
    deposit = DepositService(db).create_deposit_with_image(data, image, auth_context.user_id)
    return success_response(DepositOut.model_validate(deposit), "Deposit created successfully", status.HTTP_201_CREATED)


@deposits_router.get("/{deposit_id}")
def get_deposit(
    deposit_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    deposit = DepositService(db).get_deposit(deposit_id, auth_context)
    return success_response(DepositOut.model_validate(deposit), "Deposit retrieved successfully")


@deposits_router.post("/", status_code=status.HTTP_201_CREATED)
def create_deposit(
    data: DepositCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    deposit = DepositService(db).create_deposit(data, auth_context.user_id)
    return success_response(DepositOut.model_validate(deposit), "Deposit created successfully", status.HTTP_201_CREATED)


@deposits_router.put("/{deposit_id}")
def update_deposit(
    deposit_id: UUID,
    data: DepositUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    deposit = DepositService(db).update_deposit(deposit_id, data, auth_context)
    return success_response(DepositOut.model_validate(deposit), "Deposit updated successfully")


@deposits_router.delete("/{deposit_id}")
def delete_deposit(
    deposit_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    DepositService(db).delete_deposit(deposit_id, auth_context)
    return success_response({"deleted": True, "deposit_id": deposit_id}, "Deposit deleted successfully")
