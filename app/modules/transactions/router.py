from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from app.dependencies.dbDependecies import get_db
from app.common.responses import success_response, paginated_response
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.deposits.models import DepositType
from app.modules.sales.models import PaymentStatus, PaymentMethod
from app.modules.transactions.schemas import TransactionCreate, TransactionUpdate, TransactionOut
from app.modules.transactions.service import TransactionService

transactions_router = APIRouter()


@transactions_router.get("/")
def list_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sortBy: Optional[str] = Query("date_time"),
    sortOrder: Optional[str] = Query("desc", pattern="^(asc|desc)$"),
    search: Optional[str] = Query(None, description="Cliente, producto o referencia"),
    payment_status: Optional[PaymentStatus] = Query(None),
    payment_method: Optional[PaymentMethod] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    transactions, total = TransactionService(db).list_transactions(
        page, limit, sortBy, sortOrder, search,
        payment_status.value if payment_status else None,
        payment_method.value if payment_method else None,
        date_from, date_to,
    )
    return paginated_response(
        [TransactionOut.model_validate(t) for t in transactions], page, limit, total,
        "Transactions retrieved successfully"
    )


@transactions_router.get("/stats")
def get_transaction_stats(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    stats = TransactionService(db).get_stats(date_from, date_to)
    return success_response(stats, "Transaction statistics retrieved successfully")


@transactions_router.get("/sale/{sale_id}")
def get_sale_transactions(
    sale_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    transactions = TransactionService(db).get_by_sale(sale_id)
    return success_response(
        [TransactionOut.model_validate(t) for t in transactions],
        "Sale transactions retrieved successfully"
    )


@transactions_router.post("/upload", status_code=status.HTTP_201_CREATED)
def create_transaction_with_image(
    sale_id: UUID = Form(...),
    product_name: str = Form(..., min_length=1, max_length=200),
    client_name: str = Form(..., min_length=1, max_length=100),
    boxes_quantity: int = Form(0, ge=0),
    kg_quantity: Decimal = Form(Decimal("0"), ge=0),
    total_amount: Decimal = Form(..., ge=0),
    payment_status: PaymentStatus = Form(...),
    payment_method: Optional[PaymentMethod] = Form(None),
    deposit_id: Optional[str] = Form(None, max_length=100),
    deposit_type: Optional[DepositType] = Form(None),
    account_number: Optional[str] = Form(None, max_length=50),
    reference: Optional[str] = Form(None, max_length=100),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    """Crear transacción con imagen del comprobante (multipart/form-data)."""
    data = TransactionCreate(
        sale_id=sale_id,
        product_name=product_name,
        client_name=client_name,
        boxes_quantity=boxes_quantity,
        kg_quantity=kg_quantity,
        total_amount=total_amount,
        payment_status=payment_status,
        payment_method=payment_method,
        deposit_id=deposit_id,
        deposit_type=deposit_type,
        account_number=account_number,
        reference=reference,
    )
    transaction = TransactionService(db).create_transaction_with_image(data, image, auth_context.user_id)
    return success_response(
        TransactionOut.model_validate(transaction), "Transaction created successfully", status.HTTP_201_CREATED
    )


@transactions_router.get("/{transaction_id}")
def get_transaction(
    transaction_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    transaction = TransactionService(db).get_transaction(transaction_id)
    return success_response(TransactionOut.model_validate(transaction), "Transaction retrieved successfully")


@transactions_router.post("/", status_code=status.HTTP_201_CREATED)
def create_transaction(
    data: TransactionCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    transaction = TransactionService(db).create_transaction(data, auth_context.user_id)
    return success_response(
        TransactionOut.model_validate(transaction), "Transaction created successfully", status.HTTP_201_CREATED
    )


@transactions_router.put("/{transaction_id}")
def update_transaction(
    transaction_id: UUID,
    data: TransactionUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    transaction = TransactionService(db).update_transaction(transaction_id, data, auth_context.user_id)
    return success_response(TransactionOut.model_validate(transaction), "Transaction updated successfully")


@transactions_router.delete("/{transaction_id}")
def delete_transaction(
    transaction_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    TransactionService(db).delete_transaction(transaction_id)
    return success_response({"deleted": True, "transaction_id": transaction_id}, "Transaction deleted successfully")
