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
from app.modules.expenses.models import ExpenseStatus
from app.modules.expenses.schemas import (
    ExpenseCategoryCreate, ExpenseCategoryUpdate, ExpenseCategoryOut,
    ExpenseCreate, ExpenseUpdate, ExpenseOut
)
from app.modules.expenses.service import ExpenseService, ExpenseCategoryService

expenses_router = APIRouter()


# ===== CATEGORÍAS DE GASTOS =====
# Declaradas antes de /{expense_id} para que "categories" no se tome como id.

@expenses_router.get("/categories")
def list_expense_categories(
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    categories = ExpenseCategoryService(db).list_categories(search)
    return success_response(
        [ExpenseCategoryOut.model_validate(c) for c in categories],
        "Expense categories retrieved successfully"
    )


@expenses_router.get("/categories/{category_id}")
def get_expense_category(
    category_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    category = ExpenseCategoryService(db).get_category(category_id)
    return success_response(ExpenseCategoryOut.model_validate(category), "Expense category retrieved successfully")


@expenses_router.post("/categories", status_code=status.HTTP_201_CREATED)
def create_expense_category(
    data: ExpenseCategoryCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    category = ExpenseCategoryService(db).create_category(data, auth_context.user_id)
    return success_response(
        ExpenseCategoryOut.model_validate(category),
        "Expense category created successfully",
        status.HTTP_201_CREATED
    )


@expenses_router.put("/categories/{category_id}")
def update_expense_category(
    category_id: UUID,
    data: ExpenseCategoryUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    category = ExpenseCategoryService(db).update_category(category_id, data)
    return success_response(ExpenseCategoryOut.model_validate(category), "Expense category updated successfully")


@expenses_router.delete("/categories/{category_id}")
def delete_expense_category(
    category_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    ExpenseCategoryService(db).delete_category(category_id)
    return success_response({"deleted": True, "category_id": category_id}, "Expense category deleted successfully")


# ===== GASTOS =====

@expenses_router.get("/")
def list_expenses(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sortBy: Optional[str] = Query("created_at"),
    sortOrder: Optional[str] = Query("desc", pattern="^(asc|desc)$"),
    search: Optional[str] = Query(None),
    category_id: Optional[UUID] = Query(None),
    status_filter: Optional[ExpenseStatus] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    min_amount: Optional[float] = Query(None, ge=0),
    max_amount: Optional[float] = Query(None, ge=0),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    """
    Listar gastos.

    - **sortBy**: created_at | amount | date | title
    - **search**: busca en el título
    """
    expenses, total = ExpenseService(db).list_expenses(
        page, limit, sortBy, sortOrder, search, category_id,
        status_filter.value if status_filter else None,
        start_date, end_date, min_amount, max_amount,
    )
    return paginated_response(
        [ExpenseOut.model_validate(e) for e in expenses], page, limit, total,
        "Expenses retrieved successfully"
    )


@expenses_router.post("/upload", status_code=status.HTTP_201_CREATED)
def create_expense_with_receipt(
    title: str = Form(..., min_length=1, max_length=255),
    category_id: UUID = Form(...),
    amount: Decimal = Form(..., gt=0),
    expense_date: date = Form(..., alias="date"),
    expense_status: ExpenseStatus = Form(ExpenseStatus.PENDING, alias="status"),
    receipt: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    """
    Crear gasto con recibo (multipart/form-data). El recibo se guarda
    en Cloudinary y `receipt_url` toma la URL segura.
    """
    data = ExpenseCreate(
        title=title, category_id=category_id, amount=amount, date=expense_date, status=expense_status
    )
    expense = ExpenseService(db).create_expense_with_receipt(data, receipt, auth_context.user_id)
    return success_response(ExpenseOut.model_validate(expense), "Expense created successfully", status.HTTP_201_CREATED)


@expenses_router.get("/{expense_id}")
def get_expense(
    expense_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    expense = ExpenseService(db).get_expense(expense_id)
    return success_response(ExpenseOut.model_validate(expense), "Expense retrieved successfully")


@expenses_router.post("/", status_code=status.HTTP_201_CREATED)
def create_expense(
    data: ExpenseCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    expense = ExpenseService(db).create_expense(data, auth_context.user_id)
    return success_response(ExpenseOut.model_validate(expense), "Expense created successfully", status.HTTP_201_CREATED)


@expenses_router.put("/{expense_id}")
def update_expense(
    expense_id: UUID,
    data: ExpenseUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    expense = ExpenseService(db).update_expense(expense_id, data)
    return success_response(ExpenseOut.model_validate(expense), "Expense updated successfully")


@expenses_router.delete("/{expense_id}")
def delete_expense(
    expense_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    ExpenseService(db).delete_expense(expense_id)
    return success_response({"deleted": True, "expense_id": expense_id}, "Expense deleted successfully")
