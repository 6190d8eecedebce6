from sqlalchemy import or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, UploadFile, status
from datetime import date
from typing import Optional, Tuple, List
from uuid import UUID
import logging

from app.common.responses import paginate, apply_sorting
from app.modules.expenses.models import Expense, ExpenseCategory
from app.modules.expenses.schemas import (
    ExpenseCategoryCreate, ExpenseCategoryUpdate, ExpenseCreate, ExpenseUpdate
)
from app.modules.files.storage import upload_to_cloudinary

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "created_at": Expense.created_at,
    "amount": Expense.amount,
    "date": Expense.date,
    "title": Expense.title,
}


class ExpenseCategoryService:
    """Categorías de gastos con presupuesto opcional"""

    def __init__(self, db: Session):
        self.db = db

    def _ensure_unique_name(self, name: str, exclude_id: Optional[UUID] = None):
        query = self.db.query(ExpenseCategory).filter(ExpenseCategory.category_name == name)
        if exclude_id:
            query = query.filter(ExpenseCategory.category_id != exclude_id)
        if query.first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Expense category '{name}' already exists"
            )

    def list_categories(self, search: Optional[str] = None) -> List[ExpenseCategory]:
        query = self.db.query(ExpenseCategory)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                ExpenseCategory.category_name.ilike(pattern),
                ExpenseCategory.description.ilike(pattern),
            ))
        return query.order_by(ExpenseCategory.category_name.asc()).all()

    def get_category(self, category_id: UUID) -> ExpenseCategory:
        category = self.db.query(ExpenseCategory).filter(ExpenseCategory.category_id == category_id).first()
        if not category:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense category not found")
        return category

    def create_category(self, data: ExpenseCategoryCreate, user_id: UUID) -> ExpenseCategory:
        try:
            self._ensure_unique_name(data.category_name)
            category = ExpenseCategory(**data.model_dump(), created_by=user_id)
            self.db.add(category)
            self.db.commit()
            self.db.refresh(category)
            logger.info(f"Expense category created: {category.category_name}")
            return category
        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Expense category '{data.category_name}' already exists"
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating expense category: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create expense category"
            )

    def update_category(self, category_id: UUID, data: ExpenseCategoryUpdate) -> ExpenseCategory:
        try:
            category = self.get_category(category_id)
            update_dict = data.model_dump(exclude_unset=True)
            if update_dict.get("category_name") and update_dict["category_name"] != category.category_name:
                self._ensure_unique_name(update_dict["category_name"], exclude_id=category_id)

            for field, value in update_dict.items():
                setattr(category, field, value)

            self.db.commit()
            self.db.refresh(category)
            return category
        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Expense category name already exists")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating expense category {category_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update expense category"
            )

    def delete_category(self, category_id: UUID) -> None:
        """Eliminar categoría; 409 si algún gasto la usa."""
        category = self.get_category(category_id)
        in_use = self.db.query(Expense.expense_id).filter(Expense.category_id == category_id).first()
        if in_use:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Expense category is in use by expenses"
            )
        try:
            self.db.delete(category)
            self.db.commit()
            logger.info(f"Expense category deleted: {category_id}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting expense category {category_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete expense category"
            )


class ExpenseService:
    """Servicio para gestión de gastos"""

    def __init__(self, db: Session):
        self.db = db

    def list_expenses(
        self,
        page: int,
        limit: int,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
        search: Optional[str] = None,
        category_id: Optional[UUID] = None,
        expense_status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        min_amount: Optional[float] = None,
        max_amount: Optional[float] = None,
    ) -> Tuple[List[Expense], int]:
        query = self.db.query(Expense)
        if search:
            query = query.filter(Expense.title.ilike(f"%{search}%"))
        if category_id:
            query = query.filter(Expense.category_id == category_id)
        if expense_status:
            query = query.filter(Expense.status == expense_status)
        if start_date:
            query = query.filter(Expense.date >= start_date)
        if end_date:
            query = query.filter(Expense.date <= end_date)
        if min_amount is not None:
            query = query.filter(Expense.amount >= min_amount)
        if max_amount is not None:
            query = query.filter(Expense.amount <= max_amount)

        query = apply_sorting(query, SORT_COLUMNS, sort_by, sort_order, "created_at")
        return paginate(query, page, limit)

    def get_expense(self, expense_id: UUID) -> Expense:
        expense = self.db.query(Expense).filter(Expense.expense_id == expense_id).first()
        if not expense:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
        return expense

    def create_expense(self, data: ExpenseCreate, user_id: UUID) -> Expense:
        """Crear gasto; la categoría debe existir (404)."""
        ExpenseCategoryService(self.db).get_category(data.category_id)
        try:
            expense = Expense(**data.model_dump(), added_by=user_id)
            self.db.add(expense)
            self.db.commit()
            self.db.refresh(expense)
            logger.info(f"Expense created: {expense.title} ({expense.amount})")
            return expense
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating expense: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create expense"
            )

    def create_expense_with_receipt(self, data: ExpenseCreate, receipt: Optional[UploadFile], user_id: UUID) -> Expense:
        """Sube el recibo a la carpeta `receipts` y crea el gasto con su URL segura."""
        ExpenseCategoryService(self.db).get_category(data.category_id)
        if receipt is not None and receipt.filename:
            result = upload_to_cloudinary(receipt, "receipts")
            data.receipt_url = result.get("secure_url") or result.get("url")
        return self.create_expense(data, user_id)

    def update_expense(self, expense_id: UUID, data: ExpenseUpdate) -> Expense:
        expense = self.get_expense(expense_id)
        update_dict = data.model_dump(exclude_unset=True)
        if update_dict.get("category_id"):
            ExpenseCategoryService(self.db).get_category(update_dict["category_id"])

        try:
            for field, value in update_dict.items():
                setattr(expense, field, value)
            self.db.commit()
            self.db.refresh(expense)
            logger.info(f"Expense updated: {expense_id}")
            return expense
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating expense {expense_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update expense"
            )

    def delete_expense(self, expense_id: UUID) -> None:
        expense = self.get_expense(expense_id)
        try:
            self.db.delete(expense)
            self.db.commit()
            logger.info(f"Expense deleted: {expense_id}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting expense {expense_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete expense"
            )
