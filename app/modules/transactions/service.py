from sqlalchemy import or_
from sqlalchemy.orm import Session
from fastapi import HTTPException, UploadFile, status
from datetime import date, datetime, timezone
from typing import Optional, Tuple, List
from uuid import UUID
import logging

from app.common.responses import paginate, apply_sorting
from app.common.validators import as_decimal, round_money, start_of_day, end_of_day
from app.modules.files.storage import IMAGE_TYPES, upload_to_cloudinary
from app.modules.sales.models import Sale, PaymentStatus, PaymentMethod
from app.modules.transactions.models import Transaction
from app.modules.transactions.schemas import TransactionCreate, TransactionUpdate, TransactionStats

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "date_time": Transaction.date_time,
    "total_amount": Transaction.total_amount,
    "client_name": Transaction.client_name,
}


def summarize_sales(sales) -> TransactionStats:
    """Conteos y montos por estado de pago y por método de pago."""
    count_by_status = {s.value: 0 for s in PaymentStatus}
    amount_by_status = {s.value: as_decimal(0) for s in PaymentStatus}
    count_by_method = {m.value: 0 for m in PaymentMethod}
    amount_by_method = {m.value: as_decimal(0) for m in PaymentMethod}
    total = as_decimal(0)

    for sale in sales:
        amount = as_decimal(sale.total_amount)
        total += amount
        if sale.payment_status in count_by_status:
            count_by_status[sale.payment_status] += 1
            amount_by_status[sale.payment_status] += amount
        if sale.payment_method in count_by_method:
            count_by_method[sale.payment_method] += 1
            amount_by_method[sale.payment_method] += amount

    return TransactionStats(
        total_transactions=len(sales),
        total_amount=round_money(total),
        paid_transactions=count_by_status["paid"],
        pending_transactions=count_by_status["pending"],
        partial_transactions=count_by_status["partial"],
        paid_amount=round_money(amount_by_status["paid"]),
        pending_amount=round_money(amount_by_status["pending"]),
        partial_amount=round_money(amount_by_status["partial"]),
        payment_methods=count_by_method,
        payment_method_amounts={k: round_money(v) for k, v in amount_by_method.items()},
    )


class TransactionService:

    def __init__(self, db: Session):
        self.db = db

    def list_transactions(
        self,
        page: int,
        limit: int,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
        search: Optional[str] = None,
        payment_status: Optional[str] = None,
        payment_method: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> Tuple[List[Transaction], int]:
        query = self.db.query(Transaction)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Transaction.client_name.ilike(pattern),
                Transaction.product_name.ilike(pattern),
                Transaction.reference.ilike(pattern),
            ))
        if payment_status:
            query = query.filter(Transaction.payment_status == payment_status)
        if payment_method:
            query = query.filter(Transaction.payment_method == payment_method)
        if date_from:
            query = query.filter(Transaction.date_time >= start_of_day(date_from))
        if date_to:
            query = query.filter(Transaction.date_time <= end_of_day(date_to))

        query = apply_sorting(query, SORT_COLUMNS, sort_by, sort_order, "date_time")
        return paginate(query, page, limit)

    def get_stats(self, date_from: Optional[date] = None, date_to: Optional[date] = None) -> TransactionStats:
        """Estadísticas calculadas sobre la tabla de ventas."""
        query = self.db.query(Sale)
        if date_from:
            query = query.filter(Sale.date_time >= start_of_day(date_from))
        if date_to:
            query = query.filter(Sale.date_time <= end_of_day(date_to))
        return summarize_sales(query.all())

    def get_transaction(self, transaction_id: UUID) -> Transaction:
        transaction = self.db.query(Transaction).filter(Transaction.transaction_id == transaction_id).first()
        if not transaction:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
        return transaction

    def get_by_sale(self, sale_id: UUID) -> List[Transaction]:
        return (
            self.db.query(Transaction)
            .filter(Transaction.sale_id == sale_id)
            .order_by(Transaction.date_time.desc())
            .all()
        )

    def create_transaction(self, data: TransactionCreate, user_id: UUID) -> Transaction:
        """Crear transacción; la venta referenciada debe existir (404)."""
        sale = self.db.query(Sale.id).filter(Sale.id == data.sale_id).first()
        if not sale:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")

        try:
            values = data.model_dump()
            if values.get("date_time") is None:
                values["date_time"] = datetime.now(timezone.utc)
            transaction = Transaction(**values, created_by=user_id)
            self.db.add(transaction)
            self.db.commit()
            self.db.refresh(transaction)
            logger.info(f"Transaction created for sale {data.sale_id}: {transaction.total_amount}")
            return transaction
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating transaction: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create transaction"
            )

    def create_transaction_with_image(self, data: TransactionCreate, image: Optional[UploadFile], user_id: UUID) -> Transaction:
        if image is not None and image.filename:
            result = upload_to_cloudinary(image, "transactions", allowed_types=IMAGE_TYPES)
            data.image_url = result.get("secure_url") or result.get("url")
        return self.create_transaction(data, user_id)

    def update_transaction(self, transaction_id: UUID, data: TransactionUpdate, user_id: UUID) -> Transaction:
        transaction = self.get_transaction(transaction_id)
        try:
            for field, value in data.model_dump(exclude_unset=True).items():
                setattr(transaction, field, value)
            transaction.updated_by = user_id
            self.db.commit()
            self.db.refresh(transaction)
            logger.info(f"Transaction updated: {transaction_id}")
            return transaction
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating transaction {transaction_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update transaction"
            )

    def delete_transaction(self, transaction_id: UUID) -> None:
        transaction = self.get_transaction(transaction_id)
        try:
            self.db.delete(transaction)
            self.db.commit()
            logger.info(f"Transaction deleted: {transaction_id}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting transaction {transaction_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete transaction"
            )
