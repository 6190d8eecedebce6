"""
Servicio de depósitos.

Los empleados solo ven y modifican sus propios depósitos; los managers ven
todos y son los únicos que cambian el estado de aprobación.
"""
from sqlalchemy import or_
from sqlalchemy.orm import Session
from fastapi import HTTPException, UploadFile, status
from collections import defaultdict
from datetime import datetime, timezone
from typing import Optional, Tuple, List
from uuid import UUID
import logging

from app.common.responses import paginate, apply_sorting
from app.common.validators import as_decimal, round_money
from app.modules.auth.dependencies import MANAGER_ROLES
from app.modules.auth.schemas import AuthContext
from app.modules.deposits.models import Deposit, DepositApproval
from app.modules.deposits.schemas import DepositCreate, DepositUpdate, DepositStats
from app.modules.files.storage import IMAGE_TYPES, upload_to_cloudinary

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "date_time": Deposit.date_time,
    "amount": Deposit.amount,
    "deposit_type": Deposit.deposit_type,
}


def is_manager(auth_context: AuthContext) -> bool:
    return auth_context.role in MANAGER_ROLES


class DepositService:

    def __init__(self, db: Session):
        self.db = db

    def _visible(self, auth_context: AuthContext):
        query = self.db.query(Deposit)
        if not is_manager(auth_context):
            query = query.filter(Deposit.created_by == auth_context.user_id)
        return query

    def list_deposits(
        self,
        auth_context: AuthContext,
        page: int,
        limit: int,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
        search: Optional[str] = None,
        deposit_type: Optional[str] = None,
        approval: Optional[str] = None,
    ) -> Tuple[List[Deposit], int]:
        query = self._visible(auth_context)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Deposit.account_name.ilike(pattern),
                Deposit.to_recipient.ilike(pattern),
            ))
        if deposit_type:
            query = query.filter(Deposit.deposit_type == deposit_type)
        if approval:
            query = query.filter(Deposit.approval == approval)

        query = apply_sorting(query, SORT_COLUMNS, sort_by, sort_order, "date_time")
        return paginate(query, page, limit)

    def get_deposit(self, deposit_id: UUID, auth_context: AuthContext) -> Deposit:
        deposit = self._visible(auth_context).filter(Deposit.deposit_id == deposit_id).first()
        if not deposit:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Deposit not found")
        return deposit

    def get_stats(self, user_id: UUID) -> DepositStats:
        """Estadísticas sobre los depósitos del usuario actual."""
        deposits = self.db.query(Deposit).filter(Deposit.created_by == user_id).all()

        by_type = defaultdict(int)
        amount_by_type = defaultdict(lambda: as_decimal(0))
        by_approval = defaultdict(int)
        total = as_decimal(0)
        for deposit in deposits:
            amount = as_decimal(deposit.amount)
            total += amount
            by_type[deposit.deposit_type] += 1
            amount_by_type[deposit.deposit_type] += amount
            by_approval[deposit.approval] += 1

        return DepositStats(
            totalDeposits=len(deposits),
            totalAmount=round_money(total),
            depositsByType=dict(by_type),
            amountByType={k: round_money(v) for k, v in amount_by_type.items()},
            depositsByApproval=dict(by_approval),
        )

    def create_deposit(self, data: DepositCreate, user_id: UUID) -> Deposit:
        try:
            values = data.model_dump()
            if values.get("date_time") is None:
                values["date_time"] = datetime.now(timezone.utc)
            deposit = Deposit(**values, approval=DepositApproval.PENDING.value, created_by=user_id)
            self.db.add(deposit)
            self.db.commit()
            self.db.refresh(deposit)
            logger.info(f"Deposit created: {deposit.deposit_type} {deposit.amount} by {user_id}")
            return deposit
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating deposit: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create deposit"
            )

    def create_deposit_with_image(self, data: DepositCreate, image: Optional[UploadFile], user_id: UUID) -> Deposit:
        if image is not None and image.filename:
            result = upload_to_cloudinary(image, "deposits", allowed_types=IMAGE_TYPES)
            data.deposit_image_url = result.get("secure_url") or result.get("url")
        return self.create_deposit(data, user_id)

    def update_deposit(self, deposit_id: UUID, data: DepositUpdate, auth_context: AuthContext) -> Deposit:
        """
        Solo el creador modifica los datos del depósito; el campo `approval`
        solo lo cambia un manager (403 en ambos casos).
        """
        deposit = self.get_deposit(deposit_id, auth_context)
        update_dict = data.model_dump(exclude_unset=True)

        if "approval" in update_dict and not is_manager(auth_context):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only managers can change deposit approval"
            )
        other_fields = set(update_dict) - {"approval"}
        if other_fields and deposit.created_by != auth_context.user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only update your own deposits"
            )

        try:
            for field, value in update_dict.items():
                setattr(deposit, field, value)
            deposit.updated_by = auth_context.user_id
            self.db.commit()
            self.db.refresh(deposit)
            logger.info(f"Deposit updated: {deposit_id}")
            return deposit
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating deposit {deposit_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update deposit"
            )

    def delete_deposit(self, deposit_id: UUID, auth_context: AuthContext) -> None:
        deposit = self.get_deposit(deposit_id, auth_context)
        if deposit.created_by != auth_context.user_id and not is_manager(auth_context):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only delete your own deposits"
            )
        try:
            self.db.delete(deposit)
            self.db.commit()
            logger.info(f"Deposit deleted: {deposit_id}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting deposit {deposit_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete deposit"
            )
