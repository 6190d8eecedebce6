from sqlalchemy import or_
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from fastapi.encoders import jsonable_encoder
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional, Tuple, List, Dict, Any
from uuid import UUID
import logging

from app.common.responses import paginate, apply_sorting
from app.common.validators import as_decimal, start_of_day, end_of_day
from app.modules.auth.models import User
from app.modules.products.models import Product
from app.modules.sales.models import Sale, SaleAudit, PaymentStatus, AuditType, ApprovalStatus
from app.modules.sales.schemas import (
    SaleCreate, SaleUpdate, SaleOut, AuditCreate, AuditOut, AuditUserInfo
)
from app.modules.sales.stock import StockDeduction, calculate_stock_deduction

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "date_time": Sale.date_time,
    "total_amount": Sale.total_amount,
    "client_name": Sale.client_name,
}

SNAPSHOT_FIELDS = (
    "product_id", "boxes_quantity", "kg_quantity", "box_price", "kg_price", "total_amount",
    "amount_paid", "remaining_amount", "payment_status", "payment_method",
    "client_name", "email_address", "phone",
)


def sale_to_response(sale: Sale) -> SaleOut:
    out = SaleOut.model_validate(sale)
    out.product_name = sale.product.name if sale.product else None
    return out


def sale_snapshot(sale: Sale) -> Dict[str, Any]:
    """Valores de la venta serializables a JSON para old_values/new_values."""
    return jsonable_encoder({name: getattr(sale, name) for name in SNAPSHOT_FIELDS})


def remaining_for(payment_status: str, total: Decimal, amount_paid: Decimal) -> Decimal:
    if payment_status == PaymentStatus.PAID.value:
        return Decimal("0")
    return total - amount_paid


class SaleService:
    """Servicio de ventas"""

    def __init__(self, db: Session):
        self.db = db

    def get_sale(self, sale_id: UUID) -> Sale:
        sale = self.db.query(Sale).filter(Sale.id == sale_id).first()
        if not sale:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")
        return sale

    def list_sales(
        self,
        page: int,
        limit: int,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
        search: Optional[str] = None,
        payment_method: Optional[str] = None,
        payment_status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        min_amount: Optional[float] = None,
        max_amount: Optional[float] = None,
        product_id: Optional[UUID] = None,
    ) -> Tuple[List[Sale], int]:
        query = self.db.query(Sale)

        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Sale.client_name.ilike(pattern), Sale.email_address.ilike(pattern)))
        if payment_method:
            query = query.filter(Sale.payment_method == payment_method)
        if payment_status:
            query = query.filter(Sale.payment_status == payment_status)
        if start_date:
            query = query.filter(Sale.date_time >= start_of_day(start_date))
        if end_date:
            query = query.filter(Sale.date_time <= end_of_day(end_date))
        if min_amount is not None:
            query = query.filter(Sale.total_amount >= min_amount)
        if max_amount is not None:
            query = query.filter(Sale.total_amount <= max_amount)
        if product_id:
            query = query.filter(Sale.product_id == product_id)

        query = apply_sorting(query, SORT_COLUMNS, sort_by, sort_order, "date_time")
        return paginate(query, page, limit)

    def create_sale(self, data: SaleCreate, user_id: UUID) -> Tuple[Sale, StockDeduction]:
        """
        Registrar una venta y descontar el stock del producto
        (abriendo cajas cuando el peso suelto no alcanza).
        """
        product = self.db.query(Product).filter(Product.product_id == data.product_id).first()
        if not product:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

        deduction = calculate_stock_deduction(
            product.quantity_box,
            product.quantity_kg,
            product.box_to_kg_ratio,
            data.boxes_quantity,
            data.kg_quantity,
        )

        total = data.boxes_quantity * as_decimal(data.box_price) + as_decimal(data.kg_quantity) * as_decimal(data.kg_price)
        amount_paid = total if data.payment_status == PaymentStatus.PAID.value else as_decimal(data.amount_paid)

        try:
            sale = Sale(
                product_id=product.product_id,
                boxes_quantity=data.boxes_quantity,
                kg_quantity=data.kg_quantity,
                box_price=data.box_price,
                kg_price=data.kg_price,
                total_amount=total,
                amount_paid=amount_paid,
                remaining_amount=remaining_for(data.payment_status, total, amount_paid),
                date_time=datetime.now(timezone.utc),
                payment_status=data.payment_status,
                payment_method=data.payment_method,
                performed_by=user_id,
                client_id=data.client_id,
                client_name=data.client_name,
                email_address=data.email_address,
                phone=data.phone,
            )
            product.quantity_box = deduction.new_boxes
            product.quantity_kg = deduction.new_kg

            self.db.add(sale)
            self.db.commit()
            self.db.refresh(sale)
            logger.info(
                f"Sale {sale.id} created for {product.name}: {data.boxes_quantity} boxes, "
                f"{data.kg_quantity}kg, total {total}"
            )
            return sale, deduction
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating sale: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create sale"
            )

    def request_update(self, sale_id: UUID, data: SaleUpdate, user_id: UUID) -> SaleAudit:
        """
        Las ventas no se editan directamente: se crea un registro de auditoría
        pendiente (quantity_change o payment_update) con valores anteriores y nuevos.
        """
        sale = self.get_sale(sale_id)
        changes = data.model_dump(exclude_unset=True)
        reason = changes.pop("reason")
        if not changes:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

        new_boxes = changes.get("boxes_quantity", sale.boxes_quantity)
        new_kg = as_decimal(changes.get("kg_quantity", sale.kg_quantity))
        quantity_changed = new_boxes != sale.boxes_quantity or new_kg != as_decimal(sale.kg_quantity)

        if quantity_changed:
            if new_boxes <= 0 and new_kg <= 0:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="At least one of boxes_quantity or kg_quantity must be greater than 0"
                )
            product = sale.product
            # Stock disponible si la venta original se revirtiera
            calculate_stock_deduction(
                product.quantity_box + sale.boxes_quantity,
                as_decimal(product.quantity_kg) + as_decimal(sale.kg_quantity),
                product.box_to_kg_ratio,
                new_boxes,
                new_kg,
            )

        audit = SaleAudit(
            sale_id=sale.id,
            audit_type=AuditType.QUANTITY_CHANGE.value if quantity_changed else AuditType.PAYMENT_UPDATE.value,
            boxes_change=(new_boxes - sale.boxes_quantity) if quantity_changed else 0,
            kg_change=(new_kg - as_decimal(sale.kg_quantity)) if quantity_changed else 0,
            reason=reason,
            performed_by=user_id,
            approval_status=ApprovalStatus.PENDING.value,
            old_values=sale_snapshot(sale),
            new_values=jsonable_encoder(changes),
        )
        return self._save_audit(audit)

    def request_deletion(self, sale_id: UUID, reason: str, user_id: UUID) -> SaleAudit:
        sale = self.get_sale(sale_id)
        audit = SaleAudit(
            sale_id=sale.id,
            audit_type=AuditType.DELETION.value,
            boxes_change=sale.boxes_quantity,
            kg_change=sale.kg_quantity,
            reason=reason,
            performed_by=user_id,
            approval_status=ApprovalStatus.PENDING.value,
            old_values=sale_snapshot(sale),
            new_values=None,
        )
        return self._save_audit(audit)

    def _save_audit(self, audit: SaleAudit) -> SaleAudit:
        try:
            self.db.add(audit)
            self.db.commit()
            self.db.refresh(audit)
            logger.info(f"Sale audit {audit.audit_id} ({audit.audit_type}) created for sale {audit.sale_id}")
            return audit
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating sale audit: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create audit record"
            )


class SaleAuditService:
    """Aprobación y rechazo de cambios sobre ventas"""

    def __init__(self, db: Session):
        self.db = db

    def get_audit(self, audit_id: UUID) -> SaleAudit:
        audit = self.db.query(SaleAudit).filter(SaleAudit.audit_id == audit_id).first()
        if not audit:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Audit record not found")
        return audit

    def list_audits(
        self,
        page: int,
        limit: int,
        sale_id: Optional[UUID] = None,
        audit_type: Optional[str] = None,
        approval_status: Optional[str] = None,
    ) -> Tuple[List[AuditOut], int]:
        query = self.db.query(SaleAudit)
        if sale_id:
            query = query.filter(SaleAudit.sale_id == sale_id)
        if audit_type:
            query = query.filter(SaleAudit.audit_type == audit_type)
        if approval_status:
            query = query.filter(SaleAudit.approval_status == approval_status)
        query = query.order_by(SaleAudit.timestamp.desc())
        audits, total = paginate(query, page, limit)
        return self.enrich(audits), total

    def enrich(self, audits: List[SaleAudit]) -> List[AuditOut]:
        """Añade performed_by_user, approved_by_user y product_info cuando se pueden resolver."""
        user_ids = {a.performed_by for a in audits if a.performed_by} | {a.approved_by for a in audits if a.approved_by}
        users = {}
        if user_ids:
            users = {u.user_id: u for u in self.db.query(User).filter(User.user_id.in_(user_ids)).all()}

        product_ids = set()
        for audit in audits:
            raw = (audit.old_values or {}).get("product_id")
            try:
                if raw:
                    product_ids.add(UUID(str(raw)))
            except ValueError:
                continue
        products = {}
        if product_ids:
            products = {
                p.product_id: p.name
                for p in self.db.query(Product).filter(Product.product_id.in_(product_ids)).all()
            }

        def user_info(user_id) -> Optional[AuditUserInfo]:
            user = users.get(user_id)
            if not user:
                return None
            return AuditUserInfo(id=user.user_id, name=user.owner_name, email=user.email_address)

        result = []
        for audit in audits:
            out = AuditOut.model_validate(audit)
            out.performed_by_user = user_info(audit.performed_by)
            out.approved_by_user = user_info(audit.approved_by)
            raw = (audit.old_values or {}).get("product_id")
            name = None
            if raw:
                try:
                    name = products.get(UUID(str(raw)))
                except ValueError:
                    name = None
            out.product_info = {"name": name} if name else None
            result.append(out)
        return result

    def create_audit(self, data: AuditCreate, user_id: UUID) -> SaleAudit:
        sale = self.db.query(Sale).filter(Sale.id == data.sale_id).first()
        if not sale:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")
        try:
            audit = SaleAudit(
                sale_id=sale.id,
                audit_type=data.audit_type,
                boxes_change=data.boxes_change,
                kg_change=data.kg_change,
                reason=data.reason,
                performed_by=user_id,
                approval_status=ApprovalStatus.PENDING.value,
                old_values=jsonable_encoder(data.old_values) if data.old_values is not None else sale_snapshot(sale),
                new_values=jsonable_encoder(data.new_values) if data.new_values is not None else None,
            )
            self.db.add(audit)
            self.db.commit()
            self.db.refresh(audit)
            return audit
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating audit record: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create audit record"
            )

    def _pending_audit(self, audit_id: UUID) -> SaleAudit:
        audit = self.get_audit(audit_id)
        if audit.approval_status != ApprovalStatus.PENDING.value:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Audit record is not pending")
        return audit

    def _execute_deletion(self, sale: Sale) -> Dict[str, Any]:
        product = sale.product
        if product is not None:
            product.quantity_box = product.quantity_box + sale.boxes_quantity
            product.quantity_kg = as_decimal(product.quantity_kg) + as_decimal(sale.kg_quantity)
        self.db.delete(sale)
        return {
            "deleted": True,
            "sale_id": str(sale.id),
            "stock_restored": {"boxes": sale.boxes_quantity, "kg": as_decimal(sale.kg_quantity)},
        }

    def _execute_update(self, audit: SaleAudit, sale: Sale) -> Dict[str, Any]:
        new_values = dict(audit.new_values or {})
        applied: Dict[str, Any] = {}

        for field in ("payment_method", "client_name", "email_address", "phone"):
            if field in new_values:
                setattr(sale, field, new_values[field])
                applied[field] = new_values[field]

        payment_status = new_values.get("payment_status", sale.payment_status)
        amount_paid = as_decimal(new_values.get("amount_paid", sale.amount_paid))

        if audit.audit_type == AuditType.QUANTITY_CHANGE.value:
            old_boxes = sale.boxes_quantity
            old_kg = as_decimal(sale.kg_quantity)
            new_boxes = int(new_values.get("boxes_quantity", old_boxes))
            new_kg = as_decimal(new_values.get("kg_quantity", old_kg))

            product = sale.product
            # Se repone la venta original y se descuenta la nueva con el mismo desempaque
            deduction = calculate_stock_deduction(
                product.quantity_box + old_boxes,
                as_decimal(product.quantity_kg) + old_kg,
                product.box_to_kg_ratio,
                new_boxes,
                new_kg,
            )
            product.quantity_box = deduction.new_boxes
            product.quantity_kg = deduction.new_kg

            total = new_boxes * as_decimal(sale.box_price) + new_kg * as_decimal(sale.kg_price)
            sale.boxes_quantity = new_boxes
            sale.kg_quantity = new_kg
            sale.total_amount = total
            applied.update({"boxes_quantity": new_boxes, "kg_quantity": new_kg, "total_amount": total})
        else:
            total = as_decimal(sale.total_amount)

        sale.payment_status = payment_status
        sale.amount_paid = amount_paid
        sale.remaining_amount = remaining_for(payment_status, total, amount_paid)
        applied.update({
            "payment_status": payment_status,
            "amount_paid": amount_paid,
            "remaining_amount": sale.remaining_amount,
        })
        return {"updated": True, "sale_id": str(sale.id), "changes_applied": jsonable_encoder(applied)}

    def approve(self, audit_id: UUID, approval_reason: str, user_id: UUID) -> Tuple[SaleAudit, Dict[str, Any]]:
        """
        Aprobar un cambio pendiente y aplicarlo a la venta y al stock del producto.
        """
        audit = self._pending_audit(audit_id)
        sale = self.db.query(Sale).filter(Sale.id == audit.sale_id).first() if audit.sale_id else None
        if not sale:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")

        try:
            if audit.audit_type == AuditType.DELETION.value:
                execution = self._execute_deletion(sale)
            else:
                execution = self._execute_update(audit, sale)

            audit.approval_status = ApprovalStatus.APPROVED.value
            audit.approved_by = user_id
            audit.approval_timestamp = datetime.now(timezone.utc)
            audit.approval_reason = approval_reason

            self.db.commit()
            self.db.refresh(audit)
            logger.info(f"Sale audit {audit_id} ({audit.audit_type}) approved by {user_id}")
            return audit, execution
        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error approving audit {audit_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to execute {audit.audit_type}"
            )

    def reject(self, audit_id: UUID, approval_reason: str, user_id: UUID) -> SaleAudit:
        audit = self._pending_audit(audit_id)
        try:
            audit.approval_status = ApprovalStatus.REJECTED.value
            audit.approved_by = user_id
            audit.approval_timestamp = datetime.now(timezone.utc)
            audit.approval_reason = approval_reason
            self.db.commit()
            self.db.refresh(audit)
            logger.info(f"Sale audit {audit_id} rejected by {user_id}")
            return audit
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error rejecting audit {audit_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to reject audit record"
            )
