from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional
from uuid import UUID

from app.dependencies.dbDependecies import get_db
from app.common.responses import success_response, paginated_response
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.sales.models import PaymentMethod, PaymentStatus, AuditType, ApprovalStatus
from app.modules.sales.schemas import SaleCreate, SaleUpdate, SaleDeleteRequest, AuditCreate, AuditDecision
from app.modules.sales.service import SaleService, SaleAuditService, sale_to_response

sales_router = APIRouter()
sales_audit_router = APIRouter()


def _pending_approval(audit) -> dict:
    return {
        "audit_created": True,
        "audit_id": audit.audit_id,
        "sale_id": audit.sale_id,
        "audit_type": audit.audit_type,
        "status": "pending_approval",
    }


@sales_router.get("/")
def list_sales(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sortBy: Optional[str] = Query("date_time"),
    sortOrder: Optional[str] = Query("desc", pattern="^(asc|desc)$"),
    search: Optional[str] = Query(None),
    paymentMethod: Optional[PaymentMethod] = Query(None),
    paymentStatus: Optional[PaymentStatus] = Query(None),
    startDate: Optional[date] = Query(None),
    endDate: Optional[date] = Query(None),
    minAmount: Optional[float] = Query(None),
    maxAmount: Optional[float] = Query(None),
    productId: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    sales, total = SaleService(db).list_sales(
        page, limit, sortBy, sortOrder, search,
        paymentMethod.value if paymentMethod else None,
        paymentStatus.value if paymentStatus else None,
        startDate, endDate, minAmount, maxAmount, productId,
    )
    return paginated_response([sale_to_response(s) for s in sales], page, limit, total, "Sales retrieved successfully")


@sales_router.get("/{sale_id}")
def get_sale(
    sale_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    sale = SaleService(db).get_sale(sale_id)
    return success_response(sale_to_response(sale), "Sale retrieved successfully")


@sales_router.post("/", status_code=status.HTTP_201_CREATED)
def create_sale(
    data: SaleCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    """
    Registrar venta con descuento inteligente de inventario.
    """
    sale, deduction = SaleService(db).create_sale(data, auth_context.user_id)

    message = "Sale created successfully"
    if deduction.details:
        message += f". Stock deduction: {', '.join(deduction.details)}"

    return success_response(
        sale_to_response(sale),
        message,
        status.HTTP_201_CREATED,
        stockInfo={
            "deductionDetails": deduction.details,
            "finalStock": {"boxes": deduction.new_boxes, "kg": deduction.new_kg},
            "unboxingInfo": deduction.unboxing_info,
        },
        finalStockMessage=f"After sale: {deduction.new_boxes} boxes, {deduction.new_kg}kg remaining",
    )


@sales_router.put("/{sale_id}")
def update_sale(
    sale_id: UUID,
    data: SaleUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    """Solicitar cambio de una venta (queda pendiente de aprobación)."""
    audit = SaleService(db).request_update(sale_id, data, auth_context.user_id)
    return success_response(_pending_approval(audit), "Sale update submitted for approval")


@sales_router.delete("/{sale_id}")
def delete_sale(
    sale_id: UUID,
    data: SaleDeleteRequest,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    audit = SaleService(db).request_deletion(sale_id, data.reason, auth_context.user_id)
    return success_response(_pending_approval(audit), "Sale deletion submitted for approval")


@sales_audit_router.get("/")
def list_audits(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sale_id: Optional[UUID] = Query(None),
    audit_type: Optional[AuditType] = Query(None),
    approval_status: Optional[ApprovalStatus] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    audits, total = SaleAuditService(db).list_audits(
        page, limit, sale_id,
        audit_type.value if audit_type else None,
        approval_status.value if approval_status else None,
    )
    return paginated_response(audits, page, limit, total, "Audit records retrieved successfully")


@sales_audit_router.post("/", status_code=status.HTTP_201_CREATED)
def create_audit(
    data: AuditCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    service = SaleAuditService(db)
    audit = service.create_audit(data, auth_context.user_id)
    return success_response(service.enrich([audit])[0], "Audit record created successfully", status.HTTP_201_CREATED)


@sales_audit_router.put("/{audit_id}/approve")
def approve_audit(
    audit_id: UUID,
    data: AuditDecision,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    service = SaleAuditService(db)
    audit, execution = service.approve(audit_id, data.approval_reason, auth_context.user_id)
    return success_response(
        {"audit": service.enrich([audit])[0], "execution": execution},
        f"{audit.audit_type} approved and executed successfully"
    )


@sales_audit_router.put("/{audit_id}/reject")
def reject_audit(
    audit_id: UUID,
    data: AuditDecision,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    service = SaleAuditService(db)
    audit = service.reject(audit_id, data.approval_reason, auth_context.user_id)
    return success_response(service.enrich([audit])[0], "Audit record rejected successfully")
