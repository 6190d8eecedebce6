"""
Endpoints de la API para el módulo de Contactos
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.dependencies.dbDependecies import get_db
from app.common.responses import success_response, paginated_response
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.contacts.models import ContactType
from app.modules.contacts.schemas import ContactCreate, ContactUpdate, ContactOut
from app.modules.contacts.service import ContactService

contacts_router = APIRouter()


@contacts_router.get("/")
def list_contacts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, description="Buscar por nombre, empresa o email"),
    contact_type: Optional[ContactType] = Query(None),
    sortBy: Optional[str] = Query("contact_name"),
    sortOrder: Optional[str] = Query("asc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    """
    Listar contactos.

    - **search**: coincide con nombre de contacto, empresa o email
    - **contact_type**: supplier | customer
    - **sortBy**: contact_name | company_name | created_at
    """
    contacts, total = ContactService(db).list_contacts(
        page, limit, search,
        contact_type.value if contact_type else None,
        sortBy, sortOrder,
    )
    return paginated_response(
        [ContactOut.model_validate(c) for c in contacts], page, limit, total,
        "Contacts retrieved successfully"
    )


@contacts_router.get("/{contact_id}")
def get_contact(
    contact_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    contact = ContactService(db).get_contact(contact_id)
    return success_response(ContactOut.model_validate(contact), "Contact retrieved successfully")


@contacts_router.post("/", status_code=status.HTTP_201_CREATED)
def create_contact(
    contact_data: ContactCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    contact = ContactService(db).create_contact(contact_data, auth_context.user_id)
    return success_response(ContactOut.model_validate(contact), "Contact created successfully", status.HTTP_201_CREATED)


@contacts_router.put("/{contact_id}")
def update_contact(
    contact_id: UUID,
    contact_data: ContactUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_employee())
):
    contact = ContactService(db).update_contact(contact_id, contact_data)
    return success_response(ContactOut.model_validate(contact), "Contact updated successfully")


@contacts_router.delete("/{contact_id}")
def delete_contact(
    contact_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_manager())
):
    ContactService(db).delete_contact(contact_id)
    return success_response({"deleted": True, "contact_id": contact_id}, "Contact deleted successfully")
