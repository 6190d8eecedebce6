"""
Lógica de negocio para el módulo de Contactos
"""

from sqlalchemy import or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, status
from uuid import UUID
from typing import Optional, Tuple, List
import logging

from app.common.responses import paginate, apply_sorting
from app.modules.contacts.models import Contact
from app.modules.contacts.schemas import ContactCreate, ContactUpdate

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "contact_name": Contact.contact_name,
    "company_name": Contact.company_name,
    "created_at": Contact.created_at,
}


class ContactService:
    """Servicio principal para gestión de contactos"""

    def __init__(self, db: Session):
        self.db = db

    def _check_email_unique(self, email: Optional[str], exclude_id: Optional[UUID] = None):
        if not email:
            return
        query = self.db.query(Contact).filter(Contact.email == email)
        if exclude_id:
            query = query.filter(Contact.contact_id != exclude_id)
        if query.first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Contact with this email already exists"
            )

    def create_contact(self, contact_data: ContactCreate, user_id: UUID) -> Contact:
        """
        Crear nuevo contacto.

        Raises:
            HTTPException 409: email duplicado
        """
        try:
            self._check_email_unique(contact_data.email)

            contact = Contact(**contact_data.model_dump(), added_by=user_id)
            self.db.add(contact)
            self.db.commit()
            self.db.refresh(contact)

            logger.info(f"Contact created: {contact.contact_name} ({contact.contact_type})")
            return contact

        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Contact with this email already exists"
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating contact: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create contact"
            )

    def list_contacts(
        self,
        page: int,
        limit: int,
        search: Optional[str] = None,
        contact_type: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Tuple[List[Contact], int]:
        query = self.db.query(Contact)

        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Contact.contact_name.ilike(pattern),
                Contact.company_name.ilike(pattern),
                Contact.email.ilike(pattern),
            ))
        if contact_type:
            query = query.filter(Contact.contact_type == contact_type)

        query = apply_sorting(query, SORT_COLUMNS, sort_by, sort_order or "asc", "contact_name")
        return paginate(query, page, limit)

    def get_contact(self, contact_id: UUID) -> Contact:
        contact = self.db.query(Contact).filter(Contact.contact_id == contact_id).first()
        if not contact:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
        return contact

    def update_contact(self, contact_id: UUID, contact_data: ContactUpdate) -> Contact:
        try:
            contact = self.get_contact(contact_id)
            update_dict = contact_data.model_dump(exclude_unset=True)

            if update_dict.get("email") and update_dict["email"] != contact.email:
                self._check_email_unique(update_dict["email"], exclude_id=contact_id)

            for field, value in update_dict.items():
                setattr(contact, field, value)

            self.db.commit()
            self.db.refresh(contact)
            logger.info(f"Contact updated: {contact_id}")
            return contact

        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Contact with this email already exists"
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating contact {contact_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update contact"
            )

    def delete_contact(self, contact_id: UUID) -> None:
        contact = self.get_contact(contact_id)
        try:
            self.db.delete(contact)
            self.db.commit()
            logger.info(f"Contact deleted: {contact_id}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting contact {contact_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete contact"
            )
