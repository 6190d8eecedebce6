from sqlalchemy import or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, status
from uuid import UUID
from typing import Optional, Tuple, List
import logging

from app.common.responses import paginate, apply_sorting
from app.modules.categories.models import ProductCategory
from app.modules.categories.schemas import CategoryCreate, CategoryUpdate
from app.modules.products.models import Product

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": ProductCategory.name,
    "created_at": ProductCategory.created_at,
}


class CategoryService:
    """Servicio para gestión de categorías de productos"""

    def __init__(self, db: Session):
        self.db = db

    def _ensure_unique_name(self, name: str, exclude_id: Optional[UUID] = None):
        query = self.db.query(ProductCategory).filter(ProductCategory.name == name)
        if exclude_id:
            query = query.filter(ProductCategory.category_id != exclude_id)
        if query.first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Category '{name}' already exists"
            )

    def create_category(self, data: CategoryCreate) -> ProductCategory:
        """
        Crear nueva categoría. El nombre es único (409 si ya existe).
        """
        try:
            self._ensure_unique_name(data.name)

            category = ProductCategory(name=data.name, description=data.description)
            self.db.add(category)
            self.db.commit()
            self.db.refresh(category)
            logger.info(f"Product category created: {category.name}")
            return category

        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Category '{data.name}' already exists"
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating category: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create category"
            )

    def list_categories(
        self,
        page: int,
        limit: int,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Tuple[List[ProductCategory], int]:
        """Listar categorías con búsqueda, orden y paginación"""
        query = self.db.query(ProductCategory)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                ProductCategory.name.ilike(pattern),
                ProductCategory.description.ilike(pattern),
            ))
        query = apply_sorting(query, SORT_COLUMNS, sort_by, sort_order, "name")
        return paginate(query, page, limit)

    def get_category(self, category_id: UUID) -> ProductCategory:
        category = self.db.query(ProductCategory).filter(ProductCategory.category_id == category_id).first()
        if not category:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
        return category

    def update_category(self, category_id: UUID, data: CategoryUpdate) -> ProductCategory:
        try:
            category = self.get_category(category_id)
            update_dict = data.model_dump(exclude_unset=True)

            if update_dict.get("name") and update_dict["name"] != category.name:
                self._ensure_unique_name(update_dict["name"], exclude_id=category_id)

            for field, value in update_dict.items():
                setattr(category, field, value)

            self.db.commit()
            self.db.refresh(category)
            return category

        except HTTPException:
            raise
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Category name already exists")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating category {category_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update category"
            )

    def delete_category(self, category_id: UUID) -> None:
        """Eliminar categoría; 409 si algún producto la referencia."""
        category = self.get_category(category_id)

        in_use = self.db.query(Product.product_id).filter(Product.category_id == category_id).first()
        if in_use:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Category is in use by products"
            )

        try:
            self.db.delete(category)
            self.db.commit()
            logger.info(f"Product category deleted: {category_id}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting category {category_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete category"
            )
