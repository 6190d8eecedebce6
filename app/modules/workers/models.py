from sqlalchemy import Column, String, Text, Numeric, JSON, Uuid
import uuid

from app.database.database import Base
from app.common.mixins import CreatedAtMixin


class Worker(Base, CreatedAtMixin):
    """Registro de empleado (sin acceso al sistema)."""
    __tablename__ = "workers"

    worker_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone_number = Column(String(20), nullable=True)
    identification_image_url = Column(Text, nullable=True)
    monthly_salary = Column(Numeric(12, 2), nullable=True)
    total_revenue_generated = Column(Numeric(14, 2), nullable=False, default=0)
    recent_login_history = Column(JSON, nullable=True)

    @property
    def id(self):
        return self.worker_id
