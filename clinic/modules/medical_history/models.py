from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Boolean
from clinic.core.base import Base, TimestampedMixin

class MedicalHistoryField(Base, TimestampedMixin):
    field_name: Mapped[str] = mapped_column(String(200))
    field_type: Mapped[str] = mapped_column(String(16), default="checkbox")  # checkbox | text | number
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
