from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Boolean, Integer, Numeric
from clinic.core.base import Base, TimestampedMixin, SoftDeleteMixin

class Procedure(Base, TimestampedMixin, SoftDeleteMixin):
    # unique case-insensitively among live rows, enforced in the service
    name: Mapped[str] = mapped_column(String(200), index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    default_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    estimated_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)  # minutes
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
