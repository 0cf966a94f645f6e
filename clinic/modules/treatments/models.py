import uuid
from datetime import date
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Integer, Date, Numeric, ForeignKey
from clinic.core.base import Base, TimestampedMixin

class Treatment(Base, TimestampedMixin):
    patient_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("patient.id"), index=True)
    appointment_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("appointment.id"), nullable=True)
    treatment_date: Mapped[date] = mapped_column(Date, index=True)
    # sum of the line totals
    total_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    payment_status: Mapped[str] = mapped_column(String(16), default="pending")  # pending | partial | paid
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

class TreatmentProcedure(Base, TimestampedMixin):
    treatment_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("treatment.id", ondelete="CASCADE"), index=True)
    procedure_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("procedure.id"), index=True)
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    cost_per_unit: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    total_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    tooth_number: Mapped[str | None] = mapped_column(String(16), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
