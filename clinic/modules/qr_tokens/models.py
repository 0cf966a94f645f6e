import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Boolean, Integer, TIMESTAMP, ForeignKey
from clinic.core.base import Base, TimestampedMixin, SoftDeleteMixin

class QRToken(Base, TimestampedMixin, SoftDeleteMixin):
    token: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    qr_type: Mapped[str] = mapped_column(String(16), default="single-use")  # generic | reusable | single-use
    reusable: Mapped[bool] = mapped_column(Boolean, default=False)
    used: Mapped[bool] = mapped_column(Boolean, default=False)
    usage_count: Mapped[int] = mapped_column(Integer, default=0)
    # null for generic tokens, which never expire
    expires_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("adminuser.id"), nullable=True)
