from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String
from clinic.core.base import Base, TimestampedMixin

class AdminUser(Base, TimestampedMixin):
    username: Mapped[str] = mapped_column(String(50), unique=True)
    email: Mapped[str] = mapped_column(String(320), unique=True)
    password_hash: Mapped[str] = mapped_column(String(128))
