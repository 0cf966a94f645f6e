import uuid
from datetime import datetime
from typing import Sequence
from sqlalchemy import select, update, func, or_, and_, not_
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.base import utcnow
from clinic.modules.qr_tokens.models import QRToken

_USED = and_(QRToken.reusable.is_(False), QRToken.used.is_(True))

def _expired(now: datetime):
    return and_(QRToken.expires_at.is_not(None), QRToken.expires_at <= now)

def status_condition(status: str, now: datetime):
    if status == "used":
        return _USED
    if status == "expired":
        return and_(not_(_USED), _expired(now))
    if status == "active":
        return and_(not_(_USED), not_(_expired(now)))
    return None

class QRTokenRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **data) -> QRToken:
        obj = QRToken(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, token_id: uuid.UUID) -> QRToken | None:
        q = select(QRToken).where(QRToken.id == token_id, QRToken.deleted_at.is_(None))
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def get_by_token(self, token: str) -> QRToken | None:
        q = select(QRToken).where(QRToken.token == token, QRToken.deleted_at.is_(None))
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def list(
        self, *, status: str = "all", sort_by: str = "created_at", sort_order: str = "desc",
        limit: int = 50, offset: int = 0,
    ) -> tuple[Sequence[QRToken], int]:
        cond = [QRToken.deleted_at.is_(None)]
        extra = status_condition(status, utcnow())
        if extra is not None:
            cond.append(extra)
        total = (await self.session.execute(select(func.count(QRToken.id)).where(*cond))).scalar_one()
        col = QRToken.expires_at if sort_by == "expires_at" else QRToken.created_at
        q = (
            select(QRToken).where(*cond)
            .order_by(col.asc() if sort_order == "asc" else col.desc())
            .limit(limit).offset(offset)
        )
        res = await self.session.execute(q)
        return res.scalars().all(), total

    async def consume(self, token_id: uuid.UUID, reusable: bool) -> bool:
        """Record one use; False when another request got there first or the token lapsed."""
        now = utcnow()
        q = (
            update(QRToken)
            .where(
                QRToken.id == token_id,
                QRToken.deleted_at.is_(None),
                or_(QRToken.expires_at.is_(None), QRToken.expires_at > now),
            )
            .values(usage_count=QRToken.usage_count + 1, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if not reusable:
            q = q.where(QRToken.used.is_(False)).values(used=True)
        res = await self.session.execute(q)
        return res.rowcount == 1

    async def soft_delete(self, obj: QRToken) -> None:
        obj.deleted_at = utcnow()
        await self.session.flush()
