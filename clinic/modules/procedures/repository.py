import uuid
from typing import Sequence
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.base import utcnow
from clinic.modules.procedures.models import Procedure

SORTABLE = {
    "name": Procedure.name,
    "default_cost": Procedure.default_cost,
    "created_at": Procedure.created_at,
}

class ProcedureRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **data) -> Procedure:
        obj = Procedure(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, procedure_id: uuid.UUID) -> Procedure | None:
        q = select(Procedure).where(Procedure.id == procedure_id, Procedure.deleted_at.is_(None))
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def get_many(self, ids: set[uuid.UUID]) -> dict[uuid.UUID, Procedure]:
        if not ids:
            return {}
        q = select(Procedure).where(Procedure.id.in_(ids), Procedure.deleted_at.is_(None))
        res = await self.session.execute(q)
        return {p.id: p for p in res.scalars().all()}

    async def find_by_name(self, name: str, exclude_id: uuid.UUID | None = None) -> Procedure | None:
        q = select(Procedure).where(func.lower(Procedure.name) == name.lower(), Procedure.deleted_at.is_(None))
        if exclude_id:
            q = q.where(Procedure.id != exclude_id)
        res = await self.session.execute(q.limit(1))
        return res.scalar_one_or_none()

    async def list(
        self, *, search: str | None = None, is_active: bool | None = None,
        sort_by: str = "name", sort_order: str = "asc", limit: int = 50, offset: int = 0,
    ) -> tuple[Sequence[Procedure], int]:
        cond = [Procedure.deleted_at.is_(None)]
        if search:
            like = f"%{search.strip()}%"
            cond.append(or_(Procedure.name.ilike(like), Procedure.description.ilike(like)))
        if is_active is not None:
            cond.append(Procedure.is_active.is_(is_active))
        total = (await self.session.execute(select(func.count(Procedure.id)).where(*cond))).scalar_one()
        col = SORTABLE.get(sort_by, Procedure.name)
        q = (
            select(Procedure).where(*cond)
            .order_by(col.asc() if sort_order == "asc" else col.desc())
            .limit(limit).offset(offset)
        )
        res = await self.session.execute(q)
        return res.scalars().all(), total

    async def count_active(self) -> int:
        q = select(func.count(Procedure.id)).where(Procedure.is_active.is_(True), Procedure.deleted_at.is_(None))
        return (await self.session.execute(q)).scalar_one()

    async def soft_delete(self, obj: Procedure) -> None:
        obj.deleted_at = utcnow()
        await self.session.flush()
