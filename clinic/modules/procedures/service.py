import uuid
import logging
from decimal import Decimal
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.errors import ApiError, not_found
from clinic.modules.procedures.models import Procedure
from clinic.modules.procedures.repository import ProcedureRepository
from clinic.modules.procedures.schemas import ProcedureCreate, ProcedureUpdate
from clinic.modules.treatments.models import TreatmentProcedure

log = logging.getLogger(__name__)

DUPLICATE = "A procedure with this name already exists"

class ProcedureService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = ProcedureRepository(session)

    async def get(self, procedure_id: uuid.UUID) -> Procedure:
        obj = await self.repo.get(procedure_id)
        if not obj:
            raise not_found("Procedure")
        return obj

    async def list(self, **filters):
        return await self.repo.list(**filters)

    async def create(self, payload: ProcedureCreate) -> Procedure:
        if await self.repo.find_by_name(payload.name):
            raise ApiError(409, DUPLICATE)
        data = payload.model_dump()
        data["default_cost"] = Decimal(str(data["default_cost"]))
        obj = await self.repo.create(**data)
        await self.session.commit()
        log.info(f"Created procedure {obj.name!r}")
        return obj

    async def update(self, procedure_id: uuid.UUID, payload: ProcedureUpdate) -> Procedure:
        obj = await self.get(procedure_id)
        data = payload.model_dump(exclude_unset=True)
        if data.get("name") and await self.repo.find_by_name(data["name"], exclude_id=obj.id):
            raise ApiError(409, DUPLICATE)
        if data.get("default_cost") is not None:
            data["default_cost"] = Decimal(str(data["default_cost"]))
        for k, v in data.items():
            if v is not None or k in ("description", "estimated_duration"):
                setattr(obj, k, v)
        await self.session.commit()
        return obj

    async def delete(self, procedure_id: uuid.UUID) -> Procedure:
        obj = await self.get(procedure_id)
        used = (await self.session.execute(
            select(func.count(TreatmentProcedure.id)).where(TreatmentProcedure.procedure_id == obj.id)
        )).scalar_one()
        if used:
            raise ApiError(409, "Cannot delete a procedure that is used in treatments. Deactivate it instead.")
        await self.repo.soft_delete(obj)
        await self.session.commit()
        log.info(f"Deleted procedure {obj.name!r}")
        return obj
