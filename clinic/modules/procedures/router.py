import uuid
from typing import Literal
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.db import get_session
from clinic.core.paging import paginate, SortOrder
from clinic.modules.procedures.schemas import ProcedureCreate, ProcedureUpdate, ProcedureOut, ProcedurePage
from clinic.modules.procedures.service import ProcedureService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> ProcedureService:
    return ProcedureService(session)

@router.get("", response_model=ProcedurePage)
async def list_procedures(
    search: str | None = None,
    is_active: bool | None = None,
    sort_by: Literal["name", "default_cost", "created_at"] = "name",
    sort_order: SortOrder = "asc",
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: ProcedureService = Depends(svc),
):
    items, total = await service.list(
        search=search, is_active=is_active, sort_by=sort_by, sort_order=sort_order, limit=limit, offset=offset,
    )
    return {"procedures": items, "pagination": paginate(limit, offset, total)}

@router.post("", response_model=ProcedureOut, status_code=201)
async def create_procedure(payload: ProcedureCreate, service: ProcedureService = Depends(svc)):
    return await service.create(payload)

@router.get("/{procedure_id}", response_model=ProcedureOut)
async def get_procedure(procedure_id: uuid.UUID, service: ProcedureService = Depends(svc)):
    return await service.get(procedure_id)

@router.put("/{procedure_id}", response_model=ProcedureOut)
async def update_procedure(procedure_id: uuid.UUID, payload: ProcedureUpdate, service: ProcedureService = Depends(svc)):
    return await service.update(procedure_id, payload)

@router.delete("/{procedure_id}")
async def delete_procedure(procedure_id: uuid.UUID, service: ProcedureService = Depends(svc)):
    obj = await service.delete(procedure_id)
    return {"message": "Procedure deleted successfully", "deleted_procedure": {"id": obj.id, "name": obj.name}}
