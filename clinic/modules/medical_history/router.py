import uuid
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.db import get_session
from clinic.core.errors import not_found
from clinic.modules.medical_history.repository import MedicalHistoryFieldRepository
from clinic.modules.medical_history.schemas import FieldCreate, FieldUpdate, FieldOut

router = APIRouter()

def repo(session: AsyncSession = Depends(get_session)) -> MedicalHistoryFieldRepository:
    return MedicalHistoryFieldRepository(session)

async def _get(field_id: uuid.UUID, fields: MedicalHistoryFieldRepository):
    obj = await fields.get(field_id)
    if not obj:
        raise not_found("Medical history field")
    return obj

@router.get("", response_model=list[FieldOut])
async def list_fields(active_only: bool = False, fields: MedicalHistoryFieldRepository = Depends(repo)):
    return await fields.list(active_only)

@router.post("", response_model=FieldOut, status_code=201)
async def create_field(payload: FieldCreate, fields: MedicalHistoryFieldRepository = Depends(repo)):
    obj = await fields.create(**payload.model_dump())
    await fields.session.commit()
    return obj

@router.put("/{field_id}", response_model=FieldOut)
async def update_field(field_id: uuid.UUID, payload: FieldUpdate, fields: MedicalHistoryFieldRepository = Depends(repo)):
    obj = await _get(field_id, fields)
    for k, v in payload.model_dump(exclude_unset=True).items():
        if v is not None:
            setattr(obj, k, v)
    await fields.session.commit()
    return obj

@router.delete("/{field_id}")
async def delete_field(field_id: uuid.UUID, fields: MedicalHistoryFieldRepository = Depends(repo)):
    obj = await _get(field_id, fields)
    await fields.delete(obj)
    await fields.session.commit()
    return {"message": "Field deleted successfully", "id": field_id}
