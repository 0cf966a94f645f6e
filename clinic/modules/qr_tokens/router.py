import uuid
from typing import Literal
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.db import get_session
from clinic.core.paging import paginate, SortOrder
from clinic.core.security import get_current_admin, Principal
from clinic.modules.qr_tokens.schemas import (
    QRTokenCreate, QRTokenOut, QRTokenPage, ValidateRequest, QRRegistrationRequest,
)
from clinic.modules.qr_tokens.service import QRTokenService, present

router = APIRouter()
# mounted without the admin gate
public_router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> QRTokenService:
    return QRTokenService(session)

@public_router.post("/qr-tokens/validate")
async def validate_token(payload: ValidateRequest, service: QRTokenService = Depends(svc)):
    return await service.validate(payload.token)

@public_router.post("/qr-registration")
async def register_with_token(payload: QRRegistrationRequest, service: QRTokenService = Depends(svc)):
    patient = await service.register(payload.token, payload.patient_data)
    return {
        "success": True,
        "message": "Registration submitted successfully. You will receive an email once it has been reviewed.",
        "patient_id": patient.id,
    }

@router.post("/qr-tokens", response_model=QRTokenOut, status_code=201)
async def create_token(
    payload: QRTokenCreate,
    principal: Principal = Depends(get_current_admin),
    service: QRTokenService = Depends(svc),
):
    obj = await service.create(principal.user_id, **payload.model_dump())
    return present(obj)

@router.get("/qr-tokens", response_model=QRTokenPage)
async def list_tokens(
    status: Literal["all", "active", "used", "expired"] = "all",
    sort_by: Literal["created_at", "expires_at"] = "created_at",
    sort_order: SortOrder = "desc",
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: QRTokenService = Depends(svc),
):
    items, total = await service.list(status=status, sort_by=sort_by, sort_order=sort_order, limit=limit, offset=offset)
    return {"tokens": [present(t) for t in items], "pagination": paginate(limit, offset, total)}

@router.get("/qr-tokens/{token_id}", response_model=QRTokenOut)
async def get_token(token_id: uuid.UUID, service: QRTokenService = Depends(svc)):
    return present(await service.get(token_id))

@router.delete("/qr-tokens/{token_id}")
async def delete_token(token_id: uuid.UUID, service: QRTokenService = Depends(svc)):
    obj = await service.delete(token_id)
    return {
        "message": "QR token deleted successfully",
        "deleted_token": {
            "id": obj.id,
            "qr_type": obj.qr_type,
            "usage_count": obj.usage_count,
            "was_used": obj.used or obj.usage_count > 0,
        },
    }
