import uuid
import logging
from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.clock import local_today
from clinic.core.errors import ApiError, not_found
from clinic.modules.appointments.repository import AppointmentRepository
from clinic.modules.patients.repository import PatientRepository
from clinic.modules.procedures.repository import ProcedureRepository
from clinic.modules.treatments.models import Treatment, TreatmentProcedure
from clinic.modules.treatments.repository import TreatmentRepository
from clinic.modules.treatments.schemas import TreatmentCreate, TreatmentUpdate, TreatmentLineIn

log = logging.getLogger(__name__)

CENTS = Decimal("0.01")

def money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)

def line_total(quantity: int, cost_per_unit) -> Decimal:
    return money(Decimal(quantity) * Decimal(str(cost_per_unit)))

def treatment_total(lines: list[dict]) -> Decimal:
    return money(sum((line["total_cost"] for line in lines), Decimal("0")))

class TreatmentService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = TreatmentRepository(session)
        self.patients = PatientRepository(session)
        self.procedures = ProcedureRepository(session)
        self.appointments = AppointmentRepository(session)

    async def _build_lines(self, items: list[TreatmentLineIn]) -> list[dict]:
        procs = await self.procedures.get_many({i.procedure_id for i in items})
        lines = []
        for item in items:
            proc = procs.get(item.procedure_id)
            if not proc:
                raise not_found("Procedure")
            if not proc.is_active:
                raise ApiError(400, f"Procedure '{proc.name}' is inactive")
            cost = item.cost_per_unit if item.cost_per_unit is not None else proc.default_cost
            lines.append({
                "procedure_id": proc.id,
                "quantity": item.quantity,
                "cost_per_unit": money(cost),
                "total_cost": line_total(item.quantity, cost),
                "tooth_number": item.tooth_number,
                "notes": item.notes,
            })
        return lines

    async def _present(self, items: list[Treatment]) -> list[dict]:
        lines = await self.repo.lines_for([t.id for t in items])
        patients = await self.patients.get_many({t.patient_id for t in items})
        proc_ids = {line.procedure_id for group in lines.values() for line in group}
        procs = await self.procedures.get_many(proc_ids)
        return [self._one(t, lines.get(t.id, []), procs, patients.get(t.patient_id)) for t in items]

    @staticmethod
    def _one(t: Treatment, lines: list[TreatmentProcedure], procs: dict, patient) -> dict:
        def line(tp: TreatmentProcedure) -> dict:
            proc = procs.get(tp.procedure_id)
            return {
                "id": tp.id,
                "procedure_id": tp.procedure_id,
                "quantity": tp.quantity,
                "cost_per_unit": tp.cost_per_unit,
                "total_cost": tp.total_cost,
                "tooth_number": tp.tooth_number,
                "notes": tp.notes,
                "procedure": {"id": proc.id, "name": proc.name} if proc else None,
            }
        return {
            "id": t.id,
            "patient_id": t.patient_id,
            "appointment_id": t.appointment_id,
            "treatment_date": t.treatment_date,
            "total_cost": t.total_cost,
            "payment_status": t.payment_status,
            "notes": t.notes,
            "created_at": t.created_at,
            "updated_at": t.updated_at,
            "patient": patient,
            "procedures": [line(tp) for tp in lines],
        }

    async def get(self, treatment_id: uuid.UUID) -> dict:
        obj = await self.repo.get(treatment_id)
        if not obj:
            raise not_found("Treatment")
        return (await self._present([obj]))[0]

    async def list(self, **filters) -> tuple[list[dict], int]:
        items, total = await self.repo.list(**filters)
        return await self._present(list(items)), total

    async def create(self, payload: TreatmentCreate) -> dict:
        if not await self.patients.get(payload.patient_id):
            raise not_found("Patient")
        if payload.appointment_id and not await self.appointments.get(payload.appointment_id):
            raise not_found("Appointment")
        lines = await self._build_lines(payload.procedures)
        obj = await self.repo.create(
            lines,
            patient_id=payload.patient_id,
            appointment_id=payload.appointment_id,
            treatment_date=payload.treatment_date or local_today(),
            payment_status=payload.payment_status,
            notes=payload.notes,
            total_cost=treatment_total(lines),
        )
        await self.session.commit()
        log.info(f"Recorded treatment {obj.id} total={obj.total_cost} lines={len(lines)}")
        return (await self._present([obj]))[0]

    async def update(self, treatment_id: uuid.UUID, payload: TreatmentUpdate) -> dict:
        obj = await self.repo.get(treatment_id)
        if not obj:
            raise not_found("Treatment")
        data = payload.model_dump(exclude_unset=True)
        if payload.procedures is not None:
            lines = await self._build_lines(payload.procedures)
            await self.repo.remove_lines(obj.id)
            await self.repo.add_lines(obj.id, lines)
            obj.total_cost = treatment_total(lines)
        if data.get("treatment_date"):
            obj.treatment_date = data["treatment_date"]
        if data.get("payment_status"):
            obj.payment_status = data["payment_status"]
        if "notes" in data:
            obj.notes = data["notes"]
        await self.session.commit()
        return (await self._present([obj]))[0]

    async def delete(self, treatment_id: uuid.UUID) -> uuid.UUID:
        obj = await self.repo.get(treatment_id)
        if not obj:
            raise not_found("Treatment")
        await self.repo.delete(obj)
        await self.session.commit()
        log.info(f"Deleted treatment {treatment_id}")
        return treatment_id
