from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from ...core.database import get_db
from ...core.security import Caller, UserRole
from ...api.deps import get_current_caller, Pagination
from ...services.appointment_service import AppointmentService
from ...schemas.appointment import (
    AppointmentCreate, AppointmentUpdate, AppointmentResponse,
    AppointmentPage, MessageResponse
)

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    appointment_data: AppointmentCreate,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db)
):
    """Book an appointment (patients for themselves, admins for anyone)."""
    return AppointmentService(db).create_appointment(caller, appointment_data)

@router.get("", response_model=AppointmentPage)
async def list_appointments(
    pagination: Pagination = Depends(),
    role: Optional[UserRole] = Query(None),
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db)
):
    """List appointments visible to the caller."""
    return AppointmentService(db).list_appointments(
        caller, pagination.page, pagination.limit, role
    )

@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: str,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db)
):
    return AppointmentService(db).get_appointment(caller, appointment_id)

@router.put("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: str,
    patch: AppointmentUpdate,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db)
):
    """Reschedule or edit an appointment."""
    return AppointmentService(db).update_appointment(caller, appointment_id, patch)

@router.delete("/{appointment_id}", response_model=MessageResponse)
async def delete_appointment(
    appointment_id: str,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db)
):
    return AppointmentService(db).delete_appointment(caller, appointment_id)
