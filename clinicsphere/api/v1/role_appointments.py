"""
Role-scoped appointment routes.

Each router is guarded by a single role and delegates to the same
AppointmentService as /appointments, so ownership rules are identical.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from ...core.database import get_db
from ...core.security import Caller, UserRole
from ...api.deps import (
    get_admin_caller, get_doctor_caller, get_patient_caller, Pagination
)
from ...services.appointment_service import AppointmentService
from ...schemas.appointment import (
    AppointmentCreate, PatientAppointmentCreate, AppointmentUpdate,
    AppointmentResponse, AppointmentPage, MessageResponse
)

admin_router = APIRouter(prefix="/admin/appointments", tags=["Admin Appointments"])
doctor_router = APIRouter(prefix="/doctor/appointments", tags=["Doctor Appointments"])
patient_router = APIRouter(prefix="/patient/appointments", tags=["Patient Appointments"])

# Admin
@admin_router.get("", response_model=AppointmentPage)
async def admin_list_appointments(
    pagination: Pagination = Depends(),
    role: Optional[UserRole] = Query(None),
    caller: Caller = Depends(get_admin_caller),
    db: Session = Depends(get_db)
):
    """List all appointments, optionally narrowed to doctors or patients."""
    return AppointmentService(db).list_appointments(
        caller, pagination.page, pagination.limit, role
    )

@admin_router.get("/{appointment_id}", response_model=AppointmentResponse)
async def admin_get_appointment(
    appointment_id: str,
    caller: Caller = Depends(get_admin_caller),
    db: Session = Depends(get_db)
):
    return AppointmentService(db).get_appointment(caller, appointment_id)

@admin_router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def admin_create_appointment(
    appointment_data: AppointmentCreate,
    caller: Caller = Depends(get_admin_caller),
    db: Session = Depends(get_db)
):
    return AppointmentService(db).create_appointment(caller, appointment_data)

@admin_router.put("/{appointment_id}", response_model=AppointmentResponse)
async def admin_update_appointment(
    appointment_id: str,
    patch: AppointmentUpdate,
    caller: Caller = Depends(get_admin_caller),
    db: Session = Depends(get_db)
):
    return AppointmentService(db).update_appointment(caller, appointment_id, patch)

@admin_router.delete("/{appointment_id}", response_model=MessageResponse)
async def admin_delete_appointment(
    appointment_id: str,
    caller: Caller = Depends(get_admin_caller),
    db: Session = Depends(get_db)
):
    return AppointmentService(db).delete_appointment(caller, appointment_id)

# Doctor
@doctor_router.get("", response_model=AppointmentPage)
async def doctor_list_appointments(
    pagination: Pagination = Depends(),
    role: Optional[UserRole] = Query(None),
    caller: Caller = Depends(get_doctor_caller),
    db: Session = Depends(get_db)
):
    """List the calling doctor's appointments."""
    return AppointmentService(db).list_appointments(
        caller, pagination.page, pagination.limit, role
    )

@doctor_router.get("/{appointment_id}", response_model=AppointmentResponse)
async def doctor_get_appointment(
    appointment_id: str,
    caller: Caller = Depends(get_doctor_caller),
    db: Session = Depends(get_db)
):
    return AppointmentService(db).get_appointment(caller, appointment_id)

@doctor_router.put("/{appointment_id}", response_model=AppointmentResponse)
async def doctor_update_appointment(
    appointment_id: str,
    patch: AppointmentUpdate,
    caller: Caller = Depends(get_doctor_caller),
    db: Session = Depends(get_db)
):
    return AppointmentService(db).update_appointment(caller, appointment_id, patch)

@doctor_router.delete("/{appointment_id}", response_model=MessageResponse)
async def doctor_delete_appointment(
    appointment_id: str,
    caller: Caller = Depends(get_doctor_caller),
    db: Session = Depends(get_db)
):
    return AppointmentService(db).delete_appointment(caller, appointment_id)

# Patient
@patient_router.get("", response_model=AppointmentPage)
async def patient_list_appointments(
    pagination: Pagination = Depends(),
    caller: Caller = Depends(get_patient_caller),
    db: Session = Depends(get_db)
):
    """List the calling patient's appointments."""
    return AppointmentService(db).list_appointments(
        caller, pagination.page, pagination.limit
    )

@patient_router.get("/{appointment_id}", response_model=AppointmentResponse)
async def patient_get_appointment(
    appointment_id: str,
    caller: Caller = Depends(get_patient_caller),
    db: Session = Depends(get_db)
):
    return AppointmentService(db).get_appointment(caller, appointment_id)

@patient_router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def patient_create_appointment(
    appointment_data: PatientAppointmentCreate,
    caller: Caller = Depends(get_patient_caller),
    db: Session = Depends(get_db)
):
    """Book an appointment for the calling patient."""
    booking = AppointmentCreate(
        **appointment_data.model_dump(exclude={"patient_id"}),
        patient_id=caller.id,
    )
    return AppointmentService(db).create_appointment(caller, booking)

@patient_router.put("/{appointment_id}", response_model=AppointmentResponse)
async def patient_update_appointment(
    appointment_id: str,
    patch: AppointmentUpdate,
    caller: Caller = Depends(get_patient_caller),
    db: Session = Depends(get_db)
):
    return AppointmentService(db).update_appointment(caller, appointment_id, patch)

@patient_router.delete("/{appointment_id}", response_model=MessageResponse)
async def patient_delete_appointment(
    appointment_id: str,
    caller: Caller = Depends(get_patient_caller),
    db: Session = Depends(get_db)
):
    return AppointmentService(db).delete_appointment(caller, appointment_id)
