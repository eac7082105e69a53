from sqlalchemy import func, select
from sqlalchemy.orm import Session
from datetime import date, datetime
from typing import Optional
from uuid import UUID
import logging

from ..models.appointment import Appointment, AppointmentStatus
from ..models.user import User
from ..core.config import settings
from ..core.security import Caller, UserRole
from ..core.exceptions import (
    NotFoundError, InvalidArgumentError, ConflictError, ForbiddenError
)
from ..schemas.appointment import (
    AppointmentCreate, AppointmentUpdate, AppointmentPage, AppointmentResponse
)
from .scheduling import find_conflicts

logger = logging.getLogger(__name__)

# Largest row offset a 64-bit OFFSET clause accepts
MAX_OFFSET = 2**63 - 1

# Columns that can't be cleared through a patch
NON_NULLABLE_FIELDS = {"appointment_date", "start_time", "end_time", "status"}

def is_valid_id(value: Optional[str]) -> bool:
    """Check that an id has the shape of the ids this service issues."""
    if not value:
        return False
    try:
        UUID(value)
    except (ValueError, TypeError, AttributeError):
        return False
    return True

class AppointmentService:
    def __init__(self, db: Session):
        self.db = db

    def create_appointment(self, caller: Caller, data: AppointmentCreate) -> Appointment:
        """Book a new appointment after ownership, time and overlap checks."""
        if caller.role == UserRole.DOCTOR:
            raise ForbiddenError("Doctors cannot create appointments on behalf of patients")

        if caller.role == UserRole.PATIENT and caller.id != data.patient_id:
            raise ForbiddenError("Patients can only book their own appointments")

        self._get_user_with_role(data.doctor_id, UserRole.DOCTOR, lock=True)
        self._get_user_with_role(data.patient_id, UserRole.PATIENT)

        self._validate_time_range(data.start_time, data.end_time)
        self._ensure_slot_available(
            data.doctor_id, data.appointment_date, data.start_time, data.end_time
        )

        appointment = Appointment(
            doctor_id=data.doctor_id,
            patient_id=data.patient_id,
            appointment_date=data.appointment_date,
            start_time=data.start_time,
            end_time=data.end_time,
            status=data.status or AppointmentStatus.SCHEDULED,
            notes=data.notes,
            reason=data.reason,
        )

        self.db.add(appointment)
        self.db.commit()
        self.db.refresh(appointment)

        logger.info(f"Appointment created: {appointment.id} by {caller.role.value}")
        return appointment

    def list_appointments(
        self,
        caller: Caller,
        page: int = 1,
        limit: int = settings.DEFAULT_PAGE_SIZE,
        role: Optional[UserRole] = None,
    ) -> AppointmentPage:
        """List appointments visible to the caller, one page at a time."""
        filters = []

        if caller.role == UserRole.DOCTOR:
            filters.append(Appointment.doctor_id == caller.id)
        elif caller.role == UserRole.PATIENT:
            filters.append(Appointment.patient_id == caller.id)

        # Patients only ever see their own bookings, so the filter is ignored for them
        if role is not None and caller.role != UserRole.PATIENT:
            user_ids = select(User.id).where(User.role == role)
            if caller.role == UserRole.ADMIN and role == UserRole.DOCTOR:
                filters.append(Appointment.doctor_id.in_(user_ids))
            else:
                filters.append(Appointment.patient_id.in_(user_ids))

        skip = (page - 1) * limit
        if skip > MAX_OFFSET:
            raise InvalidArgumentError("Page is out of range")

        total = self.db.query(func.count(Appointment.id)).filter(*filters).scalar()
        appointments = (
            self.db.query(Appointment)
            .filter(*filters)
            .order_by(
                Appointment.appointment_date.asc(),
                Appointment.start_time.asc(),
                Appointment.id.asc(),
            )
            .offset(skip)
            .limit(limit)
            .all()
        )

        return AppointmentPage(
            items=[AppointmentResponse.model_validate(item) for item in appointments],
            total=total or 0,
            page=page,
            limit=limit,
        )

    def get_appointment(self, caller: Caller, appointment_id: str) -> Appointment:
        """Fetch one appointment the caller is allowed to see."""
        return self._get_owned_appointment(caller, appointment_id, action="access")

    def update_appointment(
        self,
        caller: Caller,
        appointment_id: str,
        patch: AppointmentUpdate,
    ) -> Appointment:
        """Apply a partial update, re-checking the slot when the schedule changes."""
        appointment = self._get_owned_appointment(caller, appointment_id, action="update")
        changes = patch.model_dump(exclude_unset=True)

        resulting_status = patch.status or appointment.status
        reactivating = (
            appointment.status == AppointmentStatus.CANCELLED
            and resulting_status != AppointmentStatus.CANCELLED
        )

        if patch.touches_schedule() or reactivating:
            start = patch.start_time or appointment.start_time
            end = patch.end_time or appointment.end_time
            appointment_date = patch.appointment_date or appointment.appointment_date

            self._validate_time_range(start, end)

            # Cancelled appointments never hold a slot
            if resulting_status != AppointmentStatus.CANCELLED:
                self._lock_user(appointment.doctor_id)
                self._ensure_slot_available(
                    appointment.doctor_id,
                    appointment_date,
                    start,
                    end,
                    exclude_appointment_id=appointment.id,
                )

        for field, value in changes.items():
            if value is None and field in NON_NULLABLE_FIELDS:
                continue
            setattr(appointment, field, value)

        self.db.commit()
        self.db.refresh(appointment)

        logger.info(f"Appointment updated: {appointment.id} by {caller.role.value}")
        return appointment

    def delete_appointment(self, caller: Caller, appointment_id: str) -> dict:
        """Hard-delete an appointment the caller owns."""
        appointment = self._get_owned_appointment(caller, appointment_id, action="delete")

        self.db.delete(appointment)
        self.db.commit()

        logger.info(f"Appointment deleted: {appointment_id} by {caller.role.value}")
        return {"message": "Appointment deleted successfully"}

    def _get_owned_appointment(self, caller: Caller, appointment_id: str, action: str) -> Appointment:
        """Load an appointment and enforce doctor/patient ownership."""
        if not is_valid_id(appointment_id):
            raise NotFoundError("Invalid appointment ID")

        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id
        ).first()

        if not appointment:
            raise NotFoundError("Appointment not found")

        if caller.role == UserRole.DOCTOR and appointment.doctor_id != caller.id:
            raise ForbiddenError(f"Doctors can only {action} their own appointments")

        if caller.role == UserRole.PATIENT and appointment.patient_id != caller.id:
            raise ForbiddenError(f"Patients can only {action} their own appointments")

        return appointment

    def _get_user_with_role(self, user_id: str, role: UserRole, lock: bool = False) -> User:
        """Resolve a referenced user, failing NotFound when missing or of another role."""
        user = None
        if is_valid_id(user_id):
            user = self._lock_user(user_id) if lock else self.db.query(User).filter(
                User.id == user_id
            ).first()

        if not user or user.role != role:
            raise NotFoundError(f"{role.value.capitalize()} not found")

        return user

    def _lock_user(self, user_id: str) -> Optional[User]:
        """
        Select a user row FOR UPDATE until the transaction ends.

        Locking the doctor serializes concurrent bookings for that doctor on
        backends with row locks; SQLite ignores the clause.
        """
        return self.db.query(User).filter(User.id == user_id).with_for_update().first()

    @staticmethod
    def _validate_time_range(start_time: datetime, end_time: datetime) -> None:
        if start_time >= end_time:
            raise InvalidArgumentError("End time must be after start time")

    def _ensure_slot_available(
        self,
        doctor_id: str,
        appointment_date: date,
        start_time: datetime,
        end_time: datetime,
        exclude_appointment_id: Optional[str] = None,
    ) -> None:
        conflicts = find_conflicts(
            self.db,
            doctor_id,
            appointment_date,
            start_time,
            end_time,
            exclude_appointment_id=exclude_appointment_id,
        )
        if conflicts:
            logger.warning(
                f"Rejected booking for doctor {doctor_id} on {appointment_date}: "
                f"{len(conflicts)} overlapping appointment(s)"
            )
            raise ConflictError("Time slot is already booked")
