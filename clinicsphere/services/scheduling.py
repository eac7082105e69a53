"""
Overlap detection for appointment slots.

A slot is the half-open interval [start_time, end_time). Two slots for the
same doctor on the same appointment date conflict when

    existing.start < new.end AND existing.end > new.start

so slots that only touch at a boundary do not conflict. Cancelled
appointments never block a slot.
"""
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.appointment import Appointment, AppointmentStatus


def slots_overlap(
    start_a: datetime,
    end_a: datetime,
    start_b: datetime,
    end_b: datetime,
) -> bool:
    """Return True if [start_a, end_a) and [start_b, end_b) intersect."""
    return start_a < end_b and end_a > start_b


def find_conflicts(
    db: Session,
    doctor_id: str,
    appointment_date: date,
    start_time: datetime,
    end_time: datetime,
    exclude_appointment_id: Optional[str] = None,
) -> List[Appointment]:
    """
    Return the doctor's active appointments on ``appointment_date`` whose
    slot intersects [start_time, end_time).

    The filter is ``slots_overlap`` expressed in SQL; that function is the
    definition the query must agree with.

    ``exclude_appointment_id`` leaves one appointment out of the check, so a
    reschedule never conflicts with the record being edited.
    """
    query = db.query(Appointment).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.appointment_date == appointment_date,
        Appointment.status != AppointmentStatus.CANCELLED,
        Appointment.start_time < end_time,
        Appointment.end_time > start_time,
    )

    if exclude_appointment_id:
        query = query.filter(Appointment.id != exclude_appointment_id)

    return query.order_by(Appointment.start_time.asc()).all()
