"""
Appointment handlers.

A business publishes ``available`` slots; a client books one, and either
party can move it through the rest of its lifecycle.
"""

from __future__ import annotations

import logging
from typing import Optional

from servicehub.auth import Identity
from servicehub.db import AppointmentRecord, DbClient, now_ms
from servicehub.errors import Conflict, Forbidden, InvalidRequest, NotFound
from servicehub.profiles import enrich, require_profile
from servicehub.types import AppointmentStatus, UserType

logger = logging.getLogger(__name__)

# Status changes through update_status; available -> booked only happens in book().
ALLOWED_TRANSITIONS = {
    AppointmentStatus.AVAILABLE: {AppointmentStatus.CANCELLED},
    AppointmentStatus.BOOKED: {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.AVAILABLE,
    },
    AppointmentStatus.CANCELLED: {AppointmentStatus.AVAILABLE},
    AppointmentStatus.COMPLETED: set(),
}


def list_available(
    db: DbClient, business_owner_id: Optional[str] = None
) -> list[dict]:
    now = now_ms()
    appointments = [
        a
        for a in db.list_appointments(business_owner_id=business_owner_id)
        if a.status == AppointmentStatus.AVAILABLE and a.start_date_time > now
    ]
    return enrich(db, appointments)


def list_mine(db: DbClient, identity: Optional[Identity]) -> list[dict]:
    if identity is None:
        return []
    profile = db.get_profile_by_user(identity.subject)
    if not profile:
        return []
    if profile.user_type == UserType.BUSINESS:
        appointments = db.list_appointments(business_owner_id=identity.subject)
    else:
        appointments = db.list_appointments(client_id=identity.subject)
    return enrich(db, appointments)


def create_slot(
    db: DbClient, identity: Identity, start_date_time: int, end_date_time: int
) -> AppointmentRecord:
    require_profile(
        db,
        identity,
        UserType.BUSINESS,
        "Only business owners can create appointment slots",
    )
    if end_date_time <= start_date_time:
        raise InvalidRequest("Appointment must end after it starts")
    return db.create_appointment(
        AppointmentRecord(
            business_owner_id=identity.subject,
            start_date_time=start_date_time,
            end_date_time=end_date_time,
        )
    )


def _get_appointment(db: DbClient, appointment_id: str) -> AppointmentRecord:
    appointment = db.get_appointment(appointment_id)
    if not appointment:
        raise NotFound("Appointment not found")
    return appointment


def book(
    db: DbClient, identity: Identity, appointment_id: str, notes: Optional[str] = None
) -> AppointmentRecord:
    require_profile(
        db, identity, UserType.CLIENT, "Only clients can book appointments"
    )
    appointment = _get_appointment(db, appointment_id)
    if appointment.status != AppointmentStatus.AVAILABLE:
        raise Conflict("Appointment is not available")
    # Another client may have booked it since the read above.
    booked = db.book_appointment(appointment_id, identity.subject, notes)
    if booked is None:
        raise Conflict("Appointment is not available")
    logger.info("Appointment %s booked", appointment_id)
    return booked


def update_status(
    db: DbClient, identity: Identity, appointment_id: str, status: AppointmentStatus
) -> AppointmentRecord:
    appointment = _get_appointment(db, appointment_id)

    is_owner = appointment.business_owner_id == identity.subject
    is_client = (
        appointment.client_id is not None
        and appointment.client_id == identity.subject
    )
    if not (is_owner or is_client):
        raise Forbidden("Not authorized to update this appointment")
    if status == AppointmentStatus.COMPLETED and not is_owner:
        raise Forbidden("Only the business owner can complete an appointment")
    if status == appointment.status:
        return appointment
    if status not in ALLOWED_TRANSITIONS[appointment.status]:
        raise Conflict(
            f"Cannot move appointment from {appointment.status.value} to {status.value}"
        )

    updates: dict = {"status": status}
    # Releasing or cancelling a slot drops the booking.
    if status in (AppointmentStatus.CANCELLED, AppointmentStatus.AVAILABLE):
        updates["client_id"] = None
        updates["notes"] = None
    return db.update_appointment(appointment_id, updates)
