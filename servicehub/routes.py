"""
HTTP routes for the servicehub JSON API.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from servicehub import appointments, meta, profiles, projects, testimonials
from servicehub.auth import Identity, get_optional_identity, require_identity
from servicehub.config import Settings, get_settings
from servicehub.db import DbClient
from servicehub.dependencies import get_db_client, get_meta_client
from servicehub.meta import MetaGraphClient
from servicehub.schemas import (
    AppointmentBookRequest,
    AppointmentResponse,
    AppointmentSlotCreate,
    AppointmentStatusUpdate,
    BeginMetaAuthResponse,
    ClientSummary,
    DisconnectResponse,
    LoggedInUserResponse,
    MetaConnectionStatus,
    ProfileCreate,
    ProfileResponse,
    ProfileUpdate,
    ProjectCreate,
    ProjectRejectRequest,
    ProjectResponse,
    ProjectUpdate,
    SocialPostResponse,
    TaskStatusUpdate,
    TestimonialCreate,
    TestimonialResponse,
    TestimonialUpdate,
)
from servicehub.types import SocialSource

logger = logging.getLogger(__name__)

router = APIRouter()


def _one(db: DbClient, record) -> dict:
    return profiles.enrich(db, [record])[0]


@router.get("/auth/me", response_model=Optional[LoggedInUserResponse])
def logged_in_user(identity: Optional[Identity] = Depends(get_optional_identity)):
    if identity is None:
        return None
    return LoggedInUserResponse(
        user_id=identity.subject, token_identifier=identity.token_identifier
    )


@router.get("/profiles/me", response_model=Optional[ProfileResponse])
def get_current_profile(
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: DbClient = Depends(get_db_client),
):
    profile = profiles.get_current_profile(db, identity)
    return profile.as_dict() if profile else None


@router.post("/profiles", response_model=ProfileResponse, status_code=201)
def create_profile(
    payload: ProfileCreate,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    return profiles.create_profile(db, identity, payload).as_dict()


@router.patch("/profiles/me", response_model=ProfileResponse)
def update_profile(
    payload: ProfileUpdate,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    return profiles.update_profile(db, identity, payload).as_dict()


@router.get("/profiles/businesses", response_model=list[ProfileResponse])
def list_business_owners(db: DbClient = Depends(get_db_client)):
    return [p.as_dict() for p in profiles.list_business_owners(db)]


@router.get("/appointments/available", response_model=list[AppointmentResponse])
def list_available_appointments(
    business_owner_id: Optional[str] = Query(None),
    db: DbClient = Depends(get_db_client),
):
    return appointments.list_available(db, business_owner_id)


@router.get("/appointments/mine", response_model=list[AppointmentResponse])
def list_my_appointments(
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: DbClient = Depends(get_db_client),
):
    return appointments.list_mine(db, identity)


@router.post("/appointments", response_model=AppointmentResponse, status_code=201)
def create_appointment_slot(
    payload: AppointmentSlotCreate,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    appointment = appointments.create_slot(
        db, identity, payload.start_date_time, payload.end_date_time
    )
    return _one(db, appointment)


@router.post("/appointments/{appointment_id}/book", response_model=AppointmentResponse)
def book_appointment(
    appointment_id: str,
    payload: AppointmentBookRequest,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    appointment = appointments.book(db, identity, appointment_id, payload.notes)
    return _one(db, appointment)


@router.post(
    "/appointments/{appointment_id}/status", response_model=AppointmentResponse
)
def update_appointment_status(
    appointment_id: str,
    payload: AppointmentStatusUpdate,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    appointment = appointments.update_status(
        db, identity, appointment_id, payload.status
    )
    return _one(db, appointment)


@router.get("/projects/mine", response_model=list[ProjectResponse])
def list_my_projects(
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: DbClient = Depends(get_db_client),
):
    return projects.list_mine(db, identity)


@router.get("/projects/clients", response_model=list[str])
def list_project_clients(
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: DbClient = Depends(get_db_client),
):
    return projects.list_clients(db, identity)


@router.get("/projects/eligible-clients", response_model=list[ClientSummary])
def list_clients_with_completed_appointments(
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: DbClient = Depends(get_db_client),
):
    return projects.list_clients_with_completed_appointments(db, identity)


@router.get("/projects/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: str,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    return projects.get_project(db, identity, project_id)


@router.post("/projects", response_model=ProjectResponse, status_code=201)
def create_project(
    payload: ProjectCreate,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    return _one(db, projects.create_project(db, identity, payload))


@router.patch("/projects/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: str,
    payload: ProjectUpdate,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    return _one(db, projects.update_project(db, identity, project_id, payload))


@router.post("/projects/{project_id}/tasks", response_model=ProjectResponse)
def update_task_status(
    project_id: str,
    payload: TaskStatusUpdate,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    project = projects.update_task_status(
        db, identity, project_id, payload.task_index, payload.status
    )
    return _one(db, project)


@router.post("/projects/{project_id}/approve", response_model=ProjectResponse)
def approve_project(
    project_id: str,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    return _one(db, projects.approve_project(db, identity, project_id))


@router.post("/projects/{project_id}/reject", response_model=ProjectResponse)
def reject_project(
    project_id: str,
    payload: ProjectRejectRequest,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    project = projects.reject_project(
        db, identity, project_id, payload.rejection_reason
    )
    return _one(db, project)


@router.get("/testimonials", response_model=list[TestimonialResponse])
def list_testimonials(
    business_owner_id: Optional[str] = Query(None),
    highlighted_only: bool = Query(False),
    db: DbClient = Depends(get_db_client),
):
    return testimonials.list_testimonials(db, business_owner_id, highlighted_only)


@router.post("/testimonials", response_model=TestimonialResponse, status_code=201)
def create_testimonial(
    payload: TestimonialCreate,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    return _one(db, testimonials.create_testimonial(db, identity, payload))


@router.patch("/testimonials/{testimonial_id}", response_model=TestimonialResponse)
def update_testimonial(
    testimonial_id: str,
    payload: TestimonialUpdate,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    testimonial = testimonials.update_testimonial(
        db, identity, testimonial_id, payload
    )
    return _one(db, testimonial)


@router.post(
    "/testimonials/{testimonial_id}/highlight", response_model=TestimonialResponse
)
def toggle_testimonial_highlight(
    testimonial_id: str,
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    return _one(db, testimonials.toggle_highlight(db, identity, testimonial_id))


@router.post("/meta/oauth/begin", response_model=BeginMetaAuthResponse)
def begin_meta_auth(
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
    client: Optional[MetaGraphClient] = Depends(get_meta_client),
):
    return meta.begin_auth(db, identity, client)


@router.get("/meta/status", response_model=MetaConnectionStatus)
def meta_connection_status(
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: DbClient = Depends(get_db_client),
):
    return meta.connection_status(db, identity)


@router.get("/meta/posts", response_model=list[SocialPostResponse])
def list_social_posts(
    source: Optional[SocialSource] = Query(None),
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: DbClient = Depends(get_db_client),
):
    return [p.as_dict() for p in meta.list_posts(db, identity, source)]


@router.post("/meta/sync")
def sync_social_content(
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
    client: Optional[MetaGraphClient] = Depends(get_meta_client),
    settings: Settings = Depends(get_settings),
):
    stored = meta.sync_user(db, identity, client, settings.meta_sync_limit)
    return {"stored": stored}


@router.post("/meta/disconnect", response_model=DisconnectResponse)
def disconnect_meta(
    identity: Identity = Depends(require_identity),
    db: DbClient = Depends(get_db_client),
):
    deleted = meta.disconnect(db, identity)
    return DisconnectResponse(status="ok", deleted_posts=deleted)
