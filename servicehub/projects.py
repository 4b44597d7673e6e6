"""
Project handlers.

A business proposes a project to one of its clients; the client approves or
rejects it, after which only the business edits it.
"""

from __future__ import annotations

import logging
from typing import Optional

from servicehub.auth import Identity
from servicehub.db import DbClient, ProjectRecord
from servicehub.errors import Conflict, Forbidden, InvalidRequest, NotFound
from servicehub.profiles import enrich, require_profile
from servicehub.schemas import ProjectCreate, ProjectUpdate
from servicehub.types import (
    ApprovalStatus,
    AppointmentStatus,
    ProjectStatus,
    TaskStatus,
    UserType,
)

logger = logging.getLogger(__name__)


def list_mine(db: DbClient, identity: Optional[Identity]) -> list[dict]:
    if identity is None:
        return []
    profile = db.get_profile_by_user(identity.subject)
    if not profile:
        return []
    if profile.user_type == UserType.BUSINESS:
        projects = db.list_projects(business_owner_id=identity.subject)
    else:
        projects = db.list_projects(client_id=identity.subject)
    return enrich(db, projects)


def _get_project(db: DbClient, project_id: str) -> ProjectRecord:
    project = db.get_project(project_id)
    if not project:
        raise NotFound("Project not found")
    return project


def _get_owned_project(
    db: DbClient, identity: Identity, project_id: str
) -> ProjectRecord:
    project = _get_project(db, project_id)
    if project.business_owner_id != identity.subject:
        raise Forbidden("Not authorized to update this project")
    return project


def get_project(db: DbClient, identity: Identity, project_id: str) -> dict:
    project = _get_project(db, project_id)
    if identity.subject not in (project.business_owner_id, project.client_id):
        raise Forbidden("Not authorized to view this project")
    return enrich(db, [project])[0]


def create_project(
    db: DbClient, identity: Identity, payload: ProjectCreate
) -> ProjectRecord:
    require_profile(
        db, identity, UserType.BUSINESS, "Only business owners can create projects"
    )
    client = db.get_profile_by_user(payload.client_id)
    if not client or client.user_type != UserType.CLIENT:
        raise InvalidRequest("Projects must be assigned to a client")

    fields = payload.model_dump(exclude={"project_tasks"})
    project = db.create_project(
        ProjectRecord(
            business_owner_id=identity.subject,
            project_tasks=[
                {"name": name, "status": TaskStatus.QUEUED.value}
                for name in payload.project_tasks
            ],
            **fields,
        )
    )
    logger.info("Created project %s for client %s", project.id, payload.client_id)
    return project


def update_project(
    db: DbClient, identity: Identity, project_id: str, payload: ProjectUpdate
) -> ProjectRecord:
    project = _get_owned_project(db, identity, project_id)
    updates = payload.changes(mode="json")
    if not updates:
        return project
    return db.update_project(project_id, updates)


def update_task_status(
    db: DbClient,
    identity: Identity,
    project_id: str,
    task_index: int,
    status: TaskStatus,
) -> ProjectRecord:
    project = _get_owned_project(db, identity, project_id)
    if task_index < 0 or task_index >= len(project.project_tasks):
        raise InvalidRequest("Invalid task index")

    tasks = [dict(task) for task in project.project_tasks]
    tasks[task_index]["status"] = status.value
    return db.update_project(project_id, {"project_tasks": tasks})


def _get_pending_for_client(
    db: DbClient, identity: Identity, project_id: str, action: str
) -> ProjectRecord:
    project = _get_project(db, project_id)
    if project.client_id != identity.subject:
        raise Forbidden(f"Not authorized to {action} this project")
    if project.approval_status != ApprovalStatus.PENDING:
        raise Conflict("Project is not pending approval")
    return project


def approve_project(
    db: DbClient, identity: Identity, project_id: str
) -> ProjectRecord:
    _get_pending_for_client(db, identity, project_id, "approve")
    return db.update_project(
        project_id,
        {"approval_status": ApprovalStatus.APPROVED, "status": ProjectStatus.PLANNED},
    )


def reject_project(
    db: DbClient, identity: Identity, project_id: str, rejection_reason: str
) -> ProjectRecord:
    _get_pending_for_client(db, identity, project_id, "reject")
    return db.update_project(
        project_id,
        {
            "approval_status": ApprovalStatus.REJECTED,
            "rejection_reason": rejection_reason,
            "status": ProjectStatus.CANCELLED,
        },
    )


def list_clients(db: DbClient, identity: Optional[Identity]) -> list[str]:
    """Distinct client ids across the caller's projects."""
    if identity is None:
        return []
    profile = db.get_profile_by_user(identity.subject)
    if not profile or profile.user_type != UserType.BUSINESS:
        return []
    client_ids: list[str] = []
    for project in db.list_projects(business_owner_id=identity.subject):
        if project.client_id not in client_ids:
            client_ids.append(project.client_id)
    return client_ids


def list_clients_with_completed_appointments(
    db: DbClient, identity: Optional[Identity]
) -> list[dict]:
    if identity is None:
        return []
    profile = db.get_profile_by_user(identity.subject)
    if not profile or profile.user_type != UserType.BUSINESS:
        return []

    client_ids: list[str] = []
    for appointment in db.list_appointments(business_owner_id=identity.subject):
        if (
            appointment.status == AppointmentStatus.COMPLETED
            and appointment.client_id
            and appointment.client_id not in client_ids
        ):
            client_ids.append(appointment.client_id)

    clients = []
    for client_id in client_ids:
        client = db.get_profile_by_user(client_id)
        if client:
            clients.append({"user_id": client.user_id, "name": client.name})
    return clients
