"""
Testimonial handlers.
"""

from __future__ import annotations

import logging
from typing import Optional

from servicehub.auth import Identity
from servicehub.db import DbClient, TestimonialRecord
from servicehub.errors import Forbidden, InvalidRequest, NotFound
from servicehub.profiles import enrich, require_profile
from servicehub.schemas import TestimonialCreate, TestimonialUpdate
from servicehub.types import UserType

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def list_testimonials(
    db: DbClient,
    business_owner_id: Optional[str] = None,
    highlighted_only: bool = False,
) -> list[dict]:
    testimonials = db.list_testimonials(business_owner_id=business_owner_id)
    if highlighted_only:
        testimonials = [t for t in testimonials if t.is_highlighted]
    return enrich(db, testimonials)


def create_testimonial(
    db: DbClient, identity: Identity, payload: TestimonialCreate
) -> TestimonialRecord:
    require_profile(
        db, identity, UserType.CLIENT, "Only clients can create testimonials"
    )
    business = db.get_profile_by_user(payload.business_owner_id)
    if not business or business.user_type != UserType.BUSINESS:
        raise InvalidRequest("Testimonials must be about a business")
    if payload.project_id:
        project = db.get_project(payload.project_id)
        if (
            not project
            or project.client_id != identity.subject
            or project.business_owner_id != payload.business_owner_id
        ):
            raise InvalidRequest("Project does not match this testimonial")

    testimonial = db.create_testimonial(
        TestimonialRecord(client_id=identity.subject, **payload.model_dump())
    )
    logger.info(
        "Testimonial %s created for business %s",
        testimonial.id,
        payload.business_owner_id,
    )
    return testimonial


def _get_testimonial(db: DbClient, testimonial_id: str) -> TestimonialRecord:
    testimonial = db.get_testimonial(testimonial_id)
    if not testimonial:
        raise NotFound("Testimonial not found")
    return testimonial


def toggle_highlight(
    db: DbClient, identity: Identity, testimonial_id: str
) -> TestimonialRecord:
    testimonial = _get_testimonial(db, testimonial_id)
    if testimonial.business_owner_id != identity.subject:
        raise Forbidden("Only the business owner can highlight testimonials")
    return db.update_testimonial(
        testimonial_id, {"is_highlighted": not testimonial.is_highlighted}
    )


def update_testimonial(
    db: DbClient, identity: Identity, testimonial_id: str, payload: TestimonialUpdate
) -> TestimonialRecord:
    testimonial = _get_testimonial(db, testimonial_id)
    if testimonial.client_id != identity.subject:
        raise Forbidden("Only the author can update their testimonial")

    updates = payload.changes()
    if "rating" in updates:
        updates["rating"] = max(MIN_RATING, min(MAX_RATING, updates["rating"]))
    if not updates:
        return testimonial
    return db.update_testimonial(testimonial_id, updates)
