"""
Profile handlers.

A profile is the role-specific extension of an authenticated user. There is
at most one per user; that is checked here on create rather than by a
database constraint.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from servicehub.auth import Identity
from servicehub.db import DbClient, ProfileRecord
from servicehub.errors import Conflict, Forbidden, NotFound
from servicehub.schemas import ProfileCreate, ProfileUpdate
from servicehub.types import UserType

logger = logging.getLogger(__name__)


def get_current_profile(
    db: DbClient, identity: Optional[Identity]
) -> Optional[ProfileRecord]:
    if identity is None:
        return None
    return db.get_profile_by_user(identity.subject)


def create_profile(
    db: DbClient, identity: Identity, payload: ProfileCreate
) -> ProfileRecord:
    profile = db.create_profile(
        ProfileRecord(user_id=identity.subject, **payload.model_dump())
    )
    if profile is None:
        raise Conflict("Profile already exists")
    logger.info("Created %s profile %s", profile.user_type.value, profile.id)
    return profile


def update_profile(
    db: DbClient, identity: Identity, payload: ProfileUpdate
) -> ProfileRecord:
    profile = db.get_profile_by_user(identity.subject)
    if not profile:
        raise NotFound("Profile not found")
    updates = payload.changes()
    if not updates:
        return profile
    return db.update_profile(profile.id, updates)


def list_business_owners(db: DbClient) -> list[ProfileRecord]:
    return db.list_profiles(user_type=UserType.BUSINESS)


def require_profile(
    db: DbClient, identity: Identity, user_type: UserType, message: str
) -> ProfileRecord:
    """Return the caller's profile, or raise Forbidden if it isn't ``user_type``."""
    profile = db.get_profile_by_user(identity.subject)
    if not profile or profile.user_type != user_type:
        raise Forbidden(message)
    return profile


def summarize(profile: Optional[ProfileRecord]) -> Optional[dict]:
    if not profile:
        return None
    return {
        "user_id": profile.user_id,
        "name": profile.name,
        "business_name": profile.business_name,
    }


def enrich(db: DbClient, records: Iterable) -> list[dict]:
    """
    Join the business and client profiles onto each record.

    Records must carry ``business_owner_id`` and ``client_id``; each user's
    profile is looked up once per call.
    """
    cache: dict[str, Optional[dict]] = {}

    def lookup(user_id: Optional[str]) -> Optional[dict]:
        if not user_id:
            return None
        if user_id not in cache:
            cache[user_id] = summarize(db.get_profile_by_user(user_id))
        return cache[user_id]

    items = []
    for record in records:
        item = record.as_dict()
        item["business"] = lookup(record.business_owner_id)
        item["client"] = lookup(record.client_id)
        items.append(item)
    return items
