"""
Shared enums for record types and lifecycle states.
"""

from __future__ import annotations

from enum import Enum


class UserType(str, Enum):
    CLIENT = "client"
    BUSINESS = "business"


class AppointmentStatus(str, Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ProjectStatus(str, Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TaskStatus(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class SocialSource(str, Enum):
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
