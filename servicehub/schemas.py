"""
Pydantic schemas for the servicehub API.
"""

from __future__ import annotations

from typing import ClassVar, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from servicehub.types import (
    ApprovalStatus,
    AppointmentStatus,
    ProjectStatus,
    SocialSource,
    TaskStatus,
    UserType,
)


class PatchModel(BaseModel):
    """Partial update payload; fields not listed here can't be patched."""

    model_config = ConfigDict(extra="forbid")

    # Fields an explicit null clears; nulls for any other field are ignored.
    nullable: ClassVar[frozenset[str]] = frozenset()

    def changes(self, **dump_kwargs) -> dict:
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True, **dump_kwargs).items()
            if value is not None or key in self.nullable
        }


class LoggedInUserResponse(BaseModel):
    user_id: str
    token_identifier: str


class ProfileSummary(BaseModel):
    user_id: str
    name: str
    business_name: Optional[str] = None


class ProfileCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    user_type: UserType
    business_name: Optional[str] = None
    business_description: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    services: Optional[list[str]] = None


class ProfileUpdate(PatchModel):
    nullable = frozenset(
        {"business_name", "business_description", "phone", "address", "services"}
    )

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    business_name: Optional[str] = None
    business_description: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    services: Optional[list[str]] = None


class ProfileResponse(BaseModel):
    id: str
    user_id: str
    name: str
    user_type: UserType
    business_name: Optional[str] = None
    business_description: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    services: Optional[list[str]] = None
    created_at: int


class AppointmentSlotCreate(BaseModel):
    start_date_time: int
    end_date_time: int


class AppointmentBookRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=2000)


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus


class AppointmentResponse(BaseModel):
    id: str
    business_owner_id: str
    client_id: Optional[str] = None
    start_date_time: int
    end_date_time: int
    status: AppointmentStatus
    notes: Optional[str] = None
    created_at: int
    business: Optional[ProfileSummary] = None
    client: Optional[ProfileSummary] = None


class ProjectTask(BaseModel):
    name: str
    status: TaskStatus = TaskStatus.QUEUED


class ProjectCreate(BaseModel):
    client_id: str
    project_type: str
    project_name: str = Field(..., min_length=1)
    project_tasks: list[str] = Field(default_factory=list)
    estimated_length: float = Field(..., ge=0)
    estimated_start_date_time: int
    estimated_end_date_time: int
    notes: Optional[str] = None


class ProjectUpdate(PatchModel):
    nullable = frozenset(
        {"actual_start_date_time", "actual_end_date_time", "notes"}
    )

    project_type: Optional[str] = None
    project_name: Optional[str] = Field(None, min_length=1)
    project_tasks: Optional[list[ProjectTask]] = None
    estimated_length: Optional[float] = Field(None, ge=0)
    estimated_start_date_time: Optional[int] = None
    estimated_end_date_time: Optional[int] = None
    actual_start_date_time: Optional[int] = None
    actual_end_date_time: Optional[int] = None
    status: Optional[ProjectStatus] = None
    notes: Optional[str] = None


class TaskStatusUpdate(BaseModel):
    task_index: int
    status: TaskStatus


class ProjectRejectRequest(BaseModel):
    rejection_reason: str = Field(..., min_length=1)


class ProjectResponse(BaseModel):
    id: str
    business_owner_id: str
    client_id: str
    project_type: str
    project_name: str
    project_tasks: list[ProjectTask]
    estimated_length: float
    estimated_start_date_time: int
    estimated_end_date_time: int
    actual_start_date_time: Optional[int] = None
    actual_end_date_time: Optional[int] = None
    status: ProjectStatus
    approval_status: ApprovalStatus
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: int
    business: Optional[ProfileSummary] = None
    client: Optional[ProfileSummary] = None


class ClientSummary(BaseModel):
    user_id: str
    name: str


class TestimonialCreate(BaseModel):
    business_owner_id: str
    project_id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    image_urls: Optional[list[str]] = None


class TestimonialUpdate(PatchModel):
    nullable = frozenset({"image_urls"})

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    # Out-of-range ratings are clamped rather than rejected.
    rating: Optional[int] = None
    image_urls: Optional[list[str]] = None


class TestimonialResponse(BaseModel):
    id: str
    client_id: str
    business_owner_id: str
    project_id: Optional[str] = None
    title: str
    description: str
    rating: int
    image_urls: Optional[list[str]] = None
    is_highlighted: bool
    created_at: int
    business: Optional[ProfileSummary] = None
    client: Optional[ProfileSummary] = None


class BeginMetaAuthResponse(BaseModel):
    auth_url: str
    state: str


class ConnectedPage(BaseModel):
    page_id: str
    name: Optional[str] = None


class MetaAccountResponse(BaseModel):
    facebook_user_id: str
    token_expires_at: Optional[int] = None
    connected_pages: list[ConnectedPage]
    instagram_business_account_id: Optional[str] = None
    updated_at: int


class MetaConnectionStatus(BaseModel):
    connected: bool
    account: Optional[MetaAccountResponse] = None


class SocialPostResponse(BaseModel):
    id: str
    source: SocialSource
    external_id: str
    page_id: Optional[str] = None
    caption: Optional[str] = None
    media_type: Optional[str] = None
    media_url: Optional[str] = None
    permalink: Optional[str] = None
    posted_at: Optional[int] = None
    fetched_at: int


class DisconnectResponse(BaseModel):
    status: Literal["ok"]
    deleted_posts: int
