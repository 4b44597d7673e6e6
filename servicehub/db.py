"""
Database abstraction for Postgres and an in-memory test implementation.

Records are created by insert and changed by partial patch. Profiles,
appointments, projects and testimonials are never deleted; only the Meta
integration records (accounts, OAuth states, synced posts) are.
"""

from __future__ import annotations

import copy
import threading
import time
import uuid
from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from typing import Dict, Optional, Protocol

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Float,
    Column,
    Integer,
    String,
    UniqueConstraint,
    create_engine,
    select,
    update,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from servicehub.types import (
    ApprovalStatus,
    AppointmentStatus,
    ProjectStatus,
    SocialSource,
    UserType,
)


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id() -> str:
    return uuid.uuid4().hex


class DbClient(Protocol):
    """Interface for database access."""

    def create_profile(self, profile: "ProfileRecord") -> Optional["ProfileRecord"]:
        """Insert ``profile``, or return None if its user already has one."""
        ...

    def get_profile(self, profile_id: str) -> Optional["ProfileRecord"]:
        ...

    def get_profile_by_user(self, user_id: str) -> Optional["ProfileRecord"]:
        ...

    def update_profile(
        self, profile_id: str, updates: dict
    ) -> Optional["ProfileRecord"]:
        ...

    def list_profiles(
        self, user_type: Optional[UserType] = None
    ) -> list["ProfileRecord"]:
        ...

    def create_appointment(
        self, appointment: "AppointmentRecord"
    ) -> "AppointmentRecord":
        ...

    def get_appointment(self, appointment_id: str) -> Optional["AppointmentRecord"]:
        ...

    def update_appointment(
        self, appointment_id: str, updates: dict
    ) -> Optional["AppointmentRecord"]:
        ...

    def book_appointment(
        self, appointment_id: str, client_id: str, notes: Optional[str]
    ) -> Optional["AppointmentRecord"]:
        """Book the slot only if it is still available; None otherwise."""
        ...

    def list_appointments(
        self,
        *,
        business_owner_id: Optional[str] = None,
        client_id: Optional[str] = None,
    ) -> list["AppointmentRecord"]:
        ...

    def create_project(self, project: "ProjectRecord") -> "ProjectRecord":
        ...

    def get_project(self, project_id: str) -> Optional["ProjectRecord"]:
        ...

    def update_project(
        self, project_id: str, updates: dict
    ) -> Optional["ProjectRecord"]:
        ...

    def list_projects(
        self,
        *,
        business_owner_id: Optional[str] = None,
        client_id: Optional[str] = None,
    ) -> list["ProjectRecord"]:
        ...

    def create_testimonial(
        self, testimonial: "TestimonialRecord"
    ) -> "TestimonialRecord":
        ...

    def get_testimonial(self, testimonial_id: str) -> Optional["TestimonialRecord"]:
        ...

    def update_testimonial(
        self, testimonial_id: str, updates: dict
    ) -> Optional["TestimonialRecord"]:
        ...

    def list_testimonials(
        self,
        *,
        business_owner_id: Optional[str] = None,
        client_id: Optional[str] = None,
    ) -> list["TestimonialRecord"]:
        ...

    def save_meta_account(self, account: "MetaAccountRecord") -> "MetaAccountRecord":
        ...

    def get_meta_account(self, user_id: str) -> Optional["MetaAccountRecord"]:
        ...

    def list_meta_accounts(self) -> list["MetaAccountRecord"]:
        ...

    def delete_meta_account(self, user_id: str) -> bool:
        ...

    def save_oauth_state(self, state: "OAuthStateRecord") -> None:
        ...

    def get_oauth_state(self, state: str) -> Optional["OAuthStateRecord"]:
        ...

    def delete_oauth_state(self, state: str) -> None:
        ...

    def upsert_social_post(self, post: "SocialPostRecord") -> "SocialPostRecord":
        ...

    def list_social_posts(
        self, user_id: str, source: Optional[SocialSource] = None
    ) -> list["SocialPostRecord"]:
        ...

    def delete_social_posts(self, user_id: str) -> int:
        ...


@dataclass
class ProfileRecord:
    user_id: str
    name: str
    user_type: UserType
    business_name: Optional[str] = None
    business_description: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    services: Optional[list[str]] = None
    id: str = field(default_factory=new_id)
    created_at: int = field(default_factory=now_ms)

    def __post_init__(self):
        self.user_type = UserType(self.user_type)

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class AppointmentRecord:
    business_owner_id: str
    start_date_time: int
    end_date_time: int
    status: AppointmentStatus = AppointmentStatus.AVAILABLE
    client_id: Optional[str] = None
    notes: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: int = field(default_factory=now_ms)

    def __post_init__(self):
        self.status = AppointmentStatus(self.status)

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class ProjectRecord:
    business_owner_id: str
    client_id: str
    project_type: str
    project_name: str
    estimated_length: float
    estimated_start_date_time: int
    estimated_end_date_time: int
    # Each task is {"name": str, "status": TaskStatus value}.
    project_tasks: list[dict] = field(default_factory=list)
    status: ProjectStatus = ProjectStatus.PLANNED
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    actual_start_date_time: Optional[int] = None
    actual_end_date_time: Optional[int] = None
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: int = field(default_factory=now_ms)

    def __post_init__(self):
        self.status = ProjectStatus(self.status)
        self.approval_status = ApprovalStatus(self.approval_status)

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class TestimonialRecord:
    client_id: str
    business_owner_id: str
    title: str
    description: str
    rating: int
    project_id: Optional[str] = None
    image_urls: Optional[list[str]] = None
    is_highlighted: bool = False
    id: str = field(default_factory=new_id)
    created_at: int = field(default_factory=now_ms)

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class MetaAccountRecord:
    user_id: str
    long_lived_user_token: str
    facebook_user_id: str
    token_expires_at: Optional[int] = None
    # Each page is {"page_id": str, "name": str, "page_access_token": str | None}.
    connected_pages: list[dict] = field(default_factory=list)
    instagram_business_account_id: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: int = field(default_factory=now_ms)
    updated_at: int = field(default_factory=now_ms)

    def as_dict(self) -> dict:
        data = asdict(self)
        # Tokens never leave the backend.
        data.pop("long_lived_user_token")
        data["connected_pages"] = [
            {"page_id": p.get("page_id"), "name": p.get("name")}
            for p in self.connected_pages
        ]
        return data


@dataclass
class OAuthStateRecord:
    state: str
    user_id: str
    expires_at: int
    created_at: int = field(default_factory=now_ms)


@dataclass
class SocialPostRecord:
    user_id: str
    source: SocialSource
    external_id: str
    page_id: Optional[str] = None
    caption: Optional[str] = None
    media_type: Optional[str] = None
    media_url: Optional[str] = None
    permalink: Optional[str] = None
    posted_at: Optional[int] = None
    id: str = field(default_factory=new_id)
    fetched_at: int = field(default_factory=now_ms)

    def __post_init__(self):
        self.source = SocialSource(self.source)

    def as_dict(self) -> dict:
        return asdict(self)


def _apply(record, updates: dict):
    """Return a patched copy of ``record``; unknown keys are rejected."""
    known = {f.name for f in fields(record)}
    unknown = set(updates) - known
    if unknown:
        raise ValueError(f"Unknown fields: {sorted(unknown)}")
    return replace(record, **updates)


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.profiles: Dict[str, ProfileRecord] = {}
        self.appointments: Dict[str, AppointmentRecord] = {}
        self.projects: Dict[str, ProjectRecord] = {}
        self.testimonials: Dict[str, TestimonialRecord] = {}
        self.meta_accounts: Dict[str, MetaAccountRecord] = {}
        self.oauth_states: Dict[str, OAuthStateRecord] = {}
        self.social_posts: Dict[tuple[str, str], SocialPostRecord] = {}
        # Guards the check-then-write operations.
        self._lock = threading.Lock()

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.profiles.clear()
        self.appointments.clear()
        self.projects.clear()
        self.testimonials.clear()
        self.meta_accounts.clear()
        self.oauth_states.clear()
        self.social_posts.clear()

    # Stored records are copied on the way in and out so callers can't
    # mutate the store without going through a patch.

    def _insert(self, table: dict, record):
        table[record.id] = copy.deepcopy(record)
        return copy.deepcopy(record)

    def _get(self, table: dict, record_id: str):
        record = table.get(record_id)
        return copy.deepcopy(record) if record else None

    def _patch(self, table: dict, record_id: str, updates: dict):
        record = table.get(record_id)
        if not record:
            return None
        table[record_id] = _apply(record, copy.deepcopy(updates))
        return copy.deepcopy(table[record_id])

    def _filter(self, table: dict, **criteria):
        return [
            copy.deepcopy(record)
            for record in table.values()
            if all(
                value is None or getattr(record, key) == value
                for key, value in criteria.items()
            )
        ]

    def create_profile(self, profile: ProfileRecord) -> Optional[ProfileRecord]:
        with self._lock:
            if any(p.user_id == profile.user_id for p in self.profiles.values()):
                return None
            return self._insert(self.profiles, profile)

    def get_profile(self, profile_id: str) -> Optional[ProfileRecord]:
        return self._get(self.profiles, profile_id)

    def get_profile_by_user(self, user_id: str) -> Optional[ProfileRecord]:
        for profile in self.profiles.values():
            if profile.user_id == user_id:
                return copy.deepcopy(profile)
        return None

    def update_profile(self, profile_id: str, updates: dict) -> Optional[ProfileRecord]:
        return self._patch(self.profiles, profile_id, updates)

    def list_profiles(self, user_type: Optional[UserType] = None) -> list[ProfileRecord]:
        return self._filter(self.profiles, user_type=user_type)

    def create_appointment(self, appointment: AppointmentRecord) -> AppointmentRecord:
        return self._insert(self.appointments, appointment)

    def get_appointment(self, appointment_id: str) -> Optional[AppointmentRecord]:
        return self._get(self.appointments, appointment_id)

    def update_appointment(
        self, appointment_id: str, updates: dict
    ) -> Optional[AppointmentRecord]:
        return self._patch(self.appointments, appointment_id, updates)

    def book_appointment(
        self, appointment_id: str, client_id: str, notes: Optional[str]
    ) -> Optional[AppointmentRecord]:
        with self._lock:
            appointment = self.appointments.get(appointment_id)
            if not appointment or appointment.status != AppointmentStatus.AVAILABLE:
                return None
            return self._patch(
                self.appointments,
                appointment_id,
                {
                    "client_id": client_id,
                    "notes": notes,
                    "status": AppointmentStatus.BOOKED,
                },
            )

    def list_appointments(
        self,
        *,
        business_owner_id: Optional[str] = None,
        client_id: Optional[str] = None,
    ) -> list[AppointmentRecord]:
        items = self._filter(
            self.appointments,
            business_owner_id=business_owner_id,
            client_id=client_id,
        )
        return sorted(items, key=lambda a: a.start_date_time)

    def create_project(self, project: ProjectRecord) -> ProjectRecord:
        return self._insert(self.projects, project)

    def get_project(self, project_id: str) -> Optional[ProjectRecord]:
        return self._get(self.projects, project_id)

    def update_project(self, project_id: str, updates: dict) -> Optional[ProjectRecord]:
        return self._patch(self.projects, project_id, updates)

    def list_projects(
        self,
        *,
        business_owner_id: Optional[str] = None,
        client_id: Optional[str] = None,
    ) -> list[ProjectRecord]:
        return self._filter(
            self.projects, business_owner_id=business_owner_id, client_id=client_id
        )

    def create_testimonial(self, testimonial: TestimonialRecord) -> TestimonialRecord:
        return self._insert(self.testimonials, testimonial)

    def get_testimonial(self, testimonial_id: str) -> Optional[TestimonialRecord]:
        return self._get(self.testimonials, testimonial_id)

    def update_testimonial(
        self, testimonial_id: str, updates: dict
    ) -> Optional[TestimonialRecord]:
        return self._patch(self.testimonials, testimonial_id, updates)

    def list_testimonials(
        self,
        *,
        business_owner_id: Optional[str] = None,
        client_id: Optional[str] = None,
    ) -> list[TestimonialRecord]:
        return self._filter(
            self.testimonials,
            business_owner_id=business_owner_id,
            client_id=client_id,
        )

    def save_meta_account(self, account: MetaAccountRecord) -> MetaAccountRecord:
        existing = self.meta_accounts.get(account.user_id)
        if existing:
            account = replace(account, id=existing.id, created_at=existing.created_at)
        self.meta_accounts[account.user_id] = copy.deepcopy(account)
        return copy.deepcopy(account)

    def get_meta_account(self, user_id: str) -> Optional[MetaAccountRecord]:
        return self._get(self.meta_accounts, user_id)

    def list_meta_accounts(self) -> list[MetaAccountRecord]:
        return [copy.deepcopy(a) for a in self.meta_accounts.values()]

    def delete_meta_account(self, user_id: str) -> bool:
        return self.meta_accounts.pop(user_id, None) is not None

    def save_oauth_state(self, state: OAuthStateRecord) -> None:
        self.oauth_states[state.state] = copy.deepcopy(state)

    def get_oauth_state(self, state: str) -> Optional[OAuthStateRecord]:
        return self._get(self.oauth_states, state)

    def delete_oauth_state(self, state: str) -> None:
        self.oauth_states.pop(state, None)

    def upsert_social_post(self, post: SocialPostRecord) -> SocialPostRecord:
        key = (post.source.value, post.external_id)
        existing = self.social_posts.get(key)
        if existing:
            post = replace(post, id=existing.id)
        self.social_posts[key] = copy.deepcopy(post)
        return copy.deepcopy(post)

    def list_social_posts(
        self, user_id: str, source: Optional[SocialSource] = None
    ) -> list[SocialPostRecord]:
        items = self._filter(self.social_posts, user_id=user_id, source=source)
        return sorted(items, key=lambda p: p.posted_at or 0, reverse=True)

    def delete_social_posts(self, user_id: str) -> int:
        keys = [k for k, p in self.social_posts.items() if p.user_id == user_id]
        for key in keys:
            del self.social_posts[key]
        return len(keys)


def _column_value(value):
    if isinstance(value, Enum):
        return value.value
    return value


# Dialects with INSERT ... ON CONFLICT, keyed by SQLAlchemy dialect name.
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts a Postgres URL, or SQLite for tests.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        if self.engine.dialect.name not in _UPSERT_INSERTS:
            raise ValueError(
                f"Unsupported database dialect: {self.engine.dialect.name}"
            )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @staticmethod
    def _to_record(row, record_cls):
        return record_cls(
            **{f.name: copy.deepcopy(getattr(row, f.name)) for f in fields(record_cls)}
        )

    @staticmethod
    def _to_row(record, row_cls):
        return row_cls(
            **{f.name: _column_value(getattr(record, f.name)) for f in fields(record)}
        )

    def _insert(self, record, row_cls):
        with self.Session() as session:
            session.add(self._to_row(record, row_cls))
            session.commit()
        return record

    def _get(self, row_cls, record_cls, record_id: str):
        with self.Session() as session:
            row = session.get(row_cls, record_id)
            return self._to_record(row, record_cls) if row else None

    def _patch(self, row_cls, record_cls, record_id: str, updates: dict):
        known = {f.name for f in fields(record_cls)}
        unknown = set(updates) - known
        if unknown:
            raise ValueError(f"Unknown fields: {sorted(unknown)}")
        with self.Session() as session:
            row = session.get(row_cls, record_id)
            if not row:
                return None
            for key, value in updates.items():
                setattr(row, key, _column_value(value))
            session.commit()
            session.refresh(row)
            return self._to_record(row, record_cls)

    def _select(self, row_cls, record_cls, *order_by, **criteria):
        stmt = select(row_cls)
        for key, value in criteria.items():
            if value is not None:
                stmt = stmt.where(getattr(row_cls, key) == _column_value(value))
        if order_by:
            stmt = stmt.order_by(*order_by)
        with self.Session() as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_record(row, record_cls) for row in rows]

    def create_profile(self, profile: ProfileRecord) -> Optional[ProfileRecord]:
        with self.Session() as session:
            stmt = select(ProfileRow.id).where(ProfileRow.user_id == profile.user_id)
            if session.execute(stmt.limit(1)).first():
                return None
            session.add(self._to_row(profile, ProfileRow))
            try:
                session.commit()
            except IntegrityError:
                # Lost a race with a concurrent insert for the same user.
                session.rollback()
                return None
        return profile

    def get_profile(self, profile_id: str) -> Optional[ProfileRecord]:
        return self._get(ProfileRow, ProfileRecord, profile_id)

    def get_profile_by_user(self, user_id: str) -> Optional[ProfileRecord]:
        with self.Session() as session:
            stmt = select(ProfileRow).where(ProfileRow.user_id == user_id).limit(1)
            row = session.execute(stmt).scalar_one_or_none()
            return self._to_record(row, ProfileRecord) if row else None

    def update_profile(self, profile_id: str, updates: dict) -> Optional[ProfileRecord]:
        return self._patch(ProfileRow, ProfileRecord, profile_id, updates)

    def list_profiles(self, user_type: Optional[UserType] = None) -> list[ProfileRecord]:
        return self._select(
            ProfileRow, ProfileRecord, ProfileRow.created_at.asc(), user_type=user_type
        )

    def create_appointment(self, appointment: AppointmentRecord) -> AppointmentRecord:
        return self._insert(appointment, AppointmentRow)

    def get_appointment(self, appointment_id: str) -> Optional[AppointmentRecord]:
        return self._get(AppointmentRow, AppointmentRecord, appointment_id)

    def update_appointment(
        self, appointment_id: str, updates: dict
    ) -> Optional[AppointmentRecord]:
        return self._patch(AppointmentRow, AppointmentRecord, appointment_id, updates)

    def book_appointment(
        self, appointment_id: str, client_id: str, notes: Optional[str]
    ) -> Optional[AppointmentRecord]:
        stmt = (
            update(AppointmentRow)
            .where(
                AppointmentRow.id == appointment_id,
                AppointmentRow.status == AppointmentStatus.AVAILABLE.value,
            )
            .values(
                client_id=client_id,
                notes=notes,
                status=AppointmentStatus.BOOKED.value,
            )
            .execution_options(synchronize_session=False)
        )
        with self.Session() as session:
            result = session.execute(stmt)
            session.commit()
            if result.rowcount != 1:
                return None
            row = session.get(AppointmentRow, appointment_id)
            return self._to_record(row, AppointmentRecord)

    def list_appointments(
        self,
        *,
        business_owner_id: Optional[str] = None,
        client_id: Optional[str] = None,
    ) -> list[AppointmentRecord]:
        return self._select(
            AppointmentRow,
            AppointmentRecord,
            AppointmentRow.start_date_time.asc(),
            business_owner_id=business_owner_id,
            client_id=client_id,
        )

    def create_project(self, project: ProjectRecord) -> ProjectRecord:
        return self._insert(project, ProjectRow)

    def get_project(self, project_id: str) -> Optional[ProjectRecord]:
        return self._get(ProjectRow, ProjectRecord, project_id)

    def update_project(self, project_id: str, updates: dict) -> Optional[ProjectRecord]:
        return self._patch(ProjectRow, ProjectRecord, project_id, updates)

    def list_projects(
        self,
        *,
        business_owner_id: Optional[str] = None,
        client_id: Optional[str] = None,
    ) -> list[ProjectRecord]:
        return self._select(
            ProjectRow,
            ProjectRecord,
            ProjectRow.created_at.asc(),
            business_owner_id=business_owner_id,
            client_id=client_id,
        )

    def create_testimonial(self, testimonial: TestimonialRecord) -> TestimonialRecord:
        return self._insert(testimonial, TestimonialRow)

    def get_testimonial(self, testimonial_id: str) -> Optional[TestimonialRecord]:
        return self._get(TestimonialRow, TestimonialRecord, testimonial_id)

    def update_testimonial(
        self, testimonial_id: str, updates: dict
    ) -> Optional[TestimonialRecord]:
        return self._patch(TestimonialRow, TestimonialRecord, testimonial_id, updates)

    def list_testimonials(
        self,
        *,
        business_owner_id: Optional[str] = None,
        client_id: Optional[str] = None,
    ) -> list[TestimonialRecord]:
        return self._select(
            TestimonialRow,
            TestimonialRecord,
            TestimonialRow.created_at.asc(),
            business_owner_id=business_owner_id,
            client_id=client_id,
        )

    def save_meta_account(self, account: MetaAccountRecord) -> MetaAccountRecord:
        with self.Session() as session:
            stmt = select(MetaAccountRow).where(
                MetaAccountRow.user_id == account.user_id
            )
            row = session.execute(stmt).scalar_one_or_none()
            if row:
                account = replace(account, id=row.id, created_at=row.created_at)
                for f in fields(account):
                    setattr(row, f.name, getattr(account, f.name))
            else:
                session.add(self._to_row(account, MetaAccountRow))
            session.commit()
        return account

    def get_meta_account(self, user_id: str) -> Optional[MetaAccountRecord]:
        with self.Session() as session:
            stmt = select(MetaAccountRow).where(MetaAccountRow.user_id == user_id)
            row = session.execute(stmt).scalar_one_or_none()
            return self._to_record(row, MetaAccountRecord) if row else None

    def list_meta_accounts(self) -> list[MetaAccountRecord]:
        return self._select(
            MetaAccountRow, MetaAccountRecord, MetaAccountRow.created_at.asc()
        )

    def delete_meta_account(self, user_id: str) -> bool:
        with self.Session() as session:
            deleted = (
                session.query(MetaAccountRow)
                .filter(MetaAccountRow.user_id == user_id)
                .delete(synchronize_session=False)
            )
            session.commit()
            return bool(deleted)

    def save_oauth_state(self, state: OAuthStateRecord) -> None:
        with self.Session() as session:
            session.merge(self._to_row(state, OAuthStateRow))
            session.commit()

    def get_oauth_state(self, state: str) -> Optional[OAuthStateRecord]:
        return self._get(OAuthStateRow, OAuthStateRecord, state)

    def delete_oauth_state(self, state: str) -> None:
        with self.Session() as session:
            row = session.get(OAuthStateRow, state)
            if row:
                session.delete(row)
                session.commit()

    def upsert_social_post(self, post: SocialPostRecord) -> SocialPostRecord:
        """
        Single INSERT ... ON CONFLICT statement, so workers syncing the same
        account at once both succeed. The first insert keeps its id.
        """
        values = {f.name: _column_value(getattr(post, f.name)) for f in fields(post)}
        insert = _UPSERT_INSERTS[self.engine.dialect.name]
        stmt = insert(SocialPostRow).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["source", "external_id"],
            set_={key: value for key, value in values.items() if key != "id"},
        )
        with self.Session() as session:
            session.execute(stmt)
            session.commit()
            post_id = session.execute(
                select(SocialPostRow.id).where(
                    SocialPostRow.source == post.source.value,
                    SocialPostRow.external_id == post.external_id,
                )
            ).scalar_one()
        return replace(post, id=post_id)

    def list_social_posts(
        self, user_id: str, source: Optional[SocialSource] = None
    ) -> list[SocialPostRecord]:
        return self._select(
            SocialPostRow,
            SocialPostRecord,
            SocialPostRow.posted_at.desc(),
            user_id=user_id,
            source=source,
        )

    def delete_social_posts(self, user_id: str) -> int:
        with self.Session() as session:
            deleted = (
                session.query(SocialPostRow)
                .filter(SocialPostRow.user_id == user_id)
                .delete(synchronize_session=False)
            )
            session.commit()
            return deleted or 0


Base = declarative_base()


class ProfileRow(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    user_type = Column(String, nullable=False)
    business_name = Column(String, nullable=True)
    business_description = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    services = Column(JSON, nullable=True)
    created_at = Column(BigInteger, nullable=False)


class AppointmentRow(Base):
    __tablename__ = "appointments"

    id = Column(String, primary_key=True)
    business_owner_id = Column(String, nullable=False, index=True)
    client_id = Column(String, nullable=True, index=True)
    start_date_time = Column(BigInteger, nullable=False, index=True)
    end_date_time = Column(BigInteger, nullable=False)
    status = Column(String, nullable=False)
    notes = Column(String, nullable=True)
    created_at = Column(BigInteger, nullable=False)


class ProjectRow(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True)
    business_owner_id = Column(String, nullable=False, index=True)
    client_id = Column(String, nullable=False, index=True)
    project_type = Column(String, nullable=False)
    project_name = Column(String, nullable=False)
    project_tasks = Column(JSON, nullable=False)
    estimated_length = Column(Float, nullable=False)
    estimated_start_date_time = Column(BigInteger, nullable=False)
    estimated_end_date_time = Column(BigInteger, nullable=False)
    actual_start_date_time = Column(BigInteger, nullable=True)
    actual_end_date_time = Column(BigInteger, nullable=True)
    status = Column(String, nullable=False)
    approval_status = Column(String, nullable=False, index=True)
    rejection_reason = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    created_at = Column(BigInteger, nullable=False)


class TestimonialRow(Base):
    __tablename__ = "testimonials"

    id = Column(String, primary_key=True)
    client_id = Column(String, nullable=False, index=True)
    business_owner_id = Column(String, nullable=False, index=True)
    project_id = Column(String, nullable=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=False)
    rating = Column(Integer, nullable=False)
    image_urls = Column(JSON, nullable=True)
    is_highlighted = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(BigInteger, nullable=False)


class MetaAccountRow(Base):
    __tablename__ = "meta_accounts"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, unique=True)
    long_lived_user_token = Column(String, nullable=False)
    token_expires_at = Column(BigInteger, nullable=True)
    facebook_user_id = Column(String, nullable=False)
    connected_pages = Column(JSON, nullable=False)
    instagram_business_account_id = Column(String, nullable=True)
    created_at = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=False)


class OAuthStateRow(Base):
    __tablename__ = "oauth_states"

    state = Column(String, primary_key=True)
    user_id = Column(String, nullable=False)
    expires_at = Column(BigInteger, nullable=False)
    created_at = Column(BigInteger, nullable=False)


class SocialPostRow(Base):
    __tablename__ = "social_posts"
    __table_args__ = (UniqueConstraint("source", "external_id"),)

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    source = Column(String, nullable=False)
    external_id = Column(String, nullable=False)
    page_id = Column(String, nullable=True)
    caption = Column(String, nullable=True)
    media_type = Column(String, nullable=True)
    media_url = Column(String, nullable=True)
    permalink = Column(String, nullable=True)
    posted_at = Column(BigInteger, nullable=True)
    fetched_at = Column(BigInteger, nullable=False)
