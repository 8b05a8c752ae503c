"""SQLAlchemy 2.0 models for the client project portal.

Tables:
- identities:            local identity store (only used by LocalIdentityProvider)
- profiles:              application-level identity record, one per identity
- clients:               billing/contact record for client profiles
- projects:              one client project, owned by a profile
- phases:                ordered sub-units of a project
- payment_schedules:     payment milestones of a project
- tasks:                 work items inside a phase
- project_members:       team profiles assigned to a project
- dashboard_configs:     per-project (or global, project_id NULL) dashboard policy
- provisioning_requests: idempotency log of the admin user provisioning endpoint
"""
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
    validates,
)

from common.models import clamp_progress


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Shared declarative base for all portal models."""
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_now, onupdate=_now
    )


class Identity(Base):
    """Raw authentication identity (local backend)."""
    __tablename__ = "identities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    email_confirmed: Mapped[bool] = mapped_column(Boolean, default=False)
    user_metadata: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)

    def __repr__(self) -> str:
        return f"<Identity(id={self.id}, email='{self.email}')>"


class Profile(TimestampMixin, Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="client")
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    projects: Mapped[list["Project"]] = relationship(back_populates="profile")

    __table_args__ = (
        Index("ix_profiles_role", "role"),
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, email='{self.email}', role='{self.role}')>"


class ClientRecord(TimestampMixin, Base):
    __tablename__ = "clients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    profile_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    company: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    projects: Mapped[list["Project"]] = relationship(back_populates="client")


class Project(TimestampMixin, Base):
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    profile_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    client_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("clients.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="planning")
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    progress_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    monthly_savings: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    annual_roi_percentage: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    profile: Mapped[Optional["Profile"]] = relationship(back_populates="projects")
    client: Mapped[Optional["ClientRecord"]] = relationship(back_populates="projects")
    phases: Mapped[list["Phase"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="Phase.order_index",
    )
    payment_schedules: Mapped[list["PaymentSchedule"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="PaymentSchedule.due_date",
    )
    dashboard_configs: Mapped[list["DashboardConfig"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
    )
    members: Mapped[list["ProjectMember"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_projects_profile", "profile_id"),
        Index("ix_projects_status", "status"),
    )

    @validates("progress_percentage")
    def _clamp(self, key, value):
        return clamp_progress(value)

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name='{self.name}', status='{self.status}')>"


class Phase(TimestampMixin, Base):
    __tablename__ = "phases"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    project_id: Mapped[str] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="not_started")
    progress_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    project: Mapped["Project"] = relationship(back_populates="phases")
    tasks: Mapped[list["Task"]] = relationship(
        back_populates="phase",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_phases_project_order", "project_id", "order_index"),
    )

    @validates("progress_percentage")
    def _clamp(self, key, value):
        return clamp_progress(value)

    def __repr__(self) -> str:
        return (
            f"<Phase(id={self.id}, name='{self.name}', "
            f"order={self.order_index}, progress={self.progress_percentage})>"
        )


class PaymentSchedule(TimestampMixin, Base):
    __tablename__ = "payment_schedules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    project_id: Mapped[str] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")

    project: Mapped["Project"] = relationship(back_populates="payment_schedules")

    __table_args__ = (
        Index("ix_payments_project", "project_id"),
        Index("ix_payments_status", "status"),
    )


class Task(TimestampMixin, Base):
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    phase_id: Mapped[str] = mapped_column(
        ForeignKey("phases.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="todo")
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    assignee_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    estimated_hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    actual_hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    phase: Mapped["Phase"] = relationship(back_populates="tasks")
    assignee: Mapped[Optional["Profile"]] = relationship()


class ProjectMember(TimestampMixin, Base):
    """A team profile assigned to a project."""
    __tablename__ = "project_members"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    project_id: Mapped[str] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    profile_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="member")

    project: Mapped["Project"] = relationship(back_populates="members")
    profile: Mapped["Profile"] = relationship()

    __table_args__ = (
        UniqueConstraint("project_id", "profile_id", name="uq_project_members_project_profile"),
    )


class DashboardConfig(TimestampMixin, Base):
    """Dashboard policy. project_id NULL marks the global config."""
    __tablename__ = "dashboard_configs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    project_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=True
    )
    widgets: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    branding: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    permissions: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    notifications: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    project: Mapped[Optional["Project"]] = relationship(back_populates="dashboard_configs")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "widgets": list(self.widgets or []),
            "branding": dict(self.branding or {}),
            "permissions": dict(self.permissions or {}),
            "notifications": dict(self.notifications or {}),
        }


class ProvisioningRequest(Base):
    """Progress of one idempotent provisioning call."""
    __tablename__ = "provisioning_requests"

    idempotency_key: Mapped[str] = mapped_column(String(255), primary_key=True)
    identity_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default="identity_created"
    )  # identity_created / completed
    response: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_now, onupdate=_now
    )


# Table name -> model, used by the data client
TABLES = {
    "profiles": Profile,
    "clients": ClientRecord,
    "projects": Project,
    "phases": Phase,
    "payment_schedules": PaymentSchedule,
    "tasks": Task,
    "project_members": ProjectMember,
    "dashboard_configs": DashboardConfig,
}
