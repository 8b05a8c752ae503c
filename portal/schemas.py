"""Pydantic request/response schemas for the portal API."""
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from common.models import PaymentStatus, PhaseStatus, ProjectStatus, TaskPriority, TaskStatus


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# --- Responses ---


class ProfileOut(ORMModel):
    id: str
    user_id: str
    email: str
    full_name: str
    company: Optional[str] = None
    role: str
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ClientOut(ORMModel):
    id: str
    profile_id: Optional[str] = None
    name: str
    contact_email: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None


class PhaseOut(ORMModel):
    id: str
    project_id: str
    name: str
    description: Optional[str] = None
    order_index: int
    status: str
    progress_percentage: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ProjectOut(ORMModel):
    id: str
    profile_id: Optional[str] = None
    client_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    status: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    progress_percentage: int
    total_amount: Optional[float] = None
    monthly_savings: Optional[float] = None
    annual_roi_percentage: Optional[float] = None
    created_at: Optional[datetime] = None


class ProjectDetailOut(ProjectOut):
    client: Optional[ClientOut] = None
    phases: list[PhaseOut] = []


class PaymentOut(ORMModel):
    id: str
    project_id: str
    name: str
    amount: float
    due_date: date
    description: Optional[str] = None
    status: str


class TaskOut(ORMModel):
    id: str
    phase_id: str
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    assignee_id: Optional[str] = None
    due_date: Optional[date] = None
    completed_at: Optional[datetime] = None
    estimated_hours: Optional[float] = None
    actual_hours: Optional[float] = None


class DashboardConfigOut(ORMModel):
    id: str
    project_id: Optional[str] = None
    widgets: list[str] = []
    branding: dict = {}
    permissions: dict = {}
    notifications: dict = {}


def dump(schema: type[BaseModel], rows) -> Any:
    """Serialize one ORM row or a list of them to JSON-safe data."""
    if rows is None:
        return None
    if isinstance(rows, (list, tuple)):
        return [schema.model_validate(r).model_dump(mode="json") for r in rows]
    return schema.model_validate(rows).model_dump(mode="json")


# --- Requests ---


class RequestModel(BaseModel):
    """Request body; enum fields arrive in the model as their plain values."""
    model_config = ConfigDict(use_enum_values=True, validate_default=True)


class LoginRequest(RequestModel):
    email: str
    password: str


class ProjectCreate(RequestModel):
    name: str = Field(min_length=1)
    client_id: Optional[str] = None
    profile_id: Optional[str] = None
    description: Optional[str] = None
    status: ProjectStatus = ProjectStatus.PLANNING
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total_amount: Optional[float] = None
    monthly_savings: Optional[float] = None
    annual_roi_percentage: Optional[float] = None
    dashboard_config: Optional["DashboardConfigUpdate"] = None


class ProjectUpdate(RequestModel):
    name: Optional[str] = None
    client_id: Optional[str] = None
    profile_id: Optional[str] = None
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    progress_percentage: Optional[int] = None
    total_amount: Optional[float] = None
    monthly_savings: Optional[float] = None
    annual_roi_percentage: Optional[float] = None


class PhaseCreate(RequestModel):
    project_id: str
    name: str
    description: Optional[str] = None
    order_index: int = 0
    status: PhaseStatus = PhaseStatus.NOT_STARTED
    progress_percentage: int = 0
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class PhaseUpdate(RequestModel):
    name: Optional[str] = None
    description: Optional[str] = None
    order_index: Optional[int] = None
    status: Optional[PhaseStatus] = None
    progress_percentage: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ProgressUpdate(RequestModel):
    progress: float


class PhaseReorder(RequestModel):
    project_id: str
    phase_ids: list[str] = Field(min_length=1)


class PaymentCreate(RequestModel):
    project_id: str
    name: str
    amount: float
    due_date: date
    description: Optional[str] = None
    status: PaymentStatus = PaymentStatus.PENDING


class PaymentStatusUpdate(RequestModel):
    status: PaymentStatus


class ProfileUpdate(RequestModel):
    full_name: Optional[str] = None
    company: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Optional[str] = None


class TaskCreate(RequestModel):
    phase_id: str
    title: str
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    assignee_id: Optional[str] = None
    due_date: Optional[date] = None
    estimated_hours: Optional[float] = None


class TaskUpdate(RequestModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assignee_id: Optional[str] = None
    due_date: Optional[date] = None
    estimated_hours: Optional[float] = None
    actual_hours: Optional[float] = None


class TaskAssign(RequestModel):
    assignee_id: Optional[str] = None


class DashboardConfigCreate(RequestModel):
    project_id: Optional[str] = None
    widgets: Optional[list[str]] = None
    branding: Optional[dict] = None
    permissions: Optional[dict] = None
    notifications: Optional[dict] = None


class DashboardConfigUpdate(RequestModel):
    widgets: Optional[list[str]] = None
    branding: Optional[dict] = None
    permissions: Optional[dict] = None
    notifications: Optional[dict] = None


ProjectCreate.model_rebuild()
