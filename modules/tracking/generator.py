"""Client project generation from the admin project wizard.

The wizard describes a whole project at once: project info, phases with
their tasks, team assignments, a payment schedule and a dashboard config.
Everything is built as one object graph and committed in one transaction,
so a failure leaves no partial project behind.

Usage:
    wizard = WizardData.model_validate(payload["wizardData"])
    project = ProjectGenerator(client).generate(wizard)
    body = describe_project(project, wizard.project_info.currency)
"""
import logging
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from common.models import PaymentStatus, PhaseStatus, TaskPriority, TaskStatus

from .client import DataClient
from .dashboard import config_values
from .projects import PROJECT_DEFAULTS

logger = logging.getLogger(__name__)


class GenerationError(ValueError):
    """The wizard data cannot produce a project."""


class WizardModel(BaseModel):
    """Wizard payloads arrive camelCased; snake_case names are accepted too."""
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, use_enum_values=True
    )


class WizardTask(WizardModel):
    title: str
    description: Optional[str] = None
    estimated_hours: Optional[float] = None
    priority: TaskPriority = TaskPriority.MEDIUM


class WizardPhase(WizardModel):
    name: str
    description: Optional[str] = None
    tasks: list[WizardTask] = []


class TeamAssignment(WizardModel):
    profile_id: str
    role: str = "member"


class WizardPayment(WizardModel):
    name: str
    amount: float
    due_date: date
    description: Optional[str] = None


class ProjectInfo(WizardModel):
    client_id: Optional[str] = None
    project_name: str
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total_budget: Optional[float] = None
    currency: str = "EUR"


class WizardDashboardConfig(WizardModel):
    widgets: Optional[list[str]] = None
    branding: Optional[dict] = None
    permissions: Optional[dict] = None
    notifications: Optional[dict] = None


class WizardData(WizardModel):
    project_info: ProjectInfo
    phases: list[WizardPhase] = []
    team_assignments: list[TeamAssignment] = []
    payment_schedule: list[WizardPayment] = []
    dashboard_config: WizardDashboardConfig = Field(default_factory=WizardDashboardConfig)


class GenerateRequest(WizardModel):
    wizard_data: WizardData


class ProjectGenerator:
    """Builds and stores one project graph through a data client."""

    def __init__(self, client: DataClient):
        self.client = client

    def _check_team(self, assignments: list[TeamAssignment]) -> None:
        ids = [a.profile_id for a in assignments]
        if len(set(ids)) != len(ids):
            raise GenerationError("A profile can only be assigned once per project")
        if not ids:
            return
        found = {p.id for p in self.client.select("profiles", {"id": ids})}
        missing = [i for i in ids if i not in found]
        if missing:
            raise GenerationError(f"Unknown team profiles: {missing}")

    def generate(self, wizard: WizardData):
        info = wizard.project_info
        if not info.client_id:
            raise GenerationError("Client must be selected")
        record = self.client.get("clients", info.client_id)
        self._check_team(wizard.team_assignments)

        build = self.client.build
        project = build("projects", {
            **PROJECT_DEFAULTS,
            "client_id": record.id,
            "profile_id": record.profile_id,
            "name": info.project_name,
            "description": info.description,
            "start_date": info.start_date,
            "end_date": info.end_date,
            "total_amount": info.total_budget,
        })
        for position, phase in enumerate(wizard.phases, start=1):
            phase_row = build("phases", {
                "name": phase.name,
                "description": phase.description,
                "order_index": position,
                "start_date": info.start_date,
                "end_date": info.end_date,
                "status": PhaseStatus.NOT_STARTED.value,
                "progress_percentage": 0,
            })
            for task in phase.tasks:
                phase_row.tasks.append(build("tasks", {
                    "title": task.title,
                    "description": task.description,
                    "estimated_hours": task.estimated_hours,
                    "priority": task.priority,
                    "status": TaskStatus.TODO.value,
                }))
            project.phases.append(phase_row)

        for assignment in wizard.team_assignments:
            project.members.append(build("project_members", {
                "profile_id": assignment.profile_id,
                "role": assignment.role,
            }))

        for payment in wizard.payment_schedule:
            project.payment_schedules.append(build("payment_schedules", {
                "name": payment.name,
                "amount": payment.amount,
                "due_date": payment.due_date,
                "description": payment.description,
                "status": PaymentStatus.PENDING.value,
            }))

        overrides = wizard.dashboard_config.model_dump(exclude_none=True)
        project.dashboard_configs.append(
            build("dashboard_configs", config_values(None, overrides, info.project_name))
        )

        self.client.save(project)
        logger.info(
            f"Project generated: {project.id} with {len(wizard.phases)} phases "
            f"and {len(wizard.payment_schedule)} payments"
        )
        return project


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def describe_project(project, currency: str) -> dict:
    """Summary of a generated project for the wizard's result screen."""
    client = project.client
    return {
        "id": project.id,
        "name": project.name,
        "client": {
            "id": client.id,
            "name": client.name,
            "company": client.company,
        } if client else None,
        "phases": [
            {"id": p.id, "name": p.name, "duration": p.order_index or 1}
            for p in project.phases
        ],
        "teamMembers": [
            {"id": m.profile.id, "name": m.profile.full_name, "role": m.profile.role}
            for m in project.members
        ],
        "payments": [
            {"name": p.name, "amount": p.amount, "dueDate": _iso(p.due_date)}
            for p in project.payment_schedules
        ],
        "dashboardUrl": f"/dashboard?project={project.id}",
        "totalBudget": project.total_amount,
        "currency": currency,
        "startDate": _iso(project.start_date),
        "endDate": _iso(project.end_date),
        "status": project.status,
    }
