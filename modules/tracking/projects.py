"""Projects visible to the caller, and portfolio statistics."""
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import or_

from common.models import ProjectStatus

from .hook import EntityHook, HookContext
from .models import ClientRecord, Project

logger = logging.getLogger(__name__)

PROJECT_FIELDS = {
    "name", "description", "status", "client_id", "profile_id",
    "start_date", "end_date", "progress_percentage",
    "total_amount", "monthly_savings", "annual_roi_percentage",
}

PROJECT_DEFAULTS = {
    "status": ProjectStatus.PLANNING.value,
    "progress_percentage": 0,
    "monthly_savings": 0,
    "annual_roi_percentage": 0,
}


def owned_by(profile_id: str):
    """Projects a client profile may see: owned directly or via its client record."""
    return or_(
        Project.profile_id == profile_id,
        Project.client.has(ClientRecord.profile_id == profile_id),
    )


@dataclass
class ProjectStats:
    total_projects: int = 0
    active_projects: int = 0
    completed_projects: int = 0
    total_savings: float = 0.0
    average_roi: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def project_stats(projects: Iterable) -> ProjectStats:
    projects = list(projects)
    if not projects:
        return ProjectStats()
    return ProjectStats(
        total_projects=len(projects),
        active_projects=sum(1 for p in projects if p.status == "active"),
        completed_projects=sum(1 for p in projects if p.status == "completed"),
        total_savings=sum(p.monthly_savings or 0 for p in projects),
        average_roi=round(
            sum(p.annual_roi_percentage or 0 for p in projects) / len(projects)
        ),
    )


class ProjectsHook(EntityHook):

    entity = "projects"

    def __init__(
        self,
        ctx: HookContext,
        client_id: Optional[str] = None,
        status: Optional[str] = None,
        include_phases: bool = False,
    ):
        super().__init__(ctx)
        self.client_id = client_id
        self.status = status
        self.include_phases = include_phases
        self.projects: list = []

    def _scope(self):
        """Filters and extra clauses for the caller's role."""
        filters, where = {}, []
        if self.ctx.role == "client":
            where.append(owned_by(self.profile.id))
        elif self.client_id:
            filters["client_id"] = self.client_id
        if self.status:
            filters["status"] = self.status
        return filters, where

    def fetch(self) -> list:
        self._begin()
        try:
            filters, where = self._scope()
            embed = ["client"] + (["phases"] if self.include_phases else [])
            self.projects = self.client.select(
                "projects",
                filters,
                where=where,
                order_by="created_at",
                descending=True,
                embed=embed,
            )
        except Exception as e:
            self._fetch_failed(e, "Failed to load projects")
        finally:
            self.loading = False
        return self.projects

    def create(self, project_data: dict, dashboard_config: Optional[dict] = None):
        """Create a project, and its dashboard config when one is given.

        A project needs a client record or an owning profile. With only a
        client record, the record's profile becomes the owner.
        """
        values = {**PROJECT_DEFAULTS}
        values.update({k: v for k, v in project_data.items() if v is not None})
        try:
            ProjectStatus(values["status"])
            if not values.get("client_id") and not values.get("profile_id"):
                raise ValueError("Client must be selected")
            if values.get("client_id") and not values.get("profile_id"):
                values["profile_id"] = self.client.get("clients", values["client_id"]).profile_id
            project = self.client.build("projects", values)
            if dashboard_config is not None:
                from .dashboard import config_values

                project.dashboard_configs.append(self.client.build(
                    "dashboard_configs", config_values(None, dashboard_config, project.name)
                ))
            self.client.save(project)
        except Exception as e:
            self._mutation_failed(e, "Error", "Failed to create project")
            return None

        logger.info(f"Created project {project.id} ({project.name})")
        self.fetch()
        self.notifier.success("Success", f'Project "{project.name}" has been created successfully!')
        return project

    def update(self, project_id: str, updates: dict):
        unknown = set(updates) - PROJECT_FIELDS
        try:
            if unknown:
                raise ValueError(f"Unknown project fields: {sorted(unknown)}")
            if "status" in updates:
                ProjectStatus(updates["status"])
            row = self.client.update(
                "projects", project_id, {**updates, "updated_at": datetime.now(timezone.utc)}
            )
        except Exception as e:
            self._mutation_failed(e, "Error", "Failed to update project")
            return None

        self.fetch()
        self.notifier.success("Success", "Project updated successfully!")
        return row


class ProjectHook(EntityHook):
    """One project by id, respecting client visibility."""

    entity = "project"

    def __init__(self, ctx: HookContext, project_id: Optional[str], include_phases: bool = True):
        super().__init__(ctx)
        self.project_id = project_id
        self.include_phases = include_phases
        self.project = None

    def fetch(self):
        if not self.project_id:
            return None
        self._begin()
        try:
            where = [owned_by(self.profile.id)] if self.ctx.role == "client" else []
            self.project = self.client.single(
                "projects",
                {"id": self.project_id},
                where=where,
                embed=["client"] + (["phases"] if self.include_phases else []),
            )
        except Exception as e:
            self._fetch_failed(e, "Failed to load project")
        finally:
            self.loading = False
        return self.project


class ProjectStatsHook(EntityHook):

    entity = "project statistics"

    def __init__(self, ctx: HookContext):
        super().__init__(ctx)
        self.stats = ProjectStats()

    def fetch(self) -> ProjectStats:
        self._begin()
        try:
            where = [owned_by(self.profile.id)] if self.ctx.role == "client" else []
            self.stats = project_stats(self.client.select("projects", where=where))
        except Exception as e:
            logger.error(f"Error fetching project stats: {e}")
            self.error = str(e)
            self.notifier.error("Error", "Failed to load project statistics")
        finally:
            self.loading = False
        return self.stats
