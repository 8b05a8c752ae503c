"""Dashboard configuration and the per-profile project dashboard.

Config precedence: project-scoped config > global config (project_id NULL)
> hardcoded default. Project and global configs merge section by section.
"""
import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from common.config import get_config

from .client import NoRowsError
from .hook import EntityHook, HookContext
from .projects import owned_by

logger = logging.getLogger(__name__)

SECTIONS = ("branding", "permissions", "notifications")


def default_config(project_name: Optional[str] = None) -> dict:
    defaults = get_config().dashboard
    if project_name:
        welcome = f"Welcome to your {project_name} project dashboard"
    else:
        welcome = "Welcome to your project dashboard"
    return {
        "id": "",
        "project_id": None,
        "widgets": list(defaults.widgets),
        "branding": {
            "primaryColor": defaults.primary_color,
            "welcomeMessage": welcome,
        },
        "permissions": {
            "viewTeam": True,
            "viewTasks": True,
            "viewPayments": True,
            "viewTimeline": True,
        },
        "notifications": {
            "emailUpdates": True,
            "paymentReminders": True,
            "deadlineReminders": True,
        },
    }


def config_values(
    project_id: Optional[str], overrides: Optional[dict] = None, project_name: Optional[str] = None
) -> dict:
    """Column values of a new config: the default with overrides per key."""
    values = default_config(project_name)
    values.pop("id")
    values["project_id"] = project_id
    for key, value in (overrides or {}).items():
        if key in ("widgets",) + SECTIONS and value is not None:
            values[key] = value
    return values


def _as_dict(config) -> Optional[dict]:
    if config is None:
        return None
    if isinstance(config, dict):
        return copy.deepcopy(config)
    return config.to_dict()


def resolve_config(project_config=None, global_config=None, project_name: Optional[str] = None) -> dict:
    """Merge project-scoped over global config, or fall back to the default.

    Branding keys missing from both configs are filled from the default so a
    welcome message and color always exist. Missing permission flags stay
    missing and read as False.
    """
    project_config = _as_dict(project_config)
    global_config = _as_dict(global_config)
    default = default_config(project_name)
    if project_config is None and global_config is None:
        return default

    base = global_config or {}
    over = project_config or {}
    merged = {
        "id": over.get("id") or base.get("id") or "",
        "project_id": over.get("project_id") or base.get("project_id"),
        "widgets": list(
            over["widgets"] if over.get("widgets") is not None
            else base.get("widgets") or []
        ),
    }
    for section in SECTIONS:
        merged[section] = {**(base.get(section) or {}), **(over.get(section) or {})}
    merged["branding"] = {**default["branding"], **merged["branding"]}
    return merged


# ---------------------------------------------------------------------------
# Dashboard configuration hooks
# ---------------------------------------------------------------------------

class DashboardConfigHook(EntityHook):
    """Config of one project, or of the calling client's own project."""

    entity = "dashboard configuration"

    def __init__(self, ctx: HookContext, project_id: Optional[str] = None):
        super().__init__(ctx)
        self.project_id = project_id
        self.config = None
        self.global_config = None

    @property
    def has_config(self) -> bool:
        return self.config is not None

    @property
    def effective(self) -> dict:
        """Project config merged over the global one, else the default."""
        return resolve_config(self.config, self.global_config)

    def _target_project_id(self) -> Optional[str]:
        if self.project_id:
            return self.project_id
        if self.ctx.role == "client":
            try:
                project = self.client.single(
                    "projects", where=[owned_by(self.profile.id)], order_by="created_at"
                )
            except NoRowsError:
                logger.info("No project assigned to this client profile")
                return None
            return project.id
        # Admins and team members must name a project
        logger.debug("Project id required for non-client users")
        return None

    def fetch(self):
        self._begin()
        try:
            project_id = self._target_project_id()
            rows = self.client.select(
                "dashboard_configs", {"project_id": None}, order_by="created_at", limit=1
            )
            self.global_config = rows[0] if rows else None
            if project_id is None:
                self.config = None
                return None
            try:
                self.config = self.client.single("dashboard_configs", {"project_id": project_id})
            except NoRowsError:
                logger.info(f"No dashboard configuration for project {project_id}")
                self.config = None
        except Exception as e:
            self._fetch_failed(e, "Failed to load dashboard configuration")
        finally:
            self.loading = False
        return self.config

    def update(self, updates: dict) -> bool:
        if self.config is None:
            self.notifier.error("Error", "No dashboard configuration to update")
            return False
        data = {k: v for k, v in updates.items() if k in ("widgets",) + SECTIONS}
        data["updated_at"] = datetime.now(timezone.utc)
        try:
            self.client.update("dashboard_configs", self.config.id, data)
        except Exception as e:
            self._mutation_failed(e, "Update Failed", "Failed to update dashboard configuration.")
            return False

        self.fetch()
        self.notifier.success(
            "Configuration Updated", "Dashboard configuration has been saved successfully."
        )
        return True

    def create(self, project_id: Optional[str], overrides: Optional[dict] = None):
        """Create a config from the defaults. project_id None creates the global config."""
        values = config_values(project_id, overrides)
        try:
            self.config = self.client.insert("dashboard_configs", values)
        except Exception as e:
            self._mutation_failed(e, "Creation Failed", "Failed to create dashboard configuration.")
            return None

        self.notifier.success(
            "Configuration Created", "Dashboard configuration has been created successfully."
        )
        return self.config


class AllDashboardConfigsHook(EntityHook):
    """Every config with its project and owner. Admin callers only."""

    entity = "dashboard configurations"

    def __init__(self, ctx: HookContext):
        super().__init__(ctx)
        self.configs: list = []

    def fetch(self) -> list:
        if not self.ctx.is_admin:
            self.configs = []
            return self.configs
        self._begin()
        try:
            self.configs = self.client.select(
                "dashboard_configs",
                order_by="created_at",
                descending=True,
                embed=["project.profile"],
            )
        except Exception as e:
            self._fetch_failed(e, "Failed to load dashboard configurations")
        finally:
            self.loading = False
        return self.configs


# ---------------------------------------------------------------------------
# Project dashboard
# ---------------------------------------------------------------------------

@dataclass
class ProjectDashboard:
    project: object
    config: dict
    phases: list = field(default_factory=list)
    payment_schedules: list = field(default_factory=list)


class ProjectDashboardHook(EntityHook):
    """The first project owned by the current profile, fully embedded.

    No project is not an error: dashboard stays None.
    """

    entity = "project dashboard"

    def __init__(self, ctx: HookContext):
        super().__init__(ctx)
        self.dashboard: Optional[ProjectDashboard] = None

    @property
    def has_project(self) -> bool:
        return self.dashboard is not None

    def fetch(self) -> Optional[ProjectDashboard]:
        if self.profile is None:
            logger.info("No profile available, skipping dashboard fetch")
            return None

        self._begin()
        try:
            projects = self.client.select(
                "projects",
                {"profile_id": self.profile.id},
                order_by="created_at",
                embed=["phases", "payment_schedules", "dashboard_configs"],
                limit=1,
            )
            if not projects:
                logger.info(f"No project assigned to profile {self.profile.id}")
                self.dashboard = None
                return None

            project = projects[0]
            global_configs = self.client.select(
                "dashboard_configs", {"project_id": None}, order_by="created_at", limit=1
            )
            project_config = project.dashboard_configs[0] if project.dashboard_configs else None
            config = resolve_config(
                project_config,
                global_configs[0] if global_configs else None,
                project.name,
            )
            self.dashboard = ProjectDashboard(
                project=project,
                config=config,
                phases=sorted(project.phases, key=lambda p: p.order_index),
                payment_schedules=list(project.payment_schedules),
            )
            logger.debug(f"Dashboard loaded for project {project.id}")
        except Exception as e:
            self._fetch_failed(e, "Failed to load project dashboard")
        finally:
            self.loading = False
        return self.dashboard
