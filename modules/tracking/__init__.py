"""Client project tracking: data client, entity hooks, dashboard composition.

Hooks are built per request from a HookContext (data client, caller profile,
notifier) and never raise: failures end up in ``hook.error`` plus a toast.
"""

from .models import (
    Base,
    Identity,
    Profile,
    ClientRecord,
    Project,
    Phase,
    PaymentSchedule,
    Task,
    DashboardConfig,
    ProjectMember,
    ProvisioningRequest,
)
from .database import get_engine, get_session, get_session_factory, init_db
from .client import DataClient, StoreError, NoRowsError
from .hook import HookContext, EntityHook
from .payments import PaymentsHook, PaymentStats, payment_stats
from .phases import PhasesHook, PhaseStats, phase_stats
from .profiles import (
    ProfilesHook,
    ProfileHook,
    create_profile_for_user,
    sync_missing_profiles,
)
from .projects import ProjectsHook, ProjectHook, ProjectStatsHook, ProjectStats, project_stats
from .tasks import TasksHook
from .roi import ROIHook, ROISummaryHook, ROIData, ROISummary, calculate_project_roi, summarize_roi
from .dashboard import (
    DashboardConfigHook,
    AllDashboardConfigsHook,
    ProjectDashboardHook,
    ProjectDashboard,
    config_values,
    default_config,
    resolve_config,
)
from .composition import DashboardView, compose_dashboard, status_color, widget_visible
from .generator import (
    GenerateRequest,
    GenerationError,
    ProjectGenerator,
    WizardData,
    describe_project,
)

__all__ = [
    # Models
    "Base",
    "Identity",
    "Profile",
    "ClientRecord",
    "Project",
    "Phase",
    "PaymentSchedule",
    "Task",
    "DashboardConfig",
    "ProjectMember",
    "ProvisioningRequest",
    # Database
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_db",
    # Data client
    "DataClient",
    "StoreError",
    "NoRowsError",
    # Hooks
    "HookContext",
    "EntityHook",
    "PaymentsHook",
    "PaymentStats",
    "payment_stats",
    "PhasesHook",
    "PhaseStats",
    "phase_stats",
    "ProfilesHook",
    "ProfileHook",
    "create_profile_for_user",
    "sync_missing_profiles",
    "ProjectsHook",
    "ProjectHook",
    "ProjectStatsHook",
    "ProjectStats",
    "project_stats",
    "TasksHook",
    "ROIHook",
    "ROISummaryHook",
    "ROIData",
    "ROISummary",
    "calculate_project_roi",
    "summarize_roi",
    # Dashboard
    "DashboardConfigHook",
    "AllDashboardConfigsHook",
    "ProjectDashboardHook",
    "ProjectDashboard",
    "config_values",
    "default_config",
    "resolve_config",
    "DashboardView",
    "compose_dashboard",
    "status_color",
    "widget_visible",
    # Project generation
    "GenerateRequest",
    "GenerationError",
    "ProjectGenerator",
    "WizardData",
    "describe_project",
]
