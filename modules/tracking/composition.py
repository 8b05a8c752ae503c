"""Dashboard view model.

Turns a ProjectDashboard (or its absence, or a load error) into what the
dashboard page renders. A widget shows when its name is enabled in the
config AND its permission flag, if it has one, is true.
"""
from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Optional

from .payments import payment_stats
from .phases import phase_stats

LOADING = "loading"
ERROR = "error"
EMPTY = "empty"
READY = "ready"

STATUS_COLORS = {
    "planning": "blue",
    "active": "green",
    "on_hold": "yellow",
    "completed": "gray",
    "cancelled": "red",
}

PHASE_STATUS_COLORS = {
    "completed": "green",
    "in_progress": "blue",
    "not_started": "gray",
    "blocked": "red",
}

# widget -> permission flag gating it (None: always allowed)
WIDGET_PERMISSIONS = {
    "progress": None,
    "tasks": "viewTasks",
    "payments": "viewPayments",
    "team": "viewTeam",
    "savings": None,
}


def status_color(status: Optional[str]) -> str:
    return STATUS_COLORS.get(status, "gray")


def phase_status_color(status: Optional[str]) -> str:
    return PHASE_STATUS_COLORS.get(status, "gray")


def status_label(status: Optional[str]) -> str:
    return (status or "").replace("_", " ")


def widget_visible(name: str, config: dict) -> bool:
    if name not in (config.get("widgets") or []):
        return False
    if name not in WIDGET_PERMISSIONS:
        return False
    flag = WIDGET_PERMISSIONS[name]
    if flag is None:
        return True
    return bool((config.get("permissions") or {}).get(flag, False))


@dataclass
class Widget:
    name: str
    title: str
    data: dict = field(default_factory=dict)


@dataclass
class DashboardView:
    state: str
    error: Optional[str] = None
    retry_url: Optional[str] = None
    meeting_url: Optional[str] = None
    welcome_message: Optional[str] = None
    primary_color: Optional[str] = None
    project: Optional[dict] = None
    status_color: Optional[str] = None
    status_label: Optional[str] = None
    widgets: list[Widget] = field(default_factory=list)
    deadlines: Optional[list[dict]] = None  # None: timeline hidden

    def to_dict(self) -> dict:
        return asdict(self)


def _phase_dict(phase) -> dict:
    return {
        "id": phase.id,
        "name": phase.name,
        "description": phase.description,
        "status": phase.status,
        "status_label": status_label(phase.status),
        "status_color": phase_status_color(phase.status),
        "progress_percentage": phase.progress_percentage,
        "order_index": phase.order_index,
        "start_date": phase.start_date.isoformat() if phase.start_date else None,
        "end_date": phase.end_date.isoformat() if phase.end_date else None,
    }


def _build_widget(name: str, project, phases: list, payments: list) -> Widget:
    if name == "progress":
        return Widget(name, "Progress", {"progress_percentage": project.progress_percentage})
    if name == "tasks":
        return Widget(name, "Project Phases", {"phases": [_phase_dict(p) for p in phases]})
    if name == "payments":
        stats = payment_stats(payments)
        return Widget(name, "Pending Payments", {
            "pending": stats.pending,
            "total_amount": stats.total_amount,
        })
    if name == "team":
        stats = phase_stats(phases)
        return Widget(name, "Active Phases", {
            "active": stats.in_progress,
            "completed": stats.completed,
        })
    # savings
    return Widget(name, "Monthly Savings", {
        "monthly_savings": project.monthly_savings or 0,
        "annual_roi_percentage": project.annual_roi_percentage or 0,
    })


def upcoming_deadlines(phases: list, today: Optional[date] = None, limit: int = 3) -> list[dict]:
    """In-progress phases with an end date, soonest first."""
    today = today or date.today()
    items = []
    for phase in phases:
        if phase.status != "in_progress" or not phase.end_date:
            continue
        days = (phase.end_date - today).days
        if days <= 3:
            urgency = "red"
        elif days <= 7:
            urgency = "yellow"
        else:
            urgency = "blue"
        items.append({
            "title": phase.name,
            "due_date": phase.end_date.isoformat(),
            "days_until": days,
            "label": "Overdue" if days <= 0 else f"{days} days left",
            "color": urgency,
        })
    items.sort(key=lambda d: d["due_date"])
    return items[:limit]


def compose_dashboard(
    dashboard=None,
    loading: bool = False,
    error: Optional[str] = None,
    retry_url: str = "/dashboard",
    meeting_url: Optional[str] = None,
    today: Optional[date] = None,
) -> DashboardView:
    """Build the view for one render of the client dashboard."""
    if loading:
        return DashboardView(state=LOADING)
    if error:
        return DashboardView(state=ERROR, error=error, retry_url=retry_url)
    if dashboard is None:
        return DashboardView(state=EMPTY, meeting_url=meeting_url)

    project = dashboard.project
    config = dashboard.config
    phases = sorted(dashboard.phases, key=lambda p: p.order_index)
    payments = dashboard.payment_schedules
    branding = config.get("branding") or {}

    widgets = [
        _build_widget(name, project, phases, payments)
        for name in config.get("widgets") or []
        if widget_visible(name, config)
    ]
    show_timeline = bool((config.get("permissions") or {}).get("viewTimeline", False))

    return DashboardView(
        state=READY,
        meeting_url=meeting_url,
        welcome_message=branding.get("welcomeMessage"),
        primary_color=branding.get("primaryColor"),
        project={
            "id": project.id,
            "name": project.name,
            "description": project.description,
            "status": project.status,
            "progress_percentage": project.progress_percentage,
            "total_amount": project.total_amount,
            "monthly_savings": project.monthly_savings,
            "annual_roi_percentage": project.annual_roi_percentage,
        },
        status_color=status_color(project.status),
        status_label=status_label(project.status),
        widgets=widgets,
        deadlines=upcoming_deadlines(phases, today) if show_timeline else None,
    )
