"""ROI metrics per project and across a portfolio.

Costs so far are estimated from phase progress: each phase is worth an equal
share of the budget. Without phases the project's own progress is used.

    actual_costs   = Σ (budget / n_phases) * phase_progress / 100
    current_roi    = (annual_savings - actual_costs) / actual_costs * 100
    projected_roi  = (annual_savings - budget) / budget * 100
    break_even     = budget / monthly_savings        (months)
    time_to_done   = (100 - progress) / 100 * 12     (months, 12-month plan)
    cost_eff.      = (budget - actual_costs) / budget * 100
"""
import logging
import math
from dataclasses import dataclass, asdict
from typing import Iterable, Optional

from .hook import EntityHook, HookContext
from .projects import owned_by

logger = logging.getLogger(__name__)


def _round(value: float, digits: int = 0) -> float:
    """Round half up (0.5 -> 1), not banker's rounding."""
    factor = 10 ** digits
    result = math.floor(value * factor + 0.5) / factor
    return int(result) if digits == 0 else result


@dataclass
class ROIData:
    project_id: str
    project_name: str
    total_budget: float
    actual_costs: float
    monthly_savings: float
    annual_savings: float
    current_roi: int
    projected_roi: int
    break_even_months: float
    completion_percentage: int
    time_to_completion: float
    cost_efficiency: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ROISummary:
    total_investment: float = 0.0
    total_savings_to_date: float = 0.0
    average_roi: int = 0
    total_projects: int = 0
    active_projects: int = 0
    completed_projects: int = 0
    projected_annual_savings: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


def calculate_project_roi(project, phases: Optional[list] = None) -> ROIData:
    if phases is None:
        phases = list(getattr(project, "phases", None) or [])
    total_budget = project.total_amount or 0
    monthly_savings = project.monthly_savings or 0
    annual_savings = monthly_savings * 12
    completion = project.progress_percentage or 0

    if phases:
        phase_value = total_budget / len(phases)
        actual_costs = sum(
            phase_value * ((p.progress_percentage or 0) / 100) for p in phases
        )
    else:
        actual_costs = total_budget * (completion / 100)

    current_roi = (
        (annual_savings - actual_costs) / actual_costs * 100 if actual_costs > 0 else 0
    )
    projected_roi = (
        (annual_savings - total_budget) / total_budget * 100 if total_budget > 0 else 0
    )
    break_even = (
        total_budget / monthly_savings if total_budget > 0 and monthly_savings > 0 else 0
    )
    remaining = 100 - completion
    time_to_completion = remaining / 100 * 12 if remaining > 0 else 0
    cost_efficiency = (
        (total_budget - actual_costs) / total_budget * 100 if actual_costs > 0 else 100
    )

    return ROIData(
        project_id=project.id,
        project_name=project.name,
        total_budget=total_budget,
        actual_costs=actual_costs,
        monthly_savings=monthly_savings,
        annual_savings=annual_savings,
        current_roi=_round(current_roi),
        projected_roi=_round(projected_roi),
        break_even_months=_round(break_even, 1),
        completion_percentage=completion,
        time_to_completion=_round(time_to_completion, 1),
        cost_efficiency=_round(cost_efficiency),
    )


def summarize_roi(projects: Iterable) -> ROISummary:
    projects = list(projects)
    if not projects:
        return ROISummary()

    roi_values = []
    savings_to_date = 0.0
    for p in projects:
        investment = p.total_amount or 0
        annual = (p.monthly_savings or 0) * 12
        savings_to_date += annual * ((p.progress_percentage or 0) / 100)
        roi_values.append((annual - investment) / investment * 100 if investment > 0 else 0)

    return ROISummary(
        total_investment=sum(p.total_amount or 0 for p in projects),
        total_savings_to_date=savings_to_date,
        average_roi=_round(sum(roi_values) / len(roi_values)),
        total_projects=len(projects),
        active_projects=sum(1 for p in projects if p.status == "active"),
        completed_projects=sum(1 for p in projects if p.status == "completed"),
        projected_annual_savings=sum((p.monthly_savings or 0) * 12 for p in projects),
    )


class ROIHook(EntityHook):

    entity = "ROI data"

    def __init__(self, ctx: HookContext, project_id: Optional[str]):
        super().__init__(ctx)
        self.project_id = project_id
        self.roi: Optional[ROIData] = None

    def fetch(self) -> Optional[ROIData]:
        if not self.project_id:
            return None
        self._begin()
        try:
            where = [owned_by(self.profile.id)] if self.ctx.role == "client" else []
            project = self.client.single(
                "projects", {"id": self.project_id}, where=where, embed=["phases"]
            )
            self.roi = calculate_project_roi(project)
        except Exception as e:
            self._fetch_failed(e, "Failed to load ROI data")
        finally:
            self.loading = False
        return self.roi


class ROISummaryHook(EntityHook):
    """Portfolio summary plus per-project comparison."""

    entity = "ROI summary"

    def __init__(self, ctx: HookContext):
        super().__init__(ctx)
        self.summary = ROISummary()
        self.comparisons: list[ROIData] = []

    def fetch(self) -> ROISummary:
        self._begin()
        try:
            where = [owned_by(self.profile.id)] if self.ctx.role == "client" else []
            projects = self.client.select(
                "projects",
                where=where,
                order_by="created_at",
                descending=True,
                embed=["phases"],
            )
            self.summary = summarize_roi(projects)
            self.comparisons = [calculate_project_roi(p) for p in projects]
        except Exception as e:
            logger.error(f"Error fetching ROI summary: {e}")
            self.error = str(e)
            self.notifier.error("Error", "Failed to load ROI summary")
        finally:
            self.loading = False
        return self.summary
