"""Ordered phases of one project."""
import logging
from dataclasses import dataclass, asdict
from typing import Iterable, Optional

from common.models import PhaseStatus, clamp_progress

from .hook import EntityHook, HookContext

logger = logging.getLogger(__name__)

PHASE_FIELDS = {
    "name", "description", "progress_percentage", "status",
    "start_date", "end_date", "order_index",
}


@dataclass
class PhaseStats:
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    blocked: int = 0
    average_progress: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


def phase_stats(phases: Iterable) -> PhaseStats:
    phases = list(phases)
    if not phases:
        return PhaseStats()
    return PhaseStats(
        total=len(phases),
        completed=sum(1 for p in phases if p.status == "completed"),
        in_progress=sum(1 for p in phases if p.status == "in_progress"),
        blocked=sum(1 for p in phases if p.status == "blocked"),
        average_progress=round(
            sum(p.progress_percentage or 0 for p in phases) / len(phases), 1
        ),
    )


def _by_order(phases: list) -> list:
    return sorted(phases, key=lambda p: p.order_index)


class PhasesHook(EntityHook):

    entity = "phases"

    def __init__(self, ctx: HookContext, project_id: Optional[str] = None):
        super().__init__(ctx)
        self.project_id = project_id
        self.phases: list = []

    @property
    def stats(self) -> PhaseStats:
        return phase_stats(self.phases)

    def fetch(self) -> list:
        if not self.project_id:
            self.phases = []
            self.loading = False
            return self.phases

        self._begin()
        try:
            self.phases = self.client.select(
                "phases",
                {"project_id": self.project_id},
                order_by="order_index",
            )
        except Exception as e:
            self._fetch_failed(e, "Failed to load phases")
        finally:
            self.loading = False
        return self.phases

    def create(self, phase_data: dict):
        try:
            PhaseStatus(phase_data.get("status", PhaseStatus.NOT_STARTED.value))
            row = self.client.insert("phases", phase_data)
        except Exception as e:
            self._mutation_failed(e, "Error", "Failed to create phase")
            return None

        self.fetch()
        self.notifier.success("Success", "Phase created successfully!")
        return row

    def update(self, phase_id: str, updates: dict) -> bool:
        unknown = set(updates) - PHASE_FIELDS
        try:
            if unknown:
                raise ValueError(f"Unknown phase fields: {sorted(unknown)}")
            if "status" in updates:
                PhaseStatus(updates["status"])
            row = self.client.update("phases", phase_id, updates)
        except Exception as e:
            self._mutation_failed(e, "Error", "Failed to update phase")
            return False

        # Local patch, then keep the list in order_index order
        self.phases = _by_order(
            [row if p.id == phase_id else p for p in self.phases]
        )
        self.notifier.success("Success", "Phase updated successfully!")
        return True

    def update_progress(self, phase_id: str, progress) -> bool:
        return self.update(phase_id, {"progress_percentage": clamp_progress(progress)})

    def delete(self, phase_id: str) -> bool:
        try:
            self.client.delete("phases", phase_id)
        except Exception as e:
            self._mutation_failed(e, "Error", "Failed to delete phase")
            return False

        self.fetch()
        self.notifier.success("Success", "Phase deleted successfully!")
        return True

    def reorder(self, reordered: list) -> bool:
        """Persist order_index = position + 1 for the given sequence.

        Accepts phase rows or ids. One batched write: on failure no
        phase changes position. With a project_id, every id must belong to
        that project.
        """
        ids = [getattr(p, "id", p) for p in reordered]
        try:
            scope = {"project_id": self.project_id} if self.project_id else None
            rows = self.client.reorder("phases", ids, scope=scope)
        except Exception as e:
            self._mutation_failed(e, "Error", "Failed to reorder phases")
            return False

        self.phases = rows
        self.notifier.success("Success", "Phase order updated successfully!")
        return True
