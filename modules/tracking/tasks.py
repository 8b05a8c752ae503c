"""Tasks inside project phases."""
import logging
from datetime import datetime, timezone
from typing import Optional

from common.models import TaskPriority, TaskStatus

from .hook import EntityHook, HookContext
from .models import Phase, Task

logger = logging.getLogger(__name__)


class TasksHook(EntityHook):

    entity = "tasks"

    def __init__(
        self,
        ctx: HookContext,
        phase_id: Optional[str] = None,
        project_id: Optional[str] = None,
        assignee_id: Optional[str] = None,
        status: Optional[str] = None,
    ):
        super().__init__(ctx)
        self.phase_id = phase_id
        self.project_id = project_id
        self.assignee_id = assignee_id
        self.status = status
        self.tasks: list = []

    def fetch(self) -> list:
        filters, where = {}, []
        if self.phase_id:
            filters["phase_id"] = self.phase_id
        elif self.project_id:
            where.append(Task.phase.has(Phase.project_id == self.project_id))
        if self.assignee_id:
            filters["assignee_id"] = self.assignee_id
        if self.status:
            filters["status"] = self.status

        self._begin()
        try:
            self.tasks = self.client.select(
                "tasks",
                filters,
                where=where,
                order_by="created_at",
                descending=True,
                embed=["assignee"],
            )
        except Exception as e:
            self._fetch_failed(e, "Failed to load tasks")
        finally:
            self.loading = False
        return self.tasks

    def create(self, task_data: dict):
        data = dict(task_data)
        data["status"] = TaskStatus.TODO.value
        data["priority"] = data.get("priority") or TaskPriority.MEDIUM.value
        try:
            TaskPriority(data["priority"])
            row = self.client.insert("tasks", data)
        except Exception as e:
            self._mutation_failed(e, "Error", "Failed to create task")
            return None

        self.fetch()
        self.notifier.success("Success", "Task created successfully!")
        return row

    def update(self, task_id: str, updates: dict) -> bool:
        data = dict(updates)
        status = data.get("status")
        if status == TaskStatus.COMPLETED.value:
            if not data.get("completed_at"):
                data["completed_at"] = datetime.now(timezone.utc)
        elif status is not None:
            data["completed_at"] = None

        try:
            if status is not None:
                TaskStatus(status)
            self.client.update("tasks", task_id, data)
        except Exception as e:
            self._mutation_failed(e, "Error", "Failed to update task")
            return False

        self.fetch()
        self.notifier.success("Success", "Task updated successfully!")
        return True

    def assign(self, task_id: str, assignee_id: Optional[str]) -> bool:
        return self.update(task_id, {"assignee_id": assignee_id})

    def delete(self, task_id: str) -> bool:
        try:
            self.client.delete("tasks", task_id)
        except Exception as e:
            self._mutation_failed(e, "Error", "Failed to delete task")
            return False

        self.fetch()
        self.notifier.success("Success", "Task deleted successfully!")
        return True
