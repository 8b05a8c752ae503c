"""
Tasks API
"""
from typing import Optional

from fastapi import APIRouter, Depends

from modules.tracking import HookContext, TasksHook

from ..deps import ensure_project_access, ensure_writer, get_context, hook_failed, load_or_404, respond
from ..schemas import TaskAssign, TaskCreate, TaskOut, TaskUpdate, dump

router = APIRouter()


def _hook_for_task(ctx: HookContext, task_id: str) -> TasksHook:
    task = load_or_404(ctx, "tasks", task_id)
    return TasksHook(ctx, phase_id=task.phase_id)


@router.get("/")
def list_tasks(
    phase_id: Optional[str] = None,
    project_id: Optional[str] = None,
    assignee_id: Optional[str] = None,
    status: Optional[str] = None,
    ctx: HookContext = Depends(get_context),
):
    if phase_id and ctx.role == "client":
        ensure_project_access(ctx, load_or_404(ctx, "phases", phase_id).project_id)
    ensure_project_access(ctx, project_id)
    if ctx.role == "client" and not (phase_id or project_id):
        # Clients list tasks per project or phase only
        return respond(ctx, {"tasks": []})
    hook = TasksHook(
        ctx,
        phase_id=phase_id,
        project_id=project_id,
        assignee_id=assignee_id,
        status=status,
    )
    hook.fetch()
    if hook.error:
        return hook_failed(ctx, hook.error)
    return respond(ctx, {"tasks": dump(TaskOut, hook.tasks)})


@router.post("/")
def create_task(body: TaskCreate, ctx: HookContext = Depends(get_context)):
    ensure_writer(ctx)
    hook = TasksHook(ctx, phase_id=body.phase_id)
    row = hook.create(body.model_dump(exclude_none=True))
    if row is None:
        return hook_failed(ctx)
    return respond(ctx, {"task": dump(TaskOut, row), "tasks": dump(TaskOut, hook.tasks)}, status_code=201)


@router.patch("/{task_id}")
def update_task(task_id: str, body: TaskUpdate, ctx: HookContext = Depends(get_context)):
    ensure_writer(ctx)
    hook = _hook_for_task(ctx, task_id)
    if not hook.update(task_id, body.model_dump(exclude_unset=True)):
        return hook_failed(ctx)
    return respond(ctx, {"tasks": dump(TaskOut, hook.tasks)})


@router.put("/{task_id}/assignee")
def assign_task(task_id: str, body: TaskAssign, ctx: HookContext = Depends(get_context)):
    ensure_writer(ctx)
    hook = _hook_for_task(ctx, task_id)
    if not hook.assign(task_id, body.assignee_id):
        return hook_failed(ctx)
    return respond(ctx, {"tasks": dump(TaskOut, hook.tasks)})


@router.delete("/{task_id}")
def delete_task(task_id: str, ctx: HookContext = Depends(get_context)):
    ensure_writer(ctx)
    hook = _hook_for_task(ctx, task_id)
    if not hook.delete(task_id):
        return hook_failed(ctx)
    return respond(ctx, {"tasks": dump(TaskOut, hook.tasks)})
