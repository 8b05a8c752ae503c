"""
Dashboard configuration API
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from modules.tracking import AllDashboardConfigsHook, DashboardConfigHook, HookContext

from ..deps import ensure_admin, ensure_project_access, get_context, hook_failed, respond
from ..schemas import DashboardConfigCreate, DashboardConfigOut, DashboardConfigUpdate, dump

router = APIRouter()


@router.get("/")
def get_dashboard_config(project_id: Optional[str] = None, ctx: HookContext = Depends(get_context)):
    """Stored config of a project (or the caller's own project) plus the effective one."""
    ensure_project_access(ctx, project_id)
    hook = DashboardConfigHook(ctx, project_id)
    hook.fetch()
    if hook.error:
        return hook_failed(ctx, hook.error)
    return respond(ctx, {
        "config": dump(DashboardConfigOut, hook.config),
        "has_config": hook.has_config,
        "effective": hook.effective,
    })


@router.get("/all")
def list_dashboard_configs(ctx: HookContext = Depends(get_context)):
    ensure_admin(ctx)
    hook = AllDashboardConfigsHook(ctx)
    hook.fetch()
    if hook.error:
        return hook_failed(ctx, hook.error)
    configs = []
    for config in hook.configs:
        item = dump(DashboardConfigOut, config)
        project = config.project
        item["project_name"] = project.name if project else None
        item["owner_email"] = project.profile.email if project and project.profile else None
        configs.append(item)
    return respond(ctx, {"configs": configs})


@router.post("/")
def create_dashboard_config(body: DashboardConfigCreate, ctx: HookContext = Depends(get_context)):
    """Create from defaults; no project_id creates the global config."""
    ensure_admin(ctx)
    hook = DashboardConfigHook(ctx, body.project_id)
    row = hook.create(body.project_id, body.model_dump(exclude_none=True, exclude={"project_id"}))
    if row is None:
        return hook_failed(ctx)
    return respond(ctx, {"config": dump(DashboardConfigOut, row)}, status_code=201)


@router.patch("/")
def update_dashboard_config(
    body: DashboardConfigUpdate,
    project_id: str,
    ctx: HookContext = Depends(get_context),
):
    ensure_admin(ctx)
    hook = DashboardConfigHook(ctx, project_id)
    hook.fetch()
    if hook.error:
        return hook_failed(ctx, hook.error)
    if hook.config is None:
        raise HTTPException(status_code=404, detail="No dashboard configuration for this project")
    if not hook.update(body.model_dump(exclude_none=True)):
        return hook_failed(ctx)
    return respond(ctx, {"config": dump(DashboardConfigOut, hook.config)})
