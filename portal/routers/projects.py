"""
Projects API: listing, statistics, ROI and admin create/update
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from modules.tracking import (
    HookContext,
    ProjectHook,
    ProjectsHook,
    ProjectStatsHook,
    ROIHook,
    ROISummaryHook,
)

from ..deps import ensure_admin, get_context, hook_failed, load_or_404, respond
from ..schemas import ProjectCreate, ProjectDetailOut, ProjectOut, ProjectUpdate, dump

router = APIRouter()


@router.get("/")
def list_projects(
    client_id: Optional[str] = None,
    status: Optional[str] = None,
    include_phases: bool = False,
    ctx: HookContext = Depends(get_context),
):
    """Projects visible to the caller, newest first"""
    hook = ProjectsHook(ctx, client_id=client_id, status=status, include_phases=include_phases)
    hook.fetch()
    if hook.error:
        return hook_failed(ctx, hook.error)
    schema = ProjectDetailOut if include_phases else ProjectOut
    return respond(ctx, {"projects": dump(schema, hook.projects)})


@router.post("/")
def create_project(body: ProjectCreate, ctx: HookContext = Depends(get_context)):
    """Create a project, with a dashboard config when one is sent"""
    ensure_admin(ctx)
    if not body.client_id and not body.profile_id:
        raise HTTPException(status_code=422, detail="Client must be selected")
    hook = ProjectsHook(ctx)
    config = body.dashboard_config
    project = hook.create(
        body.model_dump(exclude={"dashboard_config"}),
        config.model_dump(exclude_none=True) if config is not None else None,
    )
    if project is None:
        return hook_failed(ctx)
    return respond(ctx, {"project": dump(ProjectOut, project)}, status_code=201)


@router.get("/stats")
def project_statistics(ctx: HookContext = Depends(get_context)):
    hook = ProjectStatsHook(ctx)
    hook.fetch()
    if hook.error:
        return hook_failed(ctx, hook.error)
    return respond(ctx, {"stats": hook.stats.to_dict()})


@router.get("/roi")
def roi_summary(ctx: HookContext = Depends(get_context)):
    """Portfolio ROI summary plus per-project comparison"""
    hook = ROISummaryHook(ctx)
    hook.fetch()
    if hook.error:
        return hook_failed(ctx, hook.error)
    return respond(ctx, {
        "summary": hook.summary.to_dict(),
        "projects": [r.to_dict() for r in hook.comparisons],
    })


@router.get("/{project_id}")
def get_project(project_id: str, ctx: HookContext = Depends(get_context)):
    hook = ProjectHook(ctx, project_id)
    hook.fetch()
    if hook.project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return respond(ctx, {"project": dump(ProjectDetailOut, hook.project)})


@router.patch("/{project_id}")
def update_project(project_id: str, body: ProjectUpdate, ctx: HookContext = Depends(get_context)):
    ensure_admin(ctx)
    load_or_404(ctx, "projects", project_id)
    hook = ProjectsHook(ctx)
    project = hook.update(project_id, body.model_dump(exclude_unset=True))
    if project is None:
        return hook_failed(ctx)
    return respond(ctx, {"project": dump(ProjectOut, project)})


@router.get("/{project_id}/roi")
def project_roi(project_id: str, ctx: HookContext = Depends(get_context)):
    hook = ROIHook(ctx, project_id)
    hook.fetch()
    if hook.roi is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return respond(ctx, {"roi": hook.roi.to_dict()})
