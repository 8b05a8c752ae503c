"""
Project phases API
"""
from fastapi import APIRouter, Depends

from modules.tracking import HookContext, PhasesHook

from ..deps import ensure_project_access, ensure_writer, get_context, hook_failed, load_or_404, respond
from ..schemas import PhaseCreate, PhaseOut, PhaseReorder, PhaseUpdate, ProgressUpdate, dump

router = APIRouter()


def _payload(hook: PhasesHook) -> dict:
    return {"phases": dump(PhaseOut, hook.phases), "stats": hook.stats.to_dict()}


def _hook_for_phase(ctx: HookContext, phase_id: str) -> PhasesHook:
    phase = load_or_404(ctx, "phases", phase_id)
    hook = PhasesHook(ctx, phase.project_id)
    hook.fetch()
    return hook


@router.get("/")
def list_phases(project_id: str, ctx: HookContext = Depends(get_context)):
    """Phases of one project, by order_index"""
    ensure_project_access(ctx, project_id)
    hook = PhasesHook(ctx, project_id)
    hook.fetch()
    if hook.error:
        return hook_failed(ctx, hook.error)
    return respond(ctx, _payload(hook))


@router.post("/")
def create_phase(body: PhaseCreate, ctx: HookContext = Depends(get_context)):
    ensure_writer(ctx)
    hook = PhasesHook(ctx, body.project_id)
    row = hook.create(body.model_dump())
    if row is None:
        return hook_failed(ctx)
    return respond(ctx, {"phase": dump(PhaseOut, row), **_payload(hook)}, status_code=201)


@router.post("/reorder")
def reorder_phases(body: PhaseReorder, ctx: HookContext = Depends(get_context)):
    """Persist a new order: order_index = position + 1"""
    ensure_writer(ctx)
    hook = PhasesHook(ctx, body.project_id)
    if not hook.reorder(body.phase_ids):
        return hook_failed(ctx)
    return respond(ctx, _payload(hook))


@router.patch("/{phase_id}")
def update_phase(phase_id: str, body: PhaseUpdate, ctx: HookContext = Depends(get_context)):
    ensure_writer(ctx)
    hook = _hook_for_phase(ctx, phase_id)
    if not hook.update(phase_id, body.model_dump(exclude_unset=True)):
        return hook_failed(ctx)
    return respond(ctx, _payload(hook))


@router.put("/{phase_id}/progress")
def update_progress(phase_id: str, body: ProgressUpdate, ctx: HookContext = Depends(get_context)):
    ensure_writer(ctx)
    hook = _hook_for_phase(ctx, phase_id)
    if not hook.update_progress(phase_id, body.progress):
        return hook_failed(ctx)
    return respond(ctx, _payload(hook))


@router.delete("/{phase_id}")
def delete_phase(phase_id: str, ctx: HookContext = Depends(get_context)):
    ensure_writer(ctx)
    hook = _hook_for_phase(ctx, phase_id)
    if not hook.delete(phase_id):
        return hook_failed(ctx)
    return respond(ctx, _payload(hook))
