"""
Payment schedules API
"""
from typing import Optional

from fastapi import APIRouter, Depends

from modules.tracking import HookContext, PaymentsHook
from modules.tracking.projects import owned_by

from ..deps import ensure_admin, ensure_project_access, get_context, hook_failed, load_or_404, respond
from ..schemas import PaymentCreate, PaymentOut, PaymentStatusUpdate, dump

router = APIRouter()


def _payload(hook: PaymentsHook) -> dict:
    return {"payments": dump(PaymentOut, hook.payments), "stats": hook.stats.to_dict()}


@router.get("/")
def list_payments(
    project_id: Optional[str] = None,
    status: Optional[str] = None,
    ctx: HookContext = Depends(get_context),
):
    """Payments with summary statistics, latest due date first"""
    ensure_project_access(ctx, project_id)
    scope = project_id
    if ctx.role == "client" and not project_id:
        scope = [p.id for p in ctx.client.select("projects", where=[owned_by(ctx.profile.id)])]
    hook = PaymentsHook(ctx, project_id=scope, status=status)
    if scope == []:
        return respond(ctx, _payload(hook))
    hook.fetch()
    if hook.error:
        return hook_failed(ctx, hook.error)
    return respond(ctx, _payload(hook))


@router.post("/")
def create_payment(body: PaymentCreate, ctx: HookContext = Depends(get_context)):
    ensure_admin(ctx)
    hook = PaymentsHook(ctx, project_id=body.project_id)
    row = hook.create(body.model_dump())
    if row is None:
        return hook_failed(ctx)
    return respond(ctx, {"payment": dump(PaymentOut, row), **_payload(hook)}, status_code=201)


@router.patch("/{payment_id}/status")
def update_payment_status(
    payment_id: str,
    body: PaymentStatusUpdate,
    ctx: HookContext = Depends(get_context),
):
    ensure_admin(ctx)
    payment = load_or_404(ctx, "payment_schedules", payment_id)
    hook = PaymentsHook(ctx, project_id=payment.project_id)
    if not hook.update_status(payment_id, body.status):
        return hook_failed(ctx)
    return respond(ctx, _payload(hook))


@router.delete("/{payment_id}")
def delete_payment(payment_id: str, ctx: HookContext = Depends(get_context)):
    ensure_admin(ctx)
    payment = load_or_404(ctx, "payment_schedules", payment_id)
    hook = PaymentsHook(ctx, project_id=payment.project_id)
    if not hook.delete(payment_id):
        return hook_failed(ctx)
    return respond(ctx, _payload(hook))
