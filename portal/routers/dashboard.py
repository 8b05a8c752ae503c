"""
Client dashboard: server-rendered page and its JSON twin
"""
from fastapi import APIRouter, Depends, Request

from common.config import get_config
from modules.tracking import HookContext, ProjectDashboardHook, compose_dashboard

from ..deps import get_context, get_page_context, templates

router = APIRouter()


def _view(ctx: HookContext, retry_url: str):
    hook = ProjectDashboardHook(ctx)
    hook.fetch()
    return compose_dashboard(
        hook.dashboard,
        loading=hook.loading,
        error=hook.error,
        retry_url=retry_url,
        meeting_url=get_config().dashboard.meeting_url,
    )


@router.get("/dashboard")
def dashboard_page(request: Request, ctx: HookContext = Depends(get_page_context)):
    view = _view(ctx, retry_url=str(request.url.path))
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "view": view,
            "profile": ctx.profile,
            "notifications": ctx.notifier.drain(),
        },
    )


@router.get("/api/dashboard")
def dashboard_data(ctx: HookContext = Depends(get_context)):
    view = _view(ctx, retry_url="/dashboard")
    return {"data": view.to_dict(), "notifications": ctx.notifier.drain()}
