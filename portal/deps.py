"""Request dependencies: session, caller, hook context, access guard."""
import logging
from pathlib import Path
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from common.auth import Decision, GuardDecision, IdentityError, IdentityProvider, get_provider, guard
from common.config import get_config
from common.models import CurrentUser
from common.notifications import Notifier
from modules.tracking import DataClient, HookContext, NoRowsError
from modules.tracking.database import get_db
from modules.tracking.projects import owned_by

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

WRITERS = ("admin", "team_member")


class GuardInterrupt(Exception):
    """A page guard decided against rendering; handled in portal.main."""

    def __init__(self, decision: GuardDecision):
        super().__init__(decision.decision.value)
        self.decision = decision


def _token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization")
    if header and header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return request.cookies.get(get_config().auth.cookie_name)


def get_client(db: Session = Depends(get_db)) -> DataClient:
    return DataClient(db)


def get_current_user(
    request: Request,
    client: DataClient = Depends(get_client),
    provider: IdentityProvider = Depends(get_provider),
) -> Optional[CurrentUser]:
    """Resolve the caller, or None when unauthenticated."""
    token = _token(request)
    if not token:
        return None
    try:
        identity = provider.get_user(token)
    except IdentityError as e:
        logger.info(f"Rejected token: {e}")
        return None

    user = CurrentUser(identity=identity)
    rows = client.select("profiles", {"user_id": identity.id}, limit=1)
    if rows:
        user.profile_id = rows[0].id
        user.role = rows[0].role
        user.full_name = rows[0].full_name
    request.state.profile = rows[0] if rows else None
    return user


def require_roles(*roles: str):
    """API guard: 401 when unauthenticated, 403 when the role is not allowed."""

    def dependency(
        request: Request,
        user: Optional[CurrentUser] = Depends(get_current_user),
    ) -> CurrentUser:
        decision = guard(False, user, roles or None, location=request.url.path)
        if decision.decision is Decision.REDIRECT:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated",
                headers={"WWW-Authenticate": "Bearer"},
            )
        if decision.decision is Decision.DENIED:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return dependency


def require_page(*roles: str):
    """Page guard: login redirect or access-denied page.

    The caller is fully resolved before the guard runs, so it is always
    asked with loading=False and never answers LOADING here.
    """

    def dependency(
        request: Request,
        user: Optional[CurrentUser] = Depends(get_current_user),
    ) -> CurrentUser:
        location = request.url.path
        if request.url.query:
            location += f"?{request.url.query}"
        decision = guard(
            False, user, roles or None,
            location=location,
            login_path=get_config().auth.login_path,
        )
        if not decision.allowed:
            raise GuardInterrupt(decision)
        return user

    return dependency


def get_context(
    request: Request,
    client: DataClient = Depends(get_client),
    user: CurrentUser = Depends(require_roles()),
) -> HookContext:
    return HookContext(
        client=client,
        profile=getattr(request.state, "profile", None),
        notifier=Notifier(),
    )


def get_page_context(
    request: Request,
    client: DataClient = Depends(get_client),
    user: CurrentUser = Depends(require_page()),
) -> HookContext:
    return HookContext(
        client=client,
        profile=getattr(request.state, "profile", None),
        notifier=Notifier(),
    )


def ensure_writer(ctx: HookContext) -> None:
    if ctx.role not in WRITERS:
        raise HTTPException(status_code=403, detail="Insufficient permissions")


def ensure_admin(ctx: HookContext) -> None:
    if not ctx.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")


def ensure_project_access(ctx: HookContext, project_id: Optional[str]) -> None:
    """Clients only reach projects they own."""
    if not project_id or ctx.role != "client":
        return
    try:
        ctx.client.single("projects", {"id": project_id}, where=[owned_by(ctx.profile.id)])
    except NoRowsError:
        raise HTTPException(status_code=404, detail="Project not found") from None


def load_or_404(ctx: HookContext, table: str, row_id: str):
    try:
        return ctx.client.get(table, row_id)
    except NoRowsError:
        raise HTTPException(status_code=404, detail="Not found") from None


def respond(ctx: HookContext, payload, status_code: int = 200) -> JSONResponse:
    """Success payload plus the toasts emitted while handling the request."""
    return JSONResponse(
        {"data": payload, "notifications": ctx.notifier.drain()},
        status_code=status_code,
    )


def hook_failed(ctx: HookContext, error: Optional[str] = None) -> JSONResponse:
    """Map a hook failure (error string or destructive toast) to 502."""
    if error is None:
        errors = ctx.notifier.errors
        error = errors[-1].description if errors else "Request failed"
    return JSONResponse(
        {"error": error, "notifications": ctx.notifier.drain()},
        status_code=status.HTTP_502_BAD_GATEWAY,
    )
