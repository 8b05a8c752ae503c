"""Access guard for portal pages and API routes.

guard() is the pure decision; the portal wraps it in FastAPI dependencies
(portal.deps.require_page / require_roles).
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional
from urllib.parse import quote

from common.models import CurrentUser

LOGIN_PATH = "/auth"


class Decision(str, Enum):
    LOADING = "loading"
    REDIRECT = "redirect"
    DENIED = "denied"
    ALLOW = "allow"


@dataclass(frozen=True)
class GuardDecision:
    decision: Decision
    redirect_to: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.decision is Decision.ALLOW


def login_redirect(location: str = "/", login_path: str = LOGIN_PATH) -> str:
    return f"{login_path}?next={quote(location or '/', safe='/')}"


def guard(
    loading: bool,
    identity: Optional[CurrentUser],
    allowed_roles: Optional[Iterable[str]] = None,
    location: str = "/",
    login_path: str = LOGIN_PATH,
) -> GuardDecision:
    """Decide what a protected view shows.

    Args:
        loading: identity resolution still in progress
        identity: resolved caller, None when unauthenticated
        allowed_roles: role allow-list; None admits every authenticated caller
        location: requested path, carried through the login redirect
    """
    if loading:
        return GuardDecision(Decision.LOADING)
    if identity is None:
        return GuardDecision(Decision.REDIRECT, login_redirect(location, login_path))
    if allowed_roles is not None:
        roles = {getattr(r, "value", r) for r in allowed_roles}
        # No profile, no role
        if identity.role not in roles:
            return GuardDecision(Decision.DENIED)
    return GuardDecision(Decision.ALLOW)
