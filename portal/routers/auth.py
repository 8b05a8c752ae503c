"""
Login / logout
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from common.auth import IdentityError, IdentityProvider, Token, get_provider
from common.config import get_config
from common.models import CurrentUser

from ..deps import get_current_user, require_roles, templates
from ..schemas import LoginRequest, ProfileOut, dump

logger = logging.getLogger(__name__)

router = APIRouter()


def _safe_next(target: Optional[str]) -> str:
    """Only same-site paths are valid redirect targets."""
    if not target or not target.startswith("/") or target.startswith("//"):
        return "/dashboard"
    return target


@router.get("")
def login_page(
    request: Request,
    next: str = "/dashboard",
    user: Optional[CurrentUser] = Depends(get_current_user),
):
    if user is not None:
        return RedirectResponse(_safe_next(next), status_code=status.HTTP_303_SEE_OTHER)
    return templates.TemplateResponse(
        request, "login.html", {"next": _safe_next(next), "error": None}
    )


@router.post("")
def login_form(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    next: str = Form("/dashboard"),
    provider: IdentityProvider = Depends(get_provider),
):
    try:
        token = provider.sign_in(email, password)
    except IdentityError as e:
        logger.info(f"Login failed for {email}: {e}")
        return templates.TemplateResponse(
            request,
            "login.html",
            {"next": _safe_next(next), "error": str(e), "email": email},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    auth = get_config().auth
    response = RedirectResponse(_safe_next(next), status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(
        auth.cookie_name,
        token,
        max_age=auth.access_token_expire_minutes * 60,
        httponly=True,
        samesite="lax",
    )
    logger.info(f"User {email} signed in")
    return response


@router.post("/token", response_model=Token)
def login_token(body: LoginRequest, provider: IdentityProvider = Depends(get_provider)):
    """JSON login returning a bearer token."""
    try:
        token = provider.sign_in(body.email, body.password)
    except IdentityError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Token(access_token=token)


@router.post("/logout")
def logout():
    response = RedirectResponse(get_config().auth.login_path, status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(get_config().auth.cookie_name)
    return response


@router.get("/me")
def me(request: Request, user: CurrentUser = Depends(require_roles())):
    profile = getattr(request.state, "profile", None)
    return {
        "id": user.identity.id,
        "email": user.identity.email,
        "role": user.role,
        "profile": dump(ProfileOut, profile),
    }
