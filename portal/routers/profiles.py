"""
Profiles API (admin, plus self read/update)
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from modules.tracking import HookContext, ProfileHook, ProfilesHook

from ..deps import ensure_admin, get_context, hook_failed, respond
from ..schemas import ProfileOut, ProfileUpdate, dump

router = APIRouter()


def _ensure_self_or_admin(ctx: HookContext, profile_id: str) -> None:
    if ctx.is_admin:
        return
    if ctx.profile is None or ctx.profile.id != profile_id:
        raise HTTPException(status_code=403, detail="Insufficient permissions")


@router.get("/")
def list_profiles(
    role: Optional[str] = None,
    include_projects: bool = False,
    ctx: HookContext = Depends(get_context),
):
    """All profiles, newest first. Non-admin callers get an empty list."""
    hook = ProfilesHook(ctx, role=role, include_projects=include_projects)
    hook.fetch()
    if hook.error:
        return hook_failed(ctx, hook.error)
    return respond(ctx, {"profiles": dump(ProfileOut, hook.profiles)})


@router.get("/{profile_id}")
def get_profile(profile_id: str, ctx: HookContext = Depends(get_context)):
    _ensure_self_or_admin(ctx, profile_id)
    hook = ProfileHook(ctx, profile_id)
    hook.fetch()
    if hook.error:
        return hook_failed(ctx, hook.error)
    return respond(ctx, {"profile": dump(ProfileOut, hook.profile_row)})


@router.patch("/{profile_id}")
def update_profile(profile_id: str, body: ProfileUpdate, ctx: HookContext = Depends(get_context)):
    """Owners may edit their details; role changes are applied for admins only."""
    _ensure_self_or_admin(ctx, profile_id)
    hook = ProfilesHook(ctx)
    if not hook.update(profile_id, body.model_dump(exclude_unset=True)):
        return hook_failed(ctx)
    row = ProfileHook(ctx, profile_id).fetch()
    return respond(ctx, {"profile": dump(ProfileOut, row), "profiles": dump(ProfileOut, hook.profiles)})


@router.delete("/{profile_id}")
def delete_profile(profile_id: str, ctx: HookContext = Depends(get_context)):
    ensure_admin(ctx)
    hook = ProfilesHook(ctx)
    if not hook.delete(profile_id):
        return hook_failed(ctx)
    return respond(ctx, {"profiles": dump(ProfileOut, hook.profiles)})
