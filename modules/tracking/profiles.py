"""Profiles: admin listing, single profile, and identity/profile sync."""
import logging
from datetime import datetime, timezone
from typing import Optional

from common.models import Role

from .client import DataClient
from .hook import EntityHook, HookContext

logger = logging.getLogger(__name__)


class ProfilesHook(EntityHook):
    """All profiles, newest first. Admin callers only.

    Non-admin callers get an empty list without an error.
    """

    entity = "profiles"

    def __init__(
        self,
        ctx: HookContext,
        role: Optional[str] = None,
        include_projects: bool = False,
    ):
        super().__init__(ctx)
        self.role = role
        self.include_projects = include_projects
        self.profiles: list = []

    def fetch(self) -> list:
        self._begin()
        try:
            if not self.ctx.is_admin:
                self.profiles = []
                return self.profiles

            filters = {"role": self.role} if self.role else {}
            self.profiles = self.client.select(
                "profiles",
                filters,
                order_by="created_at",
                descending=True,
                embed=["projects"] if self.include_projects else [],
            )
        except Exception as e:
            self._fetch_failed(e, "Failed to load profiles")
        finally:
            self.loading = False
        return self.profiles

    def update(self, profile_id: str, update_data: dict) -> bool:
        data = dict(update_data)
        if "role" in data and not self.ctx.is_admin:
            # Owners may edit their details, never their role
            data.pop("role")
            logger.info(f"Dropped role change on profile {profile_id} by non-admin")
        data.pop("id", None)
        data.pop("user_id", None)
        data["updated_at"] = datetime.now(timezone.utc)

        try:
            if "role" in data:
                Role(data["role"])
            self.client.update("profiles", profile_id, data)
        except Exception as e:
            self._mutation_failed(e, "Update Failed", "Failed to update profile.")
            return False

        self.fetch()
        self.notifier.success("Profile Updated", "Profile has been updated successfully.")
        return True

    def delete(self, profile_id: str) -> bool:
        try:
            self.client.delete("profiles", profile_id)
        except Exception as e:
            self._mutation_failed(e, "Delete Failed", "Failed to delete profile.")
            return False

        self.fetch()
        self.notifier.success("Profile Deleted", "Profile has been deleted successfully.")
        return True


class ProfileHook(EntityHook):
    """One profile by id."""

    entity = "profile"

    def __init__(self, ctx: HookContext, profile_id: Optional[str]):
        super().__init__(ctx)
        self.profile_id = profile_id
        self.profile_row = None

    def fetch(self):
        if not self.profile_id:
            return None
        self._begin()
        try:
            self.profile_row = self.client.get("profiles", self.profile_id)
        except Exception as e:
            self._fetch_failed(e, "Failed to load profile")
        finally:
            self.loading = False
        return self.profile_row


# ---------------------------------------------------------------------------
# Identity / profile sync (admin maintenance)
# ---------------------------------------------------------------------------

def create_profile_for_user(
    client: DataClient,
    user_id: str,
    email: str,
    full_name: str,
    role: Optional[str] = None,
    company: Optional[str] = None,
) -> dict:
    """Create a profile for one identity.

    Returns:
        {"success": bool, "synced_count": int, "error": str|None}
    """
    try:
        client.insert("profiles", {
            "user_id": user_id,
            "email": email,
            "full_name": full_name,
            "role": Role(role or Role.CLIENT.value).value,
            "company": company,
        })
    except Exception as e:
        logger.error(f"Profile creation for {email} failed: {e}")
        return {"success": False, "synced_count": 0, "error": str(e)}
    return {"success": True, "synced_count": 1, "error": None}


def sync_missing_profiles(identity_provider, client: DataClient) -> dict:
    """Create profiles for identities that have none.

    Role and full name come from the identity's user metadata.

    Returns:
        {"success": bool, "synced_count": N, "missing_profiles": [...], "error": str|None}
    """
    try:
        identities = identity_provider.list_users()
        existing = {p.user_id for p in client.select("profiles")}
    except Exception as e:
        logger.error(f"Profile sync failed: {e}")
        return {"success": False, "synced_count": 0, "missing_profiles": [], "error": str(e)}

    missing = [i for i in identities if i.id not in existing]
    synced = 0
    failed = []
    for identity in missing:
        meta = identity.user_metadata or {}
        result = create_profile_for_user(
            client,
            identity.id,
            identity.email,
            meta.get("full_name") or identity.email.split("@")[0],
            role=meta.get("role"),
            company=meta.get("company"),
        )
        if result["success"]:
            synced += 1
        else:
            failed.append({"user_id": identity.id, "email": identity.email})

    logger.info(
        f"Profile sync: {synced} created, {len(failed)} failed "
        f"(of {len(missing)} missing, {len(identities)} identities)"
    )
    return {
        "success": not failed,
        "synced_count": synced,
        "missing_profiles": failed,
        "error": None if not failed else f"{len(failed)} profiles could not be created",
    }
