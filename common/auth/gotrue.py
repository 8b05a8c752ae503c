"""Hosted identity service (GoTrue / Supabase Auth REST API).

Environment variables:
  SUPABASE_URL               project URL, e.g. https://xyz.supabase.co
  SUPABASE_SERVICE_ROLE_KEY  service role key for admin endpoints
"""
import logging
from typing import Optional

import httpx

from common.models import Identity

from .identity import IdentityError

logger = logging.getLogger(__name__)

PAGE_SIZE = 200


def _to_identity(user: dict) -> Identity:
    return Identity(
        id=user["id"],
        email=user.get("email") or "",
        email_confirmed=bool(user.get("email_confirmed_at") or user.get("confirmed_at")),
        user_metadata=user.get("user_metadata") or {},
    )


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    return (
        body.get("msg")
        or body.get("message")
        or body.get("error_description")
        or body.get("error")
        or f"HTTP {response.status_code}"
    )


class GoTrueIdentityProvider:
    """Admin client for the hosted auth service."""

    def __init__(
        self,
        base_url: str,
        service_role_key: str,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        if not base_url or not service_role_key:
            raise IdentityError("Hosted identity service not configured")
        self.base_url = base_url.rstrip("/") + "/auth/v1"
        self.service_role_key = service_role_key
        self._client = client or httpx.Client(timeout=timeout)

    def _headers(self, bearer: Optional[str] = None) -> dict:
        return {
            "apikey": self.service_role_key,
            "Authorization": f"Bearer {bearer or self.service_role_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, bearer: Optional[str] = None, **kwargs) -> httpx.Response:
        try:
            response = self._client.request(
                method, f"{self.base_url}{path}", headers=self._headers(bearer), **kwargs
            )
        except httpx.HTTPError as e:
            logger.error(f"Identity service {method} {path} failed: {e}")
            raise IdentityError(str(e)) from e
        if response.status_code >= 400:
            raise IdentityError(_error_message(response))
        return response

    def get_user(self, token: str) -> Identity:
        return _to_identity(self._request("GET", "/user", bearer=token).json())

    def sign_in(self, email: str, password: str) -> str:
        response = self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return response.json()["access_token"]

    def create_user(
        self,
        email: str,
        password: str,
        email_confirm: bool = True,
        user_metadata: Optional[dict] = None,
    ) -> Identity:
        response = self._request(
            "POST",
            "/admin/users",
            json={
                "email": email,
                "password": password,
                "email_confirm": email_confirm,
                "user_metadata": user_metadata or {},
            },
        )
        body = response.json()
        # Older API versions wrap the user
        identity = _to_identity(body.get("user", body))
        logger.info(f"Created identity {identity.id} ({email})")
        return identity

    def delete_user(self, user_id: str) -> None:
        self._request("DELETE", f"/admin/users/{user_id}")
        logger.info(f"Deleted identity {user_id}")

    def list_users(self) -> list[Identity]:
        users, page = [], 1
        while True:
            body = self._request(
                "GET", "/admin/users", params={"page": page, "per_page": PAGE_SIZE}
            ).json()
            batch = body.get("users", []) if isinstance(body, dict) else body
            users.extend(_to_identity(u) for u in batch)
            if len(batch) < PAGE_SIZE:
                return users
            page += 1

    def find_user_by_email(self, email: str) -> Optional[Identity]:
        email = email.strip().lower()
        for identity in self.list_users():
            if identity.email.lower() == email:
                return identity
        return None
