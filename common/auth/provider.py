"""Pick the identity backend from configuration."""
from typing import Optional

import httpx
from fastapi import Depends
from sqlalchemy.orm import Session

from common.config import get_config
from modules.tracking.database import get_db

from .gotrue import GoTrueIdentityProvider
from .identity import IdentityError, IdentityProvider, LocalIdentityProvider

HTTP_TIMEOUT = 10.0

# One connection pool per process, shared by every hosted-provider instance
_http_client: Optional[httpx.Client] = None


def get_http_client() -> httpx.Client:
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.Client(timeout=HTTP_TIMEOUT)
    return _http_client


def close_http_client() -> None:
    """Close the shared pool; called on application shutdown."""
    global _http_client
    if _http_client is not None:
        _http_client.close()
        _http_client = None


def get_identity_provider(session: Session) -> IdentityProvider:
    auth = get_config().auth
    if auth.backend == "gotrue":
        return GoTrueIdentityProvider(
            auth.supabase_url, auth.supabase_service_role_key, client=get_http_client()
        )
    if auth.backend == "local":
        return LocalIdentityProvider(session)
    raise IdentityError(f"Unknown identity backend: {auth.backend}")


def get_provider(db: Session = Depends(get_db)) -> IdentityProvider:
    """FastAPI dependency wrapping get_identity_provider."""
    return get_identity_provider(db)
