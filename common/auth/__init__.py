"""Authentication: identity providers, JWT helpers and the access guard."""

from .identity import IdentityError, IdentityProvider, LocalIdentityProvider
from .gotrue import GoTrueIdentityProvider
from .jwt import Token, TokenData, InvalidTokenError, create_access_token, verify_token
from .guard import Decision, GuardDecision, guard, login_redirect
from .provider import close_http_client, get_http_client, get_identity_provider, get_provider

__all__ = [
    'IdentityError',
    'IdentityProvider',
    'LocalIdentityProvider',
    'GoTrueIdentityProvider',
    'Token',
    'TokenData',
    'InvalidTokenError',
    'create_access_token',
    'verify_token',
    'Decision',
    'GuardDecision',
    'guard',
    'login_redirect',
    'close_http_client',
    'get_http_client',
    'get_identity_provider',
    'get_provider',
]
