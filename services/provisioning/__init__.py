"""Admin user provisioning service."""

from .handler import ProvisioningError, Provisioner, NewUser, bearer_token, parse_body, parse_wizard

__all__ = ['ProvisioningError', 'Provisioner', 'NewUser', 'bearer_token', 'parse_body', 'parse_wizard']
