"""Shared plumbing for entity hooks.

A hook owns one entity's fetch/create/update/delete lifecycle. It holds the
current collection, a loading flag and an error string, and reports every
outcome as a toast. Failures never escape a hook: they are logged, toasted
and stored in ``error``.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from common.notifications import Notifier

from .client import DataClient

logger = logging.getLogger(__name__)


@dataclass
class HookContext:
    """Per-request state handed to every hook.

    profile is the caller's Profile row (None when the identity has none).
    """
    client: DataClient
    profile: Optional[object] = None
    notifier: Notifier = field(default_factory=Notifier)

    @property
    def role(self) -> Optional[str]:
        return getattr(self.profile, "role", None)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class EntityHook:
    """Base class: loading/error state plus the failure policy."""

    entity = "data"

    def __init__(self, ctx: HookContext):
        self.ctx = ctx
        self.loading = False
        self.error: Optional[str] = None

    @property
    def client(self) -> DataClient:
        return self.ctx.client

    @property
    def profile(self):
        return self.ctx.profile

    @property
    def notifier(self) -> Notifier:
        return self.ctx.notifier

    def _begin(self):
        self.loading = True
        self.error = None

    def _fetch_failed(self, exc: Exception, fallback: str, title: str = "Error"):
        """Record a failed fetch: error string plus destructive toast."""
        message = str(exc) or fallback
        logger.error(f"Error fetching {self.entity}: {message}")
        self.error = message
        self.notifier.error(title, message)

    def _mutation_failed(self, exc: Exception, title: str, fallback: str):
        message = str(exc) or fallback
        logger.error(f"{title} ({self.entity}): {message}")
        self.notifier.error(title, message)
