"""Transient user notifications ("toasts").

Hooks report every success and failure through a Notifier. The portal
returns collected toasts with the API response; there is no other delivery.
"""
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT = "default"
DESTRUCTIVE = "destructive"


@dataclass
class Toast:
    title: str
    description: str = ""
    variant: str = DEFAULT
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat() if self.created_at else None
        return data


class Notifier:
    """Collects toasts for the current request."""

    def __init__(self):
        self.toasts: list[Toast] = []

    def toast(self, title: str, description: str = "", variant: str = DEFAULT) -> Toast:
        t = Toast(
            title=title,
            description=description,
            variant=variant,
            created_at=datetime.now(timezone.utc),
        )
        self.toasts.append(t)
        if variant == DESTRUCTIVE:
            logger.warning(f"Toast [{title}]: {description}")
        else:
            logger.debug(f"Toast [{title}]: {description}")
        return t

    def success(self, title: str, description: str = "") -> Toast:
        return self.toast(title, description)

    def error(self, title: str, description: str = "") -> Toast:
        return self.toast(title, description, variant=DESTRUCTIVE)

    @property
    def errors(self) -> list[Toast]:
        return [t for t in self.toasts if t.variant == DESTRUCTIVE]

    def drain(self) -> list[dict]:
        """Return collected toasts as dicts and clear the buffer."""
        out = [t.to_dict() for t in self.toasts]
        self.toasts.clear()
        return out
