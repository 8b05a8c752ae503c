"""Base data models shared by portal, hooks and provisioning."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Role(str, Enum):
    CLIENT = 'client'              # Kunde, sieht nur eigenes Projekt
    TEAM_MEMBER = 'team_member'    # Projektteam
    ADMIN = 'admin'                # Vollzugriff


class ProjectStatus(str, Enum):
    PLANNING = 'planning'
    ACTIVE = 'active'
    ON_HOLD = 'on_hold'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class PhaseStatus(str, Enum):
    NOT_STARTED = 'not_started'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    BLOCKED = 'blocked'


class PaymentStatus(str, Enum):
    PENDING = 'pending'
    PAID = 'paid'
    OVERDUE = 'overdue'
    CANCELLED = 'cancelled'


class TaskStatus(str, Enum):
    TODO = 'todo'
    IN_PROGRESS = 'in_progress'
    REVIEW = 'review'
    COMPLETED = 'completed'
    BLOCKED = 'blocked'


class TaskPriority(str, Enum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    URGENT = 'urgent'


ROLES = {r.value for r in Role}


def clamp_progress(value) -> int:
    """Clamp a progress percentage into [0, 100]."""
    if value is None:
        return 0
    return int(max(0, min(100, round(float(value)))))


@dataclass
class Identity:
    """Authenticated identity as returned by the identity provider."""
    id: str
    email: str
    email_confirmed: bool = False
    user_metadata: dict = field(default_factory=dict)


@dataclass
class CurrentUser:
    """Identity plus its profile role (None while no profile exists)."""
    identity: Identity
    profile_id: Optional[str] = None
    role: Optional[str] = None
    full_name: Optional[str] = None
