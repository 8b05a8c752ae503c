"""Shared data models across modules."""

from .base import (
    Role,
    ProjectStatus,
    PhaseStatus,
    PaymentStatus,
    TaskStatus,
    TaskPriority,
    ROLES,
    Identity,
    CurrentUser,
    clamp_progress,
)

__all__ = [
    'Role',
    'ProjectStatus',
    'PhaseStatus',
    'PaymentStatus',
    'TaskStatus',
    'TaskPriority',
    'ROLES',
    'Identity',
    'CurrentUser',
    'clamp_progress',
]
