"""User-visible notifications."""

from .toast import Toast, Notifier, DEFAULT, DESTRUCTIVE

__all__ = ['Toast', 'Notifier', 'DEFAULT', 'DESTRUCTIVE']
