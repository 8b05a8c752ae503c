"""Payment schedules of a project, plus per-status statistics."""
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Iterable, Optional

from common.models import PaymentStatus

from .hook import EntityHook, HookContext

logger = logging.getLogger(__name__)


@dataclass
class PaymentStats:
    total: int = 0
    pending: int = 0
    paid: int = 0
    overdue: int = 0
    cancelled: int = 0
    total_amount: float = 0.0
    paid_amount: float = 0.0
    pending_amount: float = 0.0
    overdue_amount: float = 0.0
    cancelled_amount: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


def payment_stats(payments: Iterable) -> PaymentStats:
    """Counts and amount sums per status."""
    stats = PaymentStats()
    for p in payments:
        amount = p.amount or 0
        stats.total += 1
        stats.total_amount += amount
        if p.status in (PaymentStatus.PENDING.value, PaymentStatus.PAID.value,
                        PaymentStatus.OVERDUE.value, PaymentStatus.CANCELLED.value):
            setattr(stats, p.status, getattr(stats, p.status) + 1)
            amount_field = f"{p.status}_amount"
            setattr(stats, amount_field, getattr(stats, amount_field) + amount)
    return stats


class PaymentsHook(EntityHook):
    """Payment schedules, newest due date first."""

    entity = "payments"

    def __init__(
        self,
        ctx: HookContext,
        project_id: Optional[str] = None,
        status: Optional[str] = None,
    ):
        super().__init__(ctx)
        self.project_id = project_id
        self.status = status
        self.payments: list = []

    @property
    def stats(self) -> PaymentStats:
        return payment_stats(self.payments)

    def fetch(self) -> list:
        filters = {}
        if self.project_id:
            filters["project_id"] = self.project_id
        if self.status:
            filters["status"] = self.status

        self._begin()
        try:
            self.payments = self.client.select(
                "payment_schedules",
                filters,
                order_by="due_date",
                descending=True,
                embed=["project.client"],
            )
            logger.debug(f"Fetched {len(self.payments)} payments")
        except Exception as e:
            self._fetch_failed(e, "Failed to fetch payments", "Error fetching payments")
        finally:
            self.loading = False
        return self.payments

    def update_status(self, payment_id: str, new_status: str) -> bool:
        try:
            PaymentStatus(new_status)
            self.client.update(
                "payment_schedules",
                payment_id,
                {"status": new_status, "updated_at": datetime.now(timezone.utc)},
            )
        except Exception as e:
            self._mutation_failed(e, "Update Failed", "Failed to update payment status.")
            return False

        self.fetch()
        self.notifier.success("Payment Updated", f"Payment status updated to {new_status}.")
        return True

    def create(self, payment_data: dict):
        try:
            PaymentStatus(payment_data.get("status", PaymentStatus.PENDING.value))
            row = self.client.insert("payment_schedules", payment_data)
        except Exception as e:
            self._mutation_failed(e, "Creation Failed", "Failed to create payment.")
            return None

        self.fetch()
        self.notifier.success("Payment Created", "New payment schedule added successfully.")
        return row

    def delete(self, payment_id: str) -> bool:
        try:
            self.client.delete("payment_schedules", payment_id)
        except Exception as e:
            self._mutation_failed(e, "Delete Failed", "Failed to delete payment.")
            return False

        self.fetch()
        self.notifier.success("Payment Deleted", "Payment schedule removed.")
        return True
