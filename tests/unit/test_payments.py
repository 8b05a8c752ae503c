"""Tests for the payments hook and payment statistics."""
from datetime import date
from types import SimpleNamespace

from modules.tracking import PaymentsHook, payment_stats


def _payment(status, amount):
    return SimpleNamespace(status=status, amount=amount)


class TestPaymentStats:
    def test_counts_and_sums_per_status(self):
        stats = payment_stats([
            _payment("paid", 3000),
            _payment("pending", 4000),
            _payment("pending", 500),
            _payment("overdue", 3000),
            _payment("cancelled", 250),
        ])
        assert stats.total == 5
        assert stats.pending == 2
        assert stats.paid == 1
        assert stats.overdue == 1
        assert stats.cancelled == 1
        assert stats.total_amount == 10750
        assert stats.pending_amount == 4500
        assert stats.paid_amount == 3000
        assert stats.overdue_amount == 3000
        assert stats.cancelled_amount == 250

    def test_empty(self):
        stats = payment_stats([])
        assert stats.total == 0
        assert stats.total_amount == 0

    def test_missing_amount_counts_as_zero(self):
        stats = payment_stats([_payment("pending", None)])
        assert stats.pending == 1
        assert stats.pending_amount == 0


class TestPaymentsHook:
    def test_fetch_orders_by_due_date_desc(self, ctx_for, admin, project):
        hook = PaymentsHook(ctx_for(admin), project_id=project.id)
        hook.fetch()
        assert [p.name for p in hook.payments] == ["Final", "Milestone", "Deposit"]
        assert hook.stats.total_amount == 10000

    def test_fetch_filters_status(self, ctx_for, admin, project):
        hook = PaymentsHook(ctx_for(admin), project_id=project.id, status="pending")
        hook.fetch()
        assert [p.name for p in hook.payments] == ["Milestone"]

    def test_update_status_refetches(self, ctx_for, admin, project):
        ctx = ctx_for(admin)
        hook = PaymentsHook(ctx, project_id=project.id)
        hook.fetch()
        milestone = next(p for p in hook.payments if p.name == "Milestone")
        assert hook.update_status(milestone.id, "paid")
        assert hook.stats.paid == 2
        assert ctx.notifier.toasts[-1].title == "Payment Updated"

    def test_update_status_rejects_unknown_status(self, ctx_for, admin, project):
        ctx = ctx_for(admin)
        hook = PaymentsHook(ctx, project_id=project.id)
        hook.fetch()
        assert not hook.update_status(hook.payments[0].id, "refunded")
        assert ctx.notifier.errors[-1].title == "Update Failed"

    def test_create_and_delete(self, ctx_for, admin, project):
        ctx = ctx_for(admin)
        hook = PaymentsHook(ctx, project_id=project.id)
        row = hook.create({
            "project_id": project.id,
            "name": "Retainer",
            "amount": 500.0,
            "due_date": date(2027, 1, 1),
        })
        assert row is not None
        assert hook.stats.total == 4
        assert hook.delete(row.id)
        assert hook.stats.total == 3
        assert ctx.notifier.toasts[-1].title == "Payment Deleted"

    def test_create_rejects_unknown_status(self, ctx_for, admin, project, data_client):
        ctx = ctx_for(admin)
        hook = PaymentsHook(ctx, project_id=project.id)
        row = hook.create({
            "project_id": project.id,
            "name": "Mystery",
            "amount": 999.0,
            "due_date": date(2027, 2, 1),
            "status": "bogus",
        })
        assert row is None
        assert ctx.notifier.errors[-1].title == "Creation Failed"
        assert data_client.select("payment_schedules", {"name": "Mystery"}) == []

        hook.fetch()
        stats = hook.stats
        assert stats.total == stats.pending + stats.paid + stats.overdue + stats.cancelled
        assert stats.total_amount == (
            stats.pending_amount + stats.paid_amount + stats.overdue_amount + stats.cancelled_amount
        )
