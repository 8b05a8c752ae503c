"""Tests for the table-level data client."""
import pytest

from modules.tracking import NoRowsError, StoreError


class TestSelect:
    def test_filter_and_order(self, data_client, project):
        phases = data_client.select("phases", {"project_id": project.id}, order_by="order_index")
        assert [p.name for p in phases] == ["Discovery", "Build", "Launch"]

    def test_descending_order(self, data_client, project):
        payments = data_client.select(
            "payment_schedules", {"project_id": project.id}, order_by="due_date", descending=True
        )
        assert [p.name for p in payments] == ["Final", "Milestone", "Deposit"]

    def test_list_filter_becomes_in(self, data_client, project):
        rows = data_client.select("payment_schedules", {"status": ["paid", "overdue"]})
        assert {r.name for r in rows} == {"Deposit", "Final"}

    def test_none_filter_matches_null(self, data_client, project, global_config):
        rows = data_client.select("dashboard_configs", {"project_id": None})
        assert [r.id for r in rows] == [global_config.id]

    def test_embed_nested_relationship(self, data_client, project):
        rows = data_client.select("payment_schedules", embed=["project.client"], limit=1)
        assert rows[0].project.id == project.id
        assert rows[0].project.client is None

    def test_unknown_table(self, data_client):
        with pytest.raises(StoreError, match="does not exist"):
            data_client.select("invoices")

    def test_unknown_column(self, data_client):
        with pytest.raises(StoreError, match="column phases.colour does not exist"):
            data_client.select("phases", {"colour": "red"})

    def test_unknown_embed(self, data_client):
        with pytest.raises(StoreError, match="no relationship"):
            data_client.select("phases", embed=["owner"])

    def test_single_without_match(self, data_client):
        with pytest.raises(NoRowsError):
            data_client.single("projects", {"name": "nope"})

    def test_get_missing(self, data_client):
        with pytest.raises(NoRowsError):
            data_client.get("projects", "missing-id")


class TestMutations:
    def test_insert_and_update(self, data_client, project):
        row = data_client.insert("phases", {"project_id": project.id, "name": "Support", "order_index": 4})
        assert row.id
        updated = data_client.update("phases", row.id, {"progress_percentage": 150})
        assert updated.progress_percentage == 100

    def test_insert_violating_foreign_key(self, data_client):
        with pytest.raises(StoreError):
            data_client.insert("phases", {"project_id": "no-such-project", "name": "Orphan"})

    def test_insert_many(self, data_client, project):
        rows = data_client.insert_many("tasks", [
            {"phase_id": project.phases[0].id, "title": "A"},
            {"phase_id": project.phases[0].id, "title": "B"},
        ])
        assert len(rows) == 2
        assert all(r.status == "todo" for r in rows)

    def test_update_with_unknown_column_leaves_row_clean(self, data_client, session, project):
        task = data_client.insert("tasks", {"phase_id": project.phases[0].id, "title": "Original"})
        with pytest.raises(StoreError, match="column tasks.bogus does not exist"):
            data_client.update("tasks", task.id, {"title": "changed", "bogus": 1})

        # an unrelated write must not flush the rejected value
        data_client.insert("clients", {"name": "Globex"})
        session.expire_all()
        assert data_client.get("tasks", task.id).title == "Original"

    def test_build_does_not_persist(self, data_client, session):
        row = data_client.build("clients", {"name": "Initech"})
        assert row not in session
        assert data_client.select("clients", {"name": "Initech"}) == []
        data_client.save(row)
        assert data_client.single("clients", {"name": "Initech"}).id == row.id

    def test_build_rejects_unknown_column(self, data_client):
        with pytest.raises(StoreError):
            data_client.build("clients", {"name": "Initech", "colour": "red"})

    def test_delete_returns_count(self, data_client, project):
        phase_id = project.phases[2].id
        assert data_client.delete("phases", phase_id) == 1
        assert data_client.delete("phases", phase_id) == 0


class TestReorder:
    def test_reorder_writes_positions(self, data_client, project):
        ids = [p.id for p in reversed(project.phases)]
        rows = data_client.reorder("phases", ids)
        assert [r.order_index for r in rows] == [1, 2, 3]
        stored = data_client.select("phases", {"project_id": project.id}, order_by="order_index")
        assert [p.id for p in stored] == ids

    def test_reorder_with_unknown_id_changes_nothing(self, data_client, project):
        ids = [p.id for p in reversed(project.phases)] + ["ghost"]
        with pytest.raises(NoRowsError):
            data_client.reorder("phases", ids)
        stored = data_client.select("phases", {"project_id": project.id}, order_by="order_index")
        assert [p.name for p in stored] == ["Discovery", "Build", "Launch"]
        assert [p.order_index for p in stored] == [1, 2, 3]

    def test_reorder_rejects_duplicate_ids(self, data_client, project):
        first, second, _ = [p.id for p in project.phases]
        with pytest.raises(StoreError, match="duplicate"):
            data_client.reorder("phases", [second, first, first])
        stored = data_client.select("phases", {"project_id": project.id}, order_by="order_index")
        assert [p.order_index for p in stored] == [1, 2, 3]

    def test_reorder_scope_rejects_foreign_rows(self, data_client, project, make_user):
        owner = make_user("client", email="other@example.com")
        other = data_client.insert("projects", {"name": "Other", "profile_id": owner.id})
        foreign = data_client.insert("phases", {"project_id": other.id, "name": "Elsewhere", "order_index": 1})
        ids = [p.id for p in project.phases] + [foreign.id]
        with pytest.raises(NoRowsError):
            data_client.reorder("phases", ids, scope={"project_id": project.id})
        assert data_client.get("phases", foreign.id).order_index == 1
