"""Tests for the portal HTTP surface: login, dashboard, and entity routes."""
from unittest.mock import patch

from modules.tracking import StoreError


class TestHealth:
    def test_health(self, api):
        resp = api.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"
        assert resp.json()["database"] == "healthy"

    def test_root(self, api):
        assert api.get("/").json()["dashboard"] == "/dashboard"


class TestLogin:
    def test_login_page_renders(self, api):
        resp = api.get("/auth?next=/dashboard")
        assert resp.status_code == 200
        assert 'name="password"' in resp.text

    def test_form_login_sets_cookie_and_redirects(self, api, client_profile, password):
        resp = api.post(
            "/auth",
            data={"email": "client@acme.com", "password": password, "next": "/dashboard"},
            follow_redirects=False,
        )
        assert resp.status_code == 303
        assert resp.headers["location"] == "/dashboard"
        assert "access_token=" in resp.headers["set-cookie"]

    def test_offsite_next_is_ignored(self, api, client_profile, password):
        resp = api.post(
            "/auth",
            data={"email": "client@acme.com", "password": password, "next": "//evil.example.com"},
            follow_redirects=False,
        )
        assert resp.headers["location"] == "/dashboard"

    def test_bad_credentials(self, api, client_profile):
        resp = api.post(
            "/auth",
            data={"email": "client@acme.com", "password": "wrong"},
            follow_redirects=False,
        )
        assert resp.status_code == 401
        assert "Invalid login credentials" in resp.text

    def test_logged_in_user_skips_login_page(self, api, client_profile, auth_header):
        resp = api.get("/auth", headers=auth_header(client_profile), follow_redirects=False)
        assert resp.status_code == 303

    def test_token_and_me(self, api, client_profile, password):
        resp = api.post("/auth/token", json={"email": "client@acme.com", "password": password})
        assert resp.status_code == 200
        token = resp.json()["access_token"]

        me = api.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["role"] == "client"
        assert me.json()["profile"]["company"] == "Acme"

    def test_token_bad_credentials(self, api, client_profile):
        resp = api.post("/auth/token", json={"email": "client@acme.com", "password": "nope"})
        assert resp.status_code == 401

    def test_logout_clears_cookie(self, api):
        resp = api.post("/auth/logout", follow_redirects=False)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/auth"


class TestDashboardApi:
    def test_ready(self, api, client_profile, project, auth_header):
        resp = api.get("/api/dashboard", headers=auth_header(client_profile))
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["state"] == "ready"
        assert data["project"]["name"] == "Automation Rollout"
        assert data["status_color"] == "green"
        assert [w["name"] for w in data["widgets"]] == ["progress", "tasks", "payments", "team"]

    def test_global_config_hides_timeline(self, api, client_profile, project, global_config, auth_header):
        data = api.get("/api/dashboard", headers=auth_header(client_profile)).json()["data"]
        assert [w["name"] for w in data["widgets"]] == ["progress", "payments"]
        assert data["deadlines"] is None
        assert data["primary_color"] == "#111111"

    def test_empty_without_project(self, api, client_profile, auth_header):
        data = api.get("/api/dashboard", headers=auth_header(client_profile)).json()["data"]
        assert data["state"] == "empty"
        assert data["meeting_url"].startswith("https://")

    def test_page_renders_empty_state(self, api, client_profile, auth_header):
        resp = api.get("/dashboard", headers=auth_header(client_profile))
        assert resp.status_code == 200
        assert "https://calendly.com/" in resp.text


class TestPhasesApi:
    def test_client_reads_own_project(self, api, client_profile, project, auth_header):
        resp = api.get(f"/api/phases/?project_id={project.id}", headers=auth_header(client_profile))
        assert resp.status_code == 200
        body = resp.json()["data"]
        assert [p["name"] for p in body["phases"]] == ["Discovery", "Build", "Launch"]
        assert body["stats"]["completed"] == 1

    def test_client_cannot_read_foreign_project(self, api, make_user, project, auth_header):
        stranger = make_user("client", email="stranger@example.com")
        resp = api.get(f"/api/phases/?project_id={project.id}", headers=auth_header(stranger))
        assert resp.status_code == 404

    def test_client_cannot_write(self, api, client_profile, project, auth_header):
        resp = api.post(
            "/api/phases/",
            json={"project_id": project.id, "name": "Extra", "order_index": 4},
            headers=auth_header(client_profile),
        )
        assert resp.status_code == 403

    def test_reorder(self, api, team_member, project, auth_header):
        ids = [p.id for p in project.phases]
        resp = api.post(
            "/api/phases/reorder",
            json={"project_id": project.id, "phase_ids": list(reversed(ids))},
            headers=auth_header(team_member),
        )
        assert resp.status_code == 200
        assert [p["name"] for p in resp.json()["data"]["phases"]] == ["Launch", "Build", "Discovery"]
        assert resp.json()["notifications"][-1]["variant"] == "default"

    def test_hook_failure_is_502_with_notifications(self, api, team_member, project, auth_header):
        phase_id = project.phases[1].id
        with patch("modules.tracking.DataClient.update", side_effect=StoreError("write conflict")):
            resp = api.put(
                f"/api/phases/{phase_id}/progress",
                json={"progress": 75},
                headers=auth_header(team_member),
            )
        assert resp.status_code == 502
        body = resp.json()
        assert body["error"] == "write conflict"
        assert body["notifications"][0]["variant"] == "destructive"

    def test_create_with_unknown_status_is_422(self, api, team_member, project, auth_header, data_client):
        resp = api.post(
            "/api/phases/",
            json={"project_id": project.id, "name": "Limbo", "order_index": 4, "status": "paused"},
            headers=auth_header(team_member),
        )
        assert resp.status_code == 422
        assert data_client.select("phases", {"name": "Limbo"}) == []

    def test_update_with_unknown_status_is_422(self, api, team_member, project, auth_header):
        resp = api.patch(
            f"/api/phases/{project.phases[1].id}",
            json={"status": "done"},
            headers=auth_header(team_member),
        )
        assert resp.status_code == 422

    def test_reorder_with_duplicate_ids_changes_nothing(self, api, team_member, project, auth_header, data_client):
        first, second, _ = [p.id for p in project.phases]
        resp = api.post(
            "/api/phases/reorder",
            json={"project_id": project.id, "phase_ids": [second, first, first]},
            headers=auth_header(team_member),
        )
        assert resp.status_code == 502
        stored = data_client.select("phases", {"project_id": project.id}, order_by="order_index")
        assert [p.name for p in stored] == ["Discovery", "Build", "Launch"]

    def test_reorder_rejects_phase_of_other_project(self, api, team_member, project, auth_header, data_client):
        other = data_client.insert("projects", {"name": "Side Project"})
        foreign = data_client.insert("phases", {"project_id": other.id, "name": "Elsewhere", "order_index": 5})
        resp = api.post(
            "/api/phases/reorder",
            json={"project_id": project.id, "phase_ids": [foreign.id] + [p.id for p in project.phases]},
            headers=auth_header(team_member),
        )
        assert resp.status_code == 502
        assert data_client.get("phases", foreign.id).order_index == 5

    def test_missing_phase_is_404(self, api, team_member, auth_header):
        resp = api.delete("/api/phases/nope", headers=auth_header(team_member))
        assert resp.status_code == 404


class TestPaymentsApi:
    def test_client_sees_own_payments(self, api, client_profile, project, auth_header):
        resp = api.get("/api/payments/", headers=auth_header(client_profile))
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert len(data["payments"]) == 3
        assert data["stats"]["total_amount"] == 10000

    def test_client_without_projects_sees_nothing(self, api, make_user, project, auth_header):
        stranger = make_user("client", email="stranger@example.com")
        data = api.get("/api/payments/", headers=auth_header(stranger)).json()["data"]
        assert data["payments"] == []

    def test_writes_are_admin_only(self, api, client_profile, team_member, project, auth_header):
        body = {"project_id": project.id, "name": "Bonus", "amount": 500, "due_date": "2026-12-31"}
        assert api.post("/api/payments/", json=body, headers=auth_header(client_profile)).status_code == 403
        assert api.post("/api/payments/", json=body, headers=auth_header(team_member)).status_code == 403

    def test_admin_creates_and_marks_paid(self, api, admin, project, auth_header):
        body = {"project_id": project.id, "name": "Bonus", "amount": 500, "due_date": "2026-12-31"}
        created = api.post("/api/payments/", json=body, headers=auth_header(admin))
        assert created.status_code == 201
        payment_id = created.json()["data"]["payment"]["id"]

        resp = api.patch(
            f"/api/payments/{payment_id}/status",
            json={"status": "paid"},
            headers=auth_header(admin),
        )
        assert resp.status_code == 200
        paid = next(p for p in resp.json()["data"]["payments"] if p["id"] == payment_id)
        assert paid["status"] == "paid"
        assert resp.json()["data"]["stats"]["paid"] == 2


    def test_create_with_unknown_status_is_422(self, api, admin, project, auth_header, data_client):
        body = {"project_id": project.id, "name": "Mystery", "amount": 999, "due_date": "2027-02-01", "status": "bogus"}
        resp = api.post("/api/payments/", json=body, headers=auth_header(admin))
        assert resp.status_code == 422
        assert data_client.select("payment_schedules", {"name": "Mystery"}) == []

    def test_status_update_with_unknown_status_is_422(self, api, admin, project, auth_header):
        resp = api.patch(
            f"/api/payments/{project.payment_schedules[0].id}/status",
            json={"status": "refunded"},
            headers=auth_header(admin),
        )
        assert resp.status_code == 422


class TestProfilesApi:
    def test_non_admin_list_is_empty(self, api, admin, client_profile, auth_header):
        resp = api.get("/api/profiles/", headers=auth_header(client_profile))
        assert resp.status_code == 200
        assert resp.json()["data"]["profiles"] == []

    def test_admin_lists_all(self, api, admin, client_profile, auth_header):
        profiles = api.get("/api/profiles/", headers=auth_header(admin)).json()["data"]["profiles"]
        assert {p["email"] for p in profiles} == {"admin@example.com", "client@acme.com"}

    def test_self_update_keeps_role(self, api, client_profile, auth_header):
        resp = api.patch(
            f"/api/profiles/{client_profile.id}",
            json={"full_name": "Carla C.", "role": "admin"},
            headers=auth_header(client_profile),
        )
        assert resp.status_code == 200
        profile = resp.json()["data"]["profile"]
        assert profile["full_name"] == "Carla C."
        assert profile["role"] == "client"

    def test_cannot_read_other_profile(self, api, admin, client_profile, auth_header):
        resp = api.get(f"/api/profiles/{admin.id}", headers=auth_header(client_profile))
        assert resp.status_code == 403


class TestProjectsApi:
    def test_roi_endpoint(self, api, client_profile, project, auth_header):
        resp = api.get(f"/api/projects/{project.id}/roi", headers=auth_header(client_profile))
        assert resp.status_code == 200
        assert resp.json()["data"]["roi"]["projected_roi"] == 140

    def test_unknown_project(self, api, admin, auth_header):
        assert api.get("/api/projects/nope", headers=auth_header(admin)).status_code == 404

    def test_admin_creates_project(self, api, admin, client_record, auth_header):
        resp = api.post(
            "/api/projects/",
            json={
                "name": "Data Pipeline",
                "client_id": client_record.id,
                "total_amount": 8000,
                "dashboard_config": {"widgets": ["progress"]},
            },
            headers=auth_header(admin),
        )
        assert resp.status_code == 201
        project = resp.json()["data"]["project"]
        assert project["status"] == "planning"
        assert project["profile_id"] == client_record.profile_id
        assert resp.json()["notifications"][-1]["title"] == "Success"

        config = api.get(
            f"/api/dashboard-configs/?project_id={project['id']}", headers=auth_header(admin)
        ).json()["data"]["config"]
        assert config["widgets"] == ["progress"]

    def test_create_needs_client(self, api, admin, auth_header):
        resp = api.post("/api/projects/", json={"name": "Orphan"}, headers=auth_header(admin))
        assert resp.status_code == 422

    def test_create_rejects_unknown_status(self, api, admin, client_record, auth_header):
        resp = api.post(
            "/api/projects/",
            json={"name": "Odd", "client_id": client_record.id, "status": "archived"},
            headers=auth_header(admin),
        )
        assert resp.status_code == 422

    def test_project_writes_are_admin_only(self, api, team_member, client_profile, client_record, project, auth_header):
        body = {"name": "Data Pipeline", "client_id": client_record.id}
        assert api.post("/api/projects/", json=body, headers=auth_header(team_member)).status_code == 403
        resp = api.patch(f"/api/projects/{project.id}", json={"status": "completed"}, headers=auth_header(client_profile))
        assert resp.status_code == 403

    def test_admin_updates_project(self, api, admin, project, auth_header):
        resp = api.patch(
            f"/api/projects/{project.id}",
            json={"status": "on_hold", "monthly_savings": 2500},
            headers=auth_header(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["project"]["status"] == "on_hold"
        assert resp.json()["data"]["project"]["monthly_savings"] == 2500

    def test_update_unknown_project_is_404(self, api, admin, auth_header):
        resp = api.patch("/api/projects/nope", json={"status": "active"}, headers=auth_header(admin))
        assert resp.status_code == 404


class TestDashboardConfigsApi:
    def test_effective_config_uses_global_fallback(self, api, admin, project, global_config, auth_header):
        resp = api.get(f"/api/dashboard-configs/?project_id={project.id}", headers=auth_header(admin))
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["has_config"] is False
        assert data["effective"]["widgets"] == ["progress", "payments"]
        assert data["effective"]["branding"]["primaryColor"] == "#111111"
        assert data["effective"]["permissions"]["viewTimeline"] is False

    def test_effective_config_defaults_without_any_config(self, api, admin, project, auth_header):
        data = api.get(
            f"/api/dashboard-configs/?project_id={project.id}", headers=auth_header(admin)
        ).json()["data"]
        assert data["effective"]["widgets"] == ["progress", "tasks", "payments", "team"]
