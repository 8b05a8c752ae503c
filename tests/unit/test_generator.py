"""Tests for wizard-driven client project generation."""
import json
from datetime import date
from unittest.mock import patch

import pytest

from modules.tracking import (
    GenerationError,
    NoRowsError,
    ProjectGenerator,
    StoreError,
    WizardData,
    describe_project,
)
from services.provisioning import ProvisioningError, parse_wizard

CORS_ORIGIN = "Access-Control-Allow-Origin"


def _wizard(client_id, team=()):
    return {
        "projectInfo": {
            "clientId": client_id,
            "projectName": "Claims Automation",
            "description": "Automated claims intake",
            "startDate": "2026-11-01",
            "endDate": "2027-03-31",
            "totalBudget": 24000,
            "currency": "EUR",
        },
        "phases": [
            {
                "name": "Analysis",
                "description": "Process mapping",
                "tasks": [
                    {"title": "Interview staff", "estimatedHours": 6, "priority": "high"},
                    {"title": "Collect samples"},
                ],
            },
            {"name": "Implementation", "tasks": []},
        ],
        "teamAssignments": [{"profileId": p, "role": "lead"} for p in team],
        "paymentSchedule": [
            {"name": "Kickoff", "amount": 8000, "dueDate": "2026-11-01"},
            {"name": "Delivery", "amount": 16000, "dueDate": "2027-03-31", "description": "On acceptance"},
        ],
        "dashboardConfig": {
            "widgets": ["progress", "payments"],
            "branding": {"primaryColor": "#0f766e"},
            "permissions": {"viewPayments": True, "viewTimeline": True},
        },
    }


class TestWizardParsing:
    def test_camel_case_payload(self):
        wizard = WizardData.model_validate(_wizard("c-1"))
        assert wizard.project_info.project_name == "Claims Automation"
        assert wizard.project_info.start_date == date(2026, 11, 1)
        assert wizard.phases[0].tasks[0].estimated_hours == 6
        assert wizard.phases[0].tasks[1].priority == "medium"

    def test_parse_wizard_rejects_invalid_priority(self):
        body = _wizard("c-1")
        body["phases"][0]["tasks"][0]["priority"] = "asap"
        with pytest.raises(ProvisioningError) as exc:
            parse_wizard(json.dumps({"wizardData": body}).encode())
        assert exc.value.status == 400
        assert "priority" in exc.value.message

    def test_parse_wizard_needs_wizard_data(self):
        with pytest.raises(ProvisioningError, match="Invalid wizard data"):
            parse_wizard(b'{"projectInfo": {}}')


class TestProjectGenerator:
    def test_builds_whole_project(self, data_client, client_record, team_member):
        wizard = WizardData.model_validate(_wizard(client_record.id, [team_member.id]))
        project = ProjectGenerator(data_client).generate(wizard)

        assert project.status == "planning"
        assert project.profile_id == client_record.profile_id
        assert project.total_amount == 24000
        assert [(p.name, p.order_index, p.status) for p in project.phases] == [
            ("Analysis", 1, "not_started"),
            ("Implementation", 2, "not_started"),
        ]
        assert project.phases[0].start_date == date(2026, 11, 1)
        tasks = project.phases[0].tasks
        assert {t.title for t in tasks} == {"Interview staff", "Collect samples"}
        assert {t.status for t in tasks} == {"todo"}
        assert [m.profile_id for m in project.members] == [team_member.id]
        assert {p.status for p in project.payment_schedules} == {"pending"}

        config = data_client.single("dashboard_configs", {"project_id": project.id})
        assert config.widgets == ["progress", "payments"]
        assert config.branding["primaryColor"] == "#0f766e"
        assert config.branding["welcomeMessage"] == "Welcome to your Claims Automation project dashboard"

    def test_summary_shape(self, data_client, client_record, team_member):
        wizard = WizardData.model_validate(_wizard(client_record.id, [team_member.id]))
        project = ProjectGenerator(data_client).generate(wizard)
        summary = describe_project(project, "EUR")
        assert summary["client"] == {"id": client_record.id, "name": "Acme Corp", "company": "Acme"}
        assert [p["duration"] for p in summary["phases"]] == [1, 2]
        assert summary["teamMembers"][0]["id"] == team_member.id
        assert summary["dashboardUrl"] == f"/dashboard?project={project.id}"
        assert summary["startDate"] == "2026-11-01"
        assert summary["currency"] == "EUR"

    def test_missing_client(self, data_client):
        wizard = WizardData.model_validate(_wizard(None))
        with pytest.raises(GenerationError, match="Client must be selected"):
            ProjectGenerator(data_client).generate(wizard)

    def test_unknown_client(self, data_client):
        with pytest.raises(NoRowsError):
            ProjectGenerator(data_client).generate(WizardData.model_validate(_wizard("ghost")))

    def test_unknown_team_profile_creates_nothing(self, data_client, client_record):
        wizard = WizardData.model_validate(_wizard(client_record.id, ["ghost-profile"]))
        with pytest.raises(GenerationError, match="Unknown team profiles"):
            ProjectGenerator(data_client).generate(wizard)
        assert data_client.select("projects") == []
        assert data_client.select("phases") == []

    def test_duplicate_team_profile(self, data_client, client_record, team_member):
        wizard = WizardData.model_validate(_wizard(client_record.id, [team_member.id, team_member.id]))
        with pytest.raises(GenerationError, match="assigned once"):
            ProjectGenerator(data_client).generate(wizard)


class TestGenerateEndpoint:
    PATH = "/functions/generate-client-project"

    def test_preflight(self, api):
        resp = api.options(self.PATH)
        assert resp.status_code == 200
        assert resp.headers[CORS_ORIGIN] == "*"

    def test_admin_generates_project(self, api, admin, client_record, auth_header, data_client):
        resp = api.post(self.PATH, json={"wizardData": _wizard(client_record.id)}, headers=auth_header(admin))
        assert resp.status_code == 200
        body = resp.json()
        assert body["name"] == "Claims Automation"
        assert body["status"] == "planning"
        assert [p["name"] for p in body["phases"]] == ["Analysis", "Implementation"]
        assert resp.headers[CORS_ORIGIN] == "*"
        assert data_client.get("projects", body["id"]).client_id == client_record.id

    def test_non_admin_is_forbidden(self, api, team_member, client_record, auth_header, data_client):
        resp = api.post(
            self.PATH, json={"wizardData": _wizard(client_record.id)}, headers=auth_header(team_member)
        )
        assert resp.status_code == 403
        assert data_client.select("projects") == []

    def test_missing_authorization(self, api, client_record):
        resp = api.post(self.PATH, json={"wizardData": _wizard(client_record.id)})
        assert resp.status_code == 401

    def test_missing_client_is_400(self, api, admin, auth_header):
        resp = api.post(self.PATH, json={"wizardData": _wizard(None)}, headers=auth_header(admin))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Client must be selected"}

    def test_unknown_client_is_404(self, api, admin, auth_header):
        resp = api.post(self.PATH, json={"wizardData": _wizard("ghost")}, headers=auth_header(admin))
        assert resp.status_code == 404

    def test_store_failure_is_500(self, api, admin, client_record, auth_header):
        with patch("modules.tracking.DataClient.save", side_effect=StoreError("disk full")):
            resp = api.post(self.PATH, json={"wizardData": _wizard(client_record.id)}, headers=auth_header(admin))
        assert resp.status_code == 500
        assert resp.json() == {"error": "disk full"}

    def test_standalone_service_route(self, provisioning_api, admin, client_record, auth_header):
        resp = provisioning_api.post(
            "/generate-client-project",
            json={"wizardData": _wizard(client_record.id)},
            headers=auth_header(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["client"]["company"] == "Acme"
