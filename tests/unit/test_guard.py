"""Tests for the access guard decision and its portal dependencies."""
from unittest.mock import patch

from common.auth import Decision, guard, login_redirect
from common.models import CurrentUser, Identity, Role


def _user(role=None):
    return CurrentUser(identity=Identity(id="u1", email="u@example.com"), role=role)


class TestGuardDecision:
    def test_loading_wins_over_everything(self):
        assert guard(True, None).decision is Decision.LOADING
        assert guard(True, _user("admin"), ["client"]).decision is Decision.LOADING

    def test_unauthenticated_redirects_with_location(self):
        result = guard(False, None, location="/dashboard")
        assert result.decision is Decision.REDIRECT
        assert result.redirect_to == "/auth?next=/dashboard"

    def test_redirect_encodes_query(self):
        result = guard(False, None, location="/dashboard?tab=payments")
        assert result.redirect_to == "/auth?next=/dashboard%3Ftab%3Dpayments"

    def test_role_outside_allow_list_is_denied(self):
        result = guard(False, _user("client"), ["admin", "team_member"])
        assert result.decision is Decision.DENIED
        assert result.redirect_to is None

    def test_role_in_allow_list_is_allowed(self):
        assert guard(False, _user("admin"), ["admin"]).allowed

    def test_enum_roles_accepted(self):
        assert guard(False, _user("team_member"), [Role.TEAM_MEMBER]).allowed

    def test_no_allow_list_admits_any_authenticated(self):
        assert guard(False, _user("client")).allowed

    def test_user_without_profile_denied_when_roles_required(self):
        assert guard(False, _user(None), ["client"]).decision is Decision.DENIED

    def test_user_without_profile_allowed_without_roles(self):
        assert guard(False, _user(None)).allowed

    def test_login_redirect_defaults_to_root(self):
        assert login_redirect("") == "/auth?next=/"


class TestPageGuard:
    def test_dashboard_redirects_anonymous(self, api):
        resp = api.get("/dashboard", follow_redirects=False)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/auth?next=/dashboard"

    def test_api_unauthenticated_is_401(self, api):
        resp = api.get("/api/projects/")
        assert resp.status_code == 401

    def test_invalid_token_treated_as_anonymous(self, api):
        resp = api.get("/api/projects/", headers={"Authorization": "Bearer garbage"})
        assert resp.status_code == 401

    def test_cookie_token_accepted(self, api, client_profile, project, issue_token):
        resp = api.get("/dashboard", headers={"Cookie": f"access_token={issue_token(client_profile)}"})
        assert resp.status_code == 200
        assert "Automation Rollout" in resp.text

    def test_page_guard_is_asked_with_resolved_identity(self, api, client_profile, project, auth_header):
        with patch("portal.deps.guard", wraps=guard) as spy:
            resp = api.get("/dashboard", headers=auth_header(client_profile))
            anonymous = api.get("/dashboard", follow_redirects=False)
        assert resp.status_code == 200
        assert anonymous.status_code == 303
        assert spy.call_args_list
        assert all(call.args[0] is False for call in spy.call_args_list)
