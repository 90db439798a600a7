"""
Tests for the code generation API endpoint.
"""

from unittest.mock import AsyncMock, patch

import pytest

from lowcode_server.billing.entitlements import BooleanEntitlement
from lowcode_server.billing.errors import BillingLimitationError
from lowcode_server.billing.features import BillingFeature
from lowcode_server.codegen.events import EventNames
from lowcode_server.codegen.plugins import PluginEventHooks, PluginRegistry
from lowcode_server.services.analytics_service import EnumEventType

BASE = "apps/notes"
BILLING_SERVICE = "lowcode_server.billing.limitations.billing_service"


def _payload(**extra):
    payload = {
        "resourceInfo": {"id": "resource-9", "name": "Notes"},
        "entities": [
            {
                "id": "note-id",
                "name": "Note",
                "displayName": "Note",
                "pluralDisplayName": "Notes",
                "fields": [
                    {
                        "permanentId": "id",
                        "name": "id",
                        "displayName": "Id",
                        "dataType": "Id",
                    },
                    {
                        "permanentId": "note-title",
                        "name": "title",
                        "displayName": "Title",
                        "dataType": "SingleLineText",
                    },
                ],
            }
        ],
    }
    payload.update(extra)
    return payload


class FailingPlugin:
    """Plugin whose .env hook always fails."""

    def register(self):
        return {
            EventNames.CREATE_SERVER_DOT_ENV: PluginEventHooks(before=self.before)
        }

    def before(self, context, params):
        raise RuntimeError("no env for you")


@pytest.fixture
def usage():
    with patch(
        "lowcode_server.api.codegen.billing_service.report_usage",
        new_callable=AsyncMock,
    ) as mock_report, patch(
        "lowcode_server.api.codegen.analytics_service"
    ) as mock_analytics:
        yield mock_report, mock_analytics


@pytest.fixture
def app_registry(client):
    registry = PluginRegistry()
    client.app.state.plugin_registry = registry
    yield registry
    del client.app.state.plugin_registry


class TestGenerateService:
    def test_generates_files_and_logs(self, client, auth_headers, usage):
        response = client.post(
            "/api/codegen/generate", json=_payload(), headers=auth_headers
        )

        assert response.status_code == 200
        body = response.json()
        paths = {item["path"] for item in body["files"]}
        assert f"{BASE}/src/Program.cs" in paths
        assert f"{BASE}/src/APIs/Dtos/Note.cs" in paths
        assert f"{BASE}/src/Notes.csproj" in paths
        assert body["logs"][0]["message"] == "Generating service Notes"
        assert body["logs"][-1]["level"] == "info"

    def test_reports_usage_and_tracks(
        self, client, auth_headers, workspace_user, usage
    ):
        workspace, _, user = workspace_user
        mock_report, mock_analytics = usage

        response = client.post(
            "/api/codegen/generate", json=_payload(), headers=auth_headers
        )

        mock_report.assert_awaited_once_with(
            str(workspace.id), BillingFeature.CODE_GENERATION_BUILDS
        )
        mock_analytics.track.assert_called_once()
        args, kwargs = mock_analytics.track.call_args
        assert args == (EnumEventType.CODE_GENERATED,)
        assert kwargs["workspace_id"] == workspace.id
        assert kwargs["user_id"] == user.id
        assert kwargs["properties"] == {
            "resourceId": "resource-9",
            "files": len(response.json()["files"]),
        }

    def test_invalid_payload(self, client, auth_headers, usage):
        response = client.post(
            "/api/codegen/generate",
            json={"entities": []},
            headers=auth_headers,
        )

        assert response.status_code == 422
        usage[0].assert_not_awaited()

    def test_requires_authentication(self, client, usage):
        response = client.post("/api/codegen/generate", json=_payload())

        assert response.status_code in (401, 403)

    def test_failing_plugin(self, client, auth_headers, usage, app_registry):
        app_registry.register_plugin("acme/broken-env", FailingPlugin())
        payload = _payload(pluginInstallations=[{"pluginId": "acme/broken-env"}])

        response = client.post(
            "/api/codegen/generate", json=payload, headers=auth_headers
        )

        assert response.status_code == 500
        detail = response.json()["detail"]
        assert detail["error"] == "plugin_error"
        assert detail["plugin"] == "acme/broken-env"
        usage[0].assert_not_awaited()

    def test_plan_limitation_blocks_generation(
        self, client, auth_headers, workspace_user, usage
    ):
        workspace, _, _ = workspace_user

        with patch(
            f"{BILLING_SERVICE}.validate_subscription_plan_limitations_for_workspace",
            new_callable=AsyncMock,
            side_effect=BillingLimitationError(
                "Your workspace exceeds its team member limitation.", "team-members"
            ),
        ) as mock_validate:
            response = client.post(
                "/api/codegen/generate", json=_payload(), headers=auth_headers
            )

        assert response.status_code == 403
        assert response.json()["detail"] == {
            "error": "billing_limitation",
            "message": "Your workspace exceeds its team member limitation.",
            "feature": "team-members",
        }
        kwargs = mock_validate.await_args.kwargs
        assert kwargs["workspace_id"] == str(workspace.id)
        assert kwargs["current_project_id"] is None
        usage[0].assert_not_awaited()
        usage[1].track.assert_not_called()

    def test_plugins_need_a_plan_that_includes_them(
        self, client, auth_headers, usage, app_registry
    ):
        app_registry.register_plugin("acme/broken-env", FailingPlugin())
        payload = _payload(pluginInstallations=[{"pluginId": "acme/broken-env"}])

        with patch(
            f"{BILLING_SERVICE}.get_boolean_entitlement",
            new_callable=AsyncMock,
            return_value=BooleanEntitlement(has_access=False),
        ) as mock_entitlement:
            response = client.post(
                "/api/codegen/generate", json=payload, headers=auth_headers
            )

        assert response.status_code == 403
        detail = response.json()["detail"]
        assert detail["error"] == "billing_limitation"
        assert detail["feature"] == BillingFeature.PRIVATE_PLUGINS.value
        assert mock_entitlement.await_args.args[1] == BillingFeature.PRIVATE_PLUGINS
        usage[0].assert_not_awaited()

    def test_disabled_plugins_are_not_gated(self, client, auth_headers, usage):
        payload = _payload(
            pluginInstallations=[{"pluginId": "acme/idle", "enabled": False}]
        )

        with patch(
            f"{BILLING_SERVICE}.get_boolean_entitlement",
            new_callable=AsyncMock,
            return_value=BooleanEntitlement(has_access=False),
        ) as mock_entitlement:
            response = client.post(
                "/api/codegen/generate", json=payload, headers=auth_headers
            )

        assert response.status_code == 200
        mock_entitlement.assert_not_awaited()
