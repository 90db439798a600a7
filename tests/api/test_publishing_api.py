"""
Tests for the publishing API endpoints.
"""

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from lowcode_server.billing.errors import BillingLimitationError
from lowcode_server.persistence.models import (
    PendingChange,
    Project,
    Resource,
    ResourceVersion,
    Workspace,
    utcnow,
)

VALIDATE_LIMITATIONS = (
    "lowcode_server.billing.limitations.billing_service."
    "validate_subscription_plan_limitations_for_workspace"
)


@pytest.fixture
def project_changes(workspace_user, session):
    """A project of the test workspace with pending changes on two resources."""
    workspace, _, _ = workspace_user
    project = Project(id=uuid.uuid4(), workspace_id=workspace.id, name="Shop")
    service = Resource(
        id=uuid.uuid4(), project_id=project.id, name="orders", resource_type="Service"
    )
    template = Resource(
        id=uuid.uuid4(),
        project_id=project.id,
        name="node-template",
        resource_type="ServiceTemplate",
    )
    session.add_all([project, service, template])
    session.add(
        ResourceVersion(
            id=uuid.uuid4(),
            resource_id=template.id,
            version="2.3.1",
            created_at=utcnow() - timedelta(days=1),
        )
    )
    session.add_all(
        [
            PendingChange(
                id=uuid.uuid4(),
                resource_id=resource.id,
                action="Create",
                origin_type="Entity",
                origin_id=str(uuid.uuid4()),
                origin_name="Customer",
                created_at=utcnow() - timedelta(minutes=minutes),
            )
            for resource, minutes in ((service, 20), (template, 10))
        ]
    )
    session.commit()
    return project, service, template


class TestPendingChangesEndpoint:
    def test_lists_changes_and_template_versions(
        self, client, auth_headers, project_changes
    ):
        project, service, template = project_changes

        response = client.get(
            f"/api/projects/{project.id}/pending-changes", headers=auth_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert [r["resourceName"] for r in body["resources"]] == [
            "orders",
            "node-template",
        ]
        change = body["resources"][0]["changes"][0]
        assert change["action"] == "Create"
        assert change["originType"] == "Entity"
        assert change["originName"] == "Customer"
        assert body["templates"] == [
            {
                "resourceId": str(template.id),
                "currentVersion": "2.3.1",
                "newVersion": "2.4.0",
            }
        ]
        assert body["others"] == [str(service.id)]

    def test_release_type(self, client, auth_headers, project_changes):
        project, _, _ = project_changes

        response = client.get(
            f"/api/projects/{project.id}/pending-changes",
            params={"release_type": "patch"},
            headers=auth_headers,
        )

        assert response.json()["templates"][0]["newVersion"] == "2.3.2"

    def test_unknown_project(self, client, auth_headers):
        response = client.get(
            f"/api/projects/{uuid.uuid4()}/pending-changes", headers=auth_headers
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Project not found"

    def test_invalid_project_id(self, client, auth_headers):
        response = client.get(
            "/api/projects/not-a-uuid/pending-changes", headers=auth_headers
        )

        assert response.status_code == 404

    def test_project_of_other_workspace(self, client, auth_headers, session):
        workspace = Workspace(id=uuid.uuid4(), name="Somebody Else")
        project = Project(id=uuid.uuid4(), workspace_id=workspace.id, name="Theirs")
        session.add_all([workspace, project])
        session.commit()

        response = client.get(
            f"/api/projects/{project.id}/pending-changes", headers=auth_headers
        )

        assert response.status_code == 404


class TestCommitEndpoint:
    def test_commit_all(self, client, auth_headers, project_changes, session):
        project, service, template = project_changes

        response = client.post(
            f"/api/projects/{project.id}/commit",
            json={
                "message": "First release",
                "resource_versions": [
                    {"resource_id": str(template.id), "version": "3.0.0"}
                ],
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "First release"
        assert body["strategy"] == "AllWithPendingChanges"
        versions = {v["resourceId"]: v["version"] for v in body["resourceVersions"]}
        assert versions == {str(service.id): "0.1.0", str(template.id): "3.0.0"}
        assert session.query(PendingChange).count() == 0

    def test_commit_specific(self, client, auth_headers, project_changes, session):
        project, service, _ = project_changes

        response = client.post(
            f"/api/projects/{project.id}/commit",
            json={"strategy": "Specific", "resource_id": str(service.id)},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert [v["resourceId"] for v in response.json()["resourceVersions"]] == [
            str(service.id)
        ]
        assert session.query(PendingChange).count() == 1

    def test_specific_without_resource(self, client, auth_headers, project_changes):
        project, _, _ = project_changes

        response = client.post(
            f"/api/projects/{project.id}/commit",
            json={"strategy": "Specific"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json() == {
            "detail": "A resource id is required for the Specific commit strategy"
        }

    def test_version_not_newer(self, client, auth_headers, project_changes, session):
        project, _, template = project_changes

        response = client.post(
            f"/api/projects/{project.id}/commit",
            json={
                "resource_versions": [
                    {"resource_id": str(template.id), "version": "2.3.1"}
                ]
            },
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert "must be greater than 2.3.1" in response.json()["detail"]
        assert session.query(PendingChange).count() == 2

    def test_unknown_strategy(self, client, auth_headers, project_changes):
        project, _, _ = project_changes

        response = client.post(
            f"/api/projects/{project.id}/commit",
            json={"strategy": "Everything"},
            headers=auth_headers,
        )

        assert response.status_code == 422

    def test_unknown_project(self, client, auth_headers):
        response = client.post(
            f"/api/projects/{uuid.uuid4()}/commit", json={}, headers=auth_headers
        )

        assert response.status_code == 404

    def test_validates_plan_limitations(
        self, client, auth_headers, workspace_user, project_changes
    ):
        workspace, _, user = workspace_user
        project, _, template = project_changes
        payload = {
            "resource_versions": [{"resource_id": str(template.id), "version": "3.0.0"}]
        }

        with patch(VALIDATE_LIMITATIONS, new_callable=AsyncMock) as mock_validate:
            response = client.post(
                f"/api/projects/{project.id}/commit",
                json=payload,
                headers=auth_headers,
            )

        assert response.status_code == 200
        kwargs = mock_validate.await_args.kwargs
        assert kwargs["workspace_id"] == str(workspace.id)
        assert kwargs["current_user"].id == user.id
        assert kwargs["current_project_id"] == str(project.id)
        assert [p.id for p in kwargs["projects"]] == [project.id]

    def test_plan_limitation_blocks_commit(
        self, client, auth_headers, project_changes, session
    ):
        project, _, _ = project_changes

        with patch(
            VALIDATE_LIMITATIONS,
            new_callable=AsyncMock,
            side_effect=BillingLimitationError(
                "Your workspace exceeds its resource limitation.", "services"
            ),
        ):
            response = client.post(
                f"/api/projects/{project.id}/commit", json={}, headers=auth_headers
            )

        assert response.status_code == 403
        assert response.json()["detail"] == {
            "error": "billing_limitation",
            "message": "Your workspace exceeds its resource limitation.",
            "feature": "services",
        }
        assert session.query(PendingChange).count() == 2
        assert session.query(ResourceVersion).count() == 1
