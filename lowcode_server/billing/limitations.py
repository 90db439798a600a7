"""
Plan limitation checks of a workspace, run before changes are published or
code is generated.
"""

from typing import Optional

from sqlalchemy.orm import Session

from lowcode_server.billing.billing_service import billing_service
from lowcode_server.billing.feature_gate import requires_billing_feature
from lowcode_server.billing.features import BillingFeature
from lowcode_server.persistence.models import GitRepository, Project, Resource


def workspace_projects(db: Session, workspace_id):
    return (
        db.query(Project)
        .filter(Project.workspace_id == workspace_id, Project.deleted_at.is_(None))
        .all()
    )


def workspace_repositories(db: Session, workspace_id):
    """Repositories connected to any resource of the workspace's projects."""
    return (
        db.query(GitRepository)
        .join(Resource, Resource.git_repository_id == GitRepository.id)
        .join(Project, Resource.project_id == Project.id)
        .filter(Project.workspace_id == workspace_id)
        .filter(Project.deleted_at.is_(None))
        .filter(Resource.deleted_at.is_(None))
        .distinct()
        .all()
    )


async def validate_workspace_limitations(
    db: Session,
    workspace_id,
    current_user,
    current_project_id: Optional[str] = None,
    bypass_limitations: bool = False,
) -> None:
    """
    Check the workspace's projects and repositories against its plan.

    Raises:
        BillingLimitationError: a limitation is exceeded and
            bypass_limitations is False
    """
    await billing_service.validate_subscription_plan_limitations_for_workspace(
        workspace_id=str(workspace_id),
        current_user=current_user,
        current_project_id=current_project_id,
        projects=workspace_projects(db, workspace_id),
        repositories=workspace_repositories(db, workspace_id),
        bypass_limitations=bypass_limitations,
    )


@requires_billing_feature(BillingFeature.PRIVATE_PLUGINS)
async def ensure_plugins_allowed(*, workspace_id: str) -> None:
    """Pass when the workspace's plan lets its builds run installed plugins."""
