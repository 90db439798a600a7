"""
This module is used to verify the JWT token we use for authentication
"""

import uuid

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from lowcode_server.auth.auth_handler import decode_jwt
from lowcode_server.persistence import db, models


class JWTBearer(HTTPBearer):
    """
    Subclass of the FastAPI HTTPBearer class that manages authentication
    via JWT
    """

    def __init__(self, auto_error: bool = True):
        super().__init__(auto_error=auto_error)

    async def __call__(self, request: Request):
        """
        Verify the credential scheme and the JWT token, returning the token's
        payload.
        """
        credentials: HTTPAuthorizationCredentials = await super().__call__(request)
        if not credentials:
            raise HTTPException(status_code=403, detail="Invalid authorization code.")
        if credentials.scheme != "Bearer":
            raise HTTPException(
                status_code=403, detail="Invalid authentication scheme."
            )

        payload = decode_jwt(credentials.credentials)
        if not payload:
            raise HTTPException(status_code=401, detail="Invalid or expired token.")
        return payload


def get_current_user(
    payload: dict = Depends(JWTBearer()),
    session: Session = Depends(db.get_db),
) -> models.User:
    """
    Resolve the workspace user the request's token was issued for.
    """
    try:
        user_id = uuid.UUID(str(payload.get("user_id")))
    except ValueError as exc:
        raise HTTPException(status_code=401, detail="Invalid token subject.") from exc

    user = (
        session.query(models.User)
        .filter(models.User.id == user_id, models.User.deleted_at.is_(None))
        .first()
    )
    if user is None:
        raise HTTPException(status_code=401, detail="User not found.")
    return user


def ensure_workspace_access(current_user: models.User, workspace_id) -> uuid.UUID:
    """
    Check that the current user belongs to the workspace being addressed.
    """
    try:
        workspace_uuid = uuid.UUID(str(workspace_id))
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="Workspace not found.") from exc
    if current_user.workspace_id != workspace_uuid:
        raise HTTPException(status_code=403, detail="Access to workspace denied.")
    return workspace_uuid
