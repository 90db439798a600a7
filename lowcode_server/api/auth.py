"""
This module provides the necessary function to support login to the low-code
platform server.
"""

from datetime import datetime, timedelta, timezone

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerifyMismatchError
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from lowcode_server.auth.auth_handler import decode_jwt, sign_jwt, sign_refresh_token
from lowcode_server.config import config
from lowcode_server.persistence import db, models
from lowcode_server.utils.verbosity_logger import get_logger, sanitize_log

logger = get_logger("lowcode_server.api.auth")

router = APIRouter()

password_hasher = PasswordHasher()


class UserLogin(BaseModel):
    """
    This class represents the JSON payload to the /login POST request.
    """

    email: str
    password: str


def _current_workspace_user(session: Session, account: models.Account):
    """Pick the workspace user the account last worked as, else its first one."""
    query = session.query(models.User).filter(
        models.User.account_id == account.id, models.User.deleted_at.is_(None)
    )
    if account.current_user_id is not None:
        user = query.filter(models.User.id == account.current_user_id).first()
        if user is not None:
            return user
    return query.order_by(models.User.created_at).first()


def _set_refresh_cookie(response: Response, user_id) -> None:
    the_config = config.get_config()
    jwt_refresh_timeout = int(the_config["security"]["jwt_refresh_timeout"])

    # Determine if we should use secure cookies based on config
    is_secure = bool(the_config.get("api", {}).get("certFile"))

    response.set_cookie(
        key="refresh_token",
        value=sign_refresh_token(user_id),
        expires=datetime.now(timezone.utc) + timedelta(seconds=jwt_refresh_timeout),
        path="/",
        secure=is_secure,
        httponly=True,
        samesite="strict" if is_secure else "lax",
    )


@router.post("/login")
async def login(
    login_data: UserLogin, response: Response, session: Session = Depends(db.get_db)
):
    """
    This function provides login ability to the low-code platform server.
    """
    account = (
        session.query(models.Account)
        .filter(models.Account.email == login_data.email.lower())
        .first()
    )
    if account is None:
        logger.warning(
            "Login attempt for unknown account %s", sanitize_log(login_data.email)
        )
        raise HTTPException(status_code=401, detail="Invalid email or password")

    try:
        password_hasher.verify(account.hashed_password, login_data.password)
    except (VerifyMismatchError, InvalidHashError) as exc:
        logger.warning("Failed login for account %s", account.id)
        raise HTTPException(
            status_code=401, detail="Invalid email or password"
        ) from exc

    user = _current_workspace_user(session, account)
    if user is None:
        raise HTTPException(
            status_code=403, detail="Account is not a member of any workspace"
        )

    if account.current_user_id != user.id:
        account.current_user_id = user.id
        session.commit()

    _set_refresh_cookie(response, user.id)
    logger.info("Account %s logged in to workspace %s", account.id, user.workspace_id)
    auth_token = sign_jwt(
        user.id, account_id=account.id, workspace_id=user.workspace_id
    )
    return {"Authorization": auth_token}


@router.post("/refresh")
async def refresh(request: Request):
    """
    This API call looks for the refresh token passed in the cookies of the
    request as an http_only cookie.  If present and valid, a new JWT
    Authentication token is returned.  If not, a 403 - Forbidden error is
    returned, forcing the client to log in again.
    """
    refresh_token = request.cookies.get("refresh_token")
    if refresh_token:
        token_dict = decode_jwt(refresh_token)
        if token_dict:
            return {"Authorization": sign_jwt(token_dict["user_id"])}

    raise HTTPException(status_code=403, detail="Invalid or missing refresh token")
