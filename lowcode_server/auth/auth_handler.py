"""
This module manages the JWT auth mechanism used by the server.
"""

import time
from typing import Optional

import jwt
import jwt.exceptions

from lowcode_server.config import config
from lowcode_server.utils.verbosity_logger import get_logger

logger = get_logger("lowcode_server.auth")


def _security_config() -> dict:
    return config.get_config()["security"]


def _sign(payload: dict, timeout_key: str) -> str:
    security = _security_config()
    payload["expires"] = time.time() + int(security[timeout_key])
    return jwt.encode(
        payload, security["jwt_secret"], algorithm=security["jwt_algorithm"]
    )


def sign_jwt(user_id: str, account_id: str = None, workspace_id: str = None) -> str:
    """
    This function signs/encodes a JWT token for a workspace user
    """
    payload = {"user_id": str(user_id)}
    if account_id is not None:
        payload["account_id"] = str(account_id)
    if workspace_id is not None:
        payload["workspace_id"] = str(workspace_id)
    return _sign(payload, "jwt_auth_timeout")


def sign_refresh_token(user_id: str) -> str:
    """
    This function signs/encodes a JWT refresh token
    """
    return _sign({"user_id": str(user_id)}, "jwt_refresh_timeout")


def decode_jwt(token: str) -> Optional[dict]:
    """
    This function decodes a JWT token, returning None when it is invalid or
    has expired
    """
    security = _security_config()
    try:
        decoded_token = jwt.decode(
            token, security["jwt_secret"], algorithms=[security["jwt_algorithm"]]
        )
    except jwt.exceptions.InvalidTokenError:
        logger.warning("Rejected invalid JWT")
        return None

    # Test to see if the token has expired
    if decoded_token.get("expires", 0) >= time.time():
        return decoded_token

    logger.debug("Rejected expired JWT")
    return None
