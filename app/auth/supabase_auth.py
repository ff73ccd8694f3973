# app/auth/supabase_auth.py
import logging
from typing import Any, Dict, Optional

import requests
from fastapi import Header

from app.config import AUTH_TIMEOUT_SECONDS, _require_env
from app.errors import UnauthorizedError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def verify_bearer_token(authorization: Optional[str]) -> Dict[str, Any]:
    """
    Resolve the calling user from an `Authorization: Bearer <jwt>` header
    by asking Supabase Auth who the token belongs to.
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise UnauthorizedError()

    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise UnauthorizedError()

    url = f"{_require_env('SUPABASE_URL').rstrip('/')}/auth/v1/user"
    headers = {
        "apikey": _require_env("SUPABASE_ANON_KEY"),
        "Authorization": f"{BEARER_PREFIX}{token}",
    }

    try:
        r = requests.get(url, headers=headers, timeout=AUTH_TIMEOUT_SECONDS)
    except requests.RequestException as e:
        logger.warning("Auth server unreachable: %s", e)
        raise UnauthorizedError() from e

    if r.status_code != 200:
        logger.info("Token rejected by auth server (status=%s)", r.status_code)
        raise UnauthorizedError()

    try:
        user = r.json()
    except ValueError as e:
        raise UnauthorizedError() from e
    if not isinstance(user, dict) or not user.get("id"):
        raise UnauthorizedError()
    return user


def get_current_user(authorization: Optional[str] = Header(None)) -> Dict[str, Any]:
    return verify_bearer_token(authorization)
