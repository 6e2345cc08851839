import logging
from typing import Optional

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from . import config
from .db import fetch_one, get_supabase_client
from .models import AuthUser

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def is_admin_role(role: Optional[str]) -> bool:
    if not role:
        return False
    return role in config.ADMIN_ROLES


def decode_access_token(token: str) -> dict:
    """Verify a Supabase-issued access token and return its claims."""
    (secret,) = config.require_supabase_env("jwt_secret")
    return jwt.decode(token, secret, algorithms=["HS256"], audience=config.JWT_AUDIENCE)


def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> AuthUser:
    if not credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        claims = decode_access_token(credentials.credentials)
    except jwt.PyJWTError as e:
        logger.warning("Rejected access token: %s", e)
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    if not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return AuthUser(id=claims["sub"], email=claims.get("email"))


def require_admin(user: AuthUser = Depends(get_current_user), supabase=Depends(get_supabase_client)) -> AuthUser:
    profile = fetch_one(supabase.table("profiles").select("id, role").eq("id", user.id), "profile lookup")
    role = profile.get("role") if profile else None
    if not is_admin_role(role):
        raise HTTPException(status_code=403, detail="Admin role required")
    return user.model_copy(update={"role": role})


def get_portal_employee(user: AuthUser = Depends(get_current_user), supabase=Depends(get_supabase_client)) -> dict:
    employee = fetch_one(supabase.table("employees").select("*").eq("user_id", user.id), "portal employee lookup")
    if not employee:
        raise HTTPException(status_code=403, detail="No employee is linked to this account")
    return employee
