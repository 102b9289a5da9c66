"""Authentication helpers and FastAPI security dependency.

This module provides utilities to decode JWT tokens and a FastAPI
dependency `get_current_user` that validates the bearer token, checks
the user still exists and returns a `domain.LoginInfo` for the caller.

Token verification raises HTTPExceptions on failure so it can be used
directly inside route dependencies.
"""

from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from sqlmodel import Session

from .config import settings
from .database import get_session
from .domain import LoginInfo
from . import repositories

bearer_scheme = HTTPBearer()


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token.

    Returns the decoded payload on success or raises an HTTPException
    with status 401 on failure.
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail='token expired')
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail='invalid token')


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(bearer_scheme),
    db: Session = Depends(get_session),
) -> LoginInfo:
    """FastAPI dependency that returns the authenticated caller.

    Raises HTTPException(401) when the token is invalid, lacks the
    expected claims or names a user that no longer exists.
    """
    payload = decode_token(credentials.credentials)
    user_guid = payload.get('sub')
    company_guid = payload.get('company_guid')
    if not user_guid or not company_guid:
        raise HTTPException(status_code=401, detail='invalid token payload')
    if not repositories.UserRepository(db).get_by_guid(user_guid):
        raise HTTPException(status_code=401, detail='user not found')
    return LoginInfo(guid=user_guid, company_guid=company_guid)
