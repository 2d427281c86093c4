"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from schedula.auth.jwt import TokenIdentity, verify_token

_bearer = HTTPBearer(auto_error=False)


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> TokenIdentity:
    """
    Verify the bearer access token and return the identity it carries.

    Stateless: the user row is not loaded. An expired token gets its own
    message so clients can refresh instead of sending the user to login.
    """
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="No authorization token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return verify_token(credentials.credentials, expected_type="access")
    except jwt.ExpiredSignatureError as e:
        raise HTTPException(
            status_code=401,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=401,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
