import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose.exceptions import ExpiredSignatureError, JWTError

from ..config import settings
from .jwt import decode_session_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _token_from_request(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name) or None


def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """
    Resolve the caller's external identity from the session token.

    - Bearer header first, then the session cookie.
    - Returns None for a missing, expired or invalid token; callers decide
      how to reject unauthenticated requests.
    """
    token = _token_from_request(request, credentials)
    if not token:
        return None

    try:
        payload = decode_session_token(token)
    except ExpiredSignatureError:
        logger.info("Rejected expired session token")
        return None
    except JWTError:
        logger.info("Rejected invalid session token")
        return None

    sub = payload.get("sub")
    if not sub or not isinstance(sub, str):
        return None
    return sub
