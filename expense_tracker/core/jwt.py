from typing import Any, Dict

from jose import jwt

from ..config import settings


def decode_session_token(token: str) -> Dict[str, Any]:
    # Raises jose.JWTError (ExpiredSignatureError included) on any bad token
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
