import time
from typing import Optional

from jose import jwt, JWTError

from .config import settings
from .models import Session

JWT_ALGORITHM = "HS256"


def create_access_token(data: dict) -> str:
    to_encode = data.copy()
    expire = time.time() + settings.JWT_EXPIRES_SEC
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        decoded_token = jwt.decode(token, settings.JWT_SECRET, algorithms=[JWT_ALGORITHM])
        exp = decoded_token.get("exp")
        if exp is None or exp < time.time():
            return None
        return decoded_token
    except JWTError:
        return None


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[7:].strip()
    return token or None


def get_session(token: Optional[str]) -> Optional[Session]:
    """Auth collaborator: a Session for a valid token, None otherwise."""
    if not token:
        return None
    payload = decode_access_token(token)
    if payload is None:
        return None
    user_id = payload.get("sub")
    if not user_id:
        return None
    return Session(user_id=str(user_id), expires_at=float(payload["exp"]))
