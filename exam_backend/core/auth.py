"""
Session authentication for the API.
Tokens come from the session cookie or an Authorization: Bearer header.
"""
import secrets
from typing import Dict, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from starlette.requests import Request

from exam_backend.core.config import SESSION_COOKIE_NAME
from exam_backend.core.database import get_db
from exam_backend.core.db_models import User
from exam_backend.core.errors import UnauthorizedError

# In-process session storage; sessions do not survive a restart
active_sessions: Dict[str, dict] = {}

security = HTTPBearer(auto_error=False)


def create_session(user_id: str, username: str) -> str:
    """Create a new session and return session token"""
    session_token = secrets.token_urlsafe(32)
    active_sessions[session_token] = {
        "user_id": user_id,
        "username": username,
    }
    return session_token


def get_session(session_token: Optional[str] = None) -> Optional[dict]:
    """Get session data from token"""
    if not session_token:
        return None
    return active_sessions.get(session_token)


def delete_session(session_token: str):
    """Delete a session"""
    active_sessions.pop(session_token, None)


def authenticate(db: Session, username: str, password: str) -> Optional[User]:
    """Plain comparison against the stored password"""
    user = db.query(User).filter(User.username == username).first()
    if user is None or user.password != password:
        return None
    return user


def get_session_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(SESSION_COOKIE_NAME)


def get_current_user(
    session_token: Optional[str] = Depends(get_session_token),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Get current authenticated user from session"""
    session_data = get_session(session_token)
    if not session_data:
        return None
    return db.query(User).filter(User.id == session_data["user_id"]).first()


def require_auth(current_user: Optional[User] = Depends(get_current_user)) -> User:
    """Dependency to require authentication"""
    if not current_user:
        raise UnauthorizedError("Authentication required", entity="User")
    return current_user
