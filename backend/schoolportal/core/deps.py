from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request, Security
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from schoolportal.core import rbac
from schoolportal.core.errors import AuthenticationError, AuthorizationError
from schoolportal.core.logging import log_security_event
from schoolportal.core.security import decode_token
from schoolportal.db.session import get_db
from schoolportal.models.device_session import DeviceSession
from schoolportal.models.enums import RegistrationStatus, Role
from schoolportal.models.user import User
from schoolportal.services import device_sessions

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_current_session(
    request: Request,
    token: Optional[str] = Security(oauth2_scheme),
    db: Session = Depends(get_db),
) -> DeviceSession:
    """Resolve the bearer token to its live device session.

    Tokens stay cryptographically valid after logout or eviction, so the
    session registry is the source of truth for whether a token still works.
    """
    if not token:
        raise AuthenticationError()

    try:
        payload = decode_token(token)
        user_id = int(payload["sub"])
    except (JWTError, KeyError, ValueError, TypeError):
        log_security_event("token_invalid", request=request)
        raise AuthenticationError()

    user = db.get(User, user_id)
    if user is None:
        log_security_event("user_missing", request=request, user_id=user_id)
        raise AuthenticationError("No user found with this token")
    if not user.is_active:
        log_security_event("user_inactive", request=request, user_id=user_id)
        raise AuthenticationError("User account has been deactivated")
    if user.role == Role.STUDENT and user.registration_status != RegistrationStatus.APPROVED:
        raise AuthorizationError("Account pending approval or rejected")

    session = device_sessions.get_by_token(db, token)
    if session is None or session.user_id != user.id:
        log_security_event("session_revoked", request=request, user_id=user_id)
        raise AuthenticationError("Session has been revoked. Please log in again.")

    device_sessions.touch(db, session)
    db.commit()

    request.state.user_id = user.id
    request.state.session_id = session.id
    return session


def get_current_user(session: DeviceSession = Depends(get_current_session)) -> User:
    return session.user


def require_staff_user(current_user: User = Depends(get_current_user)) -> User:
    rbac.require_staff(current_user)
    return current_user


def require_student_user(current_user: User = Depends(get_current_user)) -> User:
    rbac.require_role(current_user, Role.STUDENT)
    return current_user
