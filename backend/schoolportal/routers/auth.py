from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from schoolportal.core.deps import get_current_session, get_current_user
from schoolportal.core.errors import AuthenticationError, AuthorizationError
from schoolportal.core.logging import log_security_event
from schoolportal.core.security import create_access_token, verify_password
from schoolportal.db.session import get_db
from schoolportal.models.device_session import DeviceSession
from schoolportal.models.enums import RegistrationStatus, Role
from schoolportal.models.user import User
from schoolportal.schemas.auth import LoginData
from schoolportal.schemas.user import UserRead
from schoolportal.services import device_sessions, devices

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login")
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
) -> dict:
    email = form_data.username.strip().lower()
    user = db.query(User).filter(User.email == email).first()

    if not user or not verify_password(form_data.password, user.hashed_password):
        log_security_event("login_failed", request=request, email=email)
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        log_security_event("login_inactive", request=request, user_id=user.id)
        raise AuthenticationError("Account has been deactivated")
    if user.role == Role.STUDENT and user.registration_status != RegistrationStatus.APPROVED:
        log_security_event(
            "login_registration_blocked",
            request=request,
            user_id=user.id,
            registration_status=user.registration_status.value,
        )
        if user.registration_status == RegistrationStatus.REJECTED:
            raise AuthorizationError("Your registration has been rejected. Please contact support.")
        raise AuthorizationError("Your registration is pending approval")

    user.last_login_at = datetime.now(timezone.utc)

    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    device = devices.describe(request)
    created = device_sessions.create_session(db, user, token, device)
    db.commit()
    db.refresh(user)

    evicted_ids = [session.id for session in created.evicted]
    log_security_event(
        "login_success",
        request=request,
        user_id=user.id,
        role=user.role.value,
        device=created.session.device_name,
        evicted_sessions=evicted_ids,
    )
    data = LoginData(
        user=UserRead.model_validate(user),
        token=token,
        session_id=created.session.id,
        device_name=created.session.device_name,
        evicted_sessions=evicted_ids,
    )
    return {"status": "success", "message": "Login successful", "data": data}


@router.post("/logout")
def logout(
    request: Request,
    current_session: DeviceSession = Depends(get_current_session),
    db: Session = Depends(get_db),
) -> dict:
    """End the caller's device session."""
    device_sessions.deactivate(db, current_session.id, current_session.user_id)
    db.commit()
    log_security_event("logout", request=request, user_id=current_session.user_id, session_id=current_session.id)
    return {"status": "success", "message": "Logged out successfully"}


@router.get("/me")
def me(current_user: User = Depends(get_current_user)) -> dict:
    return {"status": "success", "data": {"user": UserRead.model_validate(current_user)}}
