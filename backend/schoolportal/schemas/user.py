from __future__ import annotations

from datetime import datetime
from typing import Optional

from schoolportal.models.enums import RegistrationStatus, Role
from schoolportal.schemas.base import ORMModel


class UserRead(ORMModel):
    id: int
    email: str
    first_name: str
    last_name: str
    role: Role
    registration_status: RegistrationStatus
    is_active: bool
    last_login_at: Optional[datetime] = None
