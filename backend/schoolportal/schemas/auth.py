from __future__ import annotations

from typing import List

from schoolportal.schemas.base import ORMModel
from schoolportal.schemas.user import UserRead


class LoginData(ORMModel):
    user: UserRead
    token: str
    token_type: str = "bearer"
    session_id: int
    device_name: str
    evicted_sessions: List[int] = []
