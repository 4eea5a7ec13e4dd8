"""Central router registry."""
from __future__ import annotations

from fastapi import FastAPI

from schoolportal.routers.attendance import router as attendance_router
from schoolportal.routers.auth import router as auth_router
from schoolportal.routers.sessions import router as sessions_router
from schoolportal.routers.teacher_sessions import router as teacher_sessions_router

ALL_ROUTERS = (
    auth_router,
    sessions_router,
    teacher_sessions_router,
    attendance_router,
)


def include_all_routers(app: FastAPI) -> None:
    for router in ALL_ROUTERS:
        app.include_router(router)
