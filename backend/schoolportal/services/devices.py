"""Describe the device a request comes from."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from fastapi import Request
from user_agents import parse as parse_user_agent

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class DeviceInfo:
    device_id: str
    device_name: str
    user_agent: str
    ip_address: str
    location: str = UNKNOWN


def client_ip(request: Request) -> str:
    return request.client.host if request.client else UNKNOWN


def fingerprint(request: Request) -> str:
    parts = (
        request.headers.get("user-agent", ""),
        request.headers.get("accept-language", ""),
        request.headers.get("accept-encoding", ""),
        request.client.host if request.client else "",
    )
    return hashlib.sha256("|".join(parts).encode()).hexdigest()


def device_name(user_agent: str | None) -> str:
    if not user_agent:
        return "Unknown Device"

    ua = parse_user_agent(user_agent)
    os_family = ua.os.family or ""
    device_family = ua.device.family or ""

    if ua.is_mobile:
        if device_family == "iPhone":
            return "iPhone"
        if os_family == "Android":
            return "Android Phone"
        return "Mobile Device"
    if device_family == "iPad":
        return "iPad"
    if os_family == "Mac OS X" or os_family == "macOS":
        return "Mac"
    if os_family.startswith("Windows"):
        return "Windows PC"
    if os_family in ("Linux", "Ubuntu", "Fedora", "Debian"):
        return "Linux PC"
    return "Desktop Browser"


def describe(request: Request) -> DeviceInfo:
    user_agent = request.headers.get("user-agent") or UNKNOWN
    return DeviceInfo(
        device_id=fingerprint(request),
        device_name=device_name(request.headers.get("user-agent")),
        user_agent=user_agent,
        ip_address=client_ip(request),
    )
