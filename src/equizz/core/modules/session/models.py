"""Session management models."""

from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import Field

from equizz.core.db import ApiModel, MongoModel
from equizz.utils import now


class RevokedBy(StrEnum):
    """Actor responsible for revoking a session."""

    USER = "user"
    ADMIN = "admin"
    SYSTEM = "system"
    SECURITY = "security"


class ClientInfo(ApiModel):
    """Raw client description taken from the inbound request."""

    user_agent: str | None = None
    ip: str | None = None


class DeviceInfo(ApiModel):
    """Parsed device descriptor stored with a session."""

    user_agent: str = "unknown"
    ip: str = "unknown"
    browser: str | None = None
    os: str | None = None
    device_type: str | None = None  # desktop, mobile, tablet, bot


class Session(MongoModel):
    """One authenticated device/browser instance.

    Indexed on refresh_token - unique, (user_id, is_active), access_token,
    last_activity, expires_at (TTL, documents removed once expired).
    A session never goes back to active once revoked.
    """

    user_id: UUID
    refresh_token: str
    access_token: str
    device_info: DeviceInfo = Field(default_factory=DeviceInfo)
    is_active: bool = True
    last_activity: datetime = Field(default_factory=now)
    expires_at: datetime
    created_at: datetime = Field(default_factory=now)
    revoked_at: datetime | None = None
    revoked_by: RevokedBy | None = None
    revoked_reason: str | None = None

    @property
    def is_usable(self) -> bool:
        return self.is_active and now() < self.expires_at


class SessionView(ApiModel):
    """Session summary for the owner; never carries token secrets."""

    id: UUID = Field(..., description="Session ID")
    device_info: DeviceInfo = Field(..., description="Device the session was opened from")
    last_activity: datetime = Field(..., description="Last authenticated request")
    created_at: datetime = Field(..., description="Login time")
    expires_at: datetime = Field(..., description="Refresh token expiry")
    is_current: bool = Field(False, description="Whether this is the session making the request")

    @classmethod
    def from_domain(cls, session: Session, current_session_id: UUID | None = None) -> "SessionView":
        return cls(
            id=session.id,
            device_info=session.device_info,
            last_activity=session.last_activity,
            created_at=session.created_at,
            expires_at=session.expires_at,
            is_current=session.id == current_session_id,
        )


class TokenPair(ApiModel):
    """Tokens issued at login. The refresh token is never retrievable again."""

    access_token: str
    refresh_token: str
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    session_id: UUID


class AccessTokenGrant(ApiModel):
    """Result of exchanging a refresh token."""

    access_token: str
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    session_id: UUID


class VerifiedToken(ApiModel):
    """Identity resolved from a valid access token bound to a usable session."""

    user_id: UUID
    session_id: UUID
    decoded: dict[str, Any]


class CleanupReport(ApiModel):
    deactivated: int = 0
    deleted: int = 0
