from uuid import UUID

from fastapi import APIRouter
from pydantic import Field

from equizz.core.db import ApiModel
from equizz.core.modules.session.models import AccessTokenGrant, SessionView, TokenPair
from equizz.core.modules.user.models import UserView
from equizz.web.deps import AppDep, AuthDep, ClientInfoDep
from equizz.web.openapi import ErrorResponse, MessageResponse

router = APIRouter(tags=["auth"])


class LoginRequest(ApiModel):
    """Authentication request."""

    identifier: str = Field(..., min_length=1, description="Email address or student matricule")
    password: str = Field(..., min_length=1, description="Password for authentication")
    remember_me: bool = Field(False, description="Accepted for client compatibility, has no effect")


class RegisterRequest(ApiModel):
    """Student self-registration."""

    email: str = Field(..., description="Institutional email address")
    password: str = Field(..., description="Password, at least 6 characters")
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    matricule: str = Field(..., min_length=1, description="Student registration number")
    class_id: UUID | None = Field(None, description="Class to enrol in")


class CreateAdminRequest(ApiModel):
    email: str = Field(..., description="Institutional email address")
    password: str = Field(..., description="Password, at least 6 characters")
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)


class RefreshRequest(ApiModel):
    refresh_token: str = Field("", description="Refresh token received at login")


class LogoutRequest(ApiModel):
    logout_all: bool = Field(False, description="Revoke every session of the user, not only this one")


class LoginResponse(TokenPair):
    """Authentication response."""

    user: UserView


class LogoutResponse(ApiModel):
    message: str
    revoked_sessions: int | None = Field(None, description="Sessions revoked when logging out everywhere")


class SessionsResponse(ApiModel):
    sessions: list[SessionView]
    total: int


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description="Authenticate with email or matricule and password to receive an access and a refresh token.",
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(request: LoginRequest, app: AppDep, client: ClientInfoDep) -> LoginResponse:
    user, tokens = await app.login(request.identifier, request.password, client)
    return LoginResponse(user=user, **tokens.model_dump())


@router.post(
    "/auth/register",
    summary="Register as a student",
    description="Create a student account with an institutional email address and sign in.",
    operation_id="register",
    status_code=201,
    responses={
        201: {"description": "Account created"},
        400: {"model": ErrorResponse, "description": "Invalid data or account already exists"},
    },
)
async def register(request: RegisterRequest, app: AppDep, client: ClientInfoDep) -> LoginResponse:
    user, tokens = await app.register(
        request.email,
        request.password,
        request.first_name,
        request.last_name,
        request.matricule,
        request.class_id,
        client,
    )
    return LoginResponse(user=user, **tokens.model_dump())


@router.post(
    "/auth/create-admin",
    summary="Create administrator",
    description="Create another administrator account. Admin only.",
    operation_id="createAdmin",
    status_code=201,
    responses={
        201: {"description": "Administrator created"},
        400: {"model": ErrorResponse, "description": "Invalid data or account already exists"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
    },
)
async def create_admin(request: CreateAdminRequest, app: AppDep, auth: AuthDep) -> UserView:
    return await app.create_admin(auth, request.email, request.password, request.first_name, request.last_name)


@router.post(
    "/auth/refresh",
    summary="Refresh access token",
    description="Exchange a refresh token for a new access token. The refresh token itself is not rotated.",
    operation_id="refreshToken",
    responses={
        200: {"description": "New access token"},
        400: {"model": ErrorResponse, "description": "Refresh token missing"},
        401: {"model": ErrorResponse, "description": "Refresh token invalid, expired or revoked"},
    },
)
async def refresh(request: RefreshRequest, app: AppDep, client: ClientInfoDep) -> AccessTokenGrant:
    return await app.refresh_token(request.refresh_token, client)


@router.post(
    "/auth/logout",
    summary="End session",
    description="Revoke the current session, or every session of the user with logoutAll.",
    operation_id="logout",
    response_model_exclude_none=True,
    responses={
        200: {"description": "Successfully logged out"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def logout(app: AppDep, auth: AuthDep, request: LogoutRequest | None = None) -> LogoutResponse:
    message, revoked = await app.logout(auth, logout_all=request.logout_all if request else False)
    return LogoutResponse(message=message, revoked_sessions=revoked)


@router.get(
    "/auth/sessions",
    summary="List active sessions",
    description="Active sessions of the current user, most recently used first.",
    operation_id="listSessions",
    responses={
        200: {"description": "Active sessions"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_sessions(app: AppDep, auth: AuthDep) -> SessionsResponse:
    sessions = await app.get_sessions(auth)
    return SessionsResponse(sessions=sessions, total=len(sessions))


@router.delete(
    "/auth/sessions/{session_id}",
    summary="Revoke a session",
    description="Sign out one of the current user's devices.",
    operation_id="revokeSession",
    responses={
        200: {"description": "Session revoked"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Session not found"},
    },
)
async def revoke_session(session_id: UUID, app: AppDep, auth: AuthDep) -> MessageResponse:
    await app.revoke_own_session(auth, session_id)
    return MessageResponse(message="Session revoked")


@router.get(
    "/auth/me",
    summary="Get current user",
    description="Get the account of the currently authenticated user.",
    operation_id="getMe",
    responses={
        200: {"description": "Current user"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_me(app: AppDep, auth: AuthDep) -> UserView:
    return await app.get_me(auth)
