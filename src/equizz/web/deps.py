from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from equizz.app import App
from equizz.core.modules.access.service import AuthContext
from equizz.core.modules.session.models import ClientInfo
from equizz.errors import NoTokenError

# Security schemes
bearer_scheme = HTTPBearer(auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_auth_context(
    request: Request,
    app: Annotated[App, Depends(get_app)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
) -> AuthContext:
    """Validate the Bearer access token and resolve the user and session behind it."""
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise NoTokenError

    auth = await app.authenticate(credentials.credentials)
    request.state.auth = auth
    return auth


async def get_client_info(request: Request) -> ClientInfo:
    """User agent and originating IP of the caller, used to label sessions."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip: str | None = forwarded.split(",")[0].strip()
    else:
        ip = request.client.host if request.client else None
    return ClientInfo(user_agent=request.headers.get("user-agent"), ip=ip)


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
AuthDep = Annotated[AuthContext, Depends(get_auth_context)]
ClientInfoDep = Annotated[ClientInfo, Depends(get_client_info)]
