"""Gateway identity middleware for FastAPI."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from contentforge.auth.types import UserContext

USER_ID_HEADER = "X-User-Id"
USER_ROLES_HEADER = "X-User-Roles"


class GatewayIdentityMiddleware(BaseHTTPMiddleware):
    """Sets request.state.user_context from headers of the authenticating gateway.

    Tokens are verified upstream; the gateway forwards the user id and a
    comma separated role list. Requests without a user id stay
    unauthenticated. The middleware does NOT reject requests - that's
    handled by the permission check in each endpoint.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request.state.user_context = parse_identity(
            request.headers.get(USER_ID_HEADER),
            request.headers.get(USER_ROLES_HEADER),
        )
        return await call_next(request)


def parse_identity(user_id: str | None, roles: str | None) -> UserContext | None:
    """Build a UserContext from the forwarded header values."""
    if not user_id or not user_id.strip():
        return None
    role_list = [r.strip() for r in (roles or "").split(",") if r.strip()]
    return UserContext(user_id=user_id.strip(), roles=role_list)


def get_user_context(request: Request) -> UserContext | None:
    """Get the user context from the request state.

    Args:
        request: The FastAPI/Starlette request

    Returns:
        UserContext if authenticated, None otherwise
    """
    return getattr(request.state, "user_context", None)
