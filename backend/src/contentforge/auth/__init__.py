"""Permission gate for ContentForge endpoints."""

from contentforge.auth.middleware import (
    GatewayIdentityMiddleware,
    get_user_context,
    parse_identity,
)
from contentforge.auth.permissions import PolicySet, ensure_permission
from contentforge.auth.types import Effect, Permission, Policy, UserContext

__all__ = [
    "Effect",
    "GatewayIdentityMiddleware",
    "Permission",
    "Policy",
    "PolicySet",
    "UserContext",
    "ensure_permission",
    "get_user_context",
    "parse_identity",
]
