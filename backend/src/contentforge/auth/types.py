"""Types for the permission check."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Effect(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


@dataclass
class UserContext:
    """Identity forwarded by the authenticating gateway.

    Attributes:
        user_id: The authenticated user's ID
        roles: Role names the user holds; policies are bound to roles
    """

    user_id: str | None = None
    roles: list[str] = field(default_factory=list)


@dataclass
class Permission:
    """One statement of an IAM policy.

    Attributes:
        resources: URN patterns, e.g. "urn:dcm:content:*"
        actions: Action patterns, e.g. "sites::content:read"
        effect: ALLOW grants, DENY overrides any grant
    """

    resources: list[str]
    actions: list[str]
    effect: Effect = Effect.ALLOW

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Permission":
        return cls(
            resources=list(data["resources"]),
            actions=list(data["actions"]),
            effect=Effect(data.get("effect", "allow")),
        )


@dataclass
class Policy:
    """A named set of permissions bound to roles and sites.

    An empty roles list binds the policy to every authenticated user; a
    sites list containing "*" (the default) applies it to every site.
    """

    name: str
    permissions: list[Permission]
    roles: list[str] = field(default_factory=list)
    sites: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Policy":
        return cls(
            name=data["name"],
            permissions=[Permission.from_dict(p) for p in data.get("permissions", [])],
            roles=list(data.get("roles", [])),
            sites=[str(s) for s in data.get("sites", ["*"])],
        )
