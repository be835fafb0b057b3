"""Permission checking for site resources.

Policies grant or deny actions on resources identified by URNs:

    urn:dcm:content:<content id>          content entities
    urn:dcm:content-components:<id>       schema components

Evaluation rules: an explicit deny wins over any allow, and nothing
matching means deny.
"""

from __future__ import annotations

import logging
import uuid
from fnmatch import fnmatchcase
from pathlib import Path

import yaml

from contentforge.auth.types import Effect, Policy, UserContext

logger = logging.getLogger(__name__)


class PolicySet:
    """IAM policies loaded from ``<metadata>/policies.yaml``."""

    def __init__(self, policies: list[Policy] | None = None):
        self.policies: list[Policy] = policies or []

    @classmethod
    def load(cls, path: Path) -> PolicySet:
        """Load policies from a YAML file; a missing file yields no policies."""
        if not path.exists():
            logger.warning("No policy file at %s; every request will be denied", path)
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls([Policy.from_dict(p) for p in data.get("policies", [])])

    def applicable(self, user_context: UserContext, site_id: uuid.UUID | None) -> list[Policy]:
        """Policies bound to one of the user's roles and to the site."""
        roles = set(user_context.roles)
        site = str(site_id) if site_id else None
        return [
            policy
            for policy in self.policies
            if (not policy.roles or roles.intersection(policy.roles))
            and ("*" in policy.sites or (site is not None and site in policy.sites))
        ]

    def evaluate(
        self,
        user_context: UserContext,
        site_id: uuid.UUID | None,
        resource: str,
        action: str,
    ) -> Effect | None:
        """Return DENY, ALLOW, or None when no statement matches."""
        decision: Effect | None = None
        for policy in self.applicable(user_context, site_id):
            for permission in policy.permissions:
                if not any(fnmatchcase(resource, r) for r in permission.resources):
                    continue
                if not any(fnmatchcase(action, a) for a in permission.actions):
                    continue
                if permission.effect is Effect.DENY:
                    return Effect.DENY
                decision = Effect.ALLOW
        return decision


def ensure_permission(
    policies: PolicySet,
    user_context: UserContext | None,
    site_id: uuid.UUID | None,
    resource: str,
    action: str,
    auth_required: bool = True,
) -> tuple[bool, str | None]:
    """Check if the user may perform action on resource.

    Args:
        policies: Loaded policy set
        user_context: The authenticated user context (None if unauthenticated)
        site_id: Site the resource belongs to, None for global resources
        resource: Resource URN, e.g. "urn:dcm:content:<id>"
        action: Action name, e.g. "sites::content:read"
        auth_required: Whether authentication is required (False allows everything)

    Returns:
        Tuple of (allowed, error_message). error_message is None if allowed.
    """
    if not auth_required:
        return True, None

    if not user_context:
        return False, "Authentication required"

    decision = policies.evaluate(user_context, site_id, resource, action)
    if decision is Effect.ALLOW:
        return True, None

    logger.info(
        "Denied %s on %s for user %s (%s)",
        action,
        resource,
        user_context.user_id,
        "explicit deny" if decision is Effect.DENY else "no matching policy",
    )
    return False, f"Missing permission '{action}' on '{resource}'"
