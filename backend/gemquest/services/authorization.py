"""
Authorization Gate

Per-request decision: does the principal's effective role set, for the given
client scope, satisfy a policy?
- roles: ANY-of (at least one required role held)
- permissions: ALL-of (every required permission implied by some held role)
"""
from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable, Optional

from gemquest.core.errors import ForbiddenError
from gemquest.core.permissions import permissions_for
from .rbac import RBACResolver


@dataclass(frozen=True)
class Policy:
    roles: Optional[FrozenSet[str]] = None
    permissions: Optional[FrozenSet[str]] = None

    @classmethod
    def of(cls, roles: Optional[Iterable[str]] = None, permissions: Optional[Iterable[str]] = None) -> "Policy":
        return cls(
            roles=frozenset(roles) if roles is not None else None,
            permissions=frozenset(permissions) if permissions is not None else None,
        )


def check_policy(effective_roles: FrozenSet[str], policy: Policy) -> None:
    """
    Pure policy check against an already resolved role set.

    Raises:
        ForbiddenError: carrying only the unmet requirement, never the roles held
    """
    if policy.roles is not None and not (effective_roles & policy.roles):
        raise ForbiddenError(
            f"Forbidden - required roles: {', '.join(sorted(policy.roles))}",
            code="FORBIDDEN_ROLE",
            required={"roles": sorted(policy.roles)},
        )
    if policy.permissions is not None:
        missing = policy.permissions - permissions_for(effective_roles)
        if missing:
            raise ForbiddenError(
                "Insufficient permissions",
                code="FORBIDDEN_PERMISSION",
                required={"permissions": sorted(policy.permissions)},
            )


class AuthorizationGate:
    def __init__(self, resolver: RBACResolver):
        self.resolver = resolver

    async def enforce(self, user_id: Any, client_id: Optional[int], policy: Policy) -> FrozenSet[str]:
        """
        Resolve effective roles for (user_id, client_id) and check them against `policy`.

        Returns:
            The effective role set, for callers that need it after the check
        """
        roles = await self.resolver.effective_roles(user_id, client_id)
        check_policy(roles, policy)
        return roles
