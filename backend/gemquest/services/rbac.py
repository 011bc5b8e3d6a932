"""
RBAC Resolver

Effective roles of a user for an optional client scope:
    direct assignments (client = scope OR global)
  U roles of the user's groups (client = scope OR global)

Nothing is cached; every check reads the current assignments so role and
group changes apply on the next request.
"""
from typing import Any, FrozenSet, Optional

from gemquest.core.permissions import permissions_for
from gemquest.repository import PrincipalRepository


class RBACResolver:
    def __init__(self, repo: PrincipalRepository):
        self.repo = repo

    async def effective_roles(self, user_id: Any, client_id: Optional[int] = None) -> FrozenSet[str]:
        """
        Args:
            user_id: principal identifier
            client_id: client scope; None queries global assignments only

        Returns:
            Deduplicated role names. Empty for a user without assignments.
        """
        direct = await self.repo.list_direct_role_names(user_id, client_id)
        group_ids = await self.repo.list_group_ids(user_id)
        via_groups = await self.repo.list_group_role_names(group_ids, client_id)
        return frozenset(direct) | frozenset(via_groups)

    async def effective_permissions(self, user_id: Any, client_id: Optional[int] = None) -> FrozenSet[str]:
        return permissions_for(await self.effective_roles(user_id, client_id))
