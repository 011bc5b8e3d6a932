# gemquest/api/v1/routers/rbac.py
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from gemquest.api.v1.deps import authorize, get_rbac_resolver, get_repository
from gemquest.core.errors import NotFoundError
from gemquest.core.permissions import SUPER_ADMIN, permissions_for
from gemquest.models import Role
from gemquest.repository import PrincipalRepository
from gemquest.schemas.rbac import GroupCreateIn, GroupMemberIn, RoleAssignIn
from gemquest.services.rbac import RBACResolver

router = APIRouter(
    prefix="/rbac",
    tags=["rbac"],
    dependencies=[Depends(authorize(roles=[SUPER_ADMIN]))],
)


# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------
async def _require_role(repo: PrincipalRepository, name: str) -> Role:
    role = await repo.find_role_by_name(name)
    if role is None:
        raise NotFoundError("Invalid role name", code="ROLE_NOT_FOUND")
    return role

async def _require_client(repo: PrincipalRepository, client_id: Optional[int]) -> None:
    if client_id is not None and await repo.find_client_by_id(client_id) is None:
        raise NotFoundError("Client not found", code="CLIENT_NOT_FOUND")


# ==============================================================================
# Direct role assignments
#     Prefix: /api/v1/rbac/users
# ==============================================================================
@router.post("/users/{user_id}/roles")
async def assign_user_role(
    user_id: uuid.UUID,
    body: RoleAssignIn,
    repo: PrincipalRepository = Depends(get_repository),
):
    """
    Grant a role to a user, globally or within one client (Super Administrator only).
    Granting an existing assignment again changes nothing.
    """
    if await repo.find_user_by_id(user_id) is None:
        raise NotFoundError("User not found", code="USER_NOT_FOUND")
    role = await _require_role(repo, body.role)
    await _require_client(repo, body.clientId)

    assignment, created = await repo.assign_role(user_id, role.id, body.clientId)
    return {
        "success": True,
        "data": {
            "id": assignment.id,
            "userId": str(user_id),
            "role": role.name,
            "clientId": body.clientId,
            "created": created,
        },
    }

@router.get("/users/{user_id}/effective-roles")
async def get_effective_roles(
    user_id: uuid.UUID,
    clientId: Optional[int] = Query(default=None),
    repo: PrincipalRepository = Depends(get_repository),
    resolver: RBACResolver = Depends(get_rbac_resolver),
):
    """
    Effective roles (direct plus group-derived) and the permissions they imply
    for a user, in the given client or globally when clientId is omitted.
    """
    if await repo.find_user_by_id(user_id) is None:
        raise NotFoundError("User not found", code="USER_NOT_FOUND")
    roles = await resolver.effective_roles(user_id, clientId)
    return {
        "success": True,
        "data": {
            "userId": str(user_id),
            "clientId": clientId,
            "roles": sorted(roles),
            "permissions": sorted(permissions_for(roles)),
        },
    }


# ==============================================================================
# Groups
#     Prefix: /api/v1/rbac/groups
# ==============================================================================
@router.post("/groups", status_code=status.HTTP_201_CREATED)
async def create_group(body: GroupCreateIn, repo: PrincipalRepository = Depends(get_repository)):
    """
    Raises:
        ConflictError (409): GROUP_EXISTS
    """
    group = await repo.create_group(body.name, body.description)
    return {
        "success": True,
        "data": {"id": group.id, "name": group.name, "description": group.description},
    }

@router.post("/groups/{group_id}/members")
async def add_group_member(
    group_id: int,
    body: GroupMemberIn,
    repo: PrincipalRepository = Depends(get_repository),
):
    if await repo.find_group_by_id(group_id) is None:
        raise NotFoundError("Group not found", code="GROUP_NOT_FOUND")
    if await repo.find_user_by_id(body.userId) is None:
        raise NotFoundError("User not found", code="USER_NOT_FOUND")

    membership, created = await repo.add_user_to_group(body.userId, group_id)
    return {
        "success": True,
        "data": {"id": membership.id, "groupId": group_id, "userId": str(body.userId), "created": created},
    }

@router.post("/groups/{group_id}/roles")
async def assign_group_role(
    group_id: int,
    body: RoleAssignIn,
    repo: PrincipalRepository = Depends(get_repository),
):
    """Grant a role to every member of a group, globally or within one client."""
    if await repo.find_group_by_id(group_id) is None:
        raise NotFoundError("Group not found", code="GROUP_NOT_FOUND")
    role = await _require_role(repo, body.role)
    await _require_client(repo, body.clientId)

    assignment, created = await repo.assign_group_role(group_id, role.id, body.clientId)
    return {
        "success": True,
        "data": {
            "id": assignment.id,
            "groupId": group_id,
            "role": role.name,
            "clientId": body.clientId,
            "created": created,
        },
    }
