# gemquest/api/v1/routers/clients.py
from fastapi import APIRouter, Depends, status

from gemquest.api.v1.deps import (
    authorize,
    get_authorization_gate,
    get_current_user,
    get_repository,
    tenant_from_path,
)
from gemquest.core.errors import DependencyFailure, NotFoundError
from gemquest.core.permissions import ADMIN_ROLES, CLIENT_ADMIN, CLIENT_MEMBER_ROLES
from gemquest.models import Client, User
from gemquest.repository import PrincipalRepository
from gemquest.schemas.client import ClientCreateIn
from gemquest.services.authorization import AuthorizationGate, Policy

router = APIRouter(prefix="/clients", tags=["clients"])


def _client_to_dict(c: Client) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "plan": c.plan,
        "ownerId": str(c.owner_id) if c.owner_id else None,
        "parentId": c.parent_id,
        "createdAt": c.created_at.isoformat() if c.created_at else None,
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_client(
    body: ClientCreateIn,
    user: User = Depends(get_current_user),
    repo: PrincipalRepository = Depends(get_repository),
    gate: AuthorizationGate = Depends(get_authorization_gate),
):
    """
    Create a client owned by the caller.

    The caller becomes Client Administrator of the new client. Creating a
    sub-client requires an admin role in the parent client.

    Raises:
        NotFoundError (404): parent client does not exist
        ForbiddenError (403): no admin role in the parent client
    """
    if body.parentId is not None:
        parent = await repo.find_client_by_id(body.parentId)
        if parent is None:
            raise NotFoundError("Parent client not found", code="CLIENT_NOT_FOUND")
        await gate.enforce(user.id, parent.id, Policy.of(roles=ADMIN_ROLES))

    admin_role = await repo.find_role_by_name(CLIENT_ADMIN)
    if admin_role is None:
        raise DependencyFailure("Server configuration error")

    async with repo.transaction():
        client = await Client.create(name=body.name, plan=body.plan, owner=user, parent_id=body.parentId)
        await repo.assign_role(user.id, admin_role.id, client.id)
    return {"success": True, "data": _client_to_dict(client)}


@router.get("/{client_id}")
async def get_client(
    client_id: int,
    _: User = Depends(authorize(roles=CLIENT_MEMBER_ROLES, tenant=tenant_from_path("client_id"))),
    repo: PrincipalRepository = Depends(get_repository),
):
    """
    Get a client. Requires a member role (admin, project manager, developer
    or viewer) in that client or globally.

    Raises:
        NotFoundError (404): client does not exist
    """
    client = await repo.find_client_by_id(client_id)
    if client is None:
        raise NotFoundError("Client not found", code="CLIENT_NOT_FOUND")
    return {"success": True, "data": _client_to_dict(client)}
