# gemquest/api/v1/routers/collaborators.py
from fastapi import APIRouter, Depends, Query

from gemquest.api.v1.deps import authorize, get_auth_service, tenant_from_body, tenant_from_query
from gemquest.core.permissions import ADMIN_ROLES
from gemquest.models import User, UserRole
from gemquest.schemas.client import CollaboratorInviteIn
from gemquest.services.auth_flows import AuthService

router = APIRouter(prefix="/collaborators", tags=["collaborators"])


@router.post("")
async def invite_collaborator(
    body: CollaboratorInviteIn,
    _: User = Depends(authorize(roles=ADMIN_ROLES, tenant=tenant_from_body("clientId"))),
    service: AuthService = Depends(get_auth_service),
):
    """
    Invite a collaborator into a client with a role (client or super admin only).

    Unknown emails receive an account and an invitation link to set a
    password. Inviting again with the same role changes nothing.

    Error codes:
        - CLIENT_NOT_FOUND / ROLE_NOT_FOUND (404)
        - ROLE_CONFLICT (409): the user already holds another role in this client
    """
    result = await service.invite_collaborator(body.email, body.clientId, body.role)
    return {"success": True, "data": result}


@router.get("")
async def list_collaborators(
    clientId: int = Query(...),
    _: User = Depends(authorize(roles=ADMIN_ROLES, tenant=tenant_from_query("clientId"))),
):
    """List users holding a role scoped to the given client."""
    rows = await UserRole.filter(client_id=clientId).prefetch_related("user", "role").order_by("id")
    items = [
        {
            "id": ur.id,
            "role": ur.role.name,
            "user": {"id": str(ur.user.id), "email": ur.user.email, "username": ur.user.username},
            "clientId": ur.client_id,
        }
        for ur in rows
    ]
    return {"success": True, "data": {"items": items, "total": len(items)}}
