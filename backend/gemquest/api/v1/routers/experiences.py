# gemquest/api/v1/routers/experiences.py
"""
Experiences belong to a client. Creation and listing are checked against the
client named in the request; update and delete against the client stored on
the experience.
"""
from fastapi import APIRouter, Depends, Response, status

from gemquest.api.v1.deps import (
    authorize,
    get_authorization_gate,
    get_current_user,
    get_repository,
    tenant_from_body,
    tenant_from_path,
)
from gemquest.core.errors import NotFoundError
from gemquest.core.permissions import ADMIN_ROLES, CLIENT_MEMBER_ROLES
from gemquest.models import Experience, User
from gemquest.repository import PrincipalRepository
from gemquest.schemas.client import ExperienceCreateIn, ExperienceUpdateIn
from gemquest.services.authorization import AuthorizationGate, Policy

router = APIRouter(prefix="/experiences", tags=["experiences"])


def _experience_to_dict(e: Experience) -> dict:
    return {
        "id": e.id,
        "name": e.name,
        "description": e.description,
        "clientId": e.client_id,
        "createdById": str(e.created_by_id) if e.created_by_id else None,
        "createdAt": e.created_at.isoformat() if e.created_at else None,
    }


async def _get_experience(experience_id: int) -> Experience:
    experience = await Experience.get_or_none(id=experience_id)
    if experience is None:
        raise NotFoundError("Experience not found", code="EXPERIENCE_NOT_FOUND")
    return experience


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_experience(
    body: ExperienceCreateIn,
    user: User = Depends(authorize(permissions=["create"], tenant=tenant_from_body("clientId"))),
    repo: PrincipalRepository = Depends(get_repository),
):
    """Create an experience in a client. Requires the "create" permission there."""
    if await repo.find_client_by_id(body.clientId) is None:
        raise NotFoundError("Client not found", code="CLIENT_NOT_FOUND")
    experience = await Experience.create(
        name=body.name,
        description=body.description,
        client_id=body.clientId,
        created_by=user,
    )
    return {"success": True, "data": _experience_to_dict(experience)}


@router.get("/client/{client_id}")
async def list_client_experiences(
    client_id: int,
    _: User = Depends(authorize(roles=CLIENT_MEMBER_ROLES, tenant=tenant_from_path("client_id"))),
):
    """List a client's experiences. Requires a member role in that client."""
    rows = await Experience.filter(client_id=client_id).order_by("id")
    return {"success": True, "data": [_experience_to_dict(e) for e in rows]}


@router.put("/{experience_id}")
async def update_experience(
    experience_id: int,
    body: ExperienceUpdateIn,
    user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_authorization_gate),
):
    """Update an experience. Requires an admin role in the experience's client."""
    experience = await _get_experience(experience_id)
    await gate.enforce(user.id, experience.client_id, Policy.of(roles=ADMIN_ROLES))

    if body.name is not None:
        experience.name = body.name
    if body.description is not None:
        experience.description = body.description
    await experience.save()
    return {"success": True, "data": _experience_to_dict(experience)}


@router.delete("/{experience_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_experience(
    experience_id: int,
    user: User = Depends(get_current_user),
    gate: AuthorizationGate = Depends(get_authorization_gate),
):
    """Delete an experience. Requires the "delete" permission in the experience's client."""
    experience = await _get_experience(experience_id)
    await gate.enforce(user.id, experience.client_id, Policy.of(permissions=["delete"]))
    await experience.delete()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
