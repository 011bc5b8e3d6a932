from typing import Awaitable, Callable, Iterable, Optional

import jwt  # PyJWT
from fastapi import Depends, Header, Request

from gemquest.config import settings
from gemquest.core.errors import AuthenticationError, BadRequestError
from gemquest.core.security import decode_access_token
from gemquest.models import User
from gemquest.repository import PrincipalRepository, TortoisePrincipalRepository
from gemquest.services.auth_flows import AuthService
from gemquest.services.authorization import AuthorizationGate, Policy
from gemquest.services.mailer import Mailer, build_mailer
from gemquest.services.rbac import RBACResolver
from gemquest.services.tokens import TokenManager

TenantResolver = Callable[[Request], Awaitable[Optional[int]]]


# ------------------------------------------------------------------------------
# Component wiring: one repository per request, passed into every component
# ------------------------------------------------------------------------------
def get_repository() -> PrincipalRepository:
    return TortoisePrincipalRepository()

def get_mailer() -> Mailer:
    return build_mailer(settings)

def get_token_manager(repo: PrincipalRepository = Depends(get_repository)) -> TokenManager:
    return TokenManager(repo)

def get_rbac_resolver(repo: PrincipalRepository = Depends(get_repository)) -> RBACResolver:
    return RBACResolver(repo)

def get_authorization_gate(resolver: RBACResolver = Depends(get_rbac_resolver)) -> AuthorizationGate:
    return AuthorizationGate(resolver)

def get_auth_service(
    repo: PrincipalRepository = Depends(get_repository),
    tokens: TokenManager = Depends(get_token_manager),
    mailer: Mailer = Depends(get_mailer),
) -> AuthService:
    return AuthService(repo, tokens, mailer, settings)


# ------------------------------------------------------------------------------
# Authentication
# ------------------------------------------------------------------------------
async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
    repo: PrincipalRepository = Depends(get_repository),
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    This dependency extracts and validates the JWT token from either:
    1. Authorization header (Bearer token) - preferred method
    2. HttpOnly cookie (accessToken) - fallback method

    Raises:
        AuthenticationError (401): AUTH_REQUIRED, AUTH_INVALID_TOKEN or AUTH_USER_NOT_FOUND
    """
    token = None
    # 1) Prioritize Authorization: Bearer xxx
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    # 2) Secondly HttpOnly Cookie: accessToken
    if not token:
        token = request.cookies.get("accessToken")

    if not token:
        raise AuthenticationError()

    try:
        payload = decode_access_token(token)
        user_id = payload["sub"]
    except (jwt.InvalidTokenError, KeyError):
        raise AuthenticationError("Invalid or expired access token", code="AUTH_INVALID_TOKEN")

    user = await repo.find_user_by_id(user_id)
    if not user:
        raise AuthenticationError("User not found", code="AUTH_USER_NOT_FOUND")
    return user


# ------------------------------------------------------------------------------
# Tenant scope resolution
# ------------------------------------------------------------------------------
def _to_client_id(raw, name: str) -> Optional[int]:
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise BadRequestError(f"{name} must be an integer")

def tenant_from_path(name: str) -> TenantResolver:
    async def _resolve(request: Request) -> Optional[int]:
        return _to_client_id(request.path_params.get(name), name)
    return _resolve

def tenant_from_query(name: str) -> TenantResolver:
    async def _resolve(request: Request) -> Optional[int]:
        return _to_client_id(request.query_params.get(name), name)
    return _resolve

def tenant_from_body(name: str) -> TenantResolver:
    async def _resolve(request: Request) -> Optional[int]:
        try:
            body = await request.json()
        except ValueError:
            return None
        return _to_client_id(body.get(name) if isinstance(body, dict) else None, name)
    return _resolve

def fixed_tenant(client_id: Optional[int]) -> TenantResolver:
    async def _resolve(request: Request) -> Optional[int]:
        return client_id
    return _resolve

async def global_scope(request: Request) -> Optional[int]:
    return None


# ------------------------------------------------------------------------------
# Authorization
# ------------------------------------------------------------------------------
def authorize(
    roles: Optional[Iterable[str]] = None,
    permissions: Optional[Iterable[str]] = None,
    tenant: TenantResolver = global_scope,
):
    """
    Build a dependency enforcing a role/permission policy.

    Authentication runs first and is terminal on failure. The client scope is
    then resolved from the request and the principal's effective roles for
    that scope are checked: roles ANY-of, permissions ALL-of.

    Usage:
        @router.get("/clients/{client_id}")
        async def get_client(
            client_id: int,
            user: User = Depends(authorize(roles=[CLIENT_ADMIN], tenant=tenant_from_path("client_id"))),
        ): ...

    Raises:
        AuthenticationError (401): from get_current_user
        ForbiddenError (403): policy not satisfied
    """
    policy = Policy.of(roles, permissions)

    async def _dependency(
        request: Request,
        user: User = Depends(get_current_user),
        gate: AuthorizationGate = Depends(get_authorization_gate),
    ) -> User:
        client_id = await tenant(request)
        await gate.enforce(user.id, client_id, policy)
        return user

    return _dependency
