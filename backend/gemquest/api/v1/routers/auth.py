# gemquest/api/v1/routers/auth.py
from fastapi import APIRouter, Depends, Query, Response, status

from gemquest.api.v1.deps import get_auth_service, get_current_user, get_rbac_resolver
from gemquest.models import User
from gemquest.schemas.auth import (
    ChangePasswordIn,
    LoginRequest,
    PasswordResetRequestIn,
    RegisterIn,
    SetPasswordIn,
)
from gemquest.services.auth_flows import AuthService, user_to_dict
from gemquest.services.rbac import RBACResolver

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterIn, service: AuthService = Depends(get_auth_service)):
    """
    Register a new user account.

    Creates an unconfirmed account holding the global "Collaborator" role and
    emails a confirmation link valid for CONFIRMATION_TOKEN_HOURS.

    Returns:
        dict: success envelope with message and user (id, email, username, createdAt)

    Error codes:
        - BAD_REQUEST (400): Missing email, password or username
        - USER_EXISTS / USERNAME_EXISTS (409): Email or username already taken
        - EMAIL_DELIVERY_FAILED (500): Account created but the email could not be sent
    """
    result = await service.register(body.email, body.password, body.username)
    return {"success": True, "data": result}

@router.get("/confirm-email")
async def confirm_email(
    token: str | None = Query(default=None),
    service: AuthService = Depends(get_auth_service),
):
    """
    Confirm a user's email using the token from the welcome email.

    The token is single-use: a second confirmation with the same token fails.

    Error codes:
        - BAD_REQUEST (400): Token missing
        - INVALID_OR_EXPIRED_TOKEN (400): Unknown, used or expired token
    """
    result = await service.confirm_email(token)
    return {"success": True, "data": result}

@router.post("/login")
async def login(payload: LoginRequest, response: Response, service: AuthService = Depends(get_auth_service)):
    """
    Authenticate user and create access token.

    The token only identifies the user; roles are resolved on every request.
    It is returned in the body and also set as an HttpOnly cookie for
    browser-based clients.

    Returns:
        dict: success envelope with user and accessToken

    Error codes:
        - AUTH_INVALID_CREDENTIALS (401): Unknown email or wrong password
        - AUTH_EMAIL_NOT_CONFIRMED (401): Email not confirmed yet
    """
    result = await service.login(payload.email, payload.password)
    response.set_cookie("accessToken", result["token"], httponly=True, secure=False, samesite="lax")
    return {"success": True, "data": {"user": result["user"], "accessToken": result["token"]}}

@router.get("/me")
async def me(
    user: User = Depends(get_current_user),
    resolver: RBACResolver = Depends(get_rbac_resolver),
):
    """
    Get current authenticated user information with its global effective roles.

    Raises:
        AuthenticationError (401): If user is not authenticated
    """
    roles = await resolver.effective_roles(user.id, None)
    return {"success": True, "data": {**user_to_dict(user), "roles": sorted(roles)}}

@router.post("/logout")
async def logout(response: Response):
    """
    Log out the current user by clearing the access token cookie.

    Note:
        The JWT itself remains valid until it expires.
    """
    response.delete_cookie("accessToken")
    return {"success": True}

@router.post("/request-password-reset")
async def request_password_reset(body: PasswordResetRequestIn, service: AuthService = Depends(get_auth_service)):
    """
    Email a password reset link valid for RESET_TOKEN_HOURS.

    The response is identical whether or not the email is registered.

    Error codes:
        - EMAIL_DELIVERY_FAILED (500): Reset token stored but the email could not be sent
    """
    result = await service.request_password_reset(body.email)
    return {"success": True, "data": result}

@router.post("/set-password")
async def set_password(body: SetPasswordIn, service: AuthService = Depends(get_auth_service)):
    """
    Choose a new password using a reset or invitation token.

    The password update and the token invalidation happen in one write. A
    failing confirmation email does not undo the reset.

    Error codes:
        - BAD_REQUEST (400): Token or new password missing
        - INVALID_OR_EXPIRED_TOKEN (400): Unknown, used or expired token
    """
    result = await service.reset_password(body.token, body.newPassword)
    return {"success": True, "data": result}

@router.post("/change-password")
async def change_password(
    body: ChangePasswordIn,
    user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    """
    Change password for the currently authenticated user.

    Raises:
        AuthenticationError (401): If user is not authenticated
    """
    result = await service.change_password(user, body.newPassword)
    return {"success": True, "data": result}
