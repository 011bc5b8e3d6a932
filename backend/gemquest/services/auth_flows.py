"""
Account flows: registration, email confirmation, login, password reset and
collaborator invitation.

Each method returns a plain dict on success and raises a GemQuestError
otherwise; the API layer turns either into the response envelope.

When an email fails after a security-relevant write has been committed, the
write stands. The failure is logged and, for registration and reset
requests, reported to the caller.
"""
import logging
from typing import Any, Dict, Optional

from gemquest.config import Settings
from gemquest.core.errors import (
    AuthenticationError,
    BadRequestError,
    ConflictError,
    DependencyFailure,
    NotFoundError,
    NotificationFailure,
)
from gemquest.core.permissions import DEFAULT_ROLE
from gemquest.core.security import create_access_token, generate_token, hash_password, verify_password
from gemquest.models import User
from gemquest.repository import PrincipalRepository, TokenKind
from .mailer import Mailer
from .tokens import TokenManager

logger = logging.getLogger("uvicorn.error")

REGISTERED_MESSAGE = "User registered successfully. Please check your email to confirm your account."
CONFIRMED_MESSAGE = "Email confirmed successfully."
RESET_REQUEST_MESSAGE = "If that email is registered, you will receive a password reset email shortly."
RESET_DONE_MESSAGE = "Password has been reset successfully"


def user_to_dict(u: User) -> Dict[str, Any]:
    return {
        "id": str(u.id),
        "email": u.email,
        "username": u.username,
        "emailConfirmed": u.email_confirmed,
        "createdAt": u.created_at.isoformat() if u.created_at else None,
    }


class AuthService:
    def __init__(self, repo: PrincipalRepository, tokens: TokenManager, mailer: Mailer, settings: Settings):
        self.repo = repo
        self.tokens = tokens
        self.mailer = mailer
        self.settings = settings

    def _link(self, path: str, token: str) -> str:
        return f"{self.settings.project_url.rstrip('/')}{path}?token={token}"

    # ------------------------------------------------------------------
    # Registration / confirmation
    # ------------------------------------------------------------------
    async def register(self, email: str, password: str, username: str) -> Dict[str, Any]:
        """
        Create an unconfirmed user holding the global default role and email
        a confirmation link.

        Raises:
            BadRequestError: missing field
            ConflictError: email or username already taken
            DependencyFailure: default role not seeded
            NotificationFailure: user created but the confirmation email failed
        """
        if not email or not password or not username:
            raise BadRequestError("email, password and username are required")

        if await self.repo.find_user_by_email(email):
            raise ConflictError("User already exists", code="USER_EXISTS")
        if await self.repo.find_user_by_username(username):
            raise ConflictError("Username already exists", code="USERNAME_EXISTS")

        default_role = await self.repo.find_role_by_name(DEFAULT_ROLE)
        if default_role is None:
            logger.error('[auth] default role "%s" not found', DEFAULT_ROLE)
            raise DependencyFailure("Server configuration error")

        token, token_fields = self.tokens.mint(TokenKind.CONFIRMATION, self.settings.confirmation_token_hours)
        password_hash = hash_password(password)
        # An account never exists without its default role
        async with self.repo.transaction():
            user = await self.repo.create_user(
                email=email,
                username=username,
                password_hash=password_hash,
                email_confirmed=False,
                **token_fields,
            )
            await self.repo.assign_role(user.id, default_role.id, None)

        try:
            await self.mailer.send(
                email,
                "Welcome to GemQuest - Please Confirm Your Email",
                "welcome",
                {"username": username, "confirmationLink": self._link("/auth/confirm-email", token)},
            )
        except NotificationFailure as exc:
            logger.error("[auth] failed to send confirmation email to %s: %s", email, exc)
            raise NotificationFailure("Failed to send confirmation email") from exc

        return {"message": REGISTERED_MESSAGE, "user": user_to_dict(user)}

    async def confirm_email(self, token: Optional[str]) -> Dict[str, Any]:
        """
        Raises:
            BadRequestError: no token given
            InvalidOrExpiredToken: unknown, already used or expired token
        """
        if not token:
            raise BadRequestError("Token is required")
        user = await self.tokens.validate(TokenKind.CONFIRMATION, token)
        await self.tokens.consume(TokenKind.CONFIRMATION, user, token, email_confirmed=True)
        logger.info("[auth] email confirmed for user %s", user.id)
        return {"message": CONFIRMED_MESSAGE}

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------
    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Returns:
            {"token": <JWT>, "user": {...}}

        Raises:
            AuthenticationError: AUTH_INVALID_CREDENTIALS for unknown email or
            wrong password, AUTH_EMAIL_NOT_CONFIRMED for a correct password on
            an unconfirmed account
        """
        user = await self.repo.find_user_by_email(email) if email else None
        if not user or not verify_password(password or "", user.password_hash):
            raise AuthenticationError("Invalid email or password", code="AUTH_INVALID_CREDENTIALS")
        if not user.email_confirmed:
            raise AuthenticationError(
                "Please confirm your email before logging in", code="AUTH_EMAIL_NOT_CONFIRMED"
            )
        return {"token": create_access_token(str(user.id)), "user": user_to_dict(user)}

    # ------------------------------------------------------------------
    # Password reset
    # ------------------------------------------------------------------
    async def request_password_reset(self, email: str) -> Dict[str, Any]:
        """
        Same response whether or not the email is registered; unknown emails
        cause no write and no email.

        Raises:
            NotificationFailure: token stored but the reset email failed
        """
        user = await self.repo.find_user_by_email(email) if email else None
        if user is None:
            return {"message": RESET_REQUEST_MESSAGE}

        token = await self.tokens.issue(user, TokenKind.RESET, self.settings.reset_token_hours)
        try:
            await self.mailer.send(
                user.email,
                "GemQuest - Password Reset Request",
                "passwordReset",
                {"username": user.username, "resetLink": self._link("/auth/reset-password", token)},
            )
        except NotificationFailure as exc:
            logger.error("[auth] failed to send password reset email to %s: %s", user.email, exc)
            raise NotificationFailure("Failed to send password reset email") from exc
        return {"message": RESET_REQUEST_MESSAGE}

    async def reset_password(self, token: Optional[str], new_password: Optional[str]) -> Dict[str, Any]:
        """
        Set a new password with a reset (or invitation) token. The password
        change and the token clearing are one conditional write. Holding the
        token proves control of the mailbox, so the email is marked confirmed.

        Raises:
            BadRequestError: token or password missing
            InvalidOrExpiredToken: unknown, already used or expired token
        """
        if not token or not new_password:
            raise BadRequestError("Token and new password are required")

        user = await self.tokens.validate(TokenKind.RESET, token)
        await self.tokens.consume(
            TokenKind.RESET,
            user,
            token,
            password_hash=hash_password(new_password),
            email_confirmed=True,
        )
        logger.info("[auth] password reset for user %s", user.id)

        try:
            await self.mailer.send(
                user.email,
                "Your GemQuest Password Has Been Reset",
                "passwordResetConfirmation",
                {"username": user.username},
            )
        except NotificationFailure as exc:
            logger.error("[auth] password reset for %s but confirmation email failed: %s", user.email, exc)
        return {"message": RESET_DONE_MESSAGE}

    async def change_password(self, user: User, new_password: str) -> Dict[str, Any]:
        if not new_password:
            raise BadRequestError("newPassword is required")
        await self.repo.update_user(user.id, password_hash=hash_password(new_password))
        return {"ok": True}

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------
    async def invite_collaborator(self, email: str, client_id: int, role_name: str) -> Dict[str, Any]:
        """
        Give `email` the role `role_name` inside client `client_id`.

        Unknown emails get an account with an unusable password and an
        invitation link (a reset token) to choose one. Re-inviting with the
        same role is a no-op; a different role in the same client conflicts.

        Raises:
            NotFoundError: client or role does not exist
            ConflictError: the user already holds another role in this client
        """
        if await self.repo.find_client_by_id(client_id) is None:
            raise NotFoundError("Client not found", code="CLIENT_NOT_FOUND")
        role = await self.repo.find_role_by_name(role_name)
        if role is None:
            raise NotFoundError("Invalid role name", code="ROLE_NOT_FOUND")

        user = await self.repo.find_user_by_email(email)
        if user is None:
            token, token_fields = self.tokens.mint(TokenKind.RESET, self.settings.invitation_token_hours)
            user = await self.repo.create_user(
                email=email,
                username=email,
                password_hash=hash_password(generate_token()),
                email_confirmed=False,
                **token_fields,
            )
            try:
                await self.mailer.send(
                    email,
                    "You have been invited to GemQuest",
                    "invitation",
                    {"resetLink": self._link("/auth/set-password", token)},
                )
            except NotificationFailure as exc:
                logger.error("[auth] failed to send invitation email to %s: %s", email, exc)

        # One role per client: check and insert under the client row lock
        async with self.repo.transaction():
            await self.repo.find_client_by_id(client_id, lock=True)
            held = await self.repo.client_role_names(user.id, client_id)
            if held and role.name not in held:
                raise ConflictError("User already has a role for this client", code="ROLE_CONFLICT")
            assignment, created = await self.repo.assign_role(user.id, role.id, client_id)
        return {
            "id": assignment.id,
            "role": role.name,
            "userId": str(user.id),
            "clientId": client_id,
            "created": created,
        }
