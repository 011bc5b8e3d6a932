# gemquest/schemas/auth.py
"""
Pydantic schemas for authentication endpoints.
Defines request models for registration, login and the token flows.
"""
from pydantic import BaseModel

class RegisterIn(BaseModel):
    """Request model for user registration."""
    email: str
    password: str
    username: str

class LoginRequest(BaseModel):
    """
    Request model for user login endpoint.
    Contains credentials for authentication.
    """
    email: str  # Account email
    password: str  # User password (plain text, verified against the stored hash)

class PasswordResetRequestIn(BaseModel):
    email: str

class SetPasswordIn(BaseModel):
    """Reset/invitation token plus the new password. Empty values are rejected by the service."""
    token: str = ""
    newPassword: str = ""

class ChangePasswordIn(BaseModel):
    newPassword: str
