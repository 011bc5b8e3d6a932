# gemquest/models/user.py
"""
Database model for users (principals).
Holds credentials, the email-confirmed flag and the two embedded single-use
tokens (email confirmation and password reset).
"""
import uuid
from tortoise import fields, models

class User(models.Model):
    """
    User database model.

    Relationships:
    - Has many UserRole assignments (related_name="role_assignments")
    - Has many UserGroup memberships (related_name="group_memberships")
    - Owns zero or more Clients (related_name="owned_clients")

    Security:
    - Password is stored as a hash (never store plain text passwords)
    - Email and username are unique across all users
    - Each token is paired with an absolute expiry; both are cleared on use
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: unique user identifier
    email = fields.CharField(max_length=256, unique=True, index=True)
    username = fields.CharField(max_length=256, unique=True, index=True)
    password_hash = fields.CharField(max_length=255)  # Argon2 hash, never plain text
    email_confirmed = fields.BooleanField(default=False)

    confirmation_token = fields.CharField(max_length=64, null=True, index=True)
    confirmation_token_expiry = fields.DatetimeField(null=True)
    reset_token = fields.CharField(max_length=64, null=True, index=True)
    reset_token_expiry = fields.DatetimeField(null=True)

    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"
