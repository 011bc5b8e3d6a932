# gemquest/schemas/rbac.py
"""
Pydantic schemas for role and group administration endpoints.
"""
import uuid
from typing import Optional
from pydantic import BaseModel, Field

class RoleAssignIn(BaseModel):
    """
    Grant a role, globally (clientId omitted) or within one client.
    Used for both user and group assignments.
    """
    role: str  # Role name
    clientId: Optional[int] = None  # None means a global assignment

class GroupCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    description: Optional[str] = None

class GroupMemberIn(BaseModel):
    userId: uuid.UUID
