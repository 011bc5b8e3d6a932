# gemquest/schemas/client.py
"""
Pydantic schemas for clients (tenants), collaborators and experiences.
"""
from typing import Optional
from pydantic import BaseModel, Field

class ClientCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    plan: str = "free"
    parentId: Optional[int] = None  # Nest under an existing client (requires admin role there)

class CollaboratorInviteIn(BaseModel):
    """Invite a user (existing or not) into a client with a role."""
    email: str
    clientId: int
    role: str  # Role name, e.g. "Viewer"

class ExperienceCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    description: Optional[str] = None
    clientId: int

class ExperienceUpdateIn(BaseModel):
    """All fields optional; only provided fields are updated."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    description: Optional[str] = None
