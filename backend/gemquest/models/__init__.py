# gemquest/models/__init__.py
"""
Database models module initialization.
Exports all Tortoise ORM models for convenient imports.

Models exported:
- User: principal with credentials and embedded single-use tokens
- Role / UserRole: role reference data and direct (optionally client-scoped) assignments
- Group / UserGroup / GroupRole: groups, memberships and group role assignments
- Client: tenant used as the scope key for role assignments
- Experience: client-owned resource protected by the authorization gate
"""
from .user import User
from .role import Role, UserRole
from .group import Group, UserGroup, GroupRole
from .client import Client
from .experience import Experience
