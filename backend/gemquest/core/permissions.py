# gemquest/core/permissions.py
"""
Static role -> permission table.

Permissions are always a derived view of roles: nothing stores them per
assignment. Changing this table requires a deploy, not a data migration.
"""
from types import MappingProxyType
from typing import Iterable, Mapping, FrozenSet

SUPER_ADMIN = "Super Administrator"
CLIENT_ADMIN = "Client Administrator"
PROJECT_MANAGER = "Project Manager"
DEVELOPER = "Developer"
VIEWER = "Viewer"
COLLABORATOR = "Collaborator"

# Seeded reference data: (name, description)
SEED_ROLES: tuple[tuple[str, str], ...] = (
    (SUPER_ADMIN, "Global administrator with all permissions"),
    (CLIENT_ADMIN, "Administrator for a specific client"),
    (PROJECT_MANAGER, "Manages projects and experiences"),
    (DEVELOPER, "Contributes to projects and experiences"),
    (VIEWER, "Read-only access to projects and experiences"),
    (COLLABORATOR, "Default role for new users"),
)

# Role assigned (globally) to every newly registered user
DEFAULT_ROLE = COLLABORATOR

# Roles allowed to administer a client (collaborators, experiences)
ADMIN_ROLES = frozenset({CLIENT_ADMIN, SUPER_ADMIN})

# Roles that may look inside a client. Collaborator is excluded: every user
# holds it globally from registration.
CLIENT_MEMBER_ROLES = ADMIN_ROLES | {PROJECT_MANAGER, DEVELOPER, VIEWER}

ROLE_PERMISSIONS: Mapping[str, FrozenSet[str]] = MappingProxyType({
    SUPER_ADMIN: frozenset({"create", "read", "update", "delete", "manage"}),
    CLIENT_ADMIN: frozenset({"create", "read", "update", "delete"}),
    PROJECT_MANAGER: frozenset({"create", "read", "update"}),
    DEVELOPER: frozenset({"read", "update"}),
    VIEWER: frozenset({"read"}),
    COLLABORATOR: frozenset({"read", "execute"}),
})


def permissions_for(roles: Iterable[str]) -> FrozenSet[str]:
    """Union of the permissions implied by `roles`. Unknown role names imply nothing."""
    granted: set[str] = set()
    for role in roles:
        granted |= ROLE_PERMISSIONS.get(role, frozenset())
    return frozenset(granted)
