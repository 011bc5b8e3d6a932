# gemquest/models/role.py
from tortoise import fields, models

class Role(models.Model):
    """Named permission bundle. Seeded at startup, looked up by name."""
    id = fields.IntField(pk=True)
    name = fields.CharField(max_length=64, unique=True, index=True)
    description = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "roles"


class UserRole(models.Model):
    """
    Direct role assignment, optionally scoped to a client.
    client = NULL means a global assignment that applies in every client, so
    deleting a client deletes its scoped assignments instead of nulling them.
    """
    id = fields.IntField(pk=True)
    user = fields.ForeignKeyField("models.User", related_name="role_assignments", on_delete=fields.CASCADE)
    role = fields.ForeignKeyField("models.Role", related_name="user_assignments", on_delete=fields.RESTRICT)
    client = fields.ForeignKeyField(
        "models.Client", related_name="user_roles", null=True, on_delete=fields.CASCADE
    )
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "user_roles"
        unique_together = (("user", "role", "client"),)
