# gemquest/models/group.py
"""
Groups are named collections of users used for bulk role assignment.
A user's effective roles include every role granted to any of its groups.
"""
from tortoise import fields, models

class Group(models.Model):
    id = fields.IntField(pk=True)
    name = fields.CharField(max_length=128, unique=True)
    description = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "groups"


class UserGroup(models.Model):
    id = fields.IntField(pk=True)
    user = fields.ForeignKeyField("models.User", related_name="group_memberships", on_delete=fields.CASCADE)
    group = fields.ForeignKeyField("models.Group", related_name="memberships", on_delete=fields.CASCADE)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "user_groups"
        unique_together = (("user", "group"),)


class GroupRole(models.Model):
    """Role granted to a group, optionally scoped to a client (NULL = global, so scoped rows cascade)."""
    id = fields.IntField(pk=True)
    group = fields.ForeignKeyField("models.Group", related_name="role_assignments", on_delete=fields.CASCADE)
    role = fields.ForeignKeyField("models.Role", related_name="group_assignments", on_delete=fields.RESTRICT)
    client = fields.ForeignKeyField(
        "models.Client", related_name="group_roles", null=True, on_delete=fields.CASCADE
    )
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "group_roles"
        unique_together = (("group", "role", "client"),)
