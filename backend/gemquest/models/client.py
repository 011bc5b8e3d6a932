# gemquest/models/client.py
from tortoise import fields, models

class Client(models.Model):
    """
    Tenant. Role assignments may be scoped to a client; clients may nest
    under a parent and may be owned by a user.
    """
    id = fields.IntField(pk=True)
    name = fields.CharField(max_length=128)
    plan = fields.CharField(max_length=32, default="free")
    owner = fields.ForeignKeyField(
        "models.User", related_name="owned_clients", null=True, on_delete=fields.SET_NULL
    )
    parent = fields.ForeignKeyField(
        "models.Client", related_name="children", null=True, on_delete=fields.SET_NULL
    )
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "clients"
