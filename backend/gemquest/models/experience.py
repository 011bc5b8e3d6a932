# gemquest/models/experience.py
from tortoise import fields, models

class Experience(models.Model):
    """An experience belongs to exactly one client; its client scopes every check on it."""
    id = fields.IntField(pk=True)
    name = fields.CharField(max_length=128)
    description = fields.TextField(null=True)
    client = fields.ForeignKeyField("models.Client", related_name="experiences", on_delete=fields.RESTRICT)
    created_by = fields.ForeignKeyField(
        "models.User", related_name="experiences", null=True, on_delete=fields.SET_NULL
    )
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "experiences"
