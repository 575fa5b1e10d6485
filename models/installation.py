# models/installation.py
from tortoise import fields, models


class Installation(models.Model):
    """
    OAuth credential state for one connected HubSpot portal.
    Reinstalling overwrites the row; rows are never deleted here.
    """
    id = fields.IntField(pk=True)
    hubspot_portal_id = fields.CharField(max_length=64, unique=True)

    refresh_token = fields.TextField()
    access_token = fields.TextField()
    expires_at = fields.DatetimeField()  # access_token is valid strictly before this (UTC)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "installations"
