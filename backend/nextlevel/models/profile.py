# nextlevel/models/profile.py
import uuid
from tortoise import fields, models

# Fields a full profile update must supply (PUT /profile/{user_id})
PROFILE_FIELDS = (
    "name",
    "last_name",
    "avatar",
    "address",
    "phone_number",
    "province",
    "city",
    "district",
    "github_link",
)

class Profile(models.Model):
    """
    Public profile attached to a user (one-to-one).
    Deleted together with its user by the ON DELETE CASCADE foreign key.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user = fields.OneToOneField("models.User", related_name="profile", on_delete=fields.CASCADE)

    name = fields.CharField(max_length=256, null=True)
    last_name = fields.CharField(max_length=256, null=True)
    avatar = fields.CharField(max_length=1024, null=True)
    address = fields.TextField(null=True)
    phone_number = fields.CharField(max_length=32, null=True)
    province = fields.CharField(max_length=128, null=True)
    city = fields.CharField(max_length=128, null=True)
    district = fields.CharField(max_length=128, null=True)
    github_link = fields.CharField(max_length=512, null=True)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "profiles"
