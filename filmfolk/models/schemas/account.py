from marshmallow import Schema, fields, pre_load, validates, validate, ValidationError

from filmfolk.models.account import AccountStatus, Role
from filmfolk.models.schemas.common import EnumValue, UTCDateTime, norm_email, strip_str
from filmfolk.utils.security import MAX_PASSWORD_BYTES


class RegisterSchema(Schema):
    username = fields.String(required=True, validate=validate.Length(min=3, max=50))
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            if "email" in data:
                data["email"] = norm_email(data["email"])
            if "username" in data:
                data["username"] = strip_str(data["username"])
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long.")


class LoginSchema(Schema):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data)
            data["email"] = norm_email(data["email"])
        return data


class RefreshTokenSchema(Schema):
    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class AccountOutSchema(Schema):
    """The caller's own account."""
    id = fields.String()
    username = fields.String()
    email = fields.String()
    role = EnumValue()
    status = EnumValue()
    auth_provider = EnumValue()
    avatar_url = fields.String(allow_none=True)
    bio = fields.String(allow_none=True)
    followers_count = fields.Integer()
    following_count = fields.Integer()
    last_login_at = UTCDateTime(allow_none=True)
    created_at = UTCDateTime()


class PublicProfileSchema(Schema):
    id = fields.String()
    username = fields.String()
    avatar_url = fields.String(allow_none=True)
    bio = fields.String(allow_none=True)
    role = EnumValue()
    followers_count = fields.Integer()
    following_count = fields.Integer()
    created_at = UTCDateTime()


class ProfileUpdateSchema(Schema):
    bio = fields.String(allow_none=True, validate=validate.Length(max=1000))
    avatar_url = fields.Url(allow_none=True)


class StatusUpdateSchema(Schema):
    status = fields.String(
        required=True, validate=validate.OneOf([s.value for s in AccountStatus])
    )


class RoleUpdateSchema(Schema):
    role = fields.String(required=True, validate=validate.OneOf([r.value for r in Role]))
