from marshmallow import Schema, fields, validate

from filmfolk.models.schemas.common import EnumValue, UTCDateTime

DELETED_TEXT = "[deleted]"


class ReviewCreateSchema(Schema):
    movie_id = fields.String(required=True)
    rating = fields.Integer(required=True, validate=validate.Range(min=1, max=10))
    review_text = fields.String(required=True, validate=validate.Length(min=10))


class ReviewUpdateSchema(Schema):
    rating = fields.Integer(validate=validate.Range(min=1, max=10))
    review_text = fields.String(validate=validate.Length(min=10))


class CommentCreateSchema(Schema):
    review_id = fields.String(required=True)
    parent_comment_id = fields.String(allow_none=True, load_default=None)
    comment_text = fields.String(required=True, validate=validate.Length(min=1, max=5000))


class AuthorSchema(Schema):
    id = fields.String()
    username = fields.String()
    avatar_url = fields.String(allow_none=True)


class ReviewOutSchema(Schema):
    id = fields.String()
    movie_id = fields.String()
    account_id = fields.String()
    author = fields.Nested(AuthorSchema)
    rating = fields.Integer()
    review_text = fields.String()
    status = EnumValue()
    is_thread_locked = fields.Boolean()
    likes_count = fields.Integer()
    comments_count = fields.Integer()
    created_at = UTCDateTime()
    updated_at = UTCDateTime()


class CommentOutSchema(Schema):
    id = fields.String()
    review_id = fields.String()
    parent_comment_id = fields.String(allow_none=True)
    account_id = fields.Method("get_account_id")
    author = fields.Method("get_author")
    comment_text = fields.Method("get_text")
    is_deleted = fields.Boolean()
    likes_count = fields.Integer()
    created_at = UTCDateTime()

    def get_text(self, obj):
        return DELETED_TEXT if obj.is_deleted else obj.comment_text

    def get_account_id(self, obj):
        return None if obj.is_deleted else obj.account_id

    def get_author(self, obj):
        if obj.is_deleted or obj.author is None:
            return None
        return AuthorSchema().dump(obj.author)
