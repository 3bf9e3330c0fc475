from marshmallow import Schema, fields, pre_load, validates, validate, ValidationError

from filmfolk.models.schemas.common import (
    EnumValue,
    UTCDateTime,
    strip_str,
    validate_genres,
    validate_release_year,
)


class MovieBaseSchema(Schema):
    title = fields.String(required=True, validate=validate.Length(min=1, max=500))
    release_year = fields.Integer(required=True)
    genres = fields.List(fields.String(), load_default=list)
    summary = fields.String(allow_none=True)
    poster_url = fields.Url(allow_none=True)
    backdrop_url = fields.Url(allow_none=True)
    runtime_minutes = fields.Integer(allow_none=True)
    language = fields.String(allow_none=True, validate=validate.Length(max=50))
    tmdb_id = fields.Integer(allow_none=True)
    imdb_id = fields.String(allow_none=True, validate=validate.Length(max=20))

    @pre_load
    def _strip_title(self, data, **kwargs):
        if isinstance(data, dict) and "title" in data:
            data = dict(data)
            data["title"] = strip_str(data["title"])
        return data

    @validates("release_year")
    def _validate_release_year(self, value, **kwargs):
        validate_release_year(value)

    @validates("genres")
    def _validate_genres(self, value, **kwargs):
        validate_genres(value)

    @validates("runtime_minutes")
    def _validate_runtime(self, value, **kwargs):
        if value is not None and value < 1:
            raise ValidationError("runtime_minutes must be >= 1.")


class MovieCreateSchema(MovieBaseSchema):
    pass


class MovieUpdateSchema(MovieBaseSchema):
    # All optional, but validated if present
    title = fields.String(validate=validate.Length(min=1, max=500))
    release_year = fields.Integer()
    genres = fields.List(fields.String())


class MovieOutSchema(Schema):
    id = fields.String()
    title = fields.String()
    release_year = fields.Integer()
    genres = fields.List(fields.String())
    summary = fields.String(allow_none=True)
    poster_url = fields.String(allow_none=True)
    backdrop_url = fields.String(allow_none=True)
    runtime_minutes = fields.Integer(allow_none=True)
    language = fields.String(allow_none=True)
    tmdb_id = fields.Integer(allow_none=True)
    imdb_id = fields.String(allow_none=True)
    status = EnumValue()
    submitted_by_id = fields.String(allow_none=True)
    approved_by_id = fields.String(allow_none=True)
    average_rating = fields.Float(allow_none=True)
    total_reviews = fields.Integer()
    created_at = UTCDateTime()
    updated_at = UTCDateTime()
