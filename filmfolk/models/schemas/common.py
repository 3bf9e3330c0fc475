from datetime import date

from marshmallow import ValidationError, fields

from filmfolk.models.base_model import as_utc

# Cinema starts here; nothing older gets a release year
EARLIEST_RELEASE_YEAR = 1888


def norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def strip_str(v):
    return v.strip() if isinstance(v, str) else v


def validate_release_year(year: int) -> None:
    if year is None:
        return
    if year < EARLIEST_RELEASE_YEAR or year > date.today().year + 5:
        raise ValidationError(f"release_year must be between {EARLIEST_RELEASE_YEAR} and {date.today().year + 5}.")


def validate_genres(genres) -> None:
    if genres is None:
        return
    for g in genres:
        if not isinstance(g, str) or not g.strip():
            raise ValidationError("genres must be non-empty strings.")
        if len(g) > 50:
            raise ValidationError("genre names must be at most 50 characters.")


class UTCDateTime(fields.DateTime):
    """DateTime field that treats naive values as UTC on dump."""

    def _serialize(self, value, attr, obj, **kwargs):
        return super()._serialize(as_utc(value), attr, obj, **kwargs)


class EnumValue(fields.Field):
    """Dump a str-Enum member as its value."""

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        return getattr(value, "value", value)
