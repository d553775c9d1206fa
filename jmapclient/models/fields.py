from datetime import datetime, timezone
from marshmallow import fields


# JMAP numbers are plain JSON numbers; an Int must be safely representable
# as an IEEE 754 double (RFC 8620, 1.3).
MAX_SAFE_INTEGER = 2 ** 53 - 1


class JmapInt(fields.Field):
    """
    The `Int` and `UnsignedInt` types of JMAP.

    Unlike marshmallow's `Integer`, this does not accept strings or booleans,
    and it does not silently truncate fractions. A float which happens to be
    integral (some JSON encoders write `3.0`) is read back as an `int`.
    """

    default_error_messages = {
        'invalid': 'Not a valid integer.',
        'unsafe': 'Integer is outside the range JMAP can represent.',
    }

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        return int(value)

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise self.make_error('invalid')

        if isinstance(value, float):
            if not value.is_integer():
                raise self.make_error('invalid')
            value = int(value)

        if abs(value) > MAX_SAFE_INTEGER:
            raise self.make_error('unsafe')
        return value


def serialize_rfc3339(date):
    """
    Always output UTC, without the fractions, as the `UTCDate` type wants.
    A naive datetime is treated as UTC.
    """
    if date.utcoffset() is not None:
        date = date.astimezone(timezone.utc)
    return date.replace(tzinfo=None, microsecond=0).isoformat() + 'Z'


def deserialize_rfc3339(value):
    if value[-1:] in ('Z', 'z'):
        value = value[:-1] + '+00:00'
    date = datetime.fromisoformat(value)
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    return date


class JmapDateTime(fields.Field):
    """
    JMAP requires a particular datetime format: RFC 3339 without fractional
    seconds. By default, marshmallow generates the wrong format.

    Most of JMAP uses their `UTCDate` type, as it should, but the spec does
    define a `Date` type which is allowed to have an offset.

    Currently, we do like this: We only ever output UTC dates.
    We parse whatever we get and give back a tz-aware datetime object.
    """

    default_error_messages = {
        'invalid': 'Not a valid RFC 3339 date-time.',
    }

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        return serialize_rfc3339(value)

    def _deserialize(self, value, attr, data, **kwargs):
        if not isinstance(value, str):
            raise self.make_error('invalid')
        try:
            return deserialize_rfc3339(value)
        except ValueError as exc:
            raise self.make_error('invalid') from exc
