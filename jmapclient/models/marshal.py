"""
This implements a custom marshaling system for `attr` models based on
`marshmallow`.

Use the `@marshallable` decorator on a attr class, and it will add two
methods, `cls.from_server` and `instance.to_server` - based on the Python 3
type annotations.


Ultimately, the result will be that:

1. You have the unmodified attr behaviour, which means:

    - Creating a model instance will validate attribute existence,
      and run custom validators, but will not validate types.

    - Properties which have a default value need not be specified.

2. `from_server` (the marshmallow deserialization helpers) will:

    - Run any attr validation code.
    - Further validate the types of all properties, including
      nested structures.
    - Convert from camelCase keys to snake_case names in Python,
      and account for some reserved identifiers like "from" as well.
    - Ignore properties the model does not know about; servers are free
      to add their own.

3. `to_server` (the marshmallow serialization helpers) will:

    - Convert from internal snake_case properties to camelCase in
      JSON, and account for Python reserved identifier-avoiding
      renames such as "from_".
    - Only output properties which have been explicitly set.
    - Ignore any server-set attributes.
"""

import enum
import types
from datetime import datetime
from typing import Any, Dict, ForwardRef, Optional, Tuple, Union, get_args, get_origin

import sys

import attr
from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load

from jmapclient.models.fields import JmapDateTime, JmapInt


NoneType = type(None)

UNION_TYPES = (Union, getattr(types, 'UnionType', Union))

# Instance attribute holding the names of the explicitly set properties.
SET_FIELDS = '__jmap_set_fields__'


TYPE_MAPPING = {
    str: fields.String,
    float: fields.Float,
    bool: fields.Boolean,
    int: JmapInt,
    datetime: JmapDateTime,
}


def is_model(obj) -> bool:
    klass = obj if isinstance(obj, type) else type(obj)
    return hasattr(klass, '__marshmallow_schemas__')


def get_set_attrs(instance) -> Dict[str, Any]:
    """
    Return only those attributes which have been set, either through
    the constructor or by assignment later on.
    """
    set_fields = instance.__dict__.get(SET_FIELDS)
    names = [a.name for a in attr.fields(type(instance))]
    if set_fields is None:
        return {name: getattr(instance, name) for name in names}
    return {name: getattr(instance, name) for name in names if name in set_fields}


def get_marshmallow_field_class_from_python_type(klass, schema_key):
    # Is this another marshallable data class?
    if is_model(klass):
        mm_type = CustomNested
        args = {'nested': klass, 'schema_key': schema_key}

    # Is it an enum
    elif isinstance(klass, type) and issubclass(klass, enum.Enum):
        mm_type = fields.Enum
        args = {'enum': klass, 'by_value': True}

    # Otherwise, see if this type as a direct mapping to a marshmallow field
    else:
        if klass not in TYPE_MAPPING:
            raise ValueError('%s is not a valid type' % klass)
        mm_type = TYPE_MAPPING[klass]
        args = {}

    return mm_type, args


def get_marshmallow_field_class_from_mypy_annotation(mypy_type, owner, schema_key) -> Tuple[Any, Dict]:
    # If a forward reference is given, resolve it lazily once the schema
    # is first used; by then, the module defining the type is complete.
    if isinstance(mypy_type, str):
        mypy_type = ForwardRef(mypy_type)
    if isinstance(mypy_type, ForwardRef):
        return CustomNested, {
            'nested': mypy_type.__forward_arg__,
            'owner': owner,
            'schema_key': schema_key
        }

    # Any types we read as "Raw"
    if mypy_type is Any:
        return fields.Raw, {}

    origin = get_origin(mypy_type)

    if origin in UNION_TYPES:
        # We do not want to support Unions itself; we only allow Optional[foo],
        # which in MyPy internally is Union[foo, None].
        union_types = [t for t in get_args(mypy_type) if t is not NoneType]
        if len(union_types) > 1:
            raise ValueError(f'{mypy_type}: only Optional[] unions are supported')

        field_type, field_args = \
            get_marshmallow_field_class_from_mypy_annotation(union_types[0], owner, schema_key)
        return field_type, {**field_args, 'allow_none': True}

    elif origin is list:
        item_type, = get_args(mypy_type)
        item_field = make_marshmallow_field_from_mypy_annotation(item_type, owner, schema_key)
        return fields.List, {'cls_or_instance': item_field}

    elif origin is dict:
        key_type, value_type = get_args(mypy_type)
        return fields.Dict, {
            'keys': make_marshmallow_field_from_mypy_annotation(key_type, owner, schema_key),
            'values': make_marshmallow_field_from_mypy_annotation(value_type, owner, schema_key),
        }

    # Is this another marshallable data class?
    return get_marshmallow_field_class_from_python_type(mypy_type, schema_key)


def make_marshmallow_field_from_mypy_annotation(mypy_type, owner, schema_key):
    mm_type, args = get_marshmallow_field_class_from_mypy_annotation(mypy_type, owner, schema_key)
    return mm_type(**args)


def make_marshmallow_field(attr_field, owner, schema_key) -> Optional[fields.Field]:
    """For the given `attr` field, create a `marshmallow` field.

    We convert the field type, attr validators, if the field is required, or allows None.
    """
    field_type, field_args = \
        get_marshmallow_field_class_from_mypy_annotation(attr_field.type, owner, schema_key)

    # Only do not require it if it has a default. Effectively, marshmallow
    # will return a dict without that field, and attrs will initialize the
    # model with the default value.
    required = attr_field.default is attr.NOTHING

    # A None default means null is an acceptable value, too.
    if attr_field.default is None:
        field_args['allow_none'] = True

    # Convert validators
    if attr_field.validator:
        def marshmallow_impl(value):
            if value is None:
                return
            try:
                attr_field.validator(None, attr_field, value)
            except ValueError as exc:
                # Assume that attrs validators raise a ValueError. Any other exceptions we
                # assume are programming errors and do not catch them.
                raise ValidationError(str(exc))

        assert 'validate' not in field_args
        field_args['validate'] = marshmallow_impl

    # Determine the key in JSON for this field.
    data_key = to_camel_case(attr_field.name)

    return field_type(
        data_key=data_key,
        required=required,
        **field_args
    )


def make_schema(attrclass, schema_key):
    """The 'server' schema knows every property and is used to read what
    a server sends us. The 'client' schema leaves out the server-set ones,
    and is used to write what we send to a server.
    """
    schema_fields = {
        field.name: make_marshmallow_field(field, attrclass, schema_key)
        for field in attr.fields(attrclass)
        if schema_key == 'server' or not field.metadata.get('server_set')
    }

    def make_object(self, data, **kwargs):
        # The part where we convert the validated input data into an actual `attr` instance
        # is here, implemented via marshmallow @post_load. That is, marshmallow itself
        # will give us the instance directly. This is easiest as it means that when the class
        # is used as a relationship, then a marshmallow.fields.Nested() is all we need.
        return attrclass(**data)

    schema_fields['Meta'] = type('Meta', (), {'unknown': EXCLUDE})
    schema_fields['_internal_make_object'] = post_load(make_object)

    return type(f'{attrclass.__name__}Schema', (Schema,), schema_fields)


def unmarshal_func(cls, data: Dict):
    schema = cls.__marshmallow_schemas__['server']()
    return schema.load(data)


def marshal_func(self):
    schema = self.__marshmallow_schemas__['client']()
    return schema.dump(get_set_attrs(self))


def marshallable(attrclass):
    """Adds `to_server` and `from_server` methods to the attrs class, to create
    the class from incoming unstructured data with validation, and the other
    way around.

    To this end, internally constructs a marshmallow schema based on the type
    definitions, and the attrs validators.
    """
    attrclass.__marshmallow_schemas__ = {
        'server': make_schema(attrclass, 'server'),
        'client': make_schema(attrclass, 'client'),
    }
    attrclass.from_server = classmethod(unmarshal_func)
    attrclass.to_server = marshal_func
    return attrclass


def to_camel_case(snake_str):
    components = snake_str.split('_')
    # We capitalize the first letter of each component except the first one
    # with the 'title' method and join them together.
    result = components[0] + ''.join(x.title() for x in components[1:])

    if result.endswith('_'):  # To support "from_"
        result = result[:-1]
    return result


class CustomNested(fields.Nested):
    """
    Like marshmallow's Nested, but with three differences:

    - When serializing, when given a dict (rather than a model), just outputs the
      dict as given.

      We use this to allow developers to skip the model system and instead directly
      include the desired JMAP structures.

    - A nested model only outputs its explicitly set properties.

    - The nested schema is looked up lazily, which allows for self-references
      and for models defined further down in the same module.
    """

    def __init__(self, nested, *, schema_key, owner=None, **kwargs):
        self.nested_class = nested
        self.owner = owner
        self.schema_key = schema_key
        super().__init__(self._get_schema_class, **kwargs)

    def _get_schema_class(self):
        model_class = self.nested_class
        if isinstance(model_class, str):
            if model_class in ('self', self.owner.__name__):
                model_class = self.owner
            else:
                model_class = getattr(sys.modules[self.owner.__module__], model_class)
        return model_class.__marshmallow_schemas__[self.schema_key]

    def _serialize(self, nested_obj, attr, obj, **kwargs):
        if isinstance(nested_obj, dict):
            return nested_obj
        if is_model(nested_obj):
            nested_obj = get_set_attrs(nested_obj)

        # Serialize as normal
        return super()._serialize(nested_obj, attr, obj, **kwargs)
