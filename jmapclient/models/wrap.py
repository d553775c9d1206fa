"""
We wrap attrs. It is just flexible enough to support what we need.
"""

import attr

from .marshal import marshallable, SET_FIELDS


def attrib(*, server_set=False, **kwargs):
    """Like `attr.ib`, with one JMAP specific option:

    `server_set` marks a property the server computes. It is read when loading
    a server response, but never sent back in `to_server()`. Such properties
    default to None.
    """
    metadata = dict(kwargs.pop('metadata', None) or {})
    if server_set:
        metadata['server_set'] = True
        kwargs.setdefault('default', None)

    return attr.ib(metadata=metadata, **kwargs)


def track_set_fields(instance, attribute, value):
    instance.__dict__.setdefault(SET_FIELDS, set()).add(attribute.name)
    return value


def model(maybe_cls=None):
    def wrap(cls):
        attr_class = attr.s(
            # TODO: Enable slots once set-field tracking no longer needs
            # the instance __dict__.
            slots=False,

            auto_attribs=True,
            kw_only=True,
            on_setattr=track_set_fields,
        )(cls)

        # Remember which attributes the constructor was given, so that
        # defaults are not serialized.
        attrs_init = attr_class.__init__

        def __init__(self, **kwargs):
            attrs_init(self, **kwargs)
            self.__dict__[SET_FIELDS] = set(kwargs)

        __init__.__doc__ = attrs_init.__doc__
        attr_class.__init__ = __init__

        # Add the marshal helpers.
        return marshallable(attr_class)

    if maybe_cls is None:
        return wrap
    else:
        return wrap(maybe_cls)
