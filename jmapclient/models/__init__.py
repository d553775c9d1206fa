"""This is a model system which we use for the JMAP data types.

Here is what we need from it
----------------------------

1) The records should be fun to use from Python when building requests,
   providing for some amount of validation to help the programmer achieve
   correctness.

2) We need to be able to take unstructured, untrusted data coming from a
   server, validate it, and convert it into those objects - but only when a
   caller asks for it. The batch layer itself never needs a schema.

In addition:

3) We like to use snake_case internally, but the JMAP APIs use camelCase.

4) When sending an object to the server (for example inside `Email/set`),
   we only want to send the properties the user actually set, and never the
   ones the server computes.

For this, we use `attrs` combined with `marshmallow`.


Here is why we chose this option
--------------------------------

`attr` is pretty nice, it gives us:

- Very nice Python models.
- MyPy annotations.
- (Some) runtime validation (arguments itself and custom validators, but
  not types) - that is good enough for now.

What we really need in addition to that is validating incoming JSON - see (2).
What this really means is (on top of just calling `Model(**data)`):

- Validating the types (`attr` does not do this).
- Properly handling nested objects as well.
- Giving us validation error messages pointing to specific fields.

`marshmallow` does all of this, and has no trouble with camelCase/snake_case
either. `marshal.py` builds a marshmallow schema from the attrs type
annotations.


Only explicitly set properties are serialized
---------------------------------------------

In attrs, all properties are always set (either by the user or to their
defaults), so a naive dump would output all of them. This is not what we
want: a client sending `Email/set` would prefer to only send the fields set
by the user, and let the server fall back to its own defaults, as opposed to
the client itself sending a full object with everything the user did not
specify set to a default.

`@model` therefore keeps track of which attributes were given to the
constructor or assigned afterwards, and only those are serialized.
"""


from attr import Factory, fields

from .wrap import model, attrib
