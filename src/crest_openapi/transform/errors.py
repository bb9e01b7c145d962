"""Failures raised by the transformer.

Every failure is fatal to the run: the engine never catches these, so a
transformation either returns a complete document or raises.
"""


class TransformerError(Exception):
    """Base class for all transformation failures."""


class ReferenceNotFoundError(TransformerError):
    """A resource, schema or error reference has no target."""


class UnsupportedValueError(TransformerError):
    """An enumerated value (create mode, query type, paging mode, ...) is not supported."""


class DuplicatePathError(TransformerError):
    """Two operations would be emitted under the same path and method."""


class InvalidReferenceError(TransformerError):
    """A ``$ref`` does not point into the local definitions section."""


class UnsupportedSchemaTypeError(TransformerError):
    """A JSON schema ``type`` outside object/array/null/boolean/integer/number/string."""


class InvalidSchemaError(TransformerError):
    """A JSON schema keyword carries a value of the wrong type, e.g. a numeric ``exclusiveMinimum``."""
