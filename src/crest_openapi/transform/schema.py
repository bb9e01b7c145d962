"""Map JSON schemas onto OpenAPI models and properties.

``build_model`` produces root schemas (named definitions, request bodies);
``build_property`` produces field schemas, recursively. Descriptor-specific
keywords (``readPolicy``, ``writePolicy``, ``returnOnDemand``,
``propertyOrder``, ``options.enum_titles``) become ``x-`` extensions.
"""

from collections.abc import Callable

from pydantic import ValidationError

from crest_openapi.openapi.models import (
    DEFINITIONS_REF,
    ArrayModel,
    Model,
    Property,
    PropertyKind,
    RefModel,
    SchemaModel,
)

from .errors import (
    InvalidReferenceError,
    InvalidSchemaError,
    ReferenceNotFoundError,
    UnsupportedSchemaTypeError,
)
from .resolver import ReferenceResolver

PRIMITIVE_TYPES = ("boolean", "integer", "number", "string")

_NUMBER_FORMATS = {
    "int32": PropertyKind.INTEGER,
    "int64": PropertyKind.LONG,
    "float": PropertyKind.FLOAT,
    "double": PropertyKind.DOUBLE,
}

_STRING_FORMATS = {
    "byte": PropertyKind.BYTE,
    "binary": PropertyKind.BINARY,
    "date": PropertyKind.DATE,
    "full-date": PropertyKind.DATE,
    "date-time": PropertyKind.DATE_TIME,
    "password": PropertyKind.PASSWORD,
    "uuid": PropertyKind.UUID,
}

_NUMERIC_KINDS = (PropertyKind.INTEGER, PropertyKind.LONG, PropertyKind.FLOAT, PropertyKind.DOUBLE)
_CONSTRAINED_STRING_KINDS = (PropertyKind.STRING, PropertyKind.BINARY, PropertyKind.PASSWORD, PropertyKind.UUID)


def property_kind(schema_type, schema_format: str | None) -> PropertyKind:
    """Select the property kind for a JSON schema ``type`` and ``format``."""
    if schema_type == "object":
        return PropertyKind.OBJECT
    if schema_type == "array":
        return PropertyKind.ARRAY
    if schema_type == "boolean":
        return PropertyKind.BOOLEAN
    if schema_type == "integer":
        return PropertyKind.LONG if schema_format == "int64" else PropertyKind.INTEGER
    if schema_type == "number":
        return _NUMBER_FORMATS.get(schema_format, PropertyKind.DOUBLE)
    if schema_type == "string":
        return _STRING_FORMATS.get(schema_format, PropertyKind.STRING)
    raise UnsupportedSchemaTypeError(f"Unsupported JSON schema type: {schema_type}")


def _string_list(schema: dict, field: str) -> list[str]:
    value = schema.get(field)
    if isinstance(value, list):
        return list(value)
    return []


def _enum_fields(schema: dict) -> dict:
    enum_values = _string_list(schema, "enum")
    if not enum_values:
        return {}
    fields = {"enum": enum_values}
    options = schema.get("options")
    if isinstance(options, dict):
        # enum_titles only provided with enum values
        enum_titles = _string_list(options, "enum_titles")
        if enum_titles:
            fields["enum_titles"] = enum_titles
    return fields


def _create(factory: Callable, *args, **fields):
    """Call a model factory, reporting wrongly-typed schema keywords as ``InvalidSchemaError``."""
    try:
        return factory(*args, **fields)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in e.errors()
        )
        raise InvalidSchemaError(f"Invalid JSON schema value ({problems})") from None


def _property_order(prop: Property) -> tuple:
    # unordered properties sort after all ordered ones
    if prop.property_order is None:
        return (1, 0)
    return (0, prop.property_order)


class SchemaMapper:
    """Converts JSON schema values into OpenAPI models and properties.

    When a resolver is given, ``$ref`` targets must exist among the local
    descriptor's definitions.
    """

    def __init__(self, resolver: ReferenceResolver | None = None):
        self._resolver = resolver

    def definitions_reference(self, reference: str) -> str:
        """Return the definition name ``reference`` points at.

        Only ``#/definitions/<name>`` references are accepted.
        """
        name = reference[len(DEFINITIONS_REF):] if reference.startswith(DEFINITIONS_REF) else ""
        if not name:
            raise InvalidReferenceError(f"Invalid JSON ref: {reference}")
        if self._resolver is not None:
            try:
                self._resolver.get_definition(reference)
            except ReferenceNotFoundError as e:
                raise InvalidReferenceError(f"Invalid JSON ref, no such definition: {reference}") from e
        return name

    def build_model(self, schema: dict) -> Model:
        """Convert a root JSON schema into an object, array, primitive or reference model."""
        if "$ref" in schema:
            return RefModel.of(self.definitions_reference(schema["$ref"]))

        schema_type = schema.get("type")
        if schema_type == "array":
            return self.build_array_model(schema)

        if schema_type == "null":
            return SchemaModel(type=schema_type)

        fields: dict = {"title": schema.get("title"), "description": schema.get("description")}
        if schema_type == "object":
            fields["properties"] = self.build_properties(schema)
            fields["required"] = _string_list(schema, "required") or None
        elif schema_type in PRIMITIVE_TYPES:
            schema_format = schema.get("format")
            if schema_format == "full-date" and schema_type == "string":
                schema_format = "date"
            fields["format"] = schema_format
            fields["default"] = schema.get("default")
            fields.update(_enum_fields(schema))
        else:
            raise UnsupportedSchemaTypeError(f"Unsupported JSON schema type: {schema_type}")
        return _create(SchemaModel, type=schema_type, **fields)

    def build_array_model(self, schema: dict) -> ArrayModel:
        return _create(
            ArrayModel,
            title=schema.get("title"),
            description=schema.get("description"),
            properties=self.build_properties(schema),
            items=self.build_property(schema.get("items")),
        )

    def build_properties(self, schema: dict | None) -> dict[str, Property] | None:
        """Convert the ``properties`` of a JSON schema, honouring ``propertyOrder``."""
        if not schema or schema.get("properties") is None:
            return None

        result: dict[str, Property] = {}
        for name, value in schema["properties"].items():
            prop = self.build_property(value)
            if prop is not None:
                result[name] = prop

        if len(result) > 1 and any(p.property_order is not None for p in result.values()):
            result = dict(sorted(result.items(), key=lambda entry: _property_order(entry[1])))
        return result

    def build_property(self, schema: dict | None) -> Property | None:
        """Convert a field's JSON schema; ``null`` fields yield ``None``."""
        if schema is None:
            return None

        if "$ref" in schema:
            return Property.reference(self.definitions_reference(schema["$ref"]))

        schema_type = schema.get("type")
        if schema_type == "null":
            return None

        schema_format = schema.get("format")
        kind = property_kind(schema_type, schema_format)

        fields: dict = {}
        if kind is PropertyKind.OBJECT:
            fields["properties"] = self.build_properties(schema)
            fields["required"] = _string_list(schema, "required") or None
        elif kind is PropertyKind.ARRAY:
            fields["items"] = self.build_property(schema.get("items"))
            fields["min_items"] = schema.get("minItems")
            fields["max_items"] = schema.get("maxItems")
            fields["unique_items"] = schema.get("uniqueItems")
        elif kind in _NUMERIC_KINDS:
            fields["minimum"] = schema.get("minimum")
            fields["maximum"] = schema.get("maximum")
            fields["exclusive_minimum"] = schema.get("exclusiveMinimum")
            fields["exclusive_maximum"] = schema.get("exclusiveMaximum")
        elif kind in _CONSTRAINED_STRING_KINDS:
            fields["min_length"] = schema.get("minLength")
            fields["max_length"] = schema.get("maxLength")
            fields["pattern"] = schema.get("pattern")

        if schema_format and kind is not PropertyKind.DATE:
            fields["format"] = schema_format

        fields.update(_enum_fields(schema))
        fields.update(self._policy_fields(schema))
        return _create(
            Property.of,
            kind,
            title=schema.get("title"),
            description=schema.get("description"),
            default=schema.get("default"),
            **fields,
        )

    def _policy_fields(self, schema: dict) -> dict:
        fields: dict = {}
        if schema.get("readPolicy"):
            fields["read_policy"] = schema["readPolicy"]
        if schema.get("returnOnDemand") is not None:
            fields["return_on_demand"] = bool(schema["returnOnDemand"])

        if schema.get("readOnly") is True:
            fields["read_only"] = True
        elif schema.get("writePolicy"):
            # write-policy only relevant when NOT read-only
            fields["write_policy"] = schema["writePolicy"]
            if schema.get("errorOnWritePolicyFailure") is not None:
                fields["error_on_write_policy_failure"] = bool(schema["errorOnWritePolicyFailure"])

        property_order = schema.get("propertyOrder")
        if isinstance(property_order, int) and not isinstance(property_order, bool):
            fields["property_order"] = property_order
        return fields
