"""OpenAPI 2.0 document model.

The transformer builds these models and serialises them with ``to_dict()``.
Descriptor semantics with no OpenAPI equivalent are carried as ``x-``
vendor extensions, declared here as aliased fields.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from crest_openapi.transform.errors import UnsupportedValueError

DEFINITIONS_REF = "#/definitions/"
PARAMETERS_REF = "#/parameters/"

HTTP_METHODS = ("get", "put", "post", "delete", "patch")


class _OpenApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class PropertyKind(str, Enum):
    """Concrete property kinds a JSON schema field can map to."""

    OBJECT = "object"
    ARRAY = "array"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    STRING = "string"
    BYTE = "byte"
    BINARY = "binary"
    DATE = "date"
    DATE_TIME = "date-time"
    PASSWORD = "password"
    UUID = "uuid"
    REF = "ref"


# kind -> (type, default format)
KIND_TYPES: dict[PropertyKind, tuple[str | None, str | None]] = {
    PropertyKind.OBJECT: ("object", None),
    PropertyKind.ARRAY: ("array", None),
    PropertyKind.BOOLEAN: ("boolean", None),
    PropertyKind.INTEGER: ("integer", "int32"),
    PropertyKind.LONG: ("integer", "int64"),
    PropertyKind.FLOAT: ("number", "float"),
    PropertyKind.DOUBLE: ("number", "double"),
    PropertyKind.STRING: ("string", None),
    PropertyKind.BYTE: ("string", "byte"),
    PropertyKind.BINARY: ("string", "binary"),
    PropertyKind.DATE: ("string", "date"),
    PropertyKind.DATE_TIME: ("string", "date-time"),
    PropertyKind.PASSWORD: ("string", "password"),
    PropertyKind.UUID: ("string", "uuid"),
    PropertyKind.REF: (None, None),
}


class Property(_OpenApiModel):
    """A field schema: object member, array item or response body."""

    kind: PropertyKind = Field(exclude=True)
    ref: str | None = Field(default=None, alias="$ref")
    type: str | None = None
    format: str | None = None
    title: str | None = None
    description: str | None = None
    default: Any = None
    enum: list | None = None
    enum_titles: list[str] | None = Field(default=None, alias="x-enum_titles")

    # object
    properties: dict[str, "Property"] | None = None
    required: list[str] | None = None

    # array
    items: "Property | None" = None
    min_items: int | None = Field(default=None, alias="minItems")
    max_items: int | None = Field(default=None, alias="maxItems")
    unique_items: bool | None = Field(default=None, alias="uniqueItems")

    # numeric
    minimum: float | None = None
    maximum: float | None = None
    exclusive_minimum: bool | None = Field(default=None, alias="exclusiveMinimum")
    exclusive_maximum: bool | None = Field(default=None, alias="exclusiveMaximum")

    # string
    min_length: int | None = Field(default=None, alias="minLength")
    max_length: int | None = Field(default=None, alias="maxLength")
    pattern: str | None = None

    read_only: bool | None = Field(default=None, alias="readOnly")
    read_policy: str | None = Field(default=None, alias="x-readPolicy")
    return_on_demand: bool | None = Field(default=None, alias="x-returnOnDemand")
    write_policy: str | None = Field(default=None, alias="x-writePolicy")
    error_on_write_policy_failure: bool | None = Field(default=None, alias="x-errorOnWritePolicyFailure")
    property_order: int | None = Field(default=None, alias="x-propertyOrder")

    @classmethod
    def of(cls, kind: PropertyKind, **fields) -> "Property":
        """Create a property whose ``type``/``format`` are fixed by ``kind``."""
        type_, default_format = KIND_TYPES[kind]
        fields.setdefault("format", default_format)
        return cls(kind=kind, type=type_, **fields)

    @classmethod
    def reference(cls, name: str) -> "Property":
        return cls(kind=PropertyKind.REF, ref=DEFINITIONS_REF + name)


class SchemaModel(_OpenApiModel):
    """Object, ``null`` or primitive root schema."""

    type: str
    format: str | None = None
    title: str | None = None
    description: str | None = None
    properties: dict[str, Property] | None = None
    required: list[str] | None = None
    default: Any = None
    enum: list | None = None
    enum_titles: list[str] | None = Field(default=None, alias="x-enum_titles")


class ArrayModel(_OpenApiModel):
    type: str = "array"
    title: str | None = None
    description: str | None = None
    properties: dict[str, Property] | None = None
    items: Property | None = None


class RefModel(_OpenApiModel):
    ref: str = Field(alias="$ref")

    @classmethod
    def of(cls, name: str) -> "RefModel":
        return cls(ref=DEFINITIONS_REF + name)


Model = SchemaModel | ArrayModel | RefModel


class Parameter(_OpenApiModel):
    """Operation parameter, or a reference to a global one."""

    ref: str | None = Field(default=None, alias="$ref")
    name: str | None = None
    location: str | None = Field(default=None, alias="in")
    description: str | None = None
    required: bool | None = None
    type: str | None = None
    collection_format: str | None = Field(default=None, alias="collectionFormat")
    default: Any = None
    enum: list | None = None
    enum_titles: list[str] | None = Field(default=None, alias="x-enum_titles")
    payload_schema: Model | None = Field(default=None, alias="schema")

    @classmethod
    def query(cls, name: str, type: str, **fields) -> "Parameter":
        return cls(name=name, location="query", type=type, **fields)

    @classmethod
    def path(cls, name: str, type: str, **fields) -> "Parameter":
        return cls(name=name, location="path", type=type, **fields)

    @classmethod
    def header(cls, name: str, type: str, **fields) -> "Parameter":
        return cls(name=name, location="header", type=type, **fields)

    @classmethod
    def body(cls, name: str, schema: Model) -> "Parameter":
        return cls(name=name, location="body", required=True, payload_schema=schema)

    @classmethod
    def reference(cls, key: str) -> "Parameter":
        return cls(ref=PARAMETERS_REF + key)


class Response(_OpenApiModel):
    description: str | None = None
    payload_schema: Property | None = Field(default=None, alias="schema")


class Operation(_OpenApiModel):
    operation_id: str | None = Field(default=None, alias="operationId")
    summary: str | None = None
    description: str | None = None
    deprecated: bool | None = None
    tags: list[str] = []
    parameters: list[Parameter] = []
    responses: dict[str, Response] = {}
    resource_version: str | None = Field(default=None, alias="x-resourceVersion")


class PathItem(_OpenApiModel):
    get: Operation | None = None
    put: Operation | None = None
    post: Operation | None = None
    delete: Operation | None = None
    patch: Operation | None = None

    def operation(self, method: str) -> Operation | None:
        if method not in HTTP_METHODS:
            raise UnsupportedValueError(f"Unsupported method: {method}")
        return getattr(self, method)

    def set(self, method: str, operation: Operation) -> None:
        if method not in HTTP_METHODS:
            raise UnsupportedValueError(f"Unsupported method: {method}")
        setattr(self, method, operation)


class Info(_OpenApiModel):
    title: str | None = None
    version: str | None = None
    description: str | None = None


class Tag(_OpenApiModel):
    name: str
    description: str | None = None


class Swagger(_OpenApiModel):
    swagger: str = "2.0"
    info: Info
    host: str | None = None
    base_path: str | None = Field(default=None, alias="basePath")
    schemes: list[str] = []
    consumes: list[str] = []
    produces: list[str] = []
    tags: list[Tag] = []
    paths: dict[str, PathItem] = {}
    definitions: dict[str, Model] = {}
    parameters: dict[str, Parameter] = {}
