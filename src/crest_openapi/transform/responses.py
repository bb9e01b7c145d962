"""Build operation responses from success schemas and error catalogues.

OpenAPI cannot overload a status code, so errors sharing a code are merged
into one response whose description is a bulleted list.
"""

from crest_openapi.descriptor.models import ApiError, Schema
from crest_openapi.openapi.models import Property, PropertyKind, Response

from .errors import ReferenceNotFoundError
from .resolver import ReferenceResolver
from .schema import SchemaMapper

SUCCESS_CODE = "200"
SUCCESS_DESCRIPTION = "Success"


def bulleted_list(descriptions: list[str]) -> str:
    """Render ``descriptions`` as a ``*`` bulleted list (GitHub Flavored Markdown)."""
    return "".join(f"* {description}\n" for description in descriptions)


def error_envelope(cause: dict | None = None) -> dict:
    """JSON schema of the error body returned for every error code."""
    properties = {
        "code": {
            "type": "integer",
            "title": "Code",
            "description": "3-digit apiError code, corresponding to HTTP status codes.",
        },
        "message": {
            "type": "string",
            "title": "Message",
            "description": "ApiError message.",
        },
        "reason": {
            "type": "string",
            "title": "Reason",
            "description": "Short description corresponding to apiError code.",
        },
        "detail": {
            "type": "string",
            "title": "Detail",
            "description": "Detailed apiError message.",
        },
    }
    if cause is not None:
        properties["cause"] = cause
    return {"type": "object", "required": ["code", "message"], "properties": properties}


def merge_errors(errors: list[ApiError]) -> list[tuple[int, str | None, ApiError]]:
    """Group resolved errors by code.

    Returns ``(code, description, first_error)`` per distinct code, in
    ascending code order. Only the first error's detail schema is kept.
    """
    merged = []
    # sorted() is stable, so same-code errors keep their declared order
    for error in sorted(errors, key=lambda e: e.code):
        if merged and merged[-1][0] == error.code:
            if error.description is not None:
                merged[-1][1].append(error.description)
            continue
        descriptions = [error.description] if error.description is not None else []
        merged.append((error.code, descriptions, error))

    result = []
    for code, descriptions, first in merged:
        if not descriptions:
            description = None
        elif len(descriptions) == 1:
            description = descriptions[0]
        else:
            description = bulleted_list(descriptions)
        result.append((code, description, first))
    return result


class ResponseBuilder:
    def __init__(self, mapper: SchemaMapper, resolver: ReferenceResolver):
        self._mapper = mapper
        self._resolver = resolver

    def build(self, schema: Schema | None, errors: list[ApiError]) -> dict[str, Response]:
        responses: dict[str, Response] = {}
        if schema is not None:
            responses[SUCCESS_CODE] = Response(
                description=SUCCESS_DESCRIPTION,
                payload_schema=self.success_property(schema),
            )

        resolved = [self.resolve_error(error) for error in errors]
        for code, description, first in merge_errors(resolved):
            cause = None
            if first.detail_schema is not None and first.detail_schema.json_schema is not None:
                cause = first.detail_schema.json_schema
            responses[str(code)] = Response(
                description=description,
                payload_schema=self._mapper.build_property(error_envelope(cause)),
            )
        return responses

    def success_property(self, schema: Schema) -> Property:
        if schema.json_schema is None:
            return Property.reference(self._mapper.definitions_reference(schema.reference or ""))
        if "$ref" in schema.json_schema:
            # $ref wins over sibling keywords
            return Property.reference(self._mapper.definitions_reference(schema.json_schema["$ref"]))
        if schema.json_schema.get("type") == "array":
            return self._mapper.build_property(schema.json_schema)
        return Property.of(PropertyKind.OBJECT, properties=self._mapper.build_properties(schema.json_schema))

    def resolve_error(self, error: ApiError) -> ApiError:
        if error.reference is None:
            return error
        resolved = self._resolver.get_error(error.reference)
        if resolved.reference is not None:
            raise ReferenceNotFoundError(f"Error reference resolves to another reference: {error.reference}")
        return resolved
