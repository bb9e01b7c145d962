"""Build OpenAPI operations from descriptor operations.

Each ``build_*`` method handles one operation kind of a resource and adds
the result to the path map, under a bare or fragment-qualified path.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from crest_openapi.descriptor import models as descriptor
from crest_openapi.descriptor.enums import (
    CountPolicy,
    CreateMode,
    PagingMode,
    ParameterSource,
    PatchOperation,
    QueryType,
    Stability,
)
from crest_openapi.openapi.models import Model, Operation, Parameter, RefModel

from .errors import UnsupportedValueError
from .paths import PathMap, merge_parameters, normalize_name
from .responses import ResponseBuilder
from .schema import SchemaMapper

logger = logging.getLogger(__name__)

PARAMETER_FIELDS = "_fields"
PARAMETER_PRETTY_PRINT = "_prettyPrint"
PARAMETER_MIME_TYPE = "_mimeType"
PARAMETER_IF_MATCH = "If-Match"
PARAMETER_IF_NONE_MATCH = "If-None-Match"
PARAMETER_IF_NONE_MATCH_ANY_ONLY = "If-None-Match: *"
PARAMETER_IF_NONE_MATCH_REV_ONLY = "If-None-Match: <rev>"

REQUEST_PAYLOAD = "requestPayload"


def global_parameters() -> dict[str, Parameter]:
    """Parameters shared by all operations, referred to by key."""
    return {
        PARAMETER_FIELDS: Parameter.query(
            PARAMETER_FIELDS, "string",
            collection_format="csv",
            description="Optional parameter containing a comma separated list of field references specifying "
                        "which fields of the targeted JSON resource should be returned.",
        ),
        PARAMETER_PRETTY_PRINT: Parameter.query(
            PARAMETER_PRETTY_PRINT, "boolean",
            description="Optional parameter requesting that the returned JSON resource content should be "
                        "formatted to be more human readable.",
        ),
        PARAMETER_MIME_TYPE: Parameter.query(
            PARAMETER_MIME_TYPE, "string",
            description="Optional parameter requesting that the response have the given MIME-Type. Use of this "
                        "parameter requires a _fields parameter with a single field specified.",
        ),
        # create with client-assigned id: If-None-Match is always *
        PARAMETER_IF_NONE_MATCH_ANY_ONLY: Parameter.header(
            PARAMETER_IF_NONE_MATCH, "string", required=True, enum=["*"],
        ),
        # conditional read: If-None-Match cannot be *
        PARAMETER_IF_NONE_MATCH_REV_ONLY: Parameter.header(PARAMETER_IF_NONE_MATCH, "string"),
        PARAMETER_IF_MATCH: Parameter.header(PARAMETER_IF_MATCH, "string", default="*"),
    }


def build_patch_request_payload(operations: list[str]) -> descriptor.Schema:
    """Schema of a patch request: an array of patch-operation objects."""
    return descriptor.Schema(json_schema={
        "type": "array",
        "items": {
            "type": "object",
            "required": ["operation"],
            "properties": {
                "operation": {
                    "type": "string",
                    "enum": [
                        _enum_member(PatchOperation, op, "PatchOperation").value.lower() for op in operations
                    ],
                },
                "field": {"type": "string"},
                "from": {"type": "string"},
                "value": {"type": "string"},
            },
        },
    })


def query_response_payload(resource_schema: descriptor.Schema | None) -> descriptor.Schema | None:
    """Wrap an inline, non-array resource schema into an array for query results.

    A referenced schema is passed through unchanged, even with sibling keywords;
    it might not be an array.
    """
    if resource_schema is None or resource_schema.json_schema is None:
        return resource_schema
    if "$ref" in resource_schema.json_schema or resource_schema.json_schema.get("type") == "array":
        return resource_schema
    return descriptor.Schema(json_schema={"type": "array", "items": resource_schema.json_schema})


def _enum_member(enum_cls: type[Enum], value: str, label: str) -> Enum:
    try:
        return enum_cls(value)
    except ValueError:
        raise UnsupportedValueError(f"Unsupported {label}: {value}") from None


@dataclass
class ResourceContext:
    """Where the operations of one resource are emitted."""

    resource: descriptor.Resource
    path_name: str
    path_namespace: str
    tag: str | None
    resource_version: str
    parameters: list[descriptor.Parameter]
    path_map: PathMap

    def operation_id(self, *kind: str) -> str:
        return normalize_name(self.path_namespace, *kind)

    def add(self, operation: Operation, method: str, *kind: str) -> str:
        return self.path_map.add_operation(operation, method, self.path_name,
                                           normalize_name(self.resource_version, *kind),
                                           self.resource_version, self.tag)


class OperationBuilder:
    """Creates the operations of one resource and stores them in a path map."""

    def __init__(self, mapper: SchemaMapper, responses: ResponseBuilder):
        self._mapper = mapper
        self._responses = responses

    def build_all(self, resource: descriptor.Resource, path_name: str, path_namespace: str, tag: str | None,
                  resource_version: str, parameters: list[descriptor.Parameter], path_map: PathMap) -> None:
        context = ResourceContext(resource, path_name, path_namespace, tag, resource_version, parameters, path_map)
        self.build_create(context)
        self.build_read(context)
        self.build_update(context)
        self.build_delete(context)
        self.build_patch(context)
        self.build_actions(context)
        self.build_queries(context)

    def build_create(self, context: ResourceContext) -> None:
        resource = context.resource
        create = resource.create
        if create is None:
            return
        schema = resource.resource_schema
        mode = _enum_member(CreateMode, create.mode, "CreateMode")
        if mode is CreateMode.ID_FROM_CLIENT:
            operation = self.build_operation(create, context.operation_id("create", "put"),
                                             schema, schema, context.parameters)
            operation.summary = "Create with Client-Assigned ID"
            if resource.mvcc_supported:
                operation.parameters.append(Parameter.reference(PARAMETER_IF_NONE_MATCH_ANY_ONLY))
            context.add(operation, "put", "create", "put")
        else:
            operation = self.build_operation(create, context.operation_id("create", "post"),
                                             schema, schema, context.parameters)
            operation.summary = "Create with Server-Assigned ID"
            context.add(operation, "post", "create", "post")

    def build_read(self, context: ResourceContext) -> None:
        resource = context.resource
        if resource.read is None:
            return
        operation = self.build_operation(resource.read, context.operation_id("read"),
                                         None, resource.resource_schema, context.parameters)
        operation.summary = "Read"
        operation.parameters.append(Parameter.reference(PARAMETER_MIME_TYPE))
        if resource.mvcc_supported:
            operation.parameters.append(Parameter.reference(PARAMETER_IF_NONE_MATCH_REV_ONLY))
        context.add(operation, "get", "read")

    def build_update(self, context: ResourceContext) -> None:
        resource = context.resource
        if resource.update is None:
            return
        schema = resource.resource_schema
        operation = self.build_operation(resource.update, context.operation_id("update"),
                                         schema, schema, context.parameters)
        operation.summary = "Update"
        if resource.mvcc_supported:
            operation.parameters.append(Parameter.reference(PARAMETER_IF_MATCH))
        context.add(operation, "put", "update")

    def build_delete(self, context: ResourceContext) -> None:
        resource = context.resource
        if resource.delete is None:
            return
        operation = self.build_operation(resource.delete, context.operation_id("delete"),
                                         None, resource.resource_schema, context.parameters)
        operation.summary = "Delete"
        if resource.mvcc_supported:
            operation.parameters.append(Parameter.reference(PARAMETER_IF_MATCH))
        context.add(operation, "delete", "delete")

    def build_patch(self, context: ResourceContext) -> None:
        resource = context.resource
        patch = resource.patch
        if patch is None:
            return
        request_schema = build_patch_request_payload(patch.operations)
        operation = self.build_operation(patch, context.operation_id("patch"),
                                         request_schema, resource.resource_schema, context.parameters)
        operation.summary = "Update via Patch Operations"
        if resource.mvcc_supported:
            operation.parameters.append(Parameter.reference(PARAMETER_IF_MATCH))
        context.add(operation, "patch", "patch")

    def build_actions(self, context: ResourceContext) -> None:
        for action in context.resource.actions:
            operation = self.build_operation(action, context.operation_id("action", action.name),
                                             action.request, action.response, context.parameters)
            operation.summary = f"Action: {action.name}"
            operation.parameters.append(Parameter.query("_action", "string", enum=[action.name], required=True))
            context.add(operation, "post", "action", action.name)

    def build_queries(self, context: ResourceContext) -> None:
        resource = context.resource
        for query in resource.queries:
            query_type = _enum_member(QueryType, query.type, "QueryType")
            if query_type is QueryType.ID:
                kind = ("query", "id", query.query_id)
                summary = f"Query by ID: {query.query_id}"
                query_parameter = Parameter.query("_queryId", "string", enum=[query.query_id], required=True)
            elif query_type is QueryType.FILTER:
                kind = ("query", "filter")
                summary = "Query by Filter"
                query_parameter = Parameter.query("_queryFilter", "string", required=True)
            else:
                kind = ("query", "expression")
                summary = "Query by Expression"
                query_parameter = Parameter.query("_queryExpression", "string", required=True)

            operation = self.build_operation(query, context.operation_id(*kind), None,
                                             query_response_payload(resource.resource_schema), context.parameters)
            operation.summary = summary
            operation.parameters.append(query_parameter)
            operation.parameters.extend(self._paging_parameters(query))
            if query_type is not QueryType.ID:
                # _sortKeys is not supported for ID queries
                operation.parameters.append(
                    Parameter.query("_sortKeys", "string", enum=list(query.supported_sort_keys or []) or None)
                )
            context.add(operation, "get", *kind)

    def _paging_parameters(self, query: descriptor.Query) -> list[Parameter]:
        parameters = [Parameter.query("_pageSize", "integer")]
        for value in query.paging_modes or []:
            paging_mode = _enum_member(PagingMode, value, "PagingMode")
            if paging_mode is PagingMode.COOKIE:
                parameters.append(Parameter.query("_pagedResultsCookie", "string"))
            else:
                parameters.append(Parameter.query("_pagedResultsOffset", "integer"))

        if query.count_policies is not None:
            policies = [_enum_member(CountPolicy, value, "CountPolicy").value for value in query.count_policies]
        else:
            policies = [CountPolicy.NONE.value]
        parameters.append(Parameter.query("_totalPagedResultsPolicy", "string", enum=policies))
        return parameters

    def build_operation(self, model: descriptor.Operation, operation_id: str,
                        request_payload: descriptor.Schema | None, response_payload: descriptor.Schema | None,
                        parameters: list[descriptor.Parameter]) -> Operation:
        """Build the parts every operation kind shares."""
        operation = Operation(operation_id=operation_id)
        if model.description:
            operation.description = model.description
        if model.stability in (Stability.DEPRECATED, Stability.REMOVED):
            operation.deprecated = True

        merged = merge_parameters(list(parameters), *model.parameters)
        operation.parameters.extend(self.build_parameters(merged))
        if request_payload is not None:
            operation.parameters.append(Parameter.body(REQUEST_PAYLOAD, self.request_model(request_payload)))
        operation.responses = self._responses.build(response_payload, model.errors)
        logger.debug("Built operation %s", operation_id)
        return operation

    def build_parameters(self, parameters: list[descriptor.Parameter]) -> list[Parameter]:
        """Convert descriptor parameters, then append the common ``_fields``/``_prettyPrint`` references.

        ADDITIONAL parameters are assumed to be query parameters.
        """
        result = []
        for parameter in parameters:
            source = _enum_member(ParameterSource, parameter.source, "ParameterSource")
            build = Parameter.path if source is ParameterSource.PATH else Parameter.query
            fields = {}
            if parameter.enum_values:
                fields["enum"] = list(parameter.enum_values)
                if parameter.enum_titles:
                    # enum_titles only provided with enum values
                    fields["enum_titles"] = list(parameter.enum_titles)
            result.append(build(
                parameter.name,
                parameter.type,
                description=parameter.description,
                required=bool(parameter.required),
                **fields,
            ))

        result.append(Parameter.reference(PARAMETER_FIELDS))
        result.append(Parameter.reference(PARAMETER_PRETTY_PRINT))
        return result

    def request_model(self, schema: descriptor.Schema) -> Model:
        if schema.json_schema is not None:
            return self._mapper.build_model(schema.json_schema)
        return RefModel.of(self._mapper.definitions_reference(schema.reference or ""))
