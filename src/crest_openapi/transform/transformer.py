"""Transform an API descriptor into an OpenAPI 2.0 document.

The transformer walks the descriptor's paths depth-first: versions, then
each resource's operations, its collection items and its sub-resources.
Operations accumulate in a ``PathMap``; named definitions are converted
last. Any failure aborts the whole run.
"""

import logging

from crest_openapi.config import TransformOptions
from crest_openapi.descriptor.models import (
    ApiDescription,
    Parameter,
    Resource,
    is_unversioned,
    version_sort_key,
)
from crest_openapi.openapi.models import Info, Model, Swagger, Tag

from .errors import ReferenceNotFoundError
from .operations import OperationBuilder, global_parameters
from .paths import PathMap, build_path, build_path_parameters, merge_parameters, normalize_name
from .resolver import ReferenceResolver
from .responses import ResponseBuilder
from .schema import SchemaMapper

logger = logging.getLogger(__name__)

CONSUMES = ["application/json", "text/plain", "multipart/form-data"]
PRODUCES = ["application/json"]


class OpenApiTransformer:
    """Transforms one descriptor, plus registered external descriptors, into a ``Swagger`` model."""

    def __init__(self, description: ApiDescription, *external: ApiDescription,
                 options: TransformOptions | None = None):
        self.description = description
        self.options = options or TransformOptions()
        self.resolver = ReferenceResolver(description)
        self.resolver.register_all(external)
        self.mapper = SchemaMapper(self.resolver)
        self.operations = OperationBuilder(self.mapper, ResponseBuilder(self.mapper, self.resolver))

    def execute(self) -> Swagger:
        path_map = PathMap()
        self.build_paths(path_map)
        definitions = self.build_definitions()

        swagger = Swagger(
            info=self.build_info(),
            host=self.options.host,
            schemes=["https" if self.options.secure else "http"],
            consumes=list(CONSUMES),
            produces=list(PRODUCES),
            parameters=global_parameters(),
            tags=[Tag(name=tag) for tag in path_map.tags],
            paths=path_map.freeze(),
            definitions=definitions,
        )
        if self.options.base_path:
            swagger.base_path = build_path(self.options.base_path)
        logger.info("Transformed %s: %d paths, %d definitions",
                    self.description.id, len(swagger.paths), len(swagger.definitions))
        return swagger

    def build_info(self) -> Info:
        return Info(
            title=self.options.title,
            version=self.description.version,
            description=self.description.description,
        )

    def build_paths(self, path_map: PathMap) -> None:
        for path_name in sorted(self.description.paths):
            versioned_path = self.description.paths[path_name]
            # make sure path starts with forward-slash, and does not end with one
            normalized_path = "/" if not path_name else build_path(path_name)
            for version in sorted(versioned_path, key=version_sort_key):
                version_name = "" if is_unversioned(version) else version
                resource = self.resolve_resource(versioned_path[version])
                logger.debug("Visiting %s (version %r)", normalized_path, version_name)
                self.build_resource_paths(resource, normalized_path, None, version_name, [], path_map)

    def resolve_resource(self, resource: Resource) -> Resource:
        if resource.reference is None:
            return resource
        resolved = self.resolver.get_service(resource.reference)
        if resolved.reference is not None:
            raise ReferenceNotFoundError(f"Service reference resolves to another reference: {resource.reference}")
        return resolved

    def build_resource_paths(self, resource: Resource, path_name: str, parent_tag: str | None,
                             resource_version: str, parameters: list[Parameter], path_map: PathMap) -> None:
        """Add the operations of ``resource`` and recurse into its items and sub-resources."""
        path_namespace = normalize_name(path_name, resource_version)

        # group resource endpoints by tag
        tag = parent_tag
        if not tag:
            tag = resource.title or path_name
            if resource_version:
                tag += f" v{resource_version}"
            path_map.add_tag(tag)

        # resource parameters are inherited by operations, items and sub-resources
        operation_parameters = merge_parameters(list(parameters), *resource.parameters)
        self.operations.build_all(resource, path_name, path_namespace, tag, resource_version,
                                  operation_parameters, path_map)

        self.build_items(resource, path_name, tag, resource_version, operation_parameters, path_map)
        self.build_subresources(resource.subresources, path_name, resource_version, operation_parameters, path_map)

    def build_items(self, resource: Resource, path_name: str, parent_tag: str, resource_version: str,
                    parameters: list[Parameter], path_map: PathMap) -> None:
        items = resource.items
        if items is None:
            return

        # an items-resource inherits some fields from its parent
        items_resource = items.as_resource(resource.mvcc_supported, resource.resource_schema,
                                           resource.title, resource.description)
        path_parameter = items.get_path_parameter()
        items_parameters = merge_parameters(list(parameters), path_parameter)
        items_path = build_path(path_name, "{" + path_parameter.name + "}")

        self.build_subresources(items.subresources, items_path, resource_version, items_parameters, path_map)
        self.build_resource_paths(items_resource, items_path, parent_tag, resource_version,
                                  items_parameters, path_map)

    def build_subresources(self, subresources: dict[str, Resource], path_name: str, resource_version: str,
                           parameters: list[Parameter], path_map: PathMap) -> None:
        for name in sorted(subresources):
            # path variables in the sub-path become path parameters
            subresource_parameters = merge_parameters(list(parameters), *build_path_parameters(name))
            subresource = self.resolve_resource(subresources[name])
            self.build_resource_paths(subresource, build_path(path_name, name), None, resource_version,
                                      subresource_parameters, path_map)

    def build_definitions(self) -> dict[str, Model]:
        """Convert the descriptor's named schemas; reference-only entries become ref models."""
        definitions: dict[str, Model] = {}
        for name, schema in self.description.definitions.items():
            if schema.json_schema is None:
                definitions[name] = self.mapper.build_model({"$ref": schema.reference})
            else:
                definitions[name] = self.mapper.build_model(schema.json_schema)
        return definitions


def execute(description: ApiDescription, *external: ApiDescription,
            options: TransformOptions | None = None) -> Swagger:
    """Transform ``description`` into a ``Swagger`` model.

    ``external`` descriptors are registered for resolving qualified references.
    """
    return OpenApiTransformer(description, *external, options=options).execute()
