"""API descriptor object model.

A descriptor describes versioned resources, the CRUDPAQ operations they
support, their JSON schemas and their error catalogues. Resources, schemas
and errors may each be given inline or as a ``$ref`` to a shared definition.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import ParameterSource

UNVERSIONED = "unversioned"


class _DescriptorModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Schema(_DescriptorModel):
    """Either an inline JSON schema or a reference to a named definition."""

    reference: str | None = None
    json_schema: dict[str, Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def _split_reference(cls, data: Any) -> Any:
        # raw JSON: {"$ref": "..."} is a reference, any other mapping is a schema
        if isinstance(data, dict) and not (data and set(data) <= {"reference", "json_schema"}):
            if set(data) == {"$ref"}:
                return {"reference": data["$ref"]}
            return {"json_schema": data}
        return data


class Parameter(_DescriptorModel):
    name: str
    type: str = "string"
    source: str
    description: str | None = None
    required: bool | None = None
    enum_values: list[str] | None = Field(default=None, alias="enumValues")
    enum_titles: list[str] | None = Field(default=None, alias="enumTitles")


class ApiError(_DescriptorModel):
    reference: str | None = Field(default=None, alias="$ref")
    code: int | None = None
    description: str | None = None
    detail_schema: Schema | None = Field(default=None, alias="schema")

    @model_validator(mode="after")
    def _code_or_reference(self) -> "ApiError":
        if self.reference is None and self.code is None:
            raise ValueError("ApiError requires a code or a $ref")
        return self


class Operation(_DescriptorModel):
    """Fields shared by every operation kind."""

    description: str | None = None
    stability: str | None = None
    parameters: list[Parameter] = []
    errors: list[ApiError] = []


class Create(Operation):
    mode: str


class Read(Operation):
    pass


class Update(Operation):
    pass


class Delete(Operation):
    pass


class Patch(Operation):
    operations: list[str] = []


class Action(Operation):
    name: str
    request: Schema | None = None
    response: Schema | None = None


class Query(Operation):
    type: str
    query_id: str | None = Field(default=None, alias="queryId")
    paging_modes: list[str] | None = Field(default=None, alias="pagingModes")
    count_policies: list[str] | None = Field(default=None, alias="countPolicies")
    supported_sort_keys: list[str] | None = Field(default=None, alias="supportedSortKeys")


class _OperationSet(_DescriptorModel):
    create: Create | None = None
    read: Read | None = None
    update: Update | None = None
    delete: Delete | None = None
    patch: Patch | None = None
    actions: list[Action] = []
    queries: list[Query] = []
    parameters: list[Parameter] = []
    subresources: dict[str, "Resource"] = {}


class Resource(_OperationSet):
    reference: str | None = Field(default=None, alias="$ref")
    title: str | None = None
    description: str | None = None
    mvcc_supported: bool = Field(default=False, alias="mvccSupported")
    resource_schema: Schema | None = Field(default=None, alias="resourceSchema")
    items: "Items | None" = None


class Items(_OperationSet):
    """Template for the members of a collection resource."""

    path_parameter: Parameter | None = Field(default=None, alias="pathParameter")

    def get_path_parameter(self) -> Parameter:
        if self.path_parameter is not None:
            return self.path_parameter
        return Parameter(name="id", type="string", source=ParameterSource.PATH.value, required=True)

    def as_resource(self, mvcc_supported: bool, resource_schema: Schema | None,
                    title: str | None, description: str | None) -> Resource:
        """Build the item resource, inheriting fields from the collection.

        Sub-resources are left out; they are mounted under the item path separately.
        """
        return Resource(
            create=self.create,
            read=self.read,
            update=self.update,
            delete=self.delete,
            patch=self.patch,
            actions=self.actions,
            queries=self.queries,
            parameters=self.parameters,
            mvcc_supported=mvcc_supported,
            resource_schema=resource_schema,
            title=title,
            description=description,
        )


Resource.model_rebuild()
Items.model_rebuild()


class ApiDescription(_DescriptorModel):
    id: str
    version: str | None = None
    description: str | None = None
    definitions: dict[str, Schema] = {}
    errors: dict[str, ApiError] = {}
    services: dict[str, Resource] = {}
    # path -> version -> resource
    paths: dict[str, dict[str, Resource]] = {}


def is_unversioned(version: str) -> bool:
    return not version or version.lower() == UNVERSIONED


def version_sort_key(version: str) -> tuple:
    """Order versions numerically by component, unversioned first."""
    if is_unversioned(version):
        return (0, ())
    parts = []
    for part in version.split("."):
        if part.isdigit():
            parts.append((0, int(part), ""))
        else:
            parts.append((1, 0, part))
    return (1, tuple(parts))
