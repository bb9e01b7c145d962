import pytest

from crest_openapi.descriptor.models import ApiDescription
from crest_openapi.transform.errors import ReferenceNotFoundError
from crest_openapi.transform.resolver import ReferenceResolver

LOCAL = ApiDescription.model_validate({
    "id": "frapi:local",
    "definitions": {"user": {"type": "object"}},
    "errors": {"notFound": {"code": 404, "description": "Local not found"}},
    "services": {"users": {"title": "Users", "read": {}}},
})

COMMON = ApiDescription.model_validate({
    "id": "frapi:common",
    "errors": {"notFound": {"code": 404, "description": "Common not found"}},
    "services": {"health": {"title": "Health", "read": {}}},
})


@pytest.fixture
def resolver():
    r = ReferenceResolver(LOCAL)
    r.register(COMMON)
    return r


class TestLocalReferences:
    def test_service(self, resolver):
        assert resolver.get_service("#/services/users").title == "Users"

    def test_error(self, resolver):
        assert resolver.get_error("#/errors/notFound").description == "Local not found"

    def test_definition(self, resolver):
        assert resolver.get_definition("#/definitions/user").json_schema == {"type": "object"}

    def test_own_document_id(self, resolver):
        assert resolver.get_service("frapi:local#/services/users").title == "Users"

    def test_idempotent(self, resolver):
        assert resolver.get_service("#/services/users") is resolver.get_service("#/services/users")


class TestExternalReferences:
    def test_error(self, resolver):
        assert resolver.get_error("frapi:common#/errors/notFound").description == "Common not found"

    def test_service(self, resolver):
        assert resolver.get_service("frapi:common#/services/health").title == "Health"

    def test_unregistered_document(self):
        with pytest.raises(ReferenceNotFoundError, match="not registered"):
            ReferenceResolver(LOCAL).get_error("frapi:common#/errors/notFound")


class TestMissingReferences:
    @pytest.mark.parametrize("lookup, reference", [
        ("get_service", "#/services/groups"),
        ("get_error", "#/errors/users"),
        ("get_service", "services/users"),
        ("get_service", "frapi:common#/services/users"),
        ("get_definition", "#/definitions/group"),
    ])
    def test_not_found(self, resolver, lookup, reference):
        with pytest.raises(ReferenceNotFoundError):
            getattr(resolver, lookup)(reference)

    def test_wrong_section(self, resolver):
        with pytest.raises(ReferenceNotFoundError, match="not in services"):
            resolver.get_service("#/errors/notFound")
