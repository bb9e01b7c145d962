import pytest

from crest_openapi.descriptor.models import Parameter
from crest_openapi.openapi.models import Operation
from crest_openapi.transform.errors import DuplicatePathError, UnsupportedValueError
from crest_openapi.transform.paths import (
    PathMap,
    build_path,
    build_path_parameters,
    merge_parameters,
    normalize_name,
)


def _param(name: str, type: str = "string") -> Parameter:
    return Parameter(name=name, type=type, source="ADDITIONAL")


class TestNormalizeName:
    def test_joins_segments_with_dots(self):
        assert normalize_name("/users", "create", "put") == "users.create.put"

    def test_skips_empty_segments(self):
        assert normalize_name("", "read") == "read"
        assert normalize_name(None, "query", "filter") == "query.filter"

    def test_keeps_version_dots(self):
        assert normalize_name("1.0", "read") == "1.0.read"

    def test_replaces_special_characters(self):
        assert normalize_name("/users/{userId}/devices") == "users-userid-devices"


class TestBuildPath:
    @pytest.mark.parametrize("segments, expected", [
        (("users",), "/users"),
        (("/users/",), "/users"),
        (("/users", "/{id}"), "/users/{id}"),
        (("/users/", "devices/"), "/users/devices"),
        (("",), "/"),
        (("/",), "/"),
    ])
    def test_normalized(self, segments, expected):
        assert build_path(*segments) == expected


class TestBuildPathParameters:
    def test_extracts_variables(self):
        params = build_path_parameters("{groupId}/members/{memberId}")
        assert [p.name for p in params] == ["groupId", "memberId"]
        assert all(p.source == "PATH" and p.required for p in params)

    def test_no_variables(self):
        assert build_path_parameters("devices") == []


class TestMergeParameters:
    def test_appends_in_order(self):
        merged = merge_parameters([_param("a")], _param("b"), _param("c"))
        assert [p.name for p in merged] == ["a", "b", "c"]

    def test_more_specific_wins(self):
        merged = merge_parameters([_param("a"), _param("b")], _param("a", "integer"))
        assert [p.name for p in merged] == ["b", "a"]
        assert merged[1].type == "integer"

    def test_does_not_mutate_input(self):
        original = [_param("a")]
        merge_parameters(original, _param("b"))
        assert len(original) == 1


class TestPathMap:
    def test_first_operation_keeps_bare_path(self):
        path_map = PathMap()
        key = path_map.add_operation(Operation(), "get", "/users", "read", "", "Users")
        assert key == "/users"
        assert path_map.freeze()["/users"].get.tags == ["Users"]

    def test_different_methods_share_path(self):
        path_map = PathMap()
        path_map.add_operation(Operation(), "get", "/users", "read", "", None)
        path_map.add_operation(Operation(), "post", "/users", "create.post", "", None)
        paths = path_map.freeze()
        assert list(paths) == ["/users"]
        assert paths["/users"].post is not None

    def test_same_method_gets_fragment(self):
        path_map = PathMap()
        path_map.add_operation(Operation(), "post", "/users", "create.post", "", None)
        key = path_map.add_operation(Operation(), "post", "/users", "action.reset", "", None)
        assert key == "/users#action.reset"
        assert set(path_map.freeze()) == {"/users", "/users#action.reset"}

    def test_version_always_gets_fragment(self):
        path_map = PathMap()
        operation = Operation()
        key = path_map.add_operation(operation, "get", "/users", "1.0.read", "1.0", None)
        assert key == "/users#1.0.read"
        assert "/users" not in path_map
        assert operation.resource_version == "1.0"

    def test_duplicate_fragment_fails(self):
        path_map = PathMap()
        path_map.add_operation(Operation(), "get", "/users", "1.0.read", "1.0", None)
        with pytest.raises(DuplicatePathError):
            path_map.add_operation(Operation(), "get", "/users", "1.0.read", "1.0", None)

    def test_path_with_separator_fails(self):
        path_map = PathMap()
        with pytest.raises(DuplicatePathError):
            path_map.add_operation(Operation(), "get", "/users#x", "1.0.read", "1.0", None)

    def test_unsupported_method(self):
        path_map = PathMap()
        with pytest.raises(UnsupportedValueError):
            path_map.add_operation(Operation(), "head", "/users", "read", "", None)
        assert len(path_map) == 0

    def test_tags_deduplicated_in_order(self):
        path_map = PathMap()
        for tag in ("Users", "Devices", "Users"):
            path_map.add_tag(tag)
        assert path_map.tags == ["Users", "Devices"]
