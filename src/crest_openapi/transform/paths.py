"""Path building and the path-map accumulator.

OpenAPI 2.0 cannot overload a (path, method) pair, so when a second
operation lands on an occupied slot, or when the resource is versioned, it
is stored under ``<path>#<fragment>`` instead.
"""

import logging
import re

from crest_openapi.descriptor.enums import ParameterSource
from crest_openapi.descriptor.models import Parameter
from crest_openapi.openapi.models import Operation, PathItem

from .errors import DuplicatePathError

logger = logging.getLogger(__name__)

FRAGMENT_SEPARATOR = "#"

_NAME_NORMALIZER = re.compile(r"[^a-z0-9.]+")
_PATH_VARIABLE = re.compile(r"\{([^{}/]+)\}")
_REPEATED_SLASHES = re.compile(r"/{2,}")


def normalize_name(*segments: str | None) -> str:
    """Join name segments with ``.``, each lower-cased and reduced to ``[a-z0-9.-]``."""
    names = []
    for segment in segments:
        if not segment:
            continue
        name = _NAME_NORMALIZER.sub("-", segment.lower()).strip("-")
        if name:
            names.append(name)
    return ".".join(names)


def build_path(*segments: str) -> str:
    """Join path segments into ``/a/b``: leading slash, no trailing slash."""
    path = _REPEATED_SLASHES.sub("/", "/" + "/".join(s for s in segments if s))
    if len(path) > 1:
        path = path.rstrip("/")
    return path


def build_path_parameters(path_name: str) -> list[Parameter]:
    """Create a required path parameter for every ``{name}`` in ``path_name``."""
    return [
        Parameter(name=name, type="string", source=ParameterSource.PATH.value, required=True)
        for name in _PATH_VARIABLE.findall(path_name)
    ]


def merge_parameters(parameters: list[Parameter], *more: Parameter | None) -> list[Parameter]:
    """Append ``more`` to ``parameters``; a same-named earlier entry is replaced."""
    for parameter in more:
        if parameter is None:
            continue
        parameters = [p for p in parameters if p.name != parameter.name]
        parameters.append(parameter)
    return parameters


class PathMap:
    """Accumulates operations by path while guaranteeing unique (path, method) pairs."""

    def __init__(self):
        self._paths: dict[str, PathItem] = {}
        self._tags: list[str] = []

    def add_tag(self, tag: str) -> None:
        if tag not in self._tags:
            self._tags.append(tag)

    def add_operation(self, operation: Operation, method: str, path_name: str, path_fragment: str,
                      resource_version: str, tag: str | None) -> str:
        """Store ``operation`` and return the path key it was stored under."""
        show_fragment = False
        if resource_version:
            show_fragment = True
            operation.resource_version = resource_version
        if tag:
            operation.tags.append(tag)

        path_item = self._paths.get(path_name)
        if path_item is None:
            path_item = PathItem()
        elif not show_fragment:
            show_fragment = path_item.operation(method) is not None

        key = path_name
        if show_fragment:
            if FRAGMENT_SEPARATOR in path_name:
                raise DuplicatePathError(f"Path cannot contain {FRAGMENT_SEPARATOR} character: {path_name}")
            key = path_name + FRAGMENT_SEPARATOR + path_fragment
            if key in self._paths:
                raise DuplicatePathError(f"Path fragment is not unique for path: {key}")
            logger.debug("Overloaded %s %s stored as %s", method, path_name, key)
            path_item = PathItem()

        path_item.set(method, operation)
        self._paths[key] = path_item
        return key

    @property
    def tags(self) -> list[str]:
        return list(self._tags)

    def freeze(self) -> dict[str, PathItem]:
        return dict(self._paths)

    def __contains__(self, key: str) -> bool:
        return key in self._paths

    def __len__(self) -> int:
        return len(self._paths)
