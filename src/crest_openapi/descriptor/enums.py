"""Enumerated values used by API descriptors.

Descriptor models keep these fields as plain strings, so an unknown value
survives parsing and is reported by the transformer.
"""

from enum import Enum


class CreateMode(str, Enum):
    ID_FROM_CLIENT = "ID_FROM_CLIENT"
    ID_FROM_SERVER = "ID_FROM_SERVER"


class QueryType(str, Enum):
    ID = "ID"
    FILTER = "FILTER"
    EXPRESSION = "EXPRESSION"


class PagingMode(str, Enum):
    COOKIE = "COOKIE"
    OFFSET = "OFFSET"


class CountPolicy(str, Enum):
    NONE = "NONE"
    ESTIMATE = "ESTIMATE"
    EXACT = "EXACT"


class PatchOperation(str, Enum):
    ADD = "ADD"
    REMOVE = "REMOVE"
    REPLACE = "REPLACE"
    INCREMENT = "INCREMENT"
    MOVE = "MOVE"
    COPY = "COPY"
    TRANSFORM = "TRANSFORM"


class Stability(str, Enum):
    INTERNAL = "INTERNAL"
    STABLE = "STABLE"
    EVOLVING = "EVOLVING"
    DEPRECATED = "DEPRECATED"
    REMOVED = "REMOVED"
    TECH_PREVIEW = "TECH_PREVIEW"


class ParameterSource(str, Enum):
    PATH = "PATH"
    ADDITIONAL = "ADDITIONAL"
