"""Load API descriptor documents from JSON or YAML files."""

from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import ApiDescription


class DescriptorLoadError(Exception):
    """The descriptor file could not be read or is not a valid descriptor."""


def read_document(file_path: Path) -> dict:
    """Read a JSON/YAML document into a mapping."""
    text = file_path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DescriptorLoadError(f"{file_path}: {e}") from e

    if not isinstance(data, dict):
        raise DescriptorLoadError(f"{file_path}: expected a mapping at the document root")
    return data


def load_descriptor(file_path: Path) -> ApiDescription:
    """Load and validate an API descriptor file."""
    data = read_document(file_path)
    try:
        return ApiDescription.model_validate(data)
    except ValidationError as e:
        raise DescriptorLoadError(f"{file_path}: {e}") from e
