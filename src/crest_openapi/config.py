"""Transformation options.

The CLI fills these from command-line options or ``CREST_OPENAPI_*``
environment variables.
"""

from pydantic import BaseModel

ENV_PREFIX = "CREST_OPENAPI_"


class TransformOptions(BaseModel):
    """Deployment details that the descriptor itself does not carry."""

    title: str | None = None
    host: str | None = None
    base_path: str | None = None
    secure: bool = False
