"""Transform CREST API descriptors into OpenAPI 2.0 documents."""

__version__ = "0.1.0"
