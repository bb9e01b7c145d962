"""Resolve descriptor references.

A reference has the form ``[<document-id>]#/<section>/<name>``. Without a
document id it points into the local descriptor; otherwise the named
external descriptor must have been registered first.
"""

import logging

from crest_openapi.descriptor.models import ApiDescription, ApiError, Resource, Schema

from .errors import ReferenceNotFoundError

logger = logging.getLogger(__name__)

SERVICES = "services"
ERRORS = "errors"
DEFINITIONS = "definitions"


class ReferenceResolver:
    """Looks up services, errors and definitions by reference."""

    def __init__(self, local: ApiDescription):
        self._local = local
        self._registry: dict[str, ApiDescription] = {}

    def register(self, description: ApiDescription) -> None:
        """Make an external descriptor available for qualified references."""
        self._registry[description.id] = description

    def register_all(self, descriptions) -> None:
        for description in descriptions:
            self.register(description)

    def get_service(self, reference: str) -> Resource:
        return self._lookup(reference, SERVICES)

    def get_error(self, reference: str) -> ApiError:
        return self._lookup(reference, ERRORS)

    def get_definition(self, reference: str) -> Schema:
        return self._lookup(reference, DEFINITIONS)

    def _lookup(self, reference: str, section: str):
        document_id, sep, pointer = reference.partition("#")
        if not sep:
            raise ReferenceNotFoundError(f"Unresolvable reference: {reference}")

        description = self._document(document_id, reference)
        prefix = f"/{section}/"
        if not pointer.startswith(prefix):
            raise ReferenceNotFoundError(f"Reference is not in {section}: {reference}")

        entries = getattr(description, section)
        name = pointer[len(prefix):]
        if name not in entries:
            raise ReferenceNotFoundError(f"Unresolvable reference: {reference}")

        logger.debug("Resolved %s in document %s", reference, description.id)
        return entries[name]

    def _document(self, document_id: str, reference: str) -> ApiDescription:
        if not document_id or document_id == self._local.id:
            return self._local
        if document_id not in self._registry:
            raise ReferenceNotFoundError(
                f"Unresolvable reference: {reference} (document {document_id} is not registered)"
            )
        return self._registry[document_id]
