"""Cross-store reference resolution through portable lookup keys."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

import requests

from . import queries
from .graphql_client import GraphQLError

logger = logging.getLogger(__name__)


class EntityKind(str, Enum):
    """Entities whose store-scoped IDs can be translated between stores."""
    DEFINITION = "definition"
    PRODUCT = "product"
    COLLECTION = "collection"
    MEDIA = "media"


class LookupFailed(Exception):
    """A point query could not be answered (as opposed to finding nothing)."""


def search_quote(value: str) -> str:
    """Escape a value for use inside a single-quoted search term."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _dig(data: Any, *path: Any) -> Any:
    """Walk nested dicts/lists, returning None on any missing step."""
    for part in path:
        if isinstance(data, dict):
            data = data.get(part)
        elif isinstance(data, list) and isinstance(part, int):
            data = data[part] if -len(data) <= part < len(data) else None
        else:
            return None
        if data is None:
            return None
    return data


@dataclass(frozen=True)
class EntityLookup:
    """How to translate one entity kind: id -> key in one store, key -> id in another."""
    key_query: str
    key_path: Tuple[str, ...]
    id_query: str
    id_variables: Callable[[str], Dict[str, Any]]
    id_path: Tuple[Any, ...]


LOOKUPS: Dict[EntityKind, EntityLookup] = {
    EntityKind.DEFINITION: EntityLookup(
        key_query=queries.DEFINITION_TYPE_BY_ID_QUERY,
        key_path=("metaobjectDefinition", "type"),
        id_query=queries.DEFINITION_ID_BY_TYPE_QUERY,
        id_variables=lambda key: {"type": key},
        id_path=("metaobjectDefinitionByType", "id"),
    ),
    EntityKind.PRODUCT: EntityLookup(
        key_query=queries.PRODUCT_HANDLE_BY_ID_QUERY,
        key_path=("product", "handle"),
        id_query=queries.PRODUCT_ID_BY_HANDLE_QUERY,
        id_variables=lambda key: {"handle": key},
        id_path=("productByHandle", "id"),
    ),
    EntityKind.COLLECTION: EntityLookup(
        key_query=queries.COLLECTION_HANDLE_BY_ID_QUERY,
        key_path=("collection", "handle"),
        id_query=queries.COLLECTION_ID_BY_HANDLE_QUERY,
        id_variables=lambda key: {"handle": key},
        id_path=("collectionByHandle", "id"),
    ),
    EntityKind.MEDIA: EntityLookup(
        key_query=queries.FILE_ALT_BY_ID_QUERY,
        key_path=("node", "alt"),
        id_query=queries.FILE_ID_BY_ALT_QUERY,
        id_variables=lambda key: {"query": f"alt_text:'{search_quote(key)}'"},
        id_path=("files", "edges", 0, "node", "id"),
    ),
}


class ReferenceResolver:
    """
    Translates store-scoped IDs from the source store into IDs of the
    equivalent entities in the destination store.

    Definitions are matched by type, products and collections by handle,
    media by alt text. Every lookup is a remote point query; a miss or a
    failed request yields None and is never raised. Source answers are
    cached for the run, failed requests are not.
    """

    def __init__(self, source, destination):
        """
        Initialize the resolver.

        Args:
            source: GraphQL client for the store the IDs come from
            destination: GraphQL client for the store the IDs are needed in
        """
        self.source = source
        self.destination = destination
        self._key_cache: Dict[Tuple[EntityKind, str], Optional[str]] = {}

    @staticmethod
    def _lookup(client, query: str, variables: Dict[str, Any], path: Tuple[Any, ...]) -> Optional[str]:
        """
        Run a point query.

        Returns:
            The value at ``path``, or None if the store has no such entity

        Raises:
            LookupFailed: If the request itself failed
        """
        try:
            data = client.execute(query, variables)
        except (requests.RequestException, GraphQLError, ValueError) as e:
            logger.error(f"Lookup {variables} against {client.url} failed: {e}")
            raise LookupFailed(str(e)) from e

        value = _dig(data, *path)
        return value or None

    def key_for(self, kind: EntityKind, entity_id: str) -> Optional[str]:
        """
        Get the portable key of a source-store entity.

        Args:
            kind: Entity kind
            entity_id: ID in the source store

        Returns:
            Type, handle or alt text, or None if it cannot be resolved
        """
        if not entity_id:
            return None

        cache_key = (kind, entity_id)
        if cache_key not in self._key_cache:
            lookup = LOOKUPS[kind]
            try:
                key = self._lookup(self.source, lookup.key_query, {"id": entity_id}, lookup.key_path)
            except LookupFailed:
                # Not cached, a later call asks again
                return None
            if key is None:
                logger.warning(f"No {kind.value} found for ID {entity_id} in the source store")
            self._key_cache[cache_key] = key

        return self._key_cache[cache_key]

    def id_for(self, kind: EntityKind, key: str) -> Optional[str]:
        """
        Get the destination-store ID for a portable key.

        Not cached: destination entities may appear during the run.
        """
        if not key:
            return None

        lookup = LOOKUPS[kind]
        try:
            entity_id = self._lookup(self.destination, lookup.id_query, lookup.id_variables(key), lookup.id_path)
        except LookupFailed:
            return None
        if entity_id is None:
            logger.debug(f"No {kind.value} found for '{key}' in the destination store")
        return entity_id

    def resolve(self, kind: EntityKind, source_id: str) -> Optional[str]:
        """Translate a source-store ID into the destination-store ID."""
        key = self.key_for(kind, source_id)
        if key is None:
            return None
        return self.id_for(kind, key)

    def definition_type(self, definition_id: str) -> Optional[str]:
        """Type of a source-store definition."""
        return self.key_for(EntityKind.DEFINITION, definition_id)

    def definition_id(self, definition_type: str) -> Optional[str]:
        """ID of the destination-store definition with this type."""
        return self.id_for(EntityKind.DEFINITION, definition_type)
