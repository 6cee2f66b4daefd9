"""Extractor that snapshots a store's metaobject definitions and instances."""

import logging
from typing import Any, Dict, Iterator, List, Optional
from datetime import datetime

import requests

from .base import BaseExtractor, ExtractionResult
from .snapshot import SnapshotStore
from ..services import queries
from ..services.graphql_client import GraphQLError

logger = logging.getLogger(__name__)


class StoreExtractor(BaseExtractor):
    """
    Reads every metaobject definition and its metaobjects from a store
    and writes them to a SnapshotStore.
    """

    PAGE_SIZE = 50  # Admin API maximum for these connections

    def __init__(self, client, snapshot: SnapshotStore, page_size: Optional[int] = None):
        """
        Initialize the store extractor.

        Args:
            client: GraphQL client for the store to read
            snapshot: Where extracted data is written
            page_size: Nodes per page for paginated queries
        """
        super().__init__(client.url)
        self.client = client
        self.snapshot = snapshot
        self.page_size = page_size or self.PAGE_SIZE

    def _paginate(
        self,
        query: str,
        connection: str,
        variables: Dict[str, Any],
        limit: Optional[int] = None
    ) -> Iterator[Dict[str, Any]]:
        """Yield nodes of a cursor-paginated connection."""
        after = None
        fetched = 0

        while True:
            data = self.client.execute(query, {**variables, "first": self.page_size, "after": after})
            page = data.get(connection) or {}

            for node in page.get("nodes") or []:
                yield node
                fetched += 1

            page_info = page.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break
            if limit is not None and fetched >= limit:
                break
            after = page_info.get("endCursor")

    def list_definitions(self) -> List[Dict[str, Any]]:
        """Summaries (id, name, type) of every definition in the store."""
        return list(self._paginate(queries.LIST_DEFINITIONS_QUERY, "metaobjectDefinitions", {}))

    def fetch_definition(self, definition_type: str) -> Optional[Dict[str, Any]]:
        """Full definition with field definitions and validations."""
        data = self.client.execute(queries.DEFINITION_BY_TYPE_QUERY, {"type": definition_type})
        return data.get("metaobjectDefinitionByType")

    def fetch_metaobjects(self, definition_type: str, count: Optional[int] = None) -> List[Dict[str, Any]]:
        """Every metaobject of a type, stopping once ``count`` have been read."""
        return list(self._paginate(
            queries.METAOBJECTS_BY_TYPE_QUERY,
            "metaobjects",
            {"type": definition_type},
            limit=count,
        ))

    def extract_definition(self, definition_type: str) -> int:
        """
        Snapshot one definition and its metaobjects.

        Returns:
            Number of metaobjects saved
        """
        definition = self.fetch_definition(definition_type)
        if not definition:
            self.add_error(f"Definition not found: {definition_type}", record_id=definition_type)
            return 0
        self.snapshot.write_definition(definition)

        metaobjects = self.fetch_metaobjects(definition_type, definition.get("metaobjectsCount"))
        self.snapshot.write_metaobjects(definition_type, metaobjects)
        self.snapshot.write_complete(
            definition_type,
            {definition_type: {**definition, "metaobjects": metaobjects}},
        )

        logger.info(f"Extracted {definition_type}: {len(metaobjects)} metaobjects")
        return len(metaobjects)

    def extract(self) -> ExtractionResult:
        """Extract every definition in the store."""
        self.reset()
        started_at = datetime.utcnow()
        definition_types = []
        total_metaobjects = 0

        try:
            summaries = self.list_definitions()
        except (requests.RequestException, GraphQLError) as e:
            self.add_error(f"Listing definitions failed: {e}")
            summaries = []

        for summary in summaries:
            definition_type = summary.get("type")
            if not definition_type:
                self.add_warning(f"Definition {summary.get('id')} has no type, skipped")
                continue
            try:
                total_metaobjects += self.extract_definition(definition_type)
                definition_types.append(definition_type)
            except (requests.RequestException, GraphQLError) as e:
                self.add_error(f"Extraction failed: {e}", record_id=definition_type)

        result = self.get_extraction_result()
        result.definition_types = definition_types
        result.total_definitions = len(definition_types)
        result.total_metaobjects = total_metaobjects
        result.started_at = started_at
        result.completed_at = datetime.utcnow()

        logger.info(
            f"Extracted {result.total_definitions} definitions and "
            f"{result.total_metaobjects} metaobjects from {self.source}"
        )
        return result
