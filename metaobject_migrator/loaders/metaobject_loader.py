"""Loader that upserts metaobject instances into the destination store."""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime

from .base import BaseLoader, LoadResult
from ..extractors.snapshot import SnapshotStore
from ..models.metaobject import Metaobject, MetaobjectField
from ..models.result import ErrorKind, OperationResult
from ..services import queries
from ..services.resolver import EntityKind

logger = logging.getLogger(__name__)

LIST_PREFIX = "list."


class MetaobjectLoader(BaseLoader):
    """
    Upserts metaobjects by (handle, type), rewriting references to
    products, collections and files into destination IDs.

    References between metaobjects are sent as they are.
    """

    REFERENCE_KINDS = {
        "product_reference": EntityKind.PRODUCT,
        "collection_reference": EntityKind.COLLECTION,
        "file_reference": EntityKind.MEDIA,
        "media_reference": EntityKind.MEDIA,
    }

    def __init__(self, client, resolver, snapshot: SnapshotStore, dry_run: bool = False):
        super().__init__(client, resolver, dry_run)
        self.snapshot = snapshot

    def migrate(self) -> LoadResult:
        """Upsert every type listed in the snapshot's sequence file."""
        sequence = self.snapshot.read_sequence()
        if sequence is None:
            result = LoadResult(entity="metaobjects")
            result.started_at = result.completed_at = datetime.utcnow()
            result.add(OperationResult.fail(
                str(self.snapshot.sequence_path),
                "read_sequence",
                ErrorKind.LOCAL_IO,
                "Sequence file missing or invalid; run the sort step first",
            ))
            return result

        logger.info(f"Migration sequence: {sequence}")
        return self.load_all(sequence)

    def load_all(self, types: List[str]) -> LoadResult:
        """Upsert every stored metaobject of each type, in order."""
        result = LoadResult(entity="metaobjects")
        result.started_at = datetime.utcnow()

        for definition_type in types:
            paths = self.snapshot.list_metaobject_files(definition_type)
            if not paths:
                result.skip(f"No metaobjects stored for {definition_type}")
                logger.info(f"No metaobjects stored for {definition_type}")
                continue

            logger.info(f"Upserting {len(paths)} {definition_type} metaobjects...")
            for path in paths:
                metaobject = self.snapshot.read_metaobject(path)
                if metaobject is None:
                    result.add(OperationResult.fail(
                        f"{definition_type}/{path.stem}",
                        "upsert_metaobject",
                        ErrorKind.LOCAL_IO,
                        f"Could not read {path}",
                    ))
                    continue
                result.add(self.upsert_metaobject(metaobject))

        result.completed_at = datetime.utcnow()
        logger.info(f"Metaobjects: {result.total_succeeded}/{result.total_attempted} upserted")
        return result

    def upsert_metaobject(self, metaobject: Metaobject) -> OperationResult:
        """Rewrite one metaobject's fields and upsert it."""
        subject = f"{metaobject.type}/{metaobject.handle}"
        fields, dropped = self.format_fields(metaobject)

        payload: Dict[str, Any] = {"fields": fields}
        if metaobject.publishable_status:
            payload["capabilities"] = {"publishable": {"status": metaobject.publishable_status}}

        outcome = self._mutate(
            subject,
            "upsert_metaobject",
            queries.UPSERT_METAOBJECT_MUTATION,
            {
                "handle": {"handle": metaobject.handle, "type": metaobject.type},
                "metaobject": payload,
            },
            "metaobjectUpsert",
        )
        outcome.context["dropped_fields"] = dropped

        if outcome.success:
            logger.info(f"Upserted {subject}")
        return outcome

    def format_fields(self, metaobject: Metaobject) -> Tuple[List[Dict[str, Any]], List[str]]:
        """
        Build the upsert field inputs.

        Null values are dropped, as are references that cannot be resolved
        in the destination.

        Returns:
            Tuple of (field inputs, keys of dropped fields)
        """
        fields = []
        dropped = []

        for metaobject_field in metaobject.fields:
            if metaobject_field.value is None:
                logger.debug(f"{metaobject.handle}.{metaobject_field.key} is null, excluded")
                dropped.append(metaobject_field.key)
                continue

            value = self.resolve_value(metaobject_field)
            if value is None:
                logger.warning(
                    f"{metaobject.type}/{metaobject.handle}: dropping field "
                    f"'{metaobject_field.key}', reference {metaobject_field.value} not resolved"
                )
                dropped.append(metaobject_field.key)
                continue

            fields.append({"key": metaobject_field.key, "value": value})

        return fields, dropped

    def resolve_value(self, metaobject_field: MetaobjectField) -> Optional[str]:
        """Value to send for a field; None if a reference cannot be resolved."""
        field_type = metaobject_field.type
        is_list = field_type.startswith(LIST_PREFIX)
        kind = self.REFERENCE_KINDS.get(field_type[len(LIST_PREFIX):] if is_list else field_type)

        if kind is None:
            return metaobject_field.value
        if not is_list:
            return self.resolver.resolve(kind, metaobject_field.value)

        try:
            source_ids = json.loads(metaobject_field.value)
        except (TypeError, ValueError):
            logger.error(f"'{metaobject_field.key}' is not a JSON list: {metaobject_field.value}")
            return None
        if not isinstance(source_ids, list):
            return None
        if not source_ids:
            return metaobject_field.value

        resolved = []
        for source_id in source_ids:
            destination_id = self.resolver.resolve(kind, source_id)
            if destination_id is None:
                logger.warning(f"'{metaobject_field.key}': no destination {kind.value} for {source_id}")
                continue
            resolved.append(destination_id)

        return json.dumps(resolved) if resolved else None
