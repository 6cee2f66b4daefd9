"""Loader that recreates metaobject definitions in the destination store."""

import logging
from typing import Dict, List, Optional
from datetime import datetime

from .base import BaseLoader, LoadResult
from ..extractors.snapshot import SnapshotStore
from ..models.migration import DefinitionState
from ..models.result import ErrorKind, OperationResult
from ..services import queries
from ..services.dependency_graph import DependencyOrder
from ..services.formatter import DeferredField, FieldFormatter

logger = logging.getLogger(__name__)


class DefinitionLoader(BaseLoader):
    """
    Creates definitions in dependency order, then adds the fields that had
    to be held back because their target definition did not exist yet.

    Each definition moves PENDING -> CREATED -> FIELDS_RECONCILED, or to
    FAILED if the destination rejects the create. Creating a definition is
    not idempotent: re-running reports duplicate types as failures.
    """

    def __init__(
        self,
        client,
        resolver,
        snapshot: SnapshotStore,
        formatter: Optional[FieldFormatter] = None,
        dry_run: bool = False
    ):
        super().__init__(client, resolver, dry_run)
        self.snapshot = snapshot
        self.formatter = formatter or FieldFormatter(resolver)
        self.states: Dict[str, DefinitionState] = {}
        self.deferred_fields: Dict[str, List[DeferredField]] = {}
        self.excluded_fields: Dict[str, List[str]] = {}

    def migrate(self, order: DependencyOrder) -> LoadResult:
        """Create every definition of a dependency order: sorted first, then deferred."""
        return self.load_all(order.sequence)

    def load_all(self, types: List[str]) -> LoadResult:
        """
        Run both phases for the given types.

        Args:
            types: Definition types in creation order

        Returns:
            LoadResult covering creates and deferred-field updates
        """
        result = LoadResult(entity="metaobject_definitions")
        result.started_at = datetime.utcnow()

        for definition_type in types:
            self.states.setdefault(definition_type, DefinitionState.PENDING)

        logger.info(f"Creating {len(types)} definitions...")
        for definition_type in types:
            result.add(self.create_definition(definition_type))

        if self.deferred_fields:
            logger.info(f"Adding deferred fields to {len(self.deferred_fields)} definitions...")
            self.reintegrate_deferred_fields(result)

        for definition_type, state in self.states.items():
            if state == DefinitionState.CREATED and not self.deferred_fields.get(definition_type):
                self.states[definition_type] = DefinitionState.FIELDS_RECONCILED

        result.completed_at = datetime.utcnow()
        logger.info(
            f"Definitions: {result.total_succeeded}/{result.total_attempted} operations succeeded"
        )
        return result

    def create_definition(self, definition_type: str) -> OperationResult:
        """Format and create one definition, collecting its deferred fields."""
        definition = self.snapshot.read_definition(definition_type)
        if definition is None:
            self.states[definition_type] = DefinitionState.FAILED
            return OperationResult.fail(
                definition_type,
                "create_definition",
                ErrorKind.LOCAL_IO,
                f"Definition file not found for {definition_type}",
            )

        formatted = self.formatter.format_definition(definition)
        for owner_type, fields in formatted.deferred_fields.items():
            self.deferred_fields.setdefault(owner_type, []).extend(fields)
        if formatted.excluded_fields:
            self.excluded_fields[definition_type] = formatted.excluded_fields

        logger.debug(f"Create payload for {definition_type}: {formatted.definition}")
        outcome = self._mutate(
            definition_type,
            "create_definition",
            queries.CREATE_DEFINITION_MUTATION,
            {"definition": formatted.definition},
            "metaobjectDefinitionCreate",
        )
        outcome.context.update({
            "fields": formatted.field_keys,
            "deferred_fields": [f.key for f in formatted.deferred_fields.get(definition_type, [])],
            "excluded_fields": formatted.excluded_fields,
        })

        if outcome.success:
            self.states[definition_type] = DefinitionState.CREATED
            logger.info(f"Created definition {definition_type}")
        else:
            self.states[definition_type] = DefinitionState.FAILED
        return outcome

    def reintegrate_deferred_fields(self, result: LoadResult) -> None:
        """Add every deferred field to its now-existing owner definition."""
        for owner_type in list(self.deferred_fields):
            fields = self.deferred_fields[owner_type]

            if self.dry_run:
                result.skip(f"[dry run] would add {[f.key for f in fields]} to {owner_type}")
                logger.info(f"[dry run] would add {len(fields)} deferred fields to {owner_type}")
                continue

            definition_id = self.resolver.definition_id(owner_type)
            if not definition_id:
                logger.error(f"Could not find definition ID for type '{owner_type}' to add deferred fields")
                for deferred in fields:
                    result.add(OperationResult.fail(
                        f"{owner_type}.{deferred.key}",
                        "add_deferred_field",
                        ErrorKind.RESOLUTION,
                        f"Definition {owner_type} does not exist in the destination",
                    ))
                continue

            field_inputs = []
            remaining = []
            for deferred in fields:
                field_input = self.formatter.format_deferred(deferred)
                if field_input is None:
                    remaining.append(deferred)
                    logger.error(
                        f"Referenced definition for {owner_type}.{deferred.key} still missing; field skipped"
                    )
                    result.add(OperationResult.fail(
                        f"{owner_type}.{deferred.key}",
                        "add_deferred_field",
                        ErrorKind.RESOLUTION,
                        f"Referenced definitions {sorted(set(deferred.referenced_types.values()))} not found",
                    ))
                else:
                    field_inputs.append(field_input)

            if not field_inputs:
                continue

            outcome = self._mutate(
                owner_type,
                "add_deferred_fields",
                queries.UPDATE_DEFINITION_MUTATION,
                {
                    "id": definition_id,
                    "definition": {
                        "fieldDefinitions": field_inputs,
                        "resetFieldOrder": True,
                    },
                },
                "metaobjectDefinitionUpdate",
            )
            outcome.context["fields"] = [i["create"]["key"] for i in field_inputs]
            result.add(outcome)

            if outcome.success:
                if remaining:
                    self.deferred_fields[owner_type] = remaining
                else:
                    del self.deferred_fields[owner_type]
                    self.states[owner_type] = DefinitionState.FIELDS_RECONCILED
                logger.info(f"Added deferred fields {outcome.context['fields']} to {owner_type}")
