"""Formatting of snapshot definitions into destination create/update inputs."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..models.definition import Definition, FieldDefinition, Validation

logger = logging.getLogger(__name__)


class FieldDisposition(str, Enum):
    """What happens to a field when its definition is created."""
    INCLUDED = "included"
    DEFERRED = "deferred"  # added by a later update, once its target exists
    EXCLUDED = "excluded"  # dropped: the referenced definition is unknown in the source


@dataclass
class DeferredField:
    """A field held back from a definition create until its target definition exists."""
    owner_type: str
    key: str
    payload: Dict[str, Any]
    validations: List[Validation] = field(default_factory=list)
    referenced_types: Dict[str, str] = field(default_factory=dict)  # source definition ID -> type

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "owner_type": self.owner_type,
            "key": self.key,
            "payload": self.payload,
            "validations": [v.to_dict() for v in self.validations],
            "referenced_types": self.referenced_types,
        }


@dataclass
class FormattedDefinition:
    """A definition ready for the destination's create mutation."""
    type: str
    definition: Dict[str, Any]
    deferred_fields: Dict[str, List[DeferredField]] = field(default_factory=dict)
    excluded_fields: List[str] = field(default_factory=list)

    @property
    def field_keys(self) -> List[str]:
        return [f["key"] for f in self.definition.get("fieldDefinitions", [])]


class FieldFormatter:
    """
    Converts definitions read from the source snapshot into the input shape
    of the destination's definition mutations.

    Reference validations are rewritten from source definition IDs to
    destination definition IDs. A field whose target cannot be found in the
    source is excluded; one whose target does not exist in the destination
    yet is deferred under its owner's type.
    """

    def __init__(self, resolver):
        """
        Initialize the formatter.

        Args:
            resolver: ReferenceResolver between the source and destination stores
        """
        self.resolver = resolver

    def format_definition(self, definition: Definition) -> FormattedDefinition:
        """
        Format a definition for creation.

        Args:
            definition: Definition read from the source snapshot

        Returns:
            FormattedDefinition with the create payload and any deferred fields
        """
        result = FormattedDefinition(
            type=definition.type,
            definition={
                "type": definition.type,
                "name": definition.name,
                "fieldDefinitions": [],
            },
        )
        if definition.description is not None:
            result.definition["description"] = definition.description

        for field_definition in definition.field_definitions:
            disposition, formatted = self.format_field(field_definition, definition.type)

            if disposition == FieldDisposition.INCLUDED:
                result.definition["fieldDefinitions"].append(formatted)
            elif disposition == FieldDisposition.DEFERRED:
                result.deferred_fields.setdefault(definition.type, []).append(formatted)
            else:
                result.excluded_fields.append(field_definition.key)

        if result.deferred_fields:
            logger.info(
                f"Deferring fields of {definition.type}: "
                f"{[f.key for f in result.deferred_fields[definition.type]]}"
            )

        return result

    def format_field(self, field_definition: FieldDefinition, owner_type: str):
        """
        Format one field definition.

        Returns:
            Tuple of (FieldDisposition, payload dict or DeferredField or None)
        """
        payload = self._base_payload(field_definition)

        if field_definition.is_metaobject_reference:
            return self._format_reference_field(field_definition, payload, owner_type)

        if field_definition.validations:
            payload["validations"] = [
                {"name": v.name, "value": v.value_as_text()} for v in field_definition.validations
            ]

        return FieldDisposition.INCLUDED, payload

    def _format_reference_field(
        self,
        field_definition: FieldDefinition,
        payload: Dict[str, Any],
        owner_type: str
    ):
        referenced_types: Dict[str, str] = {}

        for validation in field_definition.validations:
            if not validation.is_definition_reference:
                continue
            source_type = self.resolver.definition_type(validation.value)
            if not source_type:
                logger.error(
                    f"No definition found for ID '{validation.value}' in the source store; "
                    f"excluding field '{field_definition.key}' of {owner_type}"
                )
                return FieldDisposition.EXCLUDED, None
            referenced_types[validation.value] = source_type

        validations = self._reference_validations(field_definition.validations, referenced_types)
        if validations is None:
            targets = sorted(set(referenced_types.values()))
            logger.warning(
                f"Field '{field_definition.key}' of {owner_type} references a definition "
                f"missing from the destination (targets: {targets})"
            )
            return FieldDisposition.DEFERRED, DeferredField(
                owner_type=owner_type,
                key=field_definition.key,
                payload=payload,
                validations=list(field_definition.validations),
                referenced_types=referenced_types,
            )

        if validations:
            payload["validations"] = validations
        return FieldDisposition.INCLUDED, payload

    def _reference_validations(
        self,
        validations: List[Validation],
        referenced_types: Dict[str, str]
    ) -> Optional[List[Dict[str, Any]]]:
        """Rewrite definition references to destination IDs; None if any target is missing."""
        formatted = []
        for validation in validations:
            if not validation.is_definition_reference:
                formatted.append({"name": validation.name, "value": validation.value})
                continue

            destination_id = self.resolver.definition_id(referenced_types[validation.value])
            if not destination_id:
                return None
            formatted.append({"name": validation.name, "value": destination_id})

        return formatted

    def format_deferred(self, deferred: DeferredField) -> Optional[Dict[str, Any]]:
        """
        Build the update input that adds a deferred field.

        Returns:
            ``{"create": {...}}`` input, or None if a target still does not exist
        """
        validations = self._reference_validations(deferred.validations, deferred.referenced_types)
        if validations is None:
            return None

        field_input = dict(deferred.payload)
        if validations:
            field_input["validations"] = validations
        return {"create": field_input}

    @staticmethod
    def _base_payload(field_definition: FieldDefinition) -> Dict[str, Any]:
        payload = {
            "key": field_definition.key,
            "name": field_definition.name,
            "required": field_definition.required,
            "type": field_definition.type_name,
        }
        if field_definition.description is not None:
            payload["description"] = field_definition.description
        return payload
