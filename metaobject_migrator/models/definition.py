"""Schema models for metaobject definitions and their field definitions."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import json

METAOBJECT_DEFINITION_ID = "metaobject_definition_id"

METAOBJECT_REFERENCE_TYPES = (
    "metaobject_reference",
    "list.metaobject_reference",
)


@dataclass
class Validation:
    """A constraint attached to a field definition."""
    name: str
    value: Any = None

    @property
    def is_definition_reference(self) -> bool:
        """Check if this validation points at another definition."""
        return self.name == METAOBJECT_DEFINITION_ID

    def value_as_text(self) -> Optional[str]:
        """Value serialised the way the destination expects it."""
        if self.value is None or isinstance(self.value, str):
            return self.value
        return json.dumps(self.value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {"name": self.name, "value": self.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Validation":
        """Create from dictionary representation."""
        return cls(name=data.get("name", ""), value=data.get("value"))


@dataclass
class FieldDefinition:
    """A field of a metaobject definition."""
    key: str
    type_name: str
    name: str = ""
    description: Optional[str] = None
    required: bool = False
    type_category: Optional[str] = None
    validations: List[Validation] = field(default_factory=list)

    @property
    def is_metaobject_reference(self) -> bool:
        """Check if the field references metaobjects of another definition."""
        return self.type_name in METAOBJECT_REFERENCE_TYPES

    @property
    def referenced_definition_ids(self) -> List[str]:
        """Source-store definition IDs this field is validated against."""
        return [v.value for v in self.validations if v.is_definition_reference and v.value]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (snapshot shape)."""
        return {
            "key": self.key,
            "name": self.name,
            "description": self.description,
            "required": self.required,
            "type": {"category": self.type_category, "name": self.type_name},
            "validations": [v.to_dict() for v in self.validations],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldDefinition":
        """Create from dictionary representation."""
        field_type = data.get("type") or {}
        if isinstance(field_type, str):
            type_name, type_category = field_type, None
        else:
            type_name, type_category = field_type.get("name", ""), field_type.get("category")

        return cls(
            key=data.get("key", ""),
            type_name=type_name,
            name=data.get("name", ""),
            description=data.get("description"),
            required=bool(data.get("required", False)),
            type_category=type_category,
            validations=[Validation.from_dict(v) for v in data.get("validations") or []],
        )


@dataclass
class Definition:
    """A metaobject definition (content-type schema) read from a store."""
    type: str
    name: str = ""
    id: Optional[str] = None
    description: Optional[str] = None
    field_definitions: List[FieldDefinition] = field(default_factory=list)
    metaobjects_count: int = 0

    def get_field(self, key: str) -> Optional[FieldDefinition]:
        """Get a field definition by key."""
        for field_definition in self.field_definitions:
            if field_definition.key == key:
                return field_definition
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (snapshot shape)."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "fieldDefinitions": [f.to_dict() for f in self.field_definitions],
            "metaobjectsCount": self.metaobjects_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Definition":
        """Create from dictionary representation."""
        return cls(
            type=data.get("type", ""),
            name=data.get("name", ""),
            id=data.get("id"),
            description=data.get("description"),
            field_definitions=[
                FieldDefinition.from_dict(f) for f in data.get("fieldDefinitions") or []
            ],
            metaobjects_count=data.get("metaobjectsCount") or 0,
        )
