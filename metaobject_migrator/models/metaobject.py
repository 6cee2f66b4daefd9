"""Record models for metaobject instances."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class MetaobjectField:
    """A key/value pair on a metaobject instance."""
    key: str
    value: Optional[str] = None
    type: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {"key": self.key, "value": self.value, "type": self.type}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MetaobjectField":
        """Create from dictionary representation."""
        return cls(
            key=data.get("key", ""),
            value=data.get("value"),
            type=data.get("type") or "",
        )


@dataclass
class Metaobject:
    """An instance of a metaobject definition."""
    handle: str
    type: str
    id: Optional[str] = None
    display_name: Optional[str] = None
    fields: List[MetaobjectField] = field(default_factory=list)
    publishable_status: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (snapshot shape)."""
        result = {
            "id": self.id,
            "handle": self.handle,
            "type": self.type,
            "displayName": self.display_name,
            "fields": [f.to_dict() for f in self.fields],
        }
        if self.publishable_status:
            result["capabilities"] = {"publishable": {"status": self.publishable_status}}
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Metaobject":
        """Create from dictionary representation."""
        capabilities = data.get("capabilities") or {}
        publishable = capabilities.get("publishable") or {}

        return cls(
            handle=data.get("handle", ""),
            type=data.get("type", ""),
            id=data.get("id"),
            display_name=data.get("displayName"),
            fields=[MetaobjectField.from_dict(f) for f in data.get("fields") or []],
            publishable_status=publishable.get("status"),
        )
