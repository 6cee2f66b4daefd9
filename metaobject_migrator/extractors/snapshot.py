"""On-disk snapshot of a store's definitions and metaobjects."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models.definition import Definition
from ..models.metaobject import Metaobject

logger = logging.getLogger(__name__)


class SnapshotStore:
    """
    Reads and writes the snapshot layout of one source store:

        <root>/<store_name>/metaobjects_definitions/<type>/definition.json
        <root>/<store_name>/metaobjects_definitions/<type>/metaobjects/<handle>.json
        <root>/<store_name>/complete/<type>.json
        <root>/<store_name>/sequence.json
    """

    def __init__(self, root: str, store_name: str):
        self.base = Path(root) / store_name
        self.definitions_dir = self.base / "metaobjects_definitions"
        self.complete_dir = self.base / "complete"
        self.sequence_path = self.base / "sequence.json"

    def definition_dir(self, definition_type: str) -> Path:
        return self.definitions_dir / definition_type

    def metaobjects_dir(self, definition_type: str) -> Path:
        return self.definition_dir(definition_type) / "metaobjects"

    @staticmethod
    def _write_json(path: Path, data: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    @staticmethod
    def _read_json(path: Path) -> Optional[Any]:
        """Read a JSON file; None (logged) if it is missing or invalid."""
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            logger.error(f"Snapshot file not found: {path}")
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read snapshot file {path}: {e}")
        return None

    # Definitions

    def list_definition_types(self) -> List[str]:
        """Types that have a definition.json, in name order."""
        if not self.definitions_dir.exists():
            logger.warning(f"Snapshot directory does not exist: {self.definitions_dir}")
            return []
        return sorted(
            path.name for path in self.definitions_dir.iterdir()
            if (path / "definition.json").is_file()
        )

    def read_definition(self, definition_type: str) -> Optional[Definition]:
        data = self._read_json(self.definition_dir(definition_type) / "definition.json")
        if data is None:
            return None
        return Definition.from_dict(data)

    def read_definitions(self) -> List[Definition]:
        definitions = []
        for definition_type in self.list_definition_types():
            definition = self.read_definition(definition_type)
            if definition is not None:
                definitions.append(definition)
        return definitions

    def write_definition(self, definition: Dict[str, Any]) -> Path:
        path = self.definition_dir(definition["type"]) / "definition.json"
        self._write_json(path, definition)
        return path

    # Metaobjects

    def list_metaobject_files(self, definition_type: str) -> List[Path]:
        directory = self.metaobjects_dir(definition_type)
        if not directory.exists():
            return []
        return sorted(directory.glob("*.json"))

    def read_metaobject(self, path: Path) -> Optional[Metaobject]:
        data = self._read_json(path)
        if data is None:
            return None
        return Metaobject.from_dict(data)

    def write_metaobjects(self, definition_type: str, metaobjects: List[Dict[str, Any]]) -> int:
        directory = self.metaobjects_dir(definition_type)
        for metaobject in metaobjects:
            self._write_json(directory / f"{metaobject['handle']}.json", metaobject)
        return len(metaobjects)

    def write_complete(self, definition_type: str, data: Dict[str, Any]) -> Path:
        path = self.complete_dir / f"{definition_type}.json"
        self._write_json(path, data)
        return path

    # Sequence

    def read_sequence(self) -> Optional[List[str]]:
        data = self._read_json(self.sequence_path)
        if data is None:
            return None
        if not isinstance(data, list):
            logger.error(f"{self.sequence_path} must contain a JSON array of types")
            return None
        return [str(t) for t in data]

    def write_sequence(self, sequence: List[str]) -> Path:
        self._write_json(self.sequence_path, sequence)
        logger.info(f"Saved migration sequence to {self.sequence_path}")
        return self.sequence_path
