"""Base extractor interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Result of an extraction operation."""
    source: str
    definition_types: List[str] = field(default_factory=list)
    total_definitions: int = 0
    total_metaobjects: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def success(self) -> bool:
        """Check if extraction was successful."""
        return len(self.errors) == 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "source": self.source,
            "definition_types": self.definition_types,
            "total_definitions": self.total_definitions,
            "total_metaobjects": self.total_metaobjects,
            "errors": self.errors,
            "warnings": self.warnings,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
        }


class BaseExtractor(ABC):
    """
    Base class for extractors.

    Extractors pull definitions and metaobjects out of a store and
    persist them as a snapshot the migrators read from.
    """

    def __init__(self, source: str):
        """
        Initialize the extractor.

        Args:
            source: Name or URL of the store being extracted
        """
        self.source = source
        self._errors: List[Dict[str, Any]] = []
        self._warnings: List[str] = []

    @abstractmethod
    def extract(self) -> ExtractionResult:
        """
        Extract all data from the source.

        Returns:
            ExtractionResult summarising what was saved
        """
        pass

    def add_error(
        self,
        message: str,
        record_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add an error to the extraction."""
        error = {
            "message": message,
            "record_id": record_id,
            "timestamp": datetime.utcnow().isoformat(),
        }
        if details:
            error.update(details)
        self._errors.append(error)
        logger.error(f"Extraction error: {message}")

    def add_warning(self, message: str) -> None:
        """Add a warning to the extraction."""
        self._warnings.append(message)
        logger.warning(f"Extraction warning: {message}")

    def get_extraction_result(self) -> ExtractionResult:
        """Create an ExtractionResult carrying the collected errors and warnings."""
        return ExtractionResult(
            source=self.source,
            errors=self._errors.copy(),
            warnings=self._warnings.copy(),
        )

    def reset(self) -> None:
        """Reset the extractor state."""
        self._errors = []
        self._warnings = []
