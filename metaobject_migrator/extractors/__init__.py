"""Extraction of store data into on-disk snapshots."""

from .base import BaseExtractor, ExtractionResult
from .snapshot import SnapshotStore
from .store_extractor import StoreExtractor

__all__ = [
    "BaseExtractor",
    "ExtractionResult",
    "SnapshotStore",
    "StoreExtractor",
]
