"""Loaders for the destination store."""

from .base import BaseLoader, LoadResult
from .definition_loader import DefinitionLoader
from .metaobject_loader import MetaobjectLoader

__all__ = [
    "BaseLoader",
    "LoadResult",
    "DefinitionLoader",
    "MetaobjectLoader",
]
