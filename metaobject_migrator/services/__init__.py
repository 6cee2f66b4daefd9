"""Service layer for the migration application."""

from .graphql_client import GraphQLClient, GraphQLError
from .resolver import ReferenceResolver, EntityKind
from .formatter import FieldFormatter, FormattedDefinition, DeferredField, FieldDisposition
from .dependency_graph import DependencyGraph, DependencyGraphBuilder, DependencyOrder

__all__ = [
    "GraphQLClient",
    "GraphQLError",
    "ReferenceResolver",
    "EntityKind",
    "FieldFormatter",
    "FormattedDefinition",
    "DeferredField",
    "FieldDisposition",
    "DependencyGraph",
    "DependencyGraphBuilder",
    "DependencyOrder",
]
