"""Dependency graph between metaobject definitions and its creation order."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Set, Tuple

from ..models.definition import Definition

logger = logging.getLogger(__name__)

Edge = Tuple[str, str]


@dataclass
class DependencyOrder:
    """
    Creation order for definitions.

    ``sorted`` lists every type whose dependencies precede it. A type
    owning an edge that closes a cycle goes to ``deferred`` instead; the
    edge itself is reported in ``dropped_edges``.
    """
    sorted: List[str] = field(default_factory=list)
    deferred: List[str] = field(default_factory=list)
    dropped_edges: List[Edge] = field(default_factory=list)
    unknown_edges: List[Edge] = field(default_factory=list)
    unresolved: List[Tuple[str, str]] = field(default_factory=list)  # (owner type, source definition ID)

    @property
    def sequence(self) -> List[str]:
        """Every type in creation order: sorted first, then deferred."""
        return self.sorted + self.deferred

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "sorted": self.sorted,
            "deferred": self.deferred,
            "dropped_edges": [list(e) for e in self.dropped_edges],
            "unknown_edges": [list(e) for e in self.unknown_edges],
            "unresolved": [list(u) for u in self.unresolved],
        }


@dataclass
class DependencyGraph:
    """Nodes are definition types; an edge A -> B means a field of A references B."""
    edges: Dict[str, Set[str]] = field(default_factory=dict)
    unresolved: List[Tuple[str, str]] = field(default_factory=list)

    def add_node(self, definition_type: str) -> None:
        self.edges.setdefault(definition_type, set())

    def add_edge(self, from_type: str, to_type: str) -> None:
        self.add_node(from_type)
        self.edges[from_type].add(to_type)

    def dependencies_of(self, definition_type: str) -> Set[str]:
        return set(self.edges.get(definition_type, set()))

    def sort(self) -> DependencyOrder:
        """
        Order the nodes so that dependencies are created first.

        Depth-first post-order traversal. Nodes and their dependencies are
        visited in ascending type order, so the result does not depend on the
        order definitions were read in. For a cycle, the node reached last
        owns the closing edge and is deferred: with A <-> B, A is sorted and
        B is deferred.
        """
        order = DependencyOrder(unresolved=list(self.unresolved))
        visiting: Set[str] = set()
        done: Set[str] = set()

        def visit(node: str) -> None:
            visiting.add(node)
            closes_cycle = False

            for dependency in sorted(self.edges[node]):
                if dependency == node:
                    order.dropped_edges.append((node, dependency))
                elif dependency not in self.edges:
                    order.unknown_edges.append((node, dependency))
                elif dependency in visiting:
                    order.dropped_edges.append((node, dependency))
                    closes_cycle = True
                elif dependency not in done:
                    visit(dependency)

            visiting.discard(node)
            done.add(node)
            if closes_cycle:
                order.deferred.append(node)
            else:
                order.sorted.append(node)

        for node in sorted(self.edges):
            if node not in done:
                visit(node)

        for from_type, to_type in order.dropped_edges:
            if from_type != to_type:
                logger.info(f"Cycle: dropped edge {from_type} -> {to_type}, deferring {from_type}")
        for from_type, to_type in order.unknown_edges:
            logger.warning(f"{from_type} references {to_type}, which is not in the snapshot")

        return order


class DependencyGraphBuilder:
    """Builds the definition dependency graph from snapshot definitions."""

    def __init__(self, resolver):
        """
        Initialize the builder.

        Args:
            resolver: ReferenceResolver used to map source definition IDs to types
        """
        self.resolver = resolver

    def build(self, definitions: Iterable[Definition]) -> DependencyGraph:
        """
        Scan every definition and collect reference edges.

        Validation values are source-store IDs, so each is resolved to a type
        against the source store. IDs that cannot be resolved are recorded and
        contribute no edge.
        """
        graph = DependencyGraph()

        for definition in definitions:
            definition_type = definition.type or self.resolver.definition_type(definition.id)
            if not definition_type:
                logger.error(f"Skipping definition {definition.id}: type could not be resolved")
                continue
            graph.add_node(definition_type)

            for field_definition in definition.field_definitions:
                for definition_id in field_definition.referenced_definition_ids:
                    dependency_type = self.resolver.definition_type(definition_id)
                    if dependency_type:
                        graph.add_edge(definition_type, dependency_type)
                    else:
                        graph.unresolved.append((definition_type, definition_id))
                        logger.warning(
                            f"{definition_type}.{field_definition.key}: no definition found "
                            f"for ID {definition_id}; dependency ignored"
                        )

        return graph

    def generate_order(self, definitions: Iterable[Definition]) -> DependencyOrder:
        """Build the graph and sort it."""
        order = self.build(definitions).sort()
        logger.info(f"Sorted definitions: {', '.join(order.sorted)}")
        if order.deferred:
            logger.info(f"Deferred definitions: {', '.join(order.deferred)}")
        return order
