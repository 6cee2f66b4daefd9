"""Base loader interface for the destination store."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from datetime import datetime
import logging

import requests

from ..models.result import ErrorKind, OperationResult, user_errors_message
from ..services.graphql_client import GraphQLError

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Result of a load operation."""
    entity: str
    total_attempted: int = 0
    total_succeeded: int = 0
    total_failed: int = 0
    total_skipped: int = 0
    results: List[OperationResult] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def success_rate(self) -> float:
        if self.total_attempted == 0:
            return 0.0
        return self.total_succeeded / self.total_attempted

    def add(self, result: OperationResult) -> OperationResult:
        """Record the outcome of one operation."""
        self.results.append(result)
        self.total_attempted += 1

        if result.success:
            self.total_succeeded += 1
        else:
            self.total_failed += 1
            self.errors.append({
                "subject": result.subject,
                "operation": result.operation,
                "error_kind": result.error_kind.value if result.error_kind else None,
                "error": result.error,
            })
        return result

    def skip(self, message: str) -> None:
        """Record a record that was deliberately not sent."""
        self.total_skipped += 1
        self.warnings.append(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity": self.entity,
            "total_attempted": self.total_attempted,
            "total_succeeded": self.total_succeeded,
            "total_failed": self.total_failed,
            "total_skipped": self.total_skipped,
            "success_rate": self.success_rate,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "errors": self.errors,
            "warnings": self.warnings,
        }


class BaseLoader(ABC):
    """
    Base class for loaders.

    Loaders write formatted records into the destination store one at a
    time. A failing record never stops the load; it is reported in the
    LoadResult instead.
    """

    def __init__(self, client, resolver, dry_run: bool = False):
        """
        Initialize the loader.

        Args:
            client: GraphQL client for the destination store
            resolver: ReferenceResolver between the source and destination stores
            dry_run: If True, log mutations instead of sending them
        """
        self.client = client
        self.resolver = resolver
        self.dry_run = dry_run

    @abstractmethod
    def load_all(self, types: List[str]) -> LoadResult:
        """
        Load every record of the given definition types.

        Args:
            types: Definition types, in the order they must be written

        Returns:
            LoadResult with per-record outcomes
        """
        pass

    def _mutate(
        self,
        subject: str,
        operation: str,
        mutation: str,
        variables: Dict[str, Any],
        root: str
    ) -> OperationResult:
        """
        Send a mutation and translate its outcome into an OperationResult.

        Args:
            subject: Record the mutation is about (for reporting)
            operation: Short operation name
            mutation: GraphQL document
            variables: Mutation variables
            root: Name of the mutation's payload field
        """
        if self.dry_run:
            logger.info(f"[dry run] {operation} {subject}")
            logger.debug(f"[dry run] variables: {variables}")
            return OperationResult.ok(subject, operation, dry_run=True)

        try:
            data = self.client.execute(mutation, variables)
        except (requests.RequestException, GraphQLError) as e:
            logger.error(f"{operation} {subject} failed: {e}")
            return OperationResult.fail(subject, operation, ErrorKind.TRANSPORT, str(e))

        payload = data.get(root) or {}
        user_errors = payload.get("userErrors") or []
        if user_errors:
            message = user_errors_message(user_errors)
            logger.error(f"{operation} {subject} rejected: {message}")
            return OperationResult.fail(
                subject, operation, ErrorKind.REMOTE, message, user_errors=user_errors
            )

        return OperationResult.ok(subject, operation, value=payload)
