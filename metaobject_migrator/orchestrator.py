"""Migration orchestrator - coordinates the complete migration process."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .models.config import MigrationConfig
from .models.migration import MigrationRun, MigrationStep, MigrationStatus
from .services.graphql_client import GraphQLClient
from .services.resolver import ReferenceResolver
from .services.dependency_graph import DependencyGraphBuilder, DependencyOrder
from .extractors.snapshot import SnapshotStore
from .extractors.store_extractor import StoreExtractor
from .loaders.base import LoadResult
from .loaders.definition_loader import DefinitionLoader
from .loaders.metaobject_loader import MetaobjectLoader

logger = logging.getLogger(__name__)

PHASES = ("extract", "sort", "definitions", "metaobjects")


class MigrationOrchestrator:
    """
    Orchestrates the complete migration process.

    Handles:
    - Snapshotting the source store
    - Ordering definitions by their dependencies
    - Creating definitions and reconciling deferred fields
    - Upserting metaobjects
    - Progress tracking and reporting

    Failures of individual records are recorded on the run's steps; only
    an unexpected exception marks a step as failed.
    """

    def __init__(
        self,
        config: MigrationConfig,
        source_client=None,
        destination_client=None
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Migration configuration
            source_client: GraphQL client for the source store
            destination_client: GraphQL client for the destination store
        """
        self.config = config
        self.source = source_client or GraphQLClient(config.source)
        self.destination = destination_client or GraphQLClient(config.destination)
        self.resolver = ReferenceResolver(self.source, self.destination)
        self.snapshot = SnapshotStore(config.snapshot_dir, config.snapshot_store_name)

        # Runtime state
        self.run: Optional[MigrationRun] = None
        self.order: Optional[DependencyOrder] = None
        self.definition_loader: Optional[DefinitionLoader] = None

        self.logs_dir = Path(self.config.output_dir) / "logs"

    def run_migration(self, skip_extract: bool = False) -> MigrationRun:
        """
        Run the complete migration.

        Returns:
            MigrationRun with results and statistics
        """
        phases = [p for p in PHASES if not (skip_extract and p == "extract")]
        return self.run_phases(phases)

    def run_phases(self, phases: List[str]) -> MigrationRun:
        """Run the named phases in order and finish the run."""
        handlers: Dict[str, Callable[[], MigrationStep]] = {
            "extract": self.run_extraction,
            "sort": self.run_sort,
            "definitions": self.run_definitions,
            "metaobjects": self.run_metaobjects,
        }
        unknown = [p for p in phases if p not in handlers]
        if unknown:
            raise ValueError(f"Unknown phases: {unknown}")

        self._start_run()
        try:
            for phase in phases:
                logger.info(f"=== PHASE: {phase.upper()} ===")
                handlers[phase]()
            self.run.status = MigrationStatus.COMPLETED
            logger.info("=== MIGRATION COMPLETED ===")
        finally:
            self._finish_run()

        return self.run

    def _start_run(self) -> MigrationRun:
        self.run = MigrationRun(
            source_url=self.config.source.url,
            destination_url=self.config.destination.url,
            dry_run=self.config.dry_run,
        )
        self.run.started_at = datetime.utcnow()
        return self.run

    def _finish_run(self) -> None:
        if self.run.status != MigrationStatus.COMPLETED:
            self.run.status = MigrationStatus.FAILED
        self.run.completed_at = datetime.utcnow()
        self.run.update_totals()
        if self.config.save_report:
            self._save_report()

    def _run_step(self, name: str, status: MigrationStatus, body: Callable[[MigrationStep], None]) -> MigrationStep:
        """Run one phase as a step, recording unexpected errors on it."""
        if self.run is None:
            self._start_run()

        step = self.run.add_step(name)
        step.status = status
        step.started_at = datetime.utcnow()
        self.run.status = status
        self.run.current_step = step.id

        try:
            body(step)
            step.status = MigrationStatus.COMPLETED
        except Exception as e:
            step.status = MigrationStatus.FAILED
            step.errors.append({"error": str(e)})
            self.run.errors.append({
                "step": name,
                "error": str(e),
                "timestamp": datetime.utcnow().isoformat(),
            })
            logger.exception(f"{name} failed: {e}")
        finally:
            step.completed_at = datetime.utcnow()

        return step

    @staticmethod
    def _apply_load_result(step: MigrationStep, result: LoadResult) -> None:
        step.records_processed += result.total_attempted
        step.records_succeeded += result.total_succeeded
        step.records_failed += result.total_failed
        step.errors.extend(result.errors)
        step.warnings.extend(result.warnings)

    def run_extraction(self) -> MigrationStep:
        """Snapshot the source store's definitions and metaobjects."""
        def body(step: MigrationStep) -> None:
            result = StoreExtractor(self.source, self.snapshot).extract()
            step.records_processed = result.total_definitions + len(result.errors)
            step.records_succeeded = result.total_definitions
            step.records_failed = len(result.errors)
            step.errors.extend(result.errors)
            step.warnings.extend(result.warnings)
            step.details = {"total_metaobjects": result.total_metaobjects}

        return self._run_step("Extract source snapshot", MigrationStatus.EXTRACTING, body)

    def compute_order(self) -> DependencyOrder:
        """Order the snapshot's definitions and persist the sequence file."""
        definitions = self.snapshot.read_definitions()
        self.order = DependencyGraphBuilder(self.resolver).generate_order(definitions)
        self.snapshot.write_sequence(self.order.sequence)
        return self.order

    def run_sort(self) -> MigrationStep:
        """Build the dependency order of definitions."""
        def body(step: MigrationStep) -> None:
            order = self.compute_order()
            step.records_processed = len(order.sequence)
            step.records_succeeded = len(order.sequence)
            step.warnings.extend(
                f"{owner} references unknown definition ID {definition_id}"
                for owner, definition_id in order.unresolved
            )
            step.details = order.to_dict()

        return self._run_step("Sort definitions", MigrationStatus.SORTING, body)

    def run_definitions(self) -> MigrationStep:
        """Create definitions in the destination store."""
        def body(step: MigrationStep) -> None:
            order = self.order or self.compute_order()
            self.definition_loader = DefinitionLoader(
                self.destination,
                self.resolver,
                self.snapshot,
                dry_run=self.config.dry_run,
            )
            result = self.definition_loader.migrate(order)
            self._apply_load_result(step, result)
            step.details = {
                "states": {t: s.value for t, s in self.definition_loader.states.items()},
                "excluded_fields": self.definition_loader.excluded_fields,
                "unreconciled_fields": {
                    t: [f.key for f in fields]
                    for t, fields in self.definition_loader.deferred_fields.items()
                },
            }

        return self._run_step("Migrate definitions", MigrationStatus.MIGRATING_DEFINITIONS, body)

    def run_metaobjects(self) -> MigrationStep:
        """Upsert metaobjects in sequence-file order."""
        def body(step: MigrationStep) -> None:
            loader = MetaobjectLoader(
                self.destination,
                self.resolver,
                self.snapshot,
                dry_run=self.config.dry_run,
            )
            self._apply_load_result(step, loader.migrate())

        return self._run_step("Migrate metaobjects", MigrationStatus.MIGRATING_METAOBJECTS, body)

    def _save_report(self):
        """Save the migration report."""
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.logs_dir / f"migration_report_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}.json"
        with open(filepath, 'w') as f:
            json.dump(self.run.to_dict(), f, indent=2, default=str)
        logger.info(f"Saved migration report to {filepath}")
