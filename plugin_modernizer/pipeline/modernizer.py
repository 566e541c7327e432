"""
Component processing pipeline.

Each plugin moves through fork, sync, fetch, metadata collection, checkout,
compile, transform, verify, commit, push and pull request stages. A failing
stage is the last one executed for that plugin; the batch continues.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional

from .base import BuildToolInvoker, SourceForgeClient
from ..cache.cache_manager import CacheManager
from ..compatibility import toolchains
from ..compatibility.toolchains import ToolchainVersion
from ..config import PipelineConfig
from ..exceptions import MetadataDownloadError, ModernizerError
from ..metadata.plugin_service import RemoteMetadataService
from ..models import (
    MODERNIZATION_METADATA_CACHE_KEY,
    Component,
    ComponentSummary,
    ModernizationRecord,
    PipelineState,
    RunReport,
)

logger = logging.getLogger(__name__)

# Toolchain used to run the build tool while collecting metadata
METADATA_TOOLCHAIN = toolchains.JAVA_17

SPOTLESS_APPLY_GOAL = "spotless:apply"


class PluginModernizer:
    """Drives components through the modernization stages."""

    def __init__(self, config: PipelineConfig, forge: SourceForgeClient, build: BuildToolInvoker,
                 metadata_service: RemoteMetadataService, cache_manager: CacheManager):
        """
        Initialize the pipeline.

        Args:
            config: Pipeline configuration (dry-run, metadata-only, workers, recipe)
            forge: Source-forge client
            build: Build-tool invoker
            metadata_service: Remote metadata accessors
            cache_manager: Store receiving component metadata and run records
        """
        self.config = config
        self.forge = forge
        self.build = build
        self.metadata_service = metadata_service
        self.cache_manager = cache_manager
        self._cancelled = threading.Event()

    def start(self, components: Iterable[Component]) -> RunReport:
        """
        Process a batch of components.

        Args:
            components: Components to modernize

        Returns:
            RunReport with one summary per processed component, in input order
        """
        start_time = time.time()
        components = list(components)
        self._cancelled.clear()
        self.metadata_service.reset()

        mode = "dry-run" if self.config.dry_run else "live"
        if self.config.fetch_metadata_only:
            mode += ", metadata only"
        logger.info(f"Starting modernization of {len(components)} plugins ({mode})")

        if self.config.max_workers > 1 and len(components) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                futures = [executor.submit(self._process_unless_cancelled, c) for c in components]
                processed = [future.result() for future in futures]
        else:
            processed = [self._process_unless_cancelled(c) for c in components]

        summaries = [ComponentSummary.from_component(c) for c, done in zip(components, processed) if done]
        skipped = [c.name for c, done in zip(components, processed) if not done]
        report = RunReport(
            components=summaries,
            skipped=skipped,
            dry_run=self.config.dry_run,
            processing_time=time.time() - start_time,
        )
        self._log_summary(report)
        return report

    def cancel(self) -> None:
        """Stop the run after the components currently in progress."""
        logger.warning("Cancellation requested, remaining plugins will be skipped")
        self._cancelled.set()

    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()

    def clean_cache(self) -> None:
        """Wipe the cache store and forget datasets loaded in memory."""
        self.cache_manager.wipe()
        self.metadata_service.reset()

    def _process_unless_cancelled(self, component: Component) -> bool:
        if self._cancelled.is_set():
            component.log.info("Skipped, run was cancelled")
            return False
        try:
            self.process(component)
        except Exception as e:
            component.add_error("Unexpected failure", cause=e, stage='pipeline')
        return True

    def process(self, component: Component) -> None:
        """
        Run every stage for one component, stopping at the first failure.

        Args:
            component: Component to process
        """
        component.log.info("Processing plugin")
        dry_run = self.config.dry_run
        metadata_only = self.config.fetch_metadata_only
        remote = not component.local

        stages = [
            ('repository', None, self._resolve_repository),
            ('fork', PipelineState.FORK_ENSURED,
             self._ensure_fork if remote and not metadata_only else None),
            ('sync', PipelineState.SYNCED,
             self._sync if remote and not metadata_only and not dry_run else None),
            ('fetch', PipelineState.FETCHED, self.forge.fetch if remote else None),
            ('metadata', PipelineState.METADATA_COLLECTED, self.collect_metadata),
        ]
        if not metadata_only:
            stages += [
                ('checkout', PipelineState.BRANCH_CHECKED_OUT, self.forge.checkout_branch),
                ('compile', PipelineState.COMPILED, self.compile_plugin),
                ('transform', PipelineState.TRANSFORMED, self.transform_plugin),
                ('verify', PipelineState.VERIFIED, self.verify_plugin),
                ('commit', PipelineState.COMMITTED, None if dry_run else self._commit),
                ('push', PipelineState.PUSHED, None if dry_run else self._push),
                ('pull_request', PipelineState.PULL_REQUEST_OPENED, None if dry_run else self._open_pull_request),
            ]

        baseline_before = None
        for stage, state, action in stages:
            if action is None:
                component.log.debug(f"Skipping {stage} stage")
                if state is not None:
                    component.state = state
                continue
            if not self._run_stage(component, stage, state, action):
                component.log.warning(f"Processing stopped at {stage} stage")
                return
            if stage == 'metadata':
                baseline_before = component.metadata.baseline

        if metadata_only:
            component.log.info("Metadata collected")
            return

        self._persist_record(component, baseline_before)
        component.log.info("Plugin processed")

    def _run_stage(self, component: Component, stage: str, state: Optional[PipelineState],
                   action: Callable[[Component], object]) -> bool:
        """
        Run one stage, recording any failure on the component.

        Returns:
            True if the stage succeeded and the chain may continue
        """
        errors_before = len(component.errors)
        component.log.debug(f"Running {stage} stage")
        try:
            action(component)
        except Exception as e:
            # Collaborators may already have recorded the failure
            if len(component.errors) == errors_before:
                component.add_error(f"Stage {stage} failed", cause=e, stage=stage)
            return False
        if len(component.errors) > errors_before:
            return False
        if state is not None:
            component.state = state
        return True

    # Stages

    def _resolve_repository(self, component: Component) -> None:
        component.repository_name = self.metadata_service.repository_name_for(component)
        component.log.debug(f"Repository name is {component.repository_name}")

    def _ensure_fork(self, component: Component) -> None:
        if self.forge.is_archived(component):
            component.add_error("Repository is archived", stage='fork')
            return
        if self.forge.is_forked(component):
            component.log.debug("Fork already exists")
            return
        if self.config.dry_run:
            component.log.info("Dry run, not forking repository")
            return
        self.forge.fork(component)

    def _sync(self, component: Component) -> None:
        if not self.forge.is_forked(component):
            component.log.debug("No fork to sync")
            return
        self.forge.sync(component)

    def collect_metadata(self, component: Component) -> None:
        """
        Collect build facts and remote flags, then persist them in the
        component's private cache scope.
        """
        component.toolchain = METADATA_TOOLCHAIN
        self.build.ensure_minimal_build(component)
        metadata = self.build.collect_metadata(component)
        metadata.path = component.name
        try:
            for flag in self.metadata_service.metadata_flags(component):
                metadata.add_flag(flag)
        except MetadataDownloadError as e:
            component.log.warning(f"Unable to compute metadata flags: {e}")
        component.metadata = metadata
        self.cache_manager.put(metadata)
        component.log.info(f"Collected metadata, baseline {metadata.baseline}")

    def lowest_toolchain(self, component: Component) -> ToolchainVersion:
        """Oldest toolchain the component's baseline allows."""
        return toolchains.minimum(self._compatible(component))

    def highest_toolchain(self, component: Component) -> ToolchainVersion:
        """Newest toolchain the component's baseline allows."""
        return toolchains.maximum(self._compatible(component))

    def _compatible(self, component: Component) -> List[ToolchainVersion]:
        if component.has_metadata() and component.metadata.baseline:
            return toolchains.compatible_toolchains(component.metadata.baseline)
        if component.has_metadata():
            return component.metadata.declared_toolchains()
        return []

    def compile_plugin(self, component: Component) -> None:
        component.toolchain = self.lowest_toolchain(component)
        component.log.info(f"Compiling with {component.toolchain}")
        self.build.invoke_goal(component, "clean")
        self.build.invoke_goal(component, "compile")

    def transform_plugin(self, component: Component) -> None:
        component.toolchain = self.highest_toolchain(component)
        component.log.info(f"Applying transformations with {component.toolchain}")
        modified = self.build.invoke_transform(component)
        if modified:
            component.add_modified_files(modified)

    def verify_plugin(self, component: Component) -> None:
        component.toolchain = self.lowest_toolchain(component)
        component.log.info(f"Verifying with {component.toolchain}")
        self.build.invoke_goal(component, "clean")
        if component.is_using_spotless():
            self.build.invoke_goal(component, SPOTLESS_APPLY_GOAL)
        self.build.invoke_goal(component, "verify")

    def _commit(self, component: Component) -> None:
        component.has_commits = bool(self.forge.commit_changes(component))
        if not component.has_commits:
            component.log.info("Nothing to commit")

    def _push(self, component: Component) -> None:
        if not component.has_commits:
            component.log.debug("No commits to push")
            return
        component.has_changes_pushed = bool(self.forge.push_changes(component))

    def _open_pull_request(self, component: Component) -> None:
        if not component.has_changes_pushed:
            component.log.debug("No pushed changes, not opening a pull request")
            return
        url = self.forge.open_pull_request(component)
        if url:
            component.has_pull_request = True
            component.pull_request_url = url
            component.log.info(f"Pull request: {url}")

    # Run record

    def build_record(self, component: Component, baseline_before: Optional[str]) -> ModernizationRecord:
        """Assemble the persisted outcome of a processed component."""
        recipe = self.config.recipe
        stats = self.forge.diff_stats(component, self.config.dry_run)
        component.diff_stats = stats
        baseline_after = self._collect_baseline_after(component)
        if component.local:
            plugin_version = component.metadata.properties.get('project.version') if component.has_metadata() else None
        else:
            plugin_version = self.metadata_service.current_version(component)
        return ModernizationRecord(
            key=MODERNIZATION_METADATA_CACHE_KEY,
            path=component.name,
            plugin_name=component.name,
            plugin_repository=component.repository_name,
            plugin_version=plugin_version,
            jenkins_baseline=baseline_before or "",
            target_baseline=baseline_after or "",
            effective_baseline=baseline_after or "",
            jenkins_version=baseline_after or "",
            toolchain=component.toolchain.major if component.toolchain else None,
            migration_name=recipe.name.rsplit('.', 1)[-1],
            migration_description=recipe.description,
            migration_id=recipe.name,
            migration_status="success" if not component.has_errors() else "fail",
            tags=set(recipe.tags) | component.tags,
            pull_request_url=component.pull_request_url or "",
            pull_request_status="open" if component.has_pull_request else "",
            dry_run=self.config.dry_run,
            additions=stats.additions,
            deletions=stats.deletions,
            changed_files=stats.changed_files,
        )

    def _collect_baseline_after(self, component: Component) -> Optional[str]:
        """Read the baseline again once the transformations were applied."""
        toolchain = component.toolchain
        component.toolchain = METADATA_TOOLCHAIN
        try:
            metadata = self.build.collect_metadata(component)
        finally:
            component.toolchain = toolchain
        if metadata.baseline != (component.metadata.baseline if component.has_metadata() else None):
            component.log.info(f"Baseline changed to {metadata.baseline}")
        return metadata.baseline

    def _persist_record(self, component: Component, baseline_before: Optional[str]) -> None:
        try:
            record = self.build_record(component, baseline_before)
        except ModernizerError as e:
            component.log.warning(f"Unable to build run record: {e}")
            return
        if not record.validate():
            component.log.warning("Run record is incomplete and was not saved")
            return
        self.cache_manager.put(record)

    def _log_summary(self, report: RunReport) -> None:
        failed = report.failed_components
        logger.info(f"Modernization complete: {report.total_components} processed, "
                    f"{len(failed)} failed, {len(report.skipped)} skipped "
                    f"in {report.processing_time:.2f}s")
        for summary in failed:
            for error in summary.errors:
                logger.error(f"{summary.name}: {error.message}")
