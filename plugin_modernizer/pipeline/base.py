"""
Abstract base classes for the collaborators driven by the pipeline.

Implementations talk to a code hosting service and to the local build
tool. Every method may raise; the pipeline records the failure on the
component. Implementations may also record errors on the component
themselves, which the pipeline treats the same way.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from ..models import Component, ComponentMetadata, DiffStats, RepositoryKind


class SourceForgeClient(ABC):
    """Fork, clone and publish operations against a code hosting service."""
    
    @abstractmethod
    def fork(self, component: Component, kind: RepositoryKind = RepositoryKind.PLUGIN) -> None:
        """Create the fork of the component repository."""
        pass
    
    @abstractmethod
    def is_forked(self, component: Component, kind: RepositoryKind = RepositoryKind.PLUGIN) -> bool:
        """Check if the fork already exists."""
        pass
    
    @abstractmethod
    def is_archived(self, component: Component, kind: RepositoryKind = RepositoryKind.PLUGIN) -> bool:
        """Check if the upstream repository is archived."""
        pass
    
    @abstractmethod
    def delete_fork(self, component: Component, kind: RepositoryKind = RepositoryKind.PLUGIN) -> None:
        pass
    
    @abstractmethod
    def sync(self, component: Component, kind: RepositoryKind = RepositoryKind.PLUGIN) -> None:
        """Bring the fork up to date with upstream."""
        pass
    
    @abstractmethod
    def fetch(self, component: Component, kind: RepositoryKind = RepositoryKind.PLUGIN) -> None:
        """Clone or update the local working copy."""
        pass
    
    @abstractmethod
    def checkout_branch(self, component: Component, kind: RepositoryKind = RepositoryKind.PLUGIN) -> None:
        """Create or switch to the modernization branch."""
        pass
    
    @abstractmethod
    def commit_changes(self, component: Component, kind: RepositoryKind = RepositoryKind.PLUGIN) -> bool:
        """
        Commit local changes.
        
        Returns:
            True if a commit was created, False when there was nothing to commit
        """
        pass
    
    @abstractmethod
    def push_changes(self, component: Component, kind: RepositoryKind = RepositoryKind.PLUGIN) -> bool:
        """
        Push the modernization branch.
        
        Returns:
            True if changes were pushed
        """
        pass
    
    @abstractmethod
    def open_pull_request(self, component: Component,
                          kind: RepositoryKind = RepositoryKind.PLUGIN) -> Optional[str]:
        """
        Open (or find the already open) pull request.
        
        Returns:
            URL of the pull request, None if none could be opened
        """
        pass
    
    @abstractmethod
    def get_repository(self, component: Component, kind: RepositoryKind = RepositoryKind.PLUGIN) -> Any:
        pass
    
    @abstractmethod
    def diff_stats(self, component: Component, dry_run: bool) -> DiffStats:
        """Size of the change, measured locally in dry-run mode and on the pull request otherwise."""
        pass


class BuildToolInvoker(ABC):
    """Runs build goals and source transformations on a local working copy."""
    
    @abstractmethod
    def invoke_goal(self, component: Component, goal: str, *args: str) -> None:
        """
        Run a build goal with the component's current toolchain.
        
        Args:
            component: Component to build
            goal: Goal name (e.g., "compile", "verify")
            args: Extra build arguments
        """
        pass
    
    @abstractmethod
    def invoke_transform(self, component: Component) -> Optional[Iterable[str]]:
        """
        Apply the source transformations.
        
        Returns:
            Paths of modified files, if known
        """
        pass
    
    @abstractmethod
    def collect_metadata(self, component: Component) -> ComponentMetadata:
        """Gather baseline, declared toolchains and build properties."""
        pass
    
    @abstractmethod
    def ensure_minimal_build(self, component: Component) -> None:
        """Make the build descriptor usable for metadata collection."""
        pass
