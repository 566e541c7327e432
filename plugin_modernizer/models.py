"""
Core data models for the Plugin Modernizer.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from .cache.cache_manager import ROOT_PATH, CacheEntry
from .compatibility import toolchains
from .compatibility.toolchains import ToolchainVersion
from .exceptions import ComponentProcessingError
from .logging_config import component_logger

logger = logging.getLogger(__name__)

PLUGIN_METADATA_CACHE_KEY = "plugin-metadata.json"
MODERNIZATION_METADATA_CACHE_KEY = "modernization-metadata.json"


class RepositoryKind(Enum):
    """Repository a source-forge operation targets."""
    PLUGIN = "plugin"
    METADATA = "metadata"


class PipelineState(Enum):
    """States a component goes through during a run, in order."""
    CREATED = "created"
    FORK_ENSURED = "fork_ensured"
    SYNCED = "synced"
    FETCHED = "fetched"
    METADATA_COLLECTED = "metadata_collected"
    BRANCH_CHECKED_OUT = "branch_checked_out"
    COMPILED = "compiled"
    TRANSFORMED = "transformed"
    VERIFIED = "verified"
    COMMITTED = "committed"
    PUSHED = "pushed"
    PULL_REQUEST_OPENED = "pull_request_opened"


class MetadataFlag(Enum):
    """Facts about a plugin gathered from remote metadata."""
    IS_DEPRECATED = "is-deprecated"
    IS_API_PLUGIN = "is-api-plugin"
    IS_FOR_ADOPTION = "is-for-adoption"
    HAS_MAX_SCORE = "has-max-score"
    HAS_LOW_SCORE = "has-low-score"
    NO_KNOWN_INSTALLATION = "no-known-installation"


@dataclass
class DiffStats:
    """Size of the change produced for a plugin."""
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0


class ComponentMetadata(CacheEntry):
    """Facts collected from a plugin build, stored in the plugin's private cache scope."""
    
    def __init__(self, plugin_name: str, baseline: Optional[str] = None,
                 toolchain_majors: Optional[Iterable[int]] = None,
                 properties: Optional[Dict[str, str]] = None,
                 flags: Optional[Iterable[MetadataFlag]] = None,
                 key: str = PLUGIN_METADATA_CACHE_KEY, path: Optional[str] = None):
        super().__init__(key, path or plugin_name)
        self.plugin_name = plugin_name
        self.baseline = baseline
        self.toolchain_majors: Set[int] = set(toolchain_majors or ())
        self.properties: Dict[str, str] = dict(properties or {})
        self.flags: Set[MetadataFlag] = set(flags or ())
    
    def has_flag(self, flag: MetadataFlag) -> bool:
        return flag in self.flags
    
    def add_flag(self, flag: MetadataFlag) -> None:
        self.flags.add(flag)
    
    def declared_toolchains(self) -> List[ToolchainVersion]:
        """Catalog toolchains matching the declared majors, unknown majors ignored."""
        declared = (toolchains.get(major) for major in sorted(self.toolchain_majors))
        return [t for t in declared if t is not None]
    
    def to_payload(self) -> Dict[str, Any]:
        return {
            'pluginName': self.plugin_name,
            'jenkinsVersion': self.baseline,
            'jdks': sorted(self.toolchain_majors),
            'properties': self.properties,
            'flags': sorted(flag.value for flag in self.flags),
        }
    
    @classmethod
    def from_payload(cls, payload: Dict[str, Any], key: str, path: str = ROOT_PATH) -> 'ComponentMetadata':
        return cls(
            plugin_name=payload['pluginName'],
            baseline=payload.get('jenkinsVersion'),
            toolchain_majors=[int(major) for major in payload.get('jdks') or ()],
            properties=payload.get('properties') or {},
            flags=[MetadataFlag(flag) for flag in payload.get('flags') or ()],
            key=key,
            path=path,
        )


class Component:
    """A plugin being modernized during a run."""
    
    def __init__(self, name: str, local_repository: Optional[str] = None):
        """
        Initialize a component.
        
        Args:
            name: Plugin name
            local_repository: Directory of a local checkout. When set, the
                plugin is processed in place and its facts come from the
                local build descriptor instead of the update center.
        """
        if not name:
            raise ValueError("Plugin name cannot be empty")
        self.name = name
        self.local = local_repository is not None
        self.local_repository: Optional[Path] = Path(local_repository).absolute() if self.local else None
        self.repository_name: Optional[str] = None
        self.toolchain: Optional[ToolchainVersion] = None
        self.metadata: Optional[ComponentMetadata] = None
        self.state = PipelineState.CREATED
        self.has_commits = False
        self.has_changes_pushed = False
        self.has_pull_request = False
        self.pull_request_url: Optional[str] = None
        self.diff_stats: Optional[DiffStats] = None
        self.tags: Set[str] = set()
        self.errors: List[ComponentProcessingError] = []
        self.modified_files: List[str] = []
        self.log = component_logger(self, logger)
    
    @classmethod
    def build(cls, name: str) -> 'Component':
        return cls(name)
    
    @classmethod
    def build_local(cls, name: str, location: str) -> 'Component':
        return cls(name, local_repository=location)
    
    def add_error(self, message: str, cause: Optional[Exception] = None,
                  stage: Optional[str] = None) -> ComponentProcessingError:
        """
        Record an error on this component.
        
        Args:
            message: Human readable description
            cause: Exception that triggered the error
            stage: Pipeline stage that failed
            
        Returns:
            The recorded ComponentProcessingError
        """
        error = ComponentProcessingError(message, component_name=self.name, stage=stage, cause=cause)
        self.log.error(str(error))
        if cause is not None:
            self.log.debug("Error details", exc_info=cause)
        self.errors.append(error)
        return error
    
    def has_errors(self) -> bool:
        return bool(self.errors)
    
    def raise_last_error(self) -> None:
        """Raise the most recent error, if any."""
        if self.errors:
            raise self.errors[-1]
    
    def remove_errors(self) -> None:
        self.errors.clear()
    
    def add_tag(self, tag: str) -> 'Component':
        self.tags.add(tag)
        return self
    
    def add_tags(self, tags: Iterable[str]) -> 'Component':
        self.tags.update(tags)
        return self
    
    def add_modified_files(self, files: Iterable[str]) -> None:
        for file in files:
            if file not in self.modified_files:
                self.modified_files.append(file)
    
    def has_metadata(self) -> bool:
        return self.metadata is not None
    
    def has_flag(self, flag: MetadataFlag) -> bool:
        return self.has_metadata() and self.metadata.has_flag(flag)
    
    def is_using_spotless(self) -> bool:
        return self.has_metadata() and self.metadata.properties.get('spotless.check.skip') == 'false'
    
    def __str__(self):
        return self.name
    
    def __repr__(self):
        return f"Component(name={self.name!r}, state={self.state.value})"
    
    def __eq__(self, other):
        return isinstance(other, Component) and self.name == other.name
    
    def __hash__(self):
        return hash(self.name)


REQUIRED_RECORD_FIELDS = (
    'plugin_name', 'plugin_repository', 'plugin_version', 'effective_baseline',
    'target_baseline', 'jenkins_version', 'migration_name', 'migration_description',
    'migration_status', 'tags', 'migration_id', 'dry_run', 'additions', 'deletions',
    'changed_files',
)


class ModernizationRecord(CacheEntry):
    """Persisted outcome of one plugin run, used for downstream reporting."""
    
    def __init__(self, key: str = MODERNIZATION_METADATA_CACHE_KEY, path: str = ROOT_PATH, **fields):
        super().__init__(key, path)
        self.plugin_name: Optional[str] = None
        self.plugin_repository: Optional[str] = None
        self.plugin_version: Optional[str] = None
        self.jenkins_baseline: str = ""
        self.target_baseline: str = ""
        self.effective_baseline: str = ""
        self.jenkins_version: str = ""
        self.toolchain: Optional[int] = None
        self.migration_name: Optional[str] = None
        self.migration_description: Optional[str] = None
        self.migration_id: Optional[str] = None
        self.migration_status: Optional[str] = None
        self.tags: Set[str] = set()
        self.pull_request_url: str = ""
        self.pull_request_status: str = ""
        self.dry_run: bool = False
        self.additions: Optional[int] = None
        self.deletions: Optional[int] = None
        self.changed_files: Optional[int] = None
        for name, value in fields.items():
            if not hasattr(self, name):
                raise TypeError(f"Unknown record field: {name}")
            setattr(self, name, value)
    
    def missing_fields(self) -> List[str]:
        """Names of required fields without a value."""
        missing = []
        for name in REQUIRED_RECORD_FIELDS:
            value = getattr(self, name)
            if value is None or (name == 'tags' and not value):
                missing.append(name)
        return missing
    
    def validate(self) -> bool:
        """
        Check that every required field is set.
        
        Returns:
            True if the record can be persisted, False otherwise
        """
        missing = self.missing_fields()
        if missing:
            logger.info(f"Missing required fields: {', '.join(missing)}")
            return False
        return True
    
    def to_payload(self) -> Dict[str, Any]:
        return {
            'pluginName': self.plugin_name,
            'pluginRepository': self.plugin_repository,
            'pluginVersion': self.plugin_version,
            'jenkinsBaseline': self.jenkins_baseline,
            'targetBaseline': self.target_baseline,
            'effectiveBaseline': self.effective_baseline,
            'jenkinsVersion': self.jenkins_version,
            'jdk': self.toolchain,
            'migrationName': self.migration_name,
            'migrationDescription': self.migration_description,
            'migrationId': self.migration_id,
            'migrationStatus': self.migration_status,
            'tags': sorted(self.tags),
            'pullRequestUrl': self.pull_request_url,
            'pullRequestStatus': self.pull_request_status,
            'dryRun': self.dry_run,
            'additions': self.additions,
            'deletions': self.deletions,
            'changedFiles': self.changed_files,
        }
    
    @classmethod
    def from_payload(cls, payload: Dict[str, Any], key: str, path: str = ROOT_PATH) -> 'ModernizationRecord':
        return cls(
            key=key,
            path=path,
            plugin_name=payload.get('pluginName'),
            plugin_repository=payload.get('pluginRepository'),
            plugin_version=payload.get('pluginVersion'),
            jenkins_baseline=payload.get('jenkinsBaseline', ""),
            target_baseline=payload.get('targetBaseline', ""),
            effective_baseline=payload.get('effectiveBaseline', ""),
            jenkins_version=payload.get('jenkinsVersion', ""),
            toolchain=payload.get('jdk'),
            migration_name=payload.get('migrationName'),
            migration_description=payload.get('migrationDescription'),
            migration_id=payload.get('migrationId'),
            migration_status=payload.get('migrationStatus'),
            tags=set(payload.get('tags') or ()),
            pull_request_url=payload.get('pullRequestUrl', ""),
            pull_request_status=payload.get('pullRequestStatus', ""),
            dry_run=bool(payload.get('dryRun', False)),
            additions=payload.get('additions'),
            deletions=payload.get('deletions'),
            changed_files=payload.get('changedFiles'),
        )


@dataclass
class ErrorDetail:
    """One failure recorded on a component."""
    stage: Optional[str]
    message: str


@dataclass
class ComponentSummary:
    """Outcome of one component in a run."""
    name: str
    repository: Optional[str]
    state: PipelineState
    toolchain: Optional[int]
    errors: List[ErrorDetail]
    modified_files: List[str]
    pull_request_url: Optional[str] = None
    
    @property
    def failed(self) -> bool:
        return bool(self.errors)
    
    @classmethod
    def from_component(cls, component: Component) -> 'ComponentSummary':
        return cls(
            name=component.name,
            repository=component.repository_name,
            state=component.state,
            toolchain=component.toolchain.major if component.toolchain else None,
            errors=[ErrorDetail(error.stage, str(error)) for error in component.errors],
            modified_files=list(component.modified_files),
            pull_request_url=component.pull_request_url,
        )


@dataclass
class RunReport:
    """Complete result of a run over a batch of components."""
    components: List[ComponentSummary]
    skipped: List[str]
    dry_run: bool
    processing_time: float
    
    @property
    def total_components(self) -> int:
        return len(self.components)
    
    @property
    def failed_components(self) -> List[ComponentSummary]:
        return [summary for summary in self.components if summary.failed]
    
    @property
    def error_count(self) -> int:
        return sum(len(summary.errors) for summary in self.components)
