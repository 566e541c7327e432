"""
Shared test fixtures and fake collaborators.
"""

from pathlib import Path
from typing import Dict, List, Optional, Tuple
from unittest.mock import Mock

import pytest

from plugin_modernizer.cache.cache_manager import CacheManager
from plugin_modernizer.config import EndpointsConfig, PipelineConfig
from plugin_modernizer.metadata.downloader import MetadataDownloader
from plugin_modernizer.metadata.plugin_service import RemoteMetadataService
from plugin_modernizer.models import Component, ComponentMetadata, DiffStats, RepositoryKind
from plugin_modernizer.pipeline.base import BuildToolInvoker, SourceForgeClient

ENDPOINTS = EndpointsConfig(
    update_center_url="https://uc.example/update-center.json",
    health_score_url="https://health.example/scores",
    installation_stats_url="https://stats.example/installations.csv",
    maven_repository_url="https://repo.example/public",
)

UPDATE_CENTER = {
    "plugins": {
        "git": {
            "version": "5.2.1",
            "scm": "https://github.com/jenkinsci/git-plugin",
            "labels": ["scm"],
        },
        "jackson2-api": {
            "version": "2.17.0-379.v02de8ec9f64c",
            "scm": {"url": "https://github.com/jenkinsci/jackson2-api-plugin.git"},
            "labels": ["api-plugin", "library"],
        },
        "old-plugin": {
            "version": "1.0",
            "scm": "https://github.com/jenkinsci/old-plugin",
            "labels": ["adopt-this-plugin"],
        },
        "labelled-deprecated": {
            "version": "2.0",
            "scm": "https://github.com/jenkinsci/labelled-deprecated-plugin",
            "labels": ["deprecated"],
        },
        "no-scm": {
            "version": "1.1",
            "labels": [],
        },
        "bad-scm": {
            "version": "1.2",
            "scm": "https://github.com/jenkinsci/",
            "labels": [],
        },
    },
    "deprecations": {
        "old-plugin": {"url": "https://example/deprecated"},
    },
}

HEALTH_SCORES = {
    "plugins": {
        "git": {"value": 100},
        "jackson2-api": {"value": 93},
        "old-plugin": {"value": 42},
    }
}

INSTALLATION_STATS = "name,installations\ngit,310000\njackson2-api,290000\nold-plugin,0\n"

BOM_METADATA = """<?xml version="1.0" encoding="UTF-8"?>
<metadata>
  <groupId>io.jenkins.tools.bom</groupId>
  <artifactId>bom-2.462.x</artifactId>
  <versioning>
    <versions>
      <version>25</version>
      <version>26</version>
      <version>2987.v5b_8ad3a_f0fe0</version>
      <version>3143.v347db_7c6db_6e</version>
    </versions>
  </versioning>
</metadata>
"""


def make_downloader(json_documents=None, text_documents=None) -> Mock:
    """Downloader mock serving documents by URL; unknown URLs raise KeyError."""
    json_documents = dict(json_documents or {})
    text_documents = dict(text_documents or {})
    downloader = Mock(spec=MetadataDownloader)
    downloader.fetch_json.side_effect = lambda url: json_documents[url]
    downloader.fetch_text.side_effect = lambda url, accept='*/*': text_documents[url]
    return downloader


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """Return a temporary cache root."""
    return tmp_path / "cache"


@pytest.fixture
def cache_manager(cache_dir: Path) -> CacheManager:
    return CacheManager(str(cache_dir))


@pytest.fixture
def downloader() -> Mock:
    bom_url = f"{ENDPOINTS.maven_repository_url}/io/jenkins/tools/bom/bom-2.462.x/maven-metadata.xml"
    return make_downloader(
        json_documents={
            ENDPOINTS.update_center_url: UPDATE_CENTER,
            ENDPOINTS.health_score_url: HEALTH_SCORES,
        },
        text_documents={
            ENDPOINTS.installation_stats_url: INSTALLATION_STATS,
            bom_url: BOM_METADATA,
        },
    )


@pytest.fixture
def metadata_service(cache_manager: CacheManager, downloader: Mock) -> RemoteMetadataService:
    return RemoteMetadataService(cache_manager, endpoints=ENDPOINTS, downloader=downloader)


# ── Fake collaborators ───────────────────────────────────────────────


class FakeForge(SourceForgeClient):
    """Records every call; failures are configured per (method, component name)."""

    def __init__(self, forked=(), archived=(), failures: Optional[Dict[Tuple[str, str], Exception]] = None):
        self.forked = set(forked)
        self.archived = set(archived)
        self.failures = dict(failures or {})
        self.calls: List[Tuple[str, str]] = []

    def _call(self, method: str, component: Component) -> None:
        self.calls.append((method, component.name))
        failure = self.failures.get((method, component.name))
        if failure is not None:
            raise failure

    def calls_for(self, name: str) -> List[str]:
        return [method for method, component in self.calls if component == name]

    def fork(self, component, kind=RepositoryKind.PLUGIN):
        self._call('fork', component)
        self.forked.add(component.name)

    def is_forked(self, component, kind=RepositoryKind.PLUGIN):
        self._call('is_forked', component)
        return component.name in self.forked

    def is_archived(self, component, kind=RepositoryKind.PLUGIN):
        self._call('is_archived', component)
        return component.name in self.archived

    def delete_fork(self, component, kind=RepositoryKind.PLUGIN):
        self._call('delete_fork', component)
        self.forked.discard(component.name)

    def sync(self, component, kind=RepositoryKind.PLUGIN):
        self._call('sync', component)

    def fetch(self, component, kind=RepositoryKind.PLUGIN):
        self._call('fetch', component)

    def checkout_branch(self, component, kind=RepositoryKind.PLUGIN):
        self._call('checkout_branch', component)

    def commit_changes(self, component, kind=RepositoryKind.PLUGIN):
        self._call('commit_changes', component)
        return True

    def push_changes(self, component, kind=RepositoryKind.PLUGIN):
        self._call('push_changes', component)
        return True

    def open_pull_request(self, component, kind=RepositoryKind.PLUGIN):
        self._call('open_pull_request', component)
        return f"https://github.com/jenkinsci/{component.repository_name}/pull/1"

    def get_repository(self, component, kind=RepositoryKind.PLUGIN):
        self._call('get_repository', component)
        return component.repository_name

    def diff_stats(self, component, dry_run):
        self._call('diff_stats', component)
        return DiffStats(additions=3, deletions=1, changed_files=len(component.modified_files))


class FakeBuild(BuildToolInvoker):
    """Build tool returning fixed metadata, recording goals with the toolchain in use."""

    def __init__(self, baseline: str = "2.462.3", properties: Optional[Dict[str, str]] = None,
                 failures: Optional[Dict[Tuple[str, str], Exception]] = None,
                 transformed_baseline: Optional[str] = None):
        self.baseline = baseline
        self.transformed_baseline = transformed_baseline
        self.properties = dict(properties or {})
        self.failures = dict(failures or {})
        self.calls: List[Tuple[str, str, Optional[int]]] = []

    def _call(self, method: str, component: Component) -> None:
        toolchain = component.toolchain.major if component.toolchain else None
        self.calls.append((method, component.name, toolchain))
        failure = self.failures.get((method, component.name))
        if failure is not None:
            raise failure

    def calls_for(self, name: str) -> List[Tuple[str, Optional[int]]]:
        return [(method, toolchain) for method, component, toolchain in self.calls if component == name]

    def invoke_goal(self, component, goal, *args):
        self._call(goal, component)

    def invoke_transform(self, component):
        self._call('transform', component)
        if self.transformed_baseline:
            self.baseline = self.transformed_baseline
        return ['pom.xml']

    def collect_metadata(self, component):
        self._call('collect_metadata', component)
        return ComponentMetadata(
            plugin_name=component.name,
            baseline=self.baseline,
            toolchain_majors=[11, 17],
            properties=dict(self.properties, **{'jenkins.version': self.baseline}),
        )

    def ensure_minimal_build(self, component):
        self._call('ensure_minimal_build', component)


@pytest.fixture
def forge() -> FakeForge:
    return FakeForge(forked={'git', 'jackson2-api', 'old-plugin'})


@pytest.fixture
def build() -> FakeBuild:
    return FakeBuild()


@pytest.fixture
def pipeline_config() -> PipelineConfig:
    return PipelineConfig()
