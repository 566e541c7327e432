"""
Typed queries over remote plugin metadata.

Every dataset is loaded lazily: the first query of a run reads it from the
cache store, downloading and persisting it when it is not cached yet.
"""

import logging
import re
import threading
from typing import Callable, List, Optional, TypeVar

from .datasets import (
    DEPENDENCY_VERSIONS_CACHE_KEY,
    HEALTH_SCORE_CACHE_KEY,
    INSTALLATION_STATS_CACHE_KEY,
    UPDATE_CENTER_CACHE_KEY,
    DependencyVersionData,
    HealthScoreData,
    InstallationStatsData,
    UpdateCenterData,
)
from .downloader import MetadataDownloader
from .pom import StaticPomParser
from ..cache.cache_manager import CacheEntry, CacheManager
from ..config import DEFAULT_LOW_SCORE_THRESHOLD, DEFAULT_ORGANIZATION, EndpointsConfig
from ..exceptions import MetadataDownloadError, MetadataNotFoundError
from ..models import Component, MetadataFlag

logger = logging.getLogger(__name__)

E = TypeVar('E', bound=CacheEntry)

API_PLUGIN_SUFFIX = "-api"
DEPRECATED_LABEL = "deprecated"
ADOPTION_LABEL = "adopt-this-plugin"
API_PLUGIN_LABEL = "api-plugin"
MAX_SCORE = 100.0


def _strip_git_suffix(name: str) -> str:
    return re.sub(r'\.git$', '', name)


class RemoteMetadataService:
    """Remote metadata accessors backed by the cache store."""
    
    def __init__(self, cache_manager: CacheManager, endpoints: Optional[EndpointsConfig] = None,
                 downloader: Optional[MetadataDownloader] = None,
                 organization: str = DEFAULT_ORGANIZATION,
                 low_score_threshold: float = DEFAULT_LOW_SCORE_THRESHOLD):
        """
        Initialize the service.
        
        Args:
            cache_manager: Store holding the datasets in its shared scope
            endpoints: Remote endpoint configuration
            downloader: HTTP client, built from the endpoint timeout when omitted
            organization: Source-forge organization hosting the plugins
            low_score_threshold: Health score under which a plugin is flagged
        """
        self.cache_manager = cache_manager
        self.endpoints = endpoints or EndpointsConfig()
        self.downloader = downloader or MetadataDownloader(timeout=self.endpoints.timeout)
        self.organization = organization
        self.low_score_threshold = low_score_threshold
        self._loaded = {}
        self._lock = threading.RLock()
    
    # Dataset loading
    
    def _load(self, key: str, entry_type, download: Callable[[], E]) -> E:
        with self._lock:
            if key not in self._loaded:
                self._loaded[key] = self.cache_manager.get_or_fetch(
                    self.cache_manager.root(), key, entry_type, download)
            return self._loaded[key]
    
    def get_update_center_data(self) -> UpdateCenterData:
        return self._load(UPDATE_CENTER_CACHE_KEY, UpdateCenterData, self.download_update_center_data)
    
    def get_health_score_data(self) -> HealthScoreData:
        return self._load(HEALTH_SCORE_CACHE_KEY, HealthScoreData, self.download_health_score_data)
    
    def get_installation_stats_data(self) -> InstallationStatsData:
        return self._load(INSTALLATION_STATS_CACHE_KEY, InstallationStatsData,
                          self.download_installation_stats_data)
    
    def get_dependency_version_data(self) -> DependencyVersionData:
        return self._load(DEPENDENCY_VERSIONS_CACHE_KEY, DependencyVersionData, DependencyVersionData)
    
    def download_update_center_data(self) -> UpdateCenterData:
        logger.info("Downloading update center data")
        payload = self.downloader.fetch_json(self.endpoints.update_center_url)
        try:
            return UpdateCenterData.from_payload(payload, UPDATE_CENTER_CACHE_KEY)
        except ValueError as e:
            raise MetadataDownloadError(str(e), self.endpoints.update_center_url) from e
    
    def download_health_score_data(self) -> HealthScoreData:
        logger.info("Downloading plugin health scores")
        payload = self.downloader.fetch_json(self.endpoints.health_score_url)
        try:
            return HealthScoreData.from_payload(payload, HEALTH_SCORE_CACHE_KEY)
        except ValueError as e:
            raise MetadataDownloadError(str(e), self.endpoints.health_score_url) from e
    
    def download_installation_stats_data(self) -> InstallationStatsData:
        logger.info("Downloading plugin installation statistics")
        text = self.downloader.fetch_text(self.endpoints.installation_stats_url, accept='text/csv')
        return InstallationStatsData(InstallationStatsData.parse_csv(text))
    
    def download_published_versions(self, group_id: str, artifact_id: str) -> List[str]:
        url = (f"{self.endpoints.maven_repository_url.rstrip('/')}/"
               f"{group_id.replace('.', '/')}/{artifact_id}/maven-metadata.xml")
        text = self.downloader.fetch_text(url, accept='application/xml')
        try:
            return DependencyVersionData.parse_maven_metadata(text)
        except ValueError as e:
            raise MetadataDownloadError(str(e), url) from e
    
    def published_versions(self, artifact_id: str, group_id: Optional[str] = None) -> List[str]:
        """
        Get every published version of an artifact.
        
        Args:
            artifact_id: Artifact identifier
            group_id: Group identifier, defaults to the BOM group
            
        Returns:
            Published versions in publication order
            
        Raises:
            MetadataDownloadError: If the version index cannot be downloaded
        """
        group_id = group_id or self.endpoints.bom_group_id
        coordinates = f"{group_id}:{artifact_id}"
        with self._lock:
            data = self.get_dependency_version_data()
            versions = data.versions_for(coordinates)
            if versions is None:
                versions = self.download_published_versions(group_id, artifact_id)
                data.set_versions(coordinates, versions)
                self.cache_manager.put(data)
        return versions
    
    # Plugin queries
    
    def _not_found(self, component: Component, message: str) -> MetadataNotFoundError:
        component.add_error(message, stage='repository')
        return MetadataNotFoundError(message, component.name)
    
    def repository_name_for(self, component: Component) -> str:
        """
        Resolve the source repository name of a plugin.
        
        Local plugins use their pom: the gitHubRepo property, then the
        last segment of the SCM connection, then the checkout directory
        name. Other plugins use the SCM URL published by the update center.
        
        Raises:
            MetadataNotFoundError: If the plugin is not in the update center or
                its SCM URL is missing or malformed. The error is also recorded
                on the component.
        """
        if component.local:
            return self._local_repository_name(component)
        
        update_center = self.get_update_center_data()
        if update_center.get_plugin(component.name) is None:
            raise self._not_found(component, "Plugin not found in update center")
        scm_url = update_center.scm_url(component.name)
        if not scm_url:
            raise self._not_found(component, "SCM information is missing in the update center")
        
        last_slash = scm_url.rstrip().rfind('/')
        if last_slash == -1 or last_slash == len(scm_url.rstrip()) - 1:
            raise self._not_found(component, f"Invalid SCM URL format: {scm_url}")
        return _strip_git_suffix(scm_url.rstrip()[last_slash + 1:])
    
    def _local_repository_name(self, component: Component) -> str:
        directory = component.local_repository
        pom = directory / 'pom.xml'
        if pom.is_file():
            parser = StaticPomParser(str(pom))
            github_repo = parser.get_github_repo_property()
            if github_repo:
                return github_repo.replace(f"{self.organization}/", "")
            scm_connection = parser.get_scm_connection()
            if scm_connection:
                return _strip_git_suffix(scm_connection.rstrip('/').rsplit('/', 1)[-1])
        else:
            logger.debug(f"No pom file found in {directory}")
        
        component.log.debug(f"No SCM information found, assuming folder name {directory.name} is the repository name")
        return directory.name
    
    def is_deprecated(self, component: Component) -> bool:
        update_center = self.get_update_center_data()
        # Older plugins are listed as deprecations, newer ones carry a label
        if component.name in update_center.deprecations:
            return True
        return DEPRECATED_LABEL in update_center.labels(component.name)
    
    def is_for_adoption(self, component: Component) -> bool:
        return ADOPTION_LABEL in self.get_update_center_data().labels(component.name)
    
    def is_api_plugin(self, component: Component) -> bool:
        """
        Best-effort check for API plugins.
        
        Relies on the recent convention that API plugins carry the api-plugin
        label and a name ending with "-api".
        """
        labels = self.get_update_center_data().labels(component.name)
        return API_PLUGIN_LABEL in labels and component.name.endswith(API_PLUGIN_SUFFIX)
    
    def current_version(self, component: Component) -> Optional[str]:
        """
        Get the latest released version of a plugin.
        
        Returns:
            Version from the update center, None for local plugins
            
        Raises:
            MetadataNotFoundError: If the plugin is not in the update center
        """
        if component.local:
            return None
        plugin = self.get_update_center_data().get_plugin(component.name)
        if plugin is None:
            raise self._not_found(component, "Plugin not found in update center")
        return plugin.get('version')
    
    def health_score(self, component: Component) -> Optional[float]:
        if component.local:
            return None
        return self.get_health_score_data().score(component.name)
    
    def has_max_score(self, component: Component) -> bool:
        score = self.health_score(component)
        return score is not None and score == MAX_SCORE
    
    def has_low_score(self, component: Component, threshold: Optional[float] = None) -> bool:
        score = self.health_score(component)
        limit = self.low_score_threshold if threshold is None else threshold
        return score is not None and score < limit
    
    def install_count(self, component: Component) -> Optional[int]:
        if component.local:
            return None
        return self.get_installation_stats_data().installations(component.name)
    
    def has_no_known_installations(self, component: Component) -> bool:
        if component.local:
            return False
        installations = self.install_count(component)
        return installations is None or installations == 0
    
    def metadata_flags(self, component: Component) -> List[MetadataFlag]:
        """
        Compute the metadata flags that apply to a plugin.
        
        Returns:
            Applicable flags, in declaration order
        """
        checks = {
            MetadataFlag.IS_DEPRECATED: self.is_deprecated,
            MetadataFlag.IS_API_PLUGIN: self.is_api_plugin,
            MetadataFlag.IS_FOR_ADOPTION: self.is_for_adoption,
            MetadataFlag.HAS_MAX_SCORE: self.has_max_score,
            MetadataFlag.HAS_LOW_SCORE: self.has_low_score,
            MetadataFlag.NO_KNOWN_INSTALLATION: self.has_no_known_installations,
        }
        return [flag for flag, check in checks.items() if check(component)]
    
    def reset(self) -> None:
        """Forget datasets loaded during this run."""
        with self._lock:
            self._loaded.clear()
