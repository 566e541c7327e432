"""
Cached remote datasets.

Each dataset is a cache entry whose payload maps plugin or artifact names to
facts. Payload shapes follow the remote services so a cached file can be
compared with a fresh download.
"""

import csv
import io
import logging
from typing import Any, Dict, List, Optional

import defusedxml.ElementTree as ET

from ..cache.cache_manager import ROOT_PATH, CacheEntry

logger = logging.getLogger(__name__)

UPDATE_CENTER_CACHE_KEY = "update-center.json"
HEALTH_SCORE_CACHE_KEY = "health-score.json"
INSTALLATION_STATS_CACHE_KEY = "installation-stats.json"
DEPENDENCY_VERSIONS_CACHE_KEY = "dependency-versions.json"


def _require_mapping(payload: Any, name: str) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValueError(f"{name} must be a JSON object, got {type(payload).__name__}")
    return payload


class UpdateCenterData(CacheEntry):
    """Catalog of published plugins and deprecations."""
    
    def __init__(self, data: Dict[str, Any], key: str = UPDATE_CENTER_CACHE_KEY, path: str = ROOT_PATH):
        super().__init__(key, path)
        self.data = data
    
    @property
    def plugins(self) -> Dict[str, Dict[str, Any]]:
        return self.data.get('plugins') or {}
    
    @property
    def deprecations(self) -> Dict[str, Any]:
        return self.data.get('deprecations') or {}
    
    def get_plugin(self, name: str) -> Optional[Dict[str, Any]]:
        return self.plugins.get(name)
    
    def labels(self, name: str) -> List[str]:
        plugin = self.get_plugin(name)
        return list(plugin.get('labels') or []) if plugin else []
    
    def scm_url(self, name: str) -> Optional[str]:
        """
        Get the SCM URL of a plugin.
        
        The update center publishes it either as a string or as an object
        with a "url" member.
        
        Returns:
            SCM URL, or None when the plugin or its SCM information is missing
        """
        plugin = self.get_plugin(name)
        if plugin is None:
            return None
        scm = plugin.get('scm')
        if isinstance(scm, dict):
            return scm.get('url')
        if isinstance(scm, str):
            return scm
        return None
    
    def to_payload(self) -> Dict[str, Any]:
        return self.data
    
    @classmethod
    def from_payload(cls, payload: Any, key: str, path: str = ROOT_PATH) -> 'UpdateCenterData':
        payload = _require_mapping(payload, 'update center')
        _require_mapping(payload.get('plugins', {}), 'update center plugins')
        return cls(payload, key, path)


class HealthScoreData(CacheEntry):
    """Health score (0-100) per plugin."""
    
    def __init__(self, data: Dict[str, Any], key: str = HEALTH_SCORE_CACHE_KEY, path: str = ROOT_PATH):
        super().__init__(key, path)
        self.data = data
    
    def score(self, name: str) -> Optional[float]:
        plugin = (self.data.get('plugins') or {}).get(name)
        if not plugin or plugin.get('value') is None:
            return None
        return float(plugin['value'])
    
    def to_payload(self) -> Dict[str, Any]:
        return self.data
    
    @classmethod
    def from_payload(cls, payload: Any, key: str, path: str = ROOT_PATH) -> 'HealthScoreData':
        return cls(_require_mapping(payload, 'health score'), key, path)


class InstallationStatsData(CacheEntry):
    """Number of known installations per plugin."""
    
    def __init__(self, plugins: Dict[str, int], key: str = INSTALLATION_STATS_CACHE_KEY, path: str = ROOT_PATH):
        super().__init__(key, path)
        self.plugins = plugins
    
    def installations(self, name: str) -> Optional[int]:
        return self.plugins.get(name)
    
    @classmethod
    def parse_csv(cls, text: str) -> Dict[str, int]:
        """
        Parse installation statistics.
        
        Args:
            text: CSV content with one "plugin,count" row per plugin
            
        Returns:
            Mapping of plugin name to installation count. Header and
            malformed rows are skipped.
        """
        stats = {}
        for row in csv.reader(io.StringIO(text)):
            if len(row) < 2:
                continue
            name, count = row[0].strip(), row[1].strip()
            try:
                stats[name] = int(count)
            except ValueError:
                logger.debug(f"Skipping installation stats row: {row}")
        return stats
    
    def to_payload(self) -> Dict[str, int]:
        return self.plugins
    
    @classmethod
    def from_payload(cls, payload: Any, key: str, path: str = ROOT_PATH) -> 'InstallationStatsData':
        payload = _require_mapping(payload, 'installation stats')
        return cls({name: int(count) for name, count in payload.items()}, key, path)


class DependencyVersionData(CacheEntry):
    """Published versions per dependency artifact ("groupId:artifactId")."""
    
    def __init__(self, artifacts: Optional[Dict[str, List[str]]] = None,
                 key: str = DEPENDENCY_VERSIONS_CACHE_KEY, path: str = ROOT_PATH):
        super().__init__(key, path)
        self.artifacts = artifacts if artifacts is not None else {}
    
    def versions_for(self, artifact: str) -> Optional[List[str]]:
        versions = self.artifacts.get(artifact)
        return list(versions) if versions is not None else None
    
    def set_versions(self, artifact: str, versions: List[str]) -> None:
        self.artifacts[artifact] = list(versions)
    
    @staticmethod
    def parse_maven_metadata(xml_text: str) -> List[str]:
        """
        Extract published versions from a maven-metadata.xml document.
        
        Args:
            xml_text: Content of maven-metadata.xml
            
        Returns:
            Versions in publication order
            
        Raises:
            ValueError: If the document is not valid XML
        """
        try:
            root = ET.fromstring(xml_text)
        except ET.ParseError as e:
            raise ValueError(f"Invalid maven metadata: {e}") from e
        return [v.text.strip() for v in root.iterfind('./versioning/versions/version') if v.text and v.text.strip()]
    
    def to_payload(self) -> Dict[str, List[str]]:
        return self.artifacts
    
    @classmethod
    def from_payload(cls, payload: Any, key: str, path: str = ROOT_PATH) -> 'DependencyVersionData':
        payload = _require_mapping(payload, 'dependency versions')
        return cls({artifact: [str(v) for v in versions] for artifact, versions in payload.items()}, key, path)
