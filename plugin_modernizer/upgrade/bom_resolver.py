"""
Upgrade target resolution for the plugin bill of materials (BOM).

BOM releases moved from plain numbers to commit hash based versions. Both
formats are still published, so candidates are checked against two
comparators: one for the current format and one for the legacy format.
"""

import logging
import re
from typing import Dict, List, Optional

from .release_comparator import (
    CURRENT_FORMAT_METADATA_PATTERN,
    LatestReleaseComparator,
    is_release_version,
)
from ..compatibility.version_comparator import BaselineVersionComparator
from ..exceptions import MetadataDownloadError

logger = logging.getLogger(__name__)

PROPERTY_REFERENCE_PATTERN = re.compile(r'\$\{([^}]+)\}')


def bom_artifact_for_baseline(baseline: str) -> str:
    """
    Get the BOM artifact matching a baseline line.
    
    Args:
        baseline: Platform baseline (e.g., "2.346.3")
        
    Returns:
        BOM artifact id (e.g., "bom-2.346.x")
    """
    major, minor = BaselineVersionComparator().release_tuple(baseline)[:2]
    return f"bom-{major}.{minor}.x"


def interpolate_artifact_id(artifact_id: str, properties: Dict[str, str]) -> str:
    """
    Replace ${...} references in an artifact id.
    
    Args:
        artifact_id: Artifact id, e.g. "bom-${jenkins.baseline}.x"
        properties: Build descriptor properties
        
    Returns:
        Artifact id with every reference resolved
        
    Raises:
        KeyError: If a referenced property is not defined
    """
    return PROPERTY_REFERENCE_PATTERN.sub(lambda m: properties[m.group(1)], artifact_id)


class DependencyUpgradeResolver:
    """Computes the best upgrade target of a dependency artifact."""
    
    def __init__(self, versions_source, current_comparator: Optional[LatestReleaseComparator] = None,
                 legacy_comparator: Optional[LatestReleaseComparator] = None):
        """
        Initialize the resolver.
        
        Args:
            versions_source: Object exposing published_versions(artifact_id, group_id=None)
            current_comparator: Comparator of the current version format
            legacy_comparator: Comparator of the legacy version format
        """
        self.versions_source = versions_source
        self.current_comparator = current_comparator or LatestReleaseComparator(CURRENT_FORMAT_METADATA_PATTERN)
        self.legacy_comparator = legacy_comparator or LatestReleaseComparator(None)
    
    def latest_version(self, artifact_id: str, current_version: str,
                       group_id: Optional[str] = None) -> Optional[str]:
        """
        Find the upgrade target of an artifact.
        
        Args:
            artifact_id: Artifact identifier
            current_version: Version currently in use
            group_id: Optional group identifier
            
        Returns:
            Version to switch to, or None to leave the dependency unchanged.
            Metadata download failures are logged and yield None.
        """
        try:
            versions = self.versions_source.published_versions(artifact_id, group_id)
        except MetadataDownloadError as e:
            logger.warning(f"Failed to download metadata for {artifact_id}: {e}")
            return None
        
        target = self.resolve(current_version, versions)
        if target is None or target == current_version:
            logger.debug(f"No newer version available for {artifact_id}")
            return None
        logger.debug(f"Newer version available for {artifact_id}: {target}")
        return target
    
    def resolve(self, current_version: str, versions: List[str]) -> Optional[str]:
        """
        Pick the upgrade target among published versions.
        
        When the current version is not a release (for example an
        incremental build) or is not a release of the current format, the
        newest current-format release wins, then the newest legacy release,
        and finally the current version itself. This may downgrade from an
        incremental build to the latest release. Otherwise the strict
        upgrade within current-format releases is returned.
        
        Args:
            current_version: Version currently in use
            versions: Every published version
            
        Returns:
            Target version, the unchanged current version, or None when no
            strictly newer release exists
        """
        candidates = [v for v in versions if self.current_comparator.is_valid(current_version, v)]
        legacy_candidates = [v for v in versions if self.legacy_comparator.is_valid(current_version, v)]
        
        if (not is_release_version(current_version) and candidates) or current_version not in candidates:
            if candidates:
                return self.current_comparator.sort_versions(candidates)[-1]
            if legacy_candidates:
                return self.legacy_comparator.sort_versions(legacy_candidates)[-1]
            return current_version
        
        return self.current_comparator.upgrade(current_version, candidates)
