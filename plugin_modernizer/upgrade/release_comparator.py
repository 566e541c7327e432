"""
Release version comparison for dependency artifacts.

A release version is a dotted numeric prefix optionally followed by
metadata. Which metadata is acceptable depends on the version format of
the artifact: current BOM releases look like "5054.v620b_5d2b_d5e6"
(build number plus ".v" and a commit hash) while legacy ones are plain
numbers like "26".
"""

import logging
import re
from typing import Iterable, Optional, Tuple

from ..compatibility.base import VersionComparator
from ..exceptions import VersionParseError

logger = logging.getLogger(__name__)

# Numeric prefix followed by anything
NUMERIC_PREFIX_PATTERN = re.compile(r'^(?P<numbers>\d+(?:\.\d+)*)(?P<metadata>.*)$')

# Shape of any release version
RELEASE_PATTERN = re.compile(r'^\d+(?:\.\d+)*(?:[.-][0-9A-Za-z_]+)*$')

# Markers of pre-release and incremental builds
PRE_RELEASE_PATTERN = re.compile(r'[.-](alpha|beta|milestone|rc|cr|snapshot|preview)(?=\d|[.-]|$)',
                                 re.IGNORECASE)

# Metadata of releases following the current (commit hash based) scheme
CURRENT_FORMAT_METADATA_PATTERN = r'\.v[a-f0-9_]+'


def is_release_version(version: str) -> bool:
    """
    Check if a version string denotes a tagged release.
    
    Args:
        version: Version string
        
    Returns:
        False for pre-release, snapshot and incremental identifiers
    """
    if not version:
        return False
    return bool(RELEASE_PATTERN.match(version)) and not PRE_RELEASE_PATTERN.search(version)


class LatestReleaseComparator(VersionComparator):
    """Accepts and orders release versions of one version format."""
    
    def __init__(self, metadata_pattern: Optional[str] = None):
        """
        Initialize the comparator.
        
        Args:
            metadata_pattern: Regex the metadata after the numeric prefix must
                fully match. None accepts purely numeric versions only.
        """
        self.metadata_pattern = re.compile(metadata_pattern) if metadata_pattern else None
        self._version_cache = {}
    
    def parse_version(self, version: str) -> Tuple[Tuple[int, ...], str]:
        """
        Split a version into its numeric components and metadata.
        
        Raises:
            VersionParseError: If the version has no numeric prefix
        """
        if version in self._version_cache:
            return self._version_cache[version]
        
        match = NUMERIC_PREFIX_PATTERN.match(version or '')
        if not match:
            raise VersionParseError("no numeric prefix", version)
        
        result = (tuple(int(part) for part in match.group('numbers').split('.')), match.group('metadata'))
        self._version_cache[version] = result
        return result
    
    def is_valid(self, current_version: Optional[str], version: str) -> bool:
        """
        Check if a version is an acceptable next version.
        
        Args:
            current_version: Version in use. Candidates are accepted on their
                format alone, so older releases stay valid targets.
            version: Candidate version
            
        Returns:
            True if the candidate is a release in this comparator's format
        """
        if not is_release_version(version):
            return False
        _, metadata = self.parse_version(version)
        if self.metadata_pattern is None:
            return metadata == ''
        return bool(self.metadata_pattern.fullmatch(metadata))
    
    def compare_versions(self, version1: str, version2: str) -> int:
        numbers1, metadata1 = self.parse_version(version1)
        numbers2, metadata2 = self.parse_version(version2)
        
        # Missing components count as zero
        width = max(len(numbers1), len(numbers2))
        padded1 = numbers1 + (0,) * (width - len(numbers1))
        padded2 = numbers2 + (0,) * (width - len(numbers2))
        
        if padded1 != padded2:
            return -1 if padded1 < padded2 else 1
        if metadata1 != metadata2:
            return -1 if metadata1 < metadata2 else 1
        return 0
    
    def upgrade(self, current_version: str, versions: Iterable[str]) -> Optional[str]:
        """
        Get the newest version strictly greater than the current one.
        
        Args:
            current_version: Version in use
            versions: Candidate versions
            
        Returns:
            Upgrade target or None when nothing newer exists
        """
        newer = [v for v in versions
                 if self.is_valid(current_version, v) and self.compare_versions(v, current_version) > 0]
        return self.get_latest_version(newer)
