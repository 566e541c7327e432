"""
Version comparison for platform baselines.

Baselines are dotted numeric versions ("2.346.1", "2.479"). Components are
compared one by one and missing components count as zero, so "2.346" and
"2.346.0" are equal.
"""

import logging
import re
from typing import Tuple

from packaging.version import InvalidVersion, Version

from .base import VersionComparator
from ..exceptions import VersionParseError

logger = logging.getLogger(__name__)

# Dotted numbers only, no qualifiers
BASELINE_PATTERN = re.compile(r'^\d+(\.\d+)*$')


class BaselineVersionComparator(VersionComparator):
    """Dotted numeric comparator for baseline versions."""
    
    def __init__(self):
        # Cache for parsed versions
        self._version_cache = {}
    
    def parse_version(self, version: str) -> Version:
        """
        Parse a baseline version string.
        
        Args:
            version: Version string to parse
            
        Returns:
            Parsed packaging Version
            
        Raises:
            VersionParseError: If version is empty or malformed
        """
        if version is None or not str(version).strip():
            raise VersionParseError("version string cannot be empty", version)
        
        if version in self._version_cache:
            return self._version_cache[version]
        
        text = str(version).strip()
        if not BASELINE_PATTERN.match(text):
            raise VersionParseError("expected dot separated numbers", version)

        try:
            parsed = Version(text)
        except InvalidVersion as e:
            raise VersionParseError(str(e), version) from e
        
        self._version_cache[version] = parsed
        return parsed
    
    def release_tuple(self, version: str, width: int = 3) -> Tuple[int, ...]:
        """
        Get the numeric components of a version padded with zeros.
        
        Args:
            version: Version string
            width: Minimum number of components
            
        Returns:
            Tuple of integers
        """
        release = self.parse_version(version).release
        return release + (0,) * max(0, width - len(release))
    
    def compare_versions(self, version1: str, version2: str) -> int:
        v1 = self.parse_version(version1)
        v2 = self.parse_version(version2)
        if v1 < v2:
            return -1
        if v1 > v2:
            return 1
        return 0
    
    def is_valid_version(self, version: str) -> bool:
        """
        Check if a version string is a well-formed baseline.
        
        Args:
            version: Version string to validate
            
        Returns:
            True if version is valid, False otherwise
        """
        try:
            self.parse_version(version)
            return True
        except VersionParseError:
            return False


_default_comparator = BaselineVersionComparator()


def compare_baselines(version1: str, version2: str) -> int:
    """Compare two baselines with the shared comparator."""
    return _default_comparator.compare_versions(version1, version2)
