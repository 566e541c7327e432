"""
Abstract base classes for version comparison.
"""

from abc import ABC, abstractmethod
import functools
from typing import Iterable, List, Optional


class VersionComparator(ABC):
    """Abstract base class for version comparison logic."""
    
    @abstractmethod
    def compare_versions(self, version1: str, version2: str) -> int:
        """
        Compare two version strings.
        
        Args:
            version1: First version string
            version2: Second version string
            
        Returns:
            -1 if version1 < version2, 0 if equal, 1 if version1 > version2
            
        Raises:
            VersionParseError: If either version is malformed
        """
        pass
    
    def sort_versions(self, versions: Iterable[str]) -> List[str]:
        """
        Sort version strings in ascending order.
        
        Args:
            versions: Version strings to sort
            
        Returns:
            New list sorted from oldest to newest
        """
        return sorted(versions, key=functools.cmp_to_key(self.compare_versions))
    
    def get_latest_version(self, versions: Iterable[str]) -> Optional[str]:
        """
        Get the latest version from a collection of version strings.
        
        Args:
            versions: Version strings
            
        Returns:
            Latest version string or None if the collection is empty
        """
        ordered = self.sort_versions(versions)
        return ordered[-1] if ordered else None
