"""
Upgrade Module

Computes upgrade targets for versioned dependency artifacts such as the
plugin bill of materials.
"""

from .bom_resolver import DependencyUpgradeResolver
from .release_comparator import LatestReleaseComparator, is_release_version

__all__ = ['DependencyUpgradeResolver', 'LatestReleaseComparator', 'is_release_version']
