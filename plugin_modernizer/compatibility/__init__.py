"""
Compatibility Module

Contains the toolchain catalog and the version comparison logic used to
decide which toolchains may build a plugin for a given baseline.
"""

from .version_comparator import BaselineVersionComparator
from .toolchains import ToolchainVersion

__all__ = ['BaselineVersionComparator', 'ToolchainVersion']
