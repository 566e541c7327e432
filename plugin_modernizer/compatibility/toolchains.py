"""
Toolchain (JDK) catalog and compatibility rules.

The catalog is a closed, hand-curated set of toolchains. Each entry says
from which baseline it can be used and up to which baseline it is still
supported. Every function here is pure and works over the full catalog.

See https://www.jenkins.io/doc/book/platform-information/support-policy-java/
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .version_comparator import compare_baselines


@dataclass(frozen=True)
class ToolchainVersion:
    """A toolchain usable to build a plugin."""
    major: int
    lts: bool = True
    compatible_since: Optional[str] = None  # lowest baseline, None means unbounded
    max_baseline: Optional[str] = None  # highest baseline, None means unbounded
    companion_library_version: Optional[str] = None  # latest test harness for this toolchain
    
    @property
    def name(self) -> str:
        return f"JAVA_{self.major}"
    
    def __str__(self):
        return self.name


JAVA_8 = ToolchainVersion(8, True, None, "2.346.1", "1900.v9e128c991ef4")
JAVA_11 = ToolchainVersion(11, True, "2.164.1", "2.462.3", "2225.v04fa_3929c9b_5")
JAVA_17 = ToolchainVersion(17, True, "2.346.1", None, None)
JAVA_21 = ToolchainVersion(21, True, "2.426.1", None, None)

CATALOG: Tuple[ToolchainVersion, ...] = tuple(
    sorted((JAVA_8, JAVA_11, JAVA_17, JAVA_21), key=lambda t: t.major)
)


def _by_major(toolchains: Iterable[ToolchainVersion], reverse: bool = False) -> List[ToolchainVersion]:
    return sorted(set(toolchains), key=lambda t: t.major, reverse=reverse)


def all_toolchains() -> List[ToolchainVersion]:
    """Return the whole catalog, ascending by major."""
    return list(CATALOG)


def get(major: int) -> Optional[ToolchainVersion]:
    """
    Get the toolchain for a major version.
    
    Args:
        major: Major version number
        
    Returns:
        ToolchainVersion or None if the catalog has no such major
    """
    for toolchain in CATALOG:
        if toolchain.major == int(major):
            return toolchain
    return None


def implicit() -> ToolchainVersion:
    """Toolchain assumed when a build pipeline does not declare any."""
    return JAVA_8


def compatible_toolchains(baseline: str) -> List[ToolchainVersion]:
    """
    Get every toolchain able to build against a baseline.
    
    Args:
        baseline: Platform baseline version (e.g., "2.346.1")
        
    Returns:
        Compatible toolchains, ascending by major
        
    Raises:
        VersionParseError: If the baseline is malformed
    """
    compatible = []
    for toolchain in CATALOG:
        if toolchain.compatible_since is not None and compare_baselines(baseline, toolchain.compatible_since) < 0:
            continue
        if toolchain.max_baseline is not None and compare_baselines(baseline, toolchain.max_baseline) > 0:
            continue
        compatible.append(toolchain)
    return compatible


def is_supported(toolchain: ToolchainVersion, baseline: str) -> bool:
    """Check if a toolchain can build against a baseline."""
    return toolchain in compatible_toolchains(baseline)


def highest_two(toolchains: Iterable[ToolchainVersion]) -> Tuple[ToolchainVersion, ToolchainVersion]:
    """
    Get the primary and fallback toolchains for a build pipeline descriptor.
    
    Args:
        toolchains: Non-empty collection of toolchains
        
    Returns:
        Tuple of (highest, second highest). Both are the same toolchain when
        only one is given.
        
    Raises:
        ValueError: If no toolchain is given
    """
    ordered = _by_major(toolchains, reverse=True)
    if not ordered:
        raise ValueError("At least one toolchain is required")
    if len(ordered) == 1:
        return ordered[0], ordered[0]
    return ordered[0], ordered[1]


def minimum(toolchains: Optional[Iterable[ToolchainVersion]] = None) -> ToolchainVersion:
    """
    Get the oldest toolchain of a collection.
    
    An empty or missing collection yields the oldest toolchain of the catalog,
    so callers never end up without a toolchain.
    """
    ordered = _by_major(toolchains or ())
    return ordered[0] if ordered else CATALOG[0]


def maximum(toolchains: Optional[Iterable[ToolchainVersion]] = None) -> ToolchainVersion:
    """
    Get the newest toolchain of a collection.
    
    An empty or missing collection yields the newest toolchain of the catalog.
    """
    ordered = _by_major(toolchains or ())
    return ordered[-1] if ordered else CATALOG[-1]


def next_toolchain(toolchain: ToolchainVersion) -> Optional[ToolchainVersion]:
    """Return the next toolchain in the catalog, None for the newest."""
    for candidate in CATALOG:
        if candidate.major > toolchain.major:
            return candidate
    return None


def previous_toolchain(toolchain: ToolchainVersion) -> Optional[ToolchainVersion]:
    """Return the previous toolchain in the catalog, None for the oldest."""
    for candidate in reversed(CATALOG):
        if candidate.major < toolchain.major:
            return candidate
    return None


def has_next(toolchain: ToolchainVersion) -> bool:
    return next_toolchain(toolchain) is not None


def has_previous(toolchain: ToolchainVersion) -> bool:
    return previous_toolchain(toolchain) is not None


def lowest_majors(toolchains: Iterable[ToolchainVersion], total: int) -> List[int]:
    """
    Keep the lowest majors of a collection.
    
    Args:
        toolchains: Toolchains to filter
        total: Number of majors to keep
        
    Returns:
        Up to `total` major versions, ascending
    """
    return [t.major for t in _by_major(toolchains)[:total]]


def companion_library_version_for(baseline: str) -> Optional[str]:
    """
    Get the companion library (test harness) version usable with a baseline.
    
    The oldest toolchain able to build the baseline decides the version,
    since every build of the plugin must be able to use it.
    
    Args:
        baseline: Platform baseline version
        
    Returns:
        Companion library version, or None when the oldest compatible
        toolchain does not cap it
        
    Raises:
        ValueError: If baseline is None or empty
        VersionParseError: If baseline is malformed
    """
    if not baseline:
        raise ValueError("Baseline version cannot be null or empty")
    return minimum(compatible_toolchains(baseline)).companion_library_version
