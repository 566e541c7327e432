"""
Metadata Module

Remote datasets (update center, health scores, installation statistics,
published artifact versions) and typed queries over them.
"""

from .datasets import (
    DependencyVersionData,
    HealthScoreData,
    InstallationStatsData,
    UpdateCenterData,
)
from .downloader import MetadataDownloader
from .plugin_service import RemoteMetadataService

__all__ = [
    'DependencyVersionData',
    'HealthScoreData',
    'InstallationStatsData',
    'UpdateCenterData',
    'MetadataDownloader',
    'RemoteMetadataService',
]
