"""
Pipeline Module

Drives each plugin through fork, sync, fetch, build, transform, verify and
publish steps against pluggable source-forge and build-tool collaborators.
"""

from .base import BuildToolInvoker, SourceForgeClient
from .modernizer import PluginModernizer

__all__ = ['BuildToolInvoker', 'SourceForgeClient', 'PluginModernizer']
