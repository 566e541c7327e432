"""
Plugin Modernizer

A Python tool that drives a fleet of plugins through an automated
fork, build, transform, verify and publish modernization pipeline.
"""

__version__ = "0.3.0"
__author__ = "Plugin Modernizer Team"

# Make version easily importable
def get_version():
    """Get the current version of the Plugin Modernizer."""
    return __version__

__all__ = ['get_version']
