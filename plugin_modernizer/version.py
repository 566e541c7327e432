"""
Version management for Plugin Modernizer.

Keeps the tool version in one place so the user agent, the CLI and the
run records all report the same value.
"""

from . import __version__


def get_version() -> str:
    """
    Get the current version of the Plugin Modernizer.
    
    Returns:
        Version string (e.g., "0.3.0")
    """
    return __version__


def get_user_agent() -> str:
    """
    Get the HTTP user agent sent to remote metadata services.
    
    Returns:
        User agent string (e.g., "Plugin-Modernizer/0.3.0")
    """
    return f"Plugin-Modernizer/{__version__}"


def get_full_name_with_version() -> str:
    """
    Get the full tool name with version.
    
    Returns:
        Full name string (e.g., "Plugin Modernizer v0.3.0")
    """
    return f"Plugin Modernizer v{__version__}"
